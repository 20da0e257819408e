from .image_adapter import (
    GeneratedImage,
    ImageRequestAdapter,
    ProviderError,
    SourceImage,
)

__all__ = [
    "GeneratedImage",
    "ImageRequestAdapter",
    "ProviderError",
    "SourceImage",
]
