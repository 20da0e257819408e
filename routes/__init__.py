from .image_studio import router as image_studio_router

__all__ = [
    "image_studio_router",
]
