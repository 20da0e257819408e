from .image_errors import (
    format_failure_message,
    get_image_error_message,
    normalize_language,
)

__all__ = [
    "format_failure_message",
    "get_image_error_message",
    "normalize_language",
]
