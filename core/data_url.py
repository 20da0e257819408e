import base64
import binascii
from typing import Tuple

DATA_URL_PREFIX = "data:"


class InvalidImageError(ValueError):
    def __init__(self, message: str, code: str = "invalid_image"):
        self.message = message
        self.code = code
        super().__init__(message)


def to_data_url(data: str, mime_type: str) -> str:
    return f"data:{mime_type};base64,{data}"


def parse_data_url(value: str) -> Tuple[str, str]:
    """Split a `data:<mime>;base64,<payload>` string into (payload, mime)."""

    if not value or not value.startswith(DATA_URL_PREFIX):
        raise InvalidImageError("imageDataUrl must be a data: URL")

    header, sep, payload = value[len(DATA_URL_PREFIX):].partition(",")
    if not sep:
        raise InvalidImageError("imageDataUrl is missing its payload")

    params = header.split(";")
    if "base64" not in (p.strip().lower() for p in params[1:]):
        raise InvalidImageError("imageDataUrl must be base64 encoded")

    mime_type = params[0].strip().lower()
    # base64 bodies are often wrapped at 76 columns
    return "".join(payload.split()), mime_type


def decoded_size(data: str) -> int:
    try:
        return len(base64.b64decode(data, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError("image data is not valid base64") from exc


def validate_source_image(data: str, mime_type: str, *, max_bytes: int) -> None:
    if not mime_type or not mime_type.lower().startswith("image/"):
        raise InvalidImageError("Please upload a valid image file (e.g., PNG, JPG, WEBP).")
    if not data:
        raise InvalidImageError("image data is empty")

    size = decoded_size(data)
    if size == 0:
        raise InvalidImageError("image data is empty")
    if size > max_bytes:
        raise InvalidImageError(
            f"image is {size} bytes; the limit is {max_bytes} bytes",
            code="image_too_large",
        )


__all__ = [
    "InvalidImageError",
    "to_data_url",
    "parse_data_url",
    "decoded_size",
    "validate_source_image",
]
