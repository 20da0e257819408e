import base64
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from core.config import DEFAULT_MAX_SOURCE_IMAGE_BYTES
from core.data_url import InvalidImageError, parse_data_url, validate_source_image
from errors_response.image_errors import get_image_error_message, normalize_language
from schemas import ImageStudioRequest, ImageStudioResponse
from services.image_adapter import GenerationRequest, ImageRequestAdapter, SourceImage

logger = logging.getLogger("image_studio.routes.image_studio")

router = APIRouter(prefix="/api/v1/image", tags=["Image"])


def get_image_adapter(request: Request) -> ImageRequestAdapter:
    adapter = getattr(request.app.state, "image_adapter", None)
    if adapter is None:
        raise HTTPException(
            status_code=503,
            detail={"success": False, "error": "adapter_unavailable", "message": "Image service is not configured"},
        )
    return adapter


def _max_source_bytes(request: Request) -> int:
    return getattr(request.app.state, "max_source_image_bytes", DEFAULT_MAX_SOURCE_IMAGE_BYTES)


def _require_prompt(prompt: Optional[str], language: str) -> str:
    if not prompt or not prompt.strip():
        raise HTTPException(
            status_code=400,
            detail={
                "success": False,
                "error": "invalid_prompt",
                "message": get_image_error_message("invalid_prompt", language),
            },
        )
    return prompt.strip()


def _source_from_payload(payload: ImageStudioRequest, max_bytes: int) -> Optional[SourceImage]:
    if payload.image is not None:
        data = payload.image.data.strip()
        mime_type = payload.image.mime_type.strip().lower()
    elif payload.image_data_url:
        data, mime_type = parse_data_url(payload.image_data_url)
    else:
        return None

    validate_source_image(data, mime_type, max_bytes=max_bytes)
    return SourceImage(data=data, mime_type=mime_type)


async def _source_from_upload(file: Optional[UploadFile], max_bytes: int) -> Optional[SourceImage]:
    if file is None or not file.filename:
        return None

    mime_type = (file.content_type or "").split(";")[0].strip().lower()
    if not mime_type.startswith("image/"):
        raise InvalidImageError("Please upload a valid image file (e.g., PNG, JPG, WEBP).")

    if file.size is not None and file.size > max_bytes:
        raise InvalidImageError(f"image is {file.size} bytes; the limit is {max_bytes} bytes", code="image_too_large")

    # at most one byte past the limit is read
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise InvalidImageError(f"image is larger than the {max_bytes} byte limit", code="image_too_large")
    logger.info("Source image uploaded", extra={"file_name": file.filename, "mime_type": mime_type, "size_bytes": len(content)})
    data = base64.b64encode(content).decode("ascii")
    validate_source_image(data, mime_type, max_bytes=max_bytes)
    return SourceImage(data=data, mime_type=mime_type)


async def _generate_or_edit(
    adapter: ImageRequestAdapter,
    generation: GenerationRequest,
    *,
    chat_id: Optional[str],
    language: str,
) -> Dict[str, Any]:
    logger.info(
        "Image studio request",
        extra={
            "chatId": chat_id,
            "language": language,
            "mode": generation.mode,
            "prompt_preview": generation.prompt[:120],
            "prompt_len": len(generation.prompt),
        },
    )

    image = await adapter.run(generation)

    result = ImageStudioResponse(
        data_url=image.to_data_url(),
        mime_type=image.mime_type,
        mode=generation.mode,
        model=adapter.model_for(generation),
        chat_id=chat_id,
        language=language,
    )
    logger.info("Image studio response ready", extra={"chatId": chat_id, "mode": generation.mode, "mimeType": image.mime_type})
    return result.model_dump(by_alias=True)


@router.post("/studio")
async def generate_or_edit_image(
    payload: ImageStudioRequest,
    request: Request,
    adapter: ImageRequestAdapter = Depends(get_image_adapter),
) -> Dict[str, Any]:
    """Generate a new image from a prompt, or edit the supplied image with it."""
    language = normalize_language(payload.language)
    request.state.language = language

    prompt = _require_prompt(payload.prompt, language)
    source_image = _source_from_payload(payload, _max_source_bytes(request))

    return await _generate_or_edit(
        adapter,
        GenerationRequest(prompt=prompt, source_image=source_image),
        chat_id=payload.chat_id,
        language=language,
    )


@router.post("/studio/upload")
async def generate_or_edit_uploaded_image(
    request: Request,
    prompt: str = Form(""),
    file: Optional[UploadFile] = File(None),
    language: Optional[str] = Form(None),
    chat_id: Optional[str] = Form(None, alias="chatId"),
    adapter: ImageRequestAdapter = Depends(get_image_adapter),
) -> Dict[str, Any]:
    """Multipart variant of /studio: the optional source image arrives as a file field."""
    language = normalize_language(language)
    request.state.language = language

    clean_prompt = _require_prompt(prompt, language)
    source_image = await _source_from_upload(file, _max_source_bytes(request))

    return await _generate_or_edit(
        adapter,
        GenerationRequest(prompt=clean_prompt, source_image=source_image),
        chat_id=chat_id,
        language=language,
    )


__all__ = ["router", "get_image_adapter"]
