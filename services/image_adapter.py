"""Request/response normalisation for Gemini image generation and editing.

A call with a source image goes to the edit model (`generateContent` with an
inline image part); a call without one goes to the Imagen `predict` endpoint.
Both responses are reduced to a single `GeneratedImage`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Literal, Optional, Protocol, Sequence, Tuple, Union

from core.data_url import to_data_url
from core.gemini_client import inline_image_part, text_part

logger = logging.getLogger("image_studio.services.image_adapter")

REASON_NO_EDITED_IMAGE = "no edited image produced"
REASON_NO_IMAGE_RETURNED = "no image returned"
REASON_EMPTY_IMAGE_PAYLOAD = "empty image payload"
REASON_UNKNOWN = "unknown error"

GENERATED_MIME_TYPE = "image/jpeg"
GENERATED_ASPECT_RATIO = "1:1"
_FALLBACK_INLINE_MIME = "image/png"


class ProviderError(Exception):
    """The single failure type surfaced by the adapter."""

    def __init__(self, reason: str, *, code: str = "provider_error"):
        self.reason = reason
        self.code = code
        super().__init__(f"Gemini API Error: {reason}")


@dataclass(frozen=True)
class SourceImage:
    data: str
    mime_type: str


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    source_image: Optional[SourceImage] = None

    @property
    def mode(self) -> str:
        return "edit" if self.source_image is not None else "generate"


@dataclass(frozen=True)
class GeneratedImage:
    data: str
    mime_type: str

    def to_data_url(self) -> str:
        return to_data_url(self.data, self.mime_type)


@dataclass(frozen=True)
class InlineImage:
    data: str
    mime_type: str


@dataclass(frozen=True)
class ResponsePart:
    text: Optional[str] = None
    inline_image: Optional[InlineImage] = None


@dataclass(frozen=True)
class EditResponse:
    parts: Tuple[ResponsePart, ...]
    kind: Literal["edit"] = "edit"


@dataclass(frozen=True)
class GeneratedPayload:
    data: Optional[str]
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class GenerateResponse:
    images: Tuple[GeneratedPayload, ...]
    kind: Literal["generate"] = "generate"


ProviderResponse = Union[EditResponse, GenerateResponse]


class ImageProviderClient(Protocol):
    async def generate_content(
        self,
        model: str,
        parts: Sequence[Dict[str, Any]],
        response_modalities: Optional[list] = None,
    ) -> Dict[str, Any]:
        ...

    async def generate_images(
        self,
        model: str,
        prompt: str,
        *,
        number_of_images: int = 1,
        output_mime_type: str = GENERATED_MIME_TYPE,
        aspect_ratio: str = GENERATED_ASPECT_RATIO,
    ) -> Dict[str, Any]:
        ...


def _parse_part(part: Dict[str, Any]) -> ResponsePart:
    inline = part.get("inlineData") or part.get("inline_data")
    inline_image = None
    if inline:
        inline_image = InlineImage(
            data=inline.get("data") or "",
            mime_type=inline.get("mimeType") or inline.get("mime_type") or _FALLBACK_INLINE_MIME,
        )
    return ResponsePart(text=part.get("text"), inline_image=inline_image)


def parse_edit_response(resp_json: Dict[str, Any]) -> EditResponse:
    candidates = resp_json.get("candidates") or []
    if not candidates:
        return EditResponse(parts=())
    content = candidates[0].get("content") or {}
    return EditResponse(parts=tuple(_parse_part(part) for part in content.get("parts") or []))


def parse_generate_response(resp_json: Dict[str, Any]) -> GenerateResponse:
    if "predictions" in resp_json:
        images = tuple(
            GeneratedPayload(data=item.get("bytesBase64Encoded"), mime_type=item.get("mimeType"))
            for item in resp_json.get("predictions") or []
        )
        return GenerateResponse(images=images)

    # generateImages (SDK) shape
    images = []
    for item in resp_json.get("generatedImages") or []:
        image = item.get("image") or {}
        images.append(GeneratedPayload(data=image.get("imageBytes"), mime_type=image.get("mimeType")))
    return GenerateResponse(images=tuple(images))


def find_first_inline_image(parts: Iterable[ResponsePart]) -> Optional[InlineImage]:
    for part in parts:
        if part.inline_image is not None and part.inline_image.data:
            return part.inline_image
    return None


class ImageRequestAdapter:
    """Selects the edit or generate operation and normalises the result."""

    def __init__(
        self,
        client: ImageProviderClient,
        *,
        edit_model: str = "gemini-2.5-flash-image",
        generate_model: str = "imagen-4.0-generate-001",
        output_mime_type: str = GENERATED_MIME_TYPE,
        aspect_ratio: str = GENERATED_ASPECT_RATIO,
    ) -> None:
        self._client = client
        self.edit_model = edit_model
        self.generate_model = generate_model
        self.output_mime_type = output_mime_type
        self.aspect_ratio = aspect_ratio

    def model_for(self, request: GenerationRequest) -> str:
        return self.edit_model if request.mode == "edit" else self.generate_model

    async def execute(self, prompt: str, source_image: Optional[SourceImage] = None) -> GeneratedImage:
        return await self.run(GenerationRequest(prompt=prompt, source_image=source_image))

    async def run(self, request: GenerationRequest) -> GeneratedImage:
        logger.info(
            "Image request start",
            extra={
                "mode": request.mode,
                "model": self.model_for(request),
                "prompt_preview": request.prompt[:120],
                "prompt_len": len(request.prompt),
            },
        )
        try:
            if request.source_image is not None:
                response = await self._call_edit(request.prompt, request.source_image)
            else:
                response = await self._call_generate(request.prompt)
            image = self._normalize(response)
        except ProviderError as exc:
            logger.error(
                "Error generating content with Gemini API",
                extra={"mode": request.mode, "code": exc.code, "reason": exc.reason},
            )
            raise
        except Exception as exc:
            logger.error("Error generating content with Gemini API", extra={"mode": request.mode}, exc_info=exc)
            message = str(exc).strip()
            if not message:
                raise ProviderError(REASON_UNKNOWN, code="unknown_error") from exc
            raise ProviderError(message) from exc

        logger.info(
            "Image request completed",
            extra={"mode": request.mode, "mimeType": image.mime_type, "data_len": len(image.data)},
        )
        return image

    async def _call_edit(self, prompt: str, source_image: SourceImage) -> EditResponse:
        resp_json = await self._client.generate_content(
            self.edit_model,
            [inline_image_part(source_image.data, source_image.mime_type), text_part(prompt)],
            ["IMAGE"],
        )
        return parse_edit_response(resp_json)

    async def _call_generate(self, prompt: str) -> GenerateResponse:
        resp_json = await self._client.generate_images(
            self.generate_model,
            prompt,
            number_of_images=1,
            output_mime_type=self.output_mime_type,
            aspect_ratio=self.aspect_ratio,
        )
        return parse_generate_response(resp_json)

    def _normalize(self, response: ProviderResponse) -> GeneratedImage:
        if isinstance(response, EditResponse):
            inline = find_first_inline_image(response.parts)
            if inline is None:
                raise ProviderError(REASON_NO_EDITED_IMAGE, code="no_edited_image")
            return GeneratedImage(data=inline.data, mime_type=inline.mime_type)

        if not response.images:
            raise ProviderError(REASON_NO_IMAGE_RETURNED, code="no_image_returned")
        first = response.images[0]
        if not first.data:
            raise ProviderError(REASON_EMPTY_IMAGE_PAYLOAD, code="empty_image_payload")
        # output format is fixed by the request
        return GeneratedImage(data=first.data, mime_type=self.output_mime_type)


__all__ = [
    "ProviderError",
    "SourceImage",
    "GenerationRequest",
    "GeneratedImage",
    "InlineImage",
    "ResponsePart",
    "EditResponse",
    "GeneratedPayload",
    "GenerateResponse",
    "ProviderResponse",
    "parse_edit_response",
    "parse_generate_response",
    "find_first_inline_image",
    "ImageRequestAdapter",
    "REASON_NO_EDITED_IMAGE",
    "REASON_NO_IMAGE_RETURNED",
    "REASON_EMPTY_IMAGE_PAYLOAD",
    "REASON_UNKNOWN",
    "GENERATED_MIME_TYPE",
]
