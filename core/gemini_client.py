import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

logger = logging.getLogger("image_studio.core.gemini_client")


class GeminiHTTPError(RuntimeError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Gemini request failed with status {status_code}: {body[:500]}")


def text_part(text: str) -> Dict[str, Any]:
    return {"text": text}


def inline_image_part(data: str, mime_type: str) -> Dict[str, Any]:
    return {"inline_data": {"mime_type": mime_type, "data": data}}


class GeminiClient:
    """
    Thin REST client for the Generative Language API.
    Blocking `requests` calls are pushed to a worker thread so the event loop stays free.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def _url(self, model: str, method: str) -> str:
        return f"{self._base_url}/models/{model}:{method}"

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}
        response = self._session.post(url, json=payload, headers=headers, timeout=self._timeout)
        logger.info(
            "Gemini request completed",
            extra={"url": url, "status": response.status_code, "content_length": len(response.text or "")},
        )

        if not response.ok:
            logger.error(
                "Gemini request failed",
                extra={"url": url, "status": response.status_code, "body": (response.text or "")[:400]},
            )
            raise GeminiHTTPError(response.status_code, response.text or "")

        try:
            return response.json()
        except ValueError as exc:
            raise GeminiHTTPError(response.status_code, "invalid JSON in response body") from exc

    async def generate_content(
        self,
        model: str,
        parts: Sequence[Dict[str, Any]],
        response_modalities: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": [{"parts": list(parts)}]}
        if response_modalities:
            payload["generationConfig"] = {"responseModalities": list(response_modalities)}

        logger.info(
            "Gemini generateContent call start",
            extra={"model": model, "part_count": len(payload["contents"][0]["parts"]), "modalities": response_modalities},
        )
        return await asyncio.to_thread(self._post, self._url(model, "generateContent"), payload)

    async def generate_images(
        self,
        model: str,
        prompt: str,
        *,
        number_of_images: int = 1,
        output_mime_type: str = "image/jpeg",
        aspect_ratio: str = "1:1",
    ) -> Dict[str, Any]:
        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": number_of_images,
                "aspectRatio": aspect_ratio,
                "outputOptions": {"mimeType": output_mime_type},
            },
        }

        logger.info(
            "Imagen predict call start",
            extra={
                "model": model,
                "prompt_preview": prompt[:120],
                "prompt_len": len(prompt),
                "aspect_ratio": aspect_ratio,
            },
        )
        return await asyncio.to_thread(self._post, self._url(model, "predict"), payload)


__all__ = ["GeminiClient", "GeminiHTTPError", "text_part", "inline_image_part"]
