from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest

from services.image_adapter import ImageRequestAdapter


class FakeGeminiClient:
    """Deterministic stand-in for GeminiClient that records every call."""

    def __init__(
        self,
        *,
        edit_json: Optional[Dict[str, Any]] = None,
        generate_json: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.edit_json = edit_json or {}
        self.generate_json = generate_json or {}
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate_content(self, model, parts, response_modalities=None):
        self.calls.append(
            {"op": "generate_content", "model": model, "parts": list(parts), "modalities": response_modalities}
        )
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.edit_json)

    async def generate_images(
        self,
        model,
        prompt,
        *,
        number_of_images=1,
        output_mime_type="image/jpeg",
        aspect_ratio="1:1",
    ):
        self.calls.append(
            {
                "op": "generate_images",
                "model": model,
                "prompt": prompt,
                "number_of_images": number_of_images,
                "output_mime_type": output_mime_type,
                "aspect_ratio": aspect_ratio,
            }
        )
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.generate_json)


@pytest.fixture
def make_adapter():
    def _make(**client_kwargs):
        client = FakeGeminiClient(**client_kwargs)
        return ImageRequestAdapter(client), client

    return _make
