from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceImagePayload(BaseModel):
    data: str
    mime_type: str = Field(..., alias="mimeType")

    model_config = ConfigDict(populate_by_name=True)


class ImageStudioRequest(BaseModel):
    prompt: str
    image: Optional[SourceImagePayload] = None
    image_data_url: Optional[str] = Field(default=None, alias="imageDataUrl")
    chat_id: Optional[str] = Field(default=None, alias="chatId")
    language: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _single_image_source(self) -> "ImageStudioRequest":
        if self.image is not None and self.image_data_url:
            raise ValueError("send either image or imageDataUrl, not both")
        return self


class ImageStudioResponse(BaseModel):
    success: bool = True
    data_url: str = Field(..., alias="dataUrl")
    mime_type: str = Field(..., alias="mimeType")
    mode: Literal["edit", "generate"]
    model: str
    chat_id: Optional[str] = Field(default=None, alias="chatId")
    language: str

    model_config = ConfigDict(populate_by_name=True)
