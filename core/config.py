from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional

import requests

if TYPE_CHECKING:
    from services.image_adapter import ImageRequestAdapter

logger = logging.getLogger("image_studio.core.config")

DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_EDIT_MODEL = "gemini-2.5-flash-image"
DEFAULT_GENERATE_MODEL = "imagen-4.0-generate-001"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_SOURCE_IMAGE_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class MissingCredentialError(RuntimeError):
    """Raised at startup when the provider credential is not configured."""


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    api_base_url: str = DEFAULT_API_BASE_URL
    edit_model: str = DEFAULT_EDIT_MODEL
    generate_model: str = DEFAULT_GENERATE_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_source_image_bytes: int = DEFAULT_MAX_SOURCE_IMAGE_BYTES
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid numeric setting; using default", extra={"setting": name, "value": raw})
        return default
    if value <= 0:
        logger.warning("Non-positive numeric setting; using default", extra={"setting": name, "value": raw})
        return default
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the process environment (or an explicit mapping)."""

    env = os.environ if environ is None else environ
    api_key = (env.get("GEMINI_API_KEY") or "").strip()
    if not api_key:
        raise MissingCredentialError("GEMINI_API_KEY environment variable not set")

    return Settings(
        gemini_api_key=api_key,
        api_base_url=(env.get("GEMINI_API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/"),
        edit_model=env.get("GEMINI_EDIT_MODEL") or DEFAULT_EDIT_MODEL,
        generate_model=env.get("GEMINI_GENERATE_MODEL") or DEFAULT_GENERATE_MODEL,
        timeout_seconds=_read_float(env, "GEMINI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        max_source_image_bytes=int(
            _read_float(env, "MAX_SOURCE_IMAGE_BYTES", DEFAULT_MAX_SOURCE_IMAGE_BYTES)
        ),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        log_format=env.get("LOG_FORMAT") or DEFAULT_LOG_FORMAT,
    )


def build_image_adapter(
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> "ImageRequestAdapter":
    """Construct the provider client once and hand it to the adapter."""

    from core.gemini_client import GeminiClient
    from services.image_adapter import ImageRequestAdapter

    client = GeminiClient(
        settings.gemini_api_key,
        base_url=settings.api_base_url,
        timeout=settings.timeout_seconds,
        session=session,
    )
    logger.info(
        "Image adapter configured",
        extra={
            "editModel": settings.edit_model,
            "generateModel": settings.generate_model,
            "timeout": settings.timeout_seconds,
        },
    )
    return ImageRequestAdapter(
        client,
        edit_model=settings.edit_model,
        generate_model=settings.generate_model,
    )


__all__ = [
    "Settings",
    "MissingCredentialError",
    "load_settings",
    "build_image_adapter",
]
