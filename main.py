import logging
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import DEFAULT_LOG_FORMAT, Settings, build_image_adapter, load_settings
from core.error_handler import setup_error_handlers
from routes import image_studio_router
from services.image_adapter import ImageRequestAdapter

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format=LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

logger = logging.getLogger("image_studio.main")


def _install_adapter(app: FastAPI, settings: Settings) -> None:
    app.state.image_adapter = build_image_adapter(settings)
    app.state.max_source_image_bytes = settings.max_source_image_bytes


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "image_adapter", None) is None:
        # raises MissingCredentialError and aborts startup when GEMINI_API_KEY is absent
        _install_adapter(app, load_settings())
    logger.info("Image studio service started")
    yield


def create_app(
    adapter: Optional[ImageRequestAdapter] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    app = FastAPI(title="Gemini Image Studio API", version="1.0.0", lifespan=lifespan)
    app.state.image_adapter = None

    if adapter is not None:
        app.state.image_adapter = adapter
        if settings is not None:
            app.state.max_source_image_bytes = settings.max_source_image_bytes
    elif settings is not None:
        _install_adapter(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handlers(app)
    app.include_router(image_studio_router)

    @app.get("/health")
    async def health_check():
        return {
            "ok": True,
            "service": "image-studio",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()

__all__ = ["app", "create_app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=False,
    )
