"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status

from badge_relay.api.console import router as console_router
from badge_relay.api.console import serialize_photo
from badge_relay.app_logging import configure_logging
from badge_relay.containers import AppContainer
from badge_relay.services.photos import StorageError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        intake = app.state.container.photo_intake
        if intake is not None:
            try:
                await intake.start()
            except Exception:
                logger.exception("Failed to subscribe to photo inserts")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(console_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/photos", status_code=status.HTTP_201_CREATED)
    async def capture_photo(
        request: Request,
        file: UploadFile = File(...),
        name: str | None = Form(default=None),
        role: str | None = Form(default=None),
    ) -> dict[str, object]:
        """Store a captured photo and register it for the console."""
        state_container: AppContainer = request.app.state.container
        content = await file.read()
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="No photo captured"
            )
        content_type = file.content_type or "image/jpeg"
        if not content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Not an image"
            )
        try:
            record = await state_container.photo_service.capture(
                content, content_type, name=name, role=role
            )
        except StorageError as exc:
            logger.exception("Photo upload failed")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail="Upload failed"
            ) from exc
        return serialize_photo(record)

    return app
