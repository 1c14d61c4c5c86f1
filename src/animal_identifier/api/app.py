"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from animal_identifier.api.identify import router as identify_router
from animal_identifier.api.telegram_models import TelegramUpdate
from animal_identifier.app_logging import configure_logging
from animal_identifier.config import webhook_url
from animal_identifier.containers import AppContainer
from animal_identifier.services.polling import UpdatePoller
from animal_identifier.telegram_commands import CHAT_MENU_BUTTON, telegram_commands


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        telegram_client = state_container.telegram_client
        try:
            await telegram_client.set_my_commands(telegram_commands())
            await telegram_client.set_chat_menu_button(CHAT_MENU_BUTTON)
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")

        poller: UpdatePoller | None = None
        polling_task: asyncio.Task[None] | None = None
        url = webhook_url(state_container.settings.webhook_base_url)
        try:
            if url:
                await telegram_client.set_webhook(url)
                logger.info("Telegram webhook registered")
            else:
                await telegram_client.delete_webhook()
                poller = UpdatePoller(
                    telegram_client=telegram_client,
                    handler=state_container.conversation_service.handle_update,
                    timeout_seconds=state_container.settings.polling_timeout_seconds,
                )
                polling_task = asyncio.create_task(poller.run())
        except Exception:
            logger.exception("Failed to configure Telegram update delivery")

        yield

        if polling_task is not None:
            polling_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await polling_task
        if poller is not None:
            await poller.drain()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(identify_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:  # noqa: PLR2004
            return JSONResponse({"error": "Not Found"}, status_code=404)
        return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        try:
            await state_container.conversation_service.handle_update(update)
        except Exception:
            logger.exception(
                "Handling Telegram update failed",
                extra={"update_id": update.update_id},
            )
        return {"status": "ok"}

    return app
