"""Long-polling delivery of Telegram updates."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from animal_identifier.adapters.telegram_client import TelegramClient
from animal_identifier.api.telegram_models import TelegramUpdate

_logger = logging.getLogger(__name__)

UpdateHandler = Callable[[TelegramUpdate], Awaitable[None]]


@dataclass
class UpdatePoller:
    """Pull updates with getUpdates and handle each one as its own task."""

    telegram_client: TelegramClient
    handler: UpdateHandler
    timeout_seconds: int = 30
    error_delay_seconds: float = 1.0
    offset: int | None = None
    _tasks: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    async def run(self) -> None:
        """Poll until cancelled."""
        _logger.info("Polling Telegram for updates")
        while True:
            await self.poll_once()

    async def poll_once(self) -> int:
        """Fetch one batch of updates and schedule them; return the batch size."""
        try:
            updates = await self.telegram_client.get_updates(
                offset=self.offset, timeout=self.timeout_seconds
            )
        except Exception:
            _logger.exception("Fetching Telegram updates failed")
            await asyncio.sleep(self.error_delay_seconds)
            return 0

        for raw in updates:
            update_id = raw.get("update_id")
            if isinstance(update_id, int):
                self.offset = update_id + 1
            try:
                update = TelegramUpdate.model_validate(raw)
            except ValidationError:
                _logger.warning("Skipping malformed update %s", update_id)
                continue
            task = asyncio.create_task(self._handle(update))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return len(updates)

    async def drain(self) -> None:
        """Wait for in-flight update handlers to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _handle(self, update: TelegramUpdate) -> None:
        try:
            await self.handler(update)
        except Exception:
            _logger.exception(
                "Handling Telegram update failed", extra={"update_id": update.update_id}
            )
