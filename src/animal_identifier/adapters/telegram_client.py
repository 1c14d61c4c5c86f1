"""Telegram API client adapter."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from animal_identifier.domain.delivery import Delivered, DeliveryResult, Unreachable

_logger = logging.getLogger(__name__)

_TELEGRAM_API = "https://api.telegram.org"


class TelegramClient(Protocol):
    """Interface for Telegram API interactions."""

    async def send_message(  # noqa: PLR0913
        self,
        chat_id: int,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> DeliveryResult:
        """Send a text message to a Telegram chat."""

    async def send_photo(
        self,
        chat_id: int,
        photo_url: str,
        caption: str | None = None,
        parse_mode: str | None = None,
    ) -> DeliveryResult:
        """Send a photo by URL with an optional caption."""

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        """Replace the text of a message the bot sent earlier."""

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        """Delete a message from a chat."""

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a Telegram callback query."""

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, object]]:
        """Long-poll for new updates."""

    async def set_webhook(self, url: str) -> None:
        """Register the push-delivery URL."""

    async def delete_webhook(self) -> None:
        """Switch the bot back to pull delivery."""

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        """Set the chat menu button."""


@dataclass
class HttpxTelegramClient:
    """Telegram client implemented with httpx."""

    bot_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramClient":
        """Create a Telegram client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    def _url(self, method: str) -> str:
        return f"{_TELEGRAM_API}/bot{self.bot_token}/{method}"

    async def _call(
        self, method: str, payload: dict[str, object], timeout: float = 10
    ) -> object:
        response = await self.http_client.post(
            self._url(method), json=payload, timeout=timeout
        )
        response.raise_for_status()
        return response.json().get("result")

    async def _deliver(self, method: str, payload: dict[str, object]) -> DeliveryResult:
        """Send a message-producing request, mapping 403 to ``Unreachable``."""
        response = await self.http_client.post(
            self._url(method), json=payload, timeout=10
        )
        if response.status_code == httpx.codes.FORBIDDEN:
            reason = _error_description(response)
            _logger.info(
                "Telegram chat unreachable: chat_id=%s reason=%s",
                payload.get("chat_id"),
                reason,
            )
            return Unreachable(reason=reason)
        response.raise_for_status()
        result = response.json().get("result") or {}
        message_id = result.get("message_id") if isinstance(result, dict) else None
        return Delivered(message_id=message_id)

    async def send_message(  # noqa: PLR0913
        self,
        chat_id: int,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> DeliveryResult:
        """Send a message using Telegram's sendMessage API."""
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        if parse_mode is not None:
            payload["parse_mode"] = parse_mode
        if reply_to_message_id is not None:
            payload["reply_parameters"] = {
                "message_id": reply_to_message_id,
                "allow_sending_without_reply": True,
            }
        return await self._deliver("sendMessage", payload)

    async def send_photo(
        self,
        chat_id: int,
        photo_url: str,
        caption: str | None = None,
        parse_mode: str | None = None,
    ) -> DeliveryResult:
        """Send a photo using Telegram's sendPhoto API."""
        payload: dict[str, object] = {"chat_id": chat_id, "photo": photo_url}
        if caption is not None:
            payload["caption"] = caption
        if parse_mode is not None:
            payload["parse_mode"] = parse_mode
        return await self._deliver("sendPhoto", payload)

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        """Edit a message using Telegram's editMessageText API."""
        payload: dict[str, object] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
        }
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        await self._call("editMessageText", payload)

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        """Delete a message using Telegram's deleteMessage API."""
        await self._call(
            "deleteMessage", {"chat_id": chat_id, "message_id": message_id}
        )

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a callback query using Telegram's API."""
        payload: dict[str, object] = {"callback_query_id": callback_query_id}
        if text is not None:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, object]]:
        """Long-poll Telegram's getUpdates API."""
        payload: dict[str, object] = {
            "timeout": timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", payload, timeout=timeout + 10)
        return result if isinstance(result, list) else []

    async def set_webhook(self, url: str) -> None:
        """Register a webhook URL."""
        await self._call(
            "setWebhook",
            {"url": url, "allowed_updates": ["message", "callback_query"]},
        )

    async def delete_webhook(self) -> None:
        """Remove any registered webhook."""
        await self._call("deleteWebhook", {"drop_pending_updates": False})

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""
        await self._call("setMyCommands", {"commands": commands})

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        """Set the chat menu button."""
        await self._call(
            "setChatMenuButton", {"menu_button": menu_button or {"type": "commands"}}
        )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def _error_description(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    description = payload.get("description") if isinstance(payload, dict) else None
    return str(description or f"HTTP {response.status_code}")
