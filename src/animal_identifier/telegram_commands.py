"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Show the welcome message")
    HELP = TelegramCommand("help", "How to get the best identification")
    IDENTIFY = TelegramCommand("identify", "Identify the last uploaded animal photo")
    CANCEL = TelegramCommand("cancel", "Forget the stored photo and location")


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


def parse_command(text: str | None) -> str | None:
    """Return the command name for texts like ``/identify@SomeBot args``."""
    if not text or not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0][1:]
    name = head.split("@", maxsplit=1)[0].lower()
    return name or None


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
