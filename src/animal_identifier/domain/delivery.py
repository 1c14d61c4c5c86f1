"""Outcome of sending something to a chat."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Delivered:
    """The chat accepted the message."""

    message_id: int | None = None


@dataclass(frozen=True)
class Unreachable:
    """The bot cannot write to the chat, e.g. it was blocked by the user."""

    reason: str


DeliveryResult = Delivered | Unreachable
