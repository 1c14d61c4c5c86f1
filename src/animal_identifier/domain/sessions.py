"""Domain models for conversation sessions."""

from dataclasses import dataclass
from enum import Enum


class ConversationStep(Enum):
    """What the bot is waiting for from a user."""

    AWAITING_PHOTO = "awaiting_photo"
    AWAITING_LOCATION = "awaiting_location"
    AWAITING_CUSTOM_LOCATION = "awaiting_custom_location"


@dataclass(frozen=True)
class UserSession:
    """Ephemeral per-user conversation state.

    A missing session (or ``step is None``) is the idle state. ``location`` is
    only meaningful when ``location_resolved`` is true; ``None`` then means the
    user skipped the question. ``prompt_chat_id`` is the chat the location
    prompt was shown in; typed answers are only taken from that chat.
    """

    photo_file_id: str | None = None
    step: ConversationStep | None = None
    auto_identify: bool = False
    location: str | None = None
    location_resolved: bool = False
    prompt_chat_id: int | None = None

    @property
    def awaiting_location(self) -> bool:
        return self.step in {
            ConversationStep.AWAITING_LOCATION,
            ConversationStep.AWAITING_CUSTOM_LOCATION,
        }
