"""Pydantic models for Telegram update payloads."""

from pydantic import BaseModel, Field

PRIVATE_CHAT = "private"


class TelegramUser(BaseModel):
    """Sender of a message or callback query."""

    id: int
    is_bot: bool | None = None
    first_name: str | None = None
    username: str | None = None


class TelegramChat(BaseModel):
    """Chat a message was posted in."""

    id: int
    type: str
    title: str | None = None

    @property
    def is_private(self) -> bool:
        return self.type == PRIVATE_CHAT


class TelegramPhotoSize(BaseModel):
    """One resolution of an uploaded photo."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: int | None = None


class TelegramMessage(BaseModel):
    """Telegram message payload."""

    message_id: int
    date: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None
    caption: str | None = None
    photo: list[TelegramPhotoSize] | None = None
    reply_to_message: "TelegramMessage | None" = None


class TelegramCallbackQuery(BaseModel):
    """Inline keyboard button press."""

    id: str
    from_user: TelegramUser = Field(alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class TelegramUpdate(BaseModel):
    """Telegram update payload."""

    update_id: int
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None
