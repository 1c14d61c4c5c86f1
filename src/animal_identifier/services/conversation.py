"""Conversation state machine for photo-based identification."""

import html
import logging
from dataclasses import dataclass, replace
from typing import Protocol

import httpx

from animal_identifier.adapters.file_fetcher import FileFetcher
from animal_identifier.adapters.telegram_client import TelegramClient
from animal_identifier.adapters.telegram_file_client import TelegramFileClient
from animal_identifier.api.telegram_models import (
    TelegramCallbackQuery,
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
)
from animal_identifier.domain.delivery import Delivered, DeliveryResult, Unreachable
from animal_identifier.domain.identification import (
    IdentificationFailure,
    IdentificationSuccess,
)
from animal_identifier.domain.sessions import ConversationStep, UserSession
from animal_identifier.services.resolver import SpeciesResolver
from animal_identifier.telegram_commands import parse_command

_logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "🐾 Welcome to the Animal Identification Bot!\n\n"
    "📸 How to use:\n"
    "1. Send me a photo of an animal\n"
    "2. Tell me where you saw it (or skip)\n"
    "3. Type /identify to identify the species\n\n"
    "Commands:\n"
    "/start - Show this message\n"
    "/help - Get help\n"
    "/identify - Identify the last uploaded animal photo\n"
    "/cancel - Forget the stored photo"
)
HELP_TEXT = (
    "🔍 How to use this bot:\n\n"
    "1. Upload a photo of an animal\n"
    "2. Pick or type the place you saw it, or skip\n"
    "3. Type /identify and wait for the AI to analyze\n"
    "4. Get the species information!\n\n"
    "💡 Tips:\n"
    "- Use clear, well-lit photos\n"
    "- Make sure the animal is visible\n"
    "- Close-up photos work best\n"
    "- In groups, send /identify and reply to my message with the photo"
)
PHOTO_PROMPT = "📸 Please reply to this message with a photo of the animal."
IDLE_PROMPT = "📸 Please send me a photo of an animal, then type /identify"
LOCATION_PROMPT = (
    "📍 Where did you see this animal? Pick a region, type a place, or tap Skip."
)
CUSTOM_LOCATION_PROMPT = "📍 Type the place where you saw the animal."
GROUP_UNREACHABLE_NOTICE = (
    "I couldn't message you privately (start a chat with me to get prompts "
    "there). Answer here instead."
)
PROCESSING_TEXT = "🔍 Analyzing image with AI... Please wait."
GENERIC_ERROR = "⚠️ An error occurred. Please try again."
EXPIRED_PROMPT = "This prompt has expired. Send a new photo."
FOREIGN_PROMPT = "This question is for someone else. Send your own photo."

SKIP_CHOICE = "skip"
OTHER_CHOICE = "other"
LOCATION_PRESETS = (
    "Africa",
    "Asia",
    "Europe",
    "North America",
    "South America",
    "Oceania",
)
_LOCATION_CALLBACK_PREFIX = "loc:"


class SessionRepository(Protocol):
    """Storage interface for per-user conversation state."""

    def get(self, user_id: int) -> UserSession | None:
        """Return the session for a user, if present."""

    def save(self, user_id: int, session: UserSession) -> None:
        """Create or replace the session for a user."""

    def clear(self, user_id: int) -> None:
        """Remove every stored field for a user."""


@dataclass
class ConversationService:
    """State machine driving a user from photo to identification."""

    session_repository: SessionRepository
    telegram_client: TelegramClient
    file_client: TelegramFileClient
    file_fetcher: FileFetcher
    resolver: SpeciesResolver
    debug_errors: bool = False

    async def handle_update(self, update: TelegramUpdate) -> None:
        """Dispatch a single Telegram update."""
        if update.callback_query:
            await self.handle_callback(update.callback_query)
            return
        message = update.message
        if message is None or message.from_user is None:
            return
        if message.photo:
            await self.handle_photo(message)
            return
        command = parse_command(message.text)
        if command:
            await self.handle_command(command, message)
            return
        if message.text:
            await self.handle_text(message)

    async def handle_command(self, command: str, message: TelegramMessage) -> None:
        """Handle a slash command; unknown commands are ignored."""
        chat_id = message.chat.id
        if command == "start":
            await self._send(chat_id, WELCOME_TEXT)
        elif command == "help":
            await self._send(chat_id, HELP_TEXT)
        elif command == "identify":
            await self._handle_identify(message)
        elif command == "cancel":
            user_id = _user_id(message)
            if self.session_repository.get(user_id) is None:
                await self._send(chat_id, "Nothing to cancel.")
                return
            self.session_repository.clear(user_id)
            await self._send(
                chat_id, "Okay, I forgot your photo. Send a new one anytime."
            )

    async def handle_photo(self, message: TelegramMessage) -> None:
        """Store a new photo, restarting the flow."""
        user_id = _user_id(message)
        photo = _select_largest_photo(message.photo or [])
        previous = self.session_repository.get(user_id)
        session = UserSession(photo_file_id=photo.file_id)

        requested = (
            (previous is not None and previous.step == ConversationStep.AWAITING_PHOTO)
            or _replies_to_photo_prompt(message)
            or parse_command(message.caption) == "identify"
        )
        if requested:
            await self._ask_location(
                message,
                replace(
                    session,
                    step=ConversationStep.AWAITING_LOCATION,
                    auto_identify=True,
                ),
            )
        elif message.chat.is_private:
            await self._ask_location(
                message, replace(session, step=ConversationStep.AWAITING_LOCATION)
            )
        else:
            self.session_repository.save(user_id, session)

    async def handle_text(self, message: TelegramMessage) -> None:
        """Handle free text: a location answer, or a nudge to send a photo."""
        user_id = _user_id(message)
        session = self.session_repository.get(user_id)
        if session is not None and session.awaiting_location:
            if session.prompt_chat_id not in {None, message.chat.id}:
                return
            await self._apply_location(
                message.chat.id, user_id, session, _location_from_text(message.text)
            )
            return
        if message.chat.is_private:
            await self._send(message.chat.id, IDLE_PROMPT)

    async def handle_callback(self, callback: TelegramCallbackQuery) -> None:
        """Handle a location button press."""
        parsed = _parse_location_callback(callback.data)
        if parsed is None:
            await self.telegram_client.answer_callback_query(callback.id)
            return

        owner_id, choice = parsed
        user_id = callback.from_user.id
        if owner_id != user_id:
            await self.telegram_client.answer_callback_query(
                callback.id, text=FOREIGN_PROMPT
            )
            return
        session = self.session_repository.get(user_id)
        if session is None or not session.awaiting_location:
            await self.telegram_client.answer_callback_query(
                callback.id, text=EXPIRED_PROMPT
            )
            return
        await self.telegram_client.answer_callback_query(callback.id)

        chat_id = callback.message.chat.id if callback.message else user_id
        if choice == OTHER_CHOICE:
            self.session_repository.save(
                user_id,
                replace(session, step=ConversationStep.AWAITING_CUSTOM_LOCATION),
            )
            await self._edit_prompt(callback, CUSTOM_LOCATION_PROMPT)
            return

        location = None if choice == SKIP_CHOICE else choice
        await self._edit_prompt(callback, f"📍 Location: {location or 'skipped'}")
        await self._apply_location(chat_id, user_id, session, location)

    async def _handle_identify(self, message: TelegramMessage) -> None:
        user_id = _user_id(message)
        chat_id = message.chat.id
        session = self.session_repository.get(user_id)

        if session is None or session.photo_file_id is None:
            self.session_repository.save(
                user_id, UserSession(step=ConversationStep.AWAITING_PHOTO)
            )
            await self._send(
                chat_id,
                PHOTO_PROMPT,
                reply_to_message_id=(
                    None if message.chat.is_private else message.message_id
                ),
            )
            return

        if session.location_resolved:
            await self._run_identification(chat_id, user_id, session)
            return

        await self._ask_location(
            message,
            replace(
                session, step=ConversationStep.AWAITING_LOCATION, auto_identify=True
            ),
        )

    async def _ask_location(
        self, message: TelegramMessage, session: UserSession
    ) -> None:
        """Save the session and prompt for a location.

        In groups the prompt goes to the user's private chat; if the bot cannot
        reach them there, it is posted in the group with a notice.
        """
        user_id = _user_id(message)
        keyboard = _location_keyboard(user_id)

        if message.chat.is_private:
            self.session_repository.save(
                user_id, replace(session, prompt_chat_id=message.chat.id)
            )
            await self._send(message.chat.id, LOCATION_PROMPT, reply_markup=keyboard)
            return

        self.session_repository.save(user_id, replace(session, prompt_chat_id=user_id))
        private = await self.telegram_client.send_message(
            chat_id=user_id, text=LOCATION_PROMPT, reply_markup=keyboard
        )
        if isinstance(private, Delivered):
            return
        self.session_repository.save(
            user_id, replace(session, prompt_chat_id=message.chat.id)
        )
        _logger.info(
            "User %s unreachable in private chat (%s), prompting in group %s",
            user_id,
            private.reason,
            message.chat.id,
        )
        await self._send(
            message.chat.id,
            f"{GROUP_UNREACHABLE_NOTICE}\n\n{LOCATION_PROMPT}",
            reply_markup=keyboard,
            reply_to_message_id=message.message_id,
        )

    async def _apply_location(
        self,
        chat_id: int,
        user_id: int,
        session: UserSession,
        location: str | None,
    ) -> None:
        resolved = replace(
            session,
            step=None,
            auto_identify=False,
            location=location,
            location_resolved=True,
            prompt_chat_id=None,
        )
        if session.auto_identify:
            await self._run_identification(chat_id, user_id, resolved)
            return

        self.session_repository.save(user_id, resolved)
        saved = f"Location saved: {location}." if location else "No location, got it."
        await self._send(chat_id, f"{saved} Type /identify when you're ready.")

    async def _run_identification(
        self, chat_id: int, user_id: int, session: UserSession
    ) -> None:
        """Identify the stored photo and reply; the session is kept on errors."""
        self.session_repository.save(user_id, session)
        processing = await self._send(chat_id, PROCESSING_TEXT)
        try:
            url = await self.file_client.get_file_url(session.photo_file_id or "")
            image_bytes = await self.file_fetcher.fetch(url)
            result = await self.resolver.resolve(image_bytes, session.location)
        except Exception as exc:
            _logger.exception("Identification failed", extra={"user_id": user_id})
            await self._delete_processing(chat_id, processing)
            await self._send(chat_id, self._format_error(exc, GENERIC_ERROR))
            return

        await self._delete_processing(chat_id, processing)
        self.session_repository.clear(user_id)
        if isinstance(result, IdentificationFailure):
            await self._send(chat_id, format_failure(result))
            return
        await self._send_result(chat_id, result)

    async def _send_result(self, chat_id: int, result: IdentificationSuccess) -> None:
        caption = format_caption(result)
        if result.reference_image_url:
            try:
                delivery = await self.telegram_client.send_photo(
                    chat_id=chat_id,
                    photo_url=result.reference_image_url,
                    caption=caption,
                    parse_mode="HTML",
                )
            except httpx.HTTPError as exc:
                _logger.warning("Sending reference photo failed: %s", exc)
            else:
                _log_unreachable(delivery, chat_id)
                return
        await self._send(chat_id, caption, parse_mode="HTML")

    async def _send(
        self,
        chat_id: int,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> DeliveryResult:
        result = await self.telegram_client.send_message(
            chat_id=chat_id,
            text=text,
            reply_markup=reply_markup,
            parse_mode=parse_mode,
            reply_to_message_id=reply_to_message_id,
        )
        _log_unreachable(result, chat_id)
        return result

    async def _edit_prompt(self, callback: TelegramCallbackQuery, text: str) -> None:
        if callback.message is None:
            return
        try:
            await self.telegram_client.edit_message_text(
                chat_id=callback.message.chat.id,
                message_id=callback.message.message_id,
                text=text,
            )
        except httpx.HTTPError as exc:
            _logger.warning("Editing location prompt failed: %s", exc)

    async def _delete_processing(
        self, chat_id: int, processing: DeliveryResult
    ) -> None:
        if not isinstance(processing, Delivered) or processing.message_id is None:
            return
        try:
            await self.telegram_client.delete_message(chat_id, processing.message_id)
        except httpx.HTTPError as exc:
            _logger.warning("Deleting processing message failed: %s", exc)

    def _format_error(self, exc: Exception, fallback: str) -> str:
        """Return a user-facing error message with local debug info."""
        if self.debug_errors:
            detail = f"{type(exc).__name__}: {exc}".strip()
            if detail:
                return f"{fallback} (debug: {detail})"
        return fallback


def format_caption(result: IdentificationSuccess) -> str:
    """Format the species name pair as Telegram HTML."""
    return (
        f"<b>{html.escape(result.common_name)}</b>\n"
        f"<i>{html.escape(result.scientific_name)}</i>"
    )


def format_failure(result: IdentificationFailure) -> str:
    return (
        "❌ Sorry, I couldn't identify the animal.\n\n"
        f"Error: {result.reason}\n\n"
        "Please try with a clearer photo."
    )


def _log_unreachable(result: DeliveryResult, chat_id: int) -> None:
    if isinstance(result, Unreachable):
        _logger.warning(
            "Dropping message for unreachable chat %s: %s", chat_id, result.reason
        )


def _user_id(message: TelegramMessage) -> int:
    if message.from_user is None:
        raise ValueError("Message has no sender")
    return message.from_user.id


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _replies_to_photo_prompt(message: TelegramMessage) -> bool:
    reply = message.reply_to_message
    return (
        reply is not None
        and reply.from_user is not None
        and bool(reply.from_user.is_bot)
        and reply.text == PHOTO_PROMPT
    )


def _location_from_text(text: str | None) -> str | None:
    cleaned = (text or "").strip()
    if not cleaned or cleaned.lower() == SKIP_CHOICE:
        return None
    return cleaned


def _parse_location_callback(data: str | None) -> tuple[int, str] | None:
    """Parse callback data in the format loc:<user_id>:<choice>."""
    if not data or not data.startswith(_LOCATION_CALLBACK_PREFIX):
        return None
    owner, _, choice = data[len(_LOCATION_CALLBACK_PREFIX) :].partition(":")
    try:
        owner_id = int(owner)
    except ValueError:
        return None
    if choice in {SKIP_CHOICE, OTHER_CHOICE} or choice in LOCATION_PRESETS:
        return owner_id, choice
    return None


def _inline_keyboard(rows: list[list[tuple[str, str]]]) -> dict:
    """Build a Telegram inline keyboard payload."""
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": callback} for label, callback in row]
            for row in rows
        ]
    }


def _location_keyboard(user_id: int) -> dict:
    prefix = f"{_LOCATION_CALLBACK_PREFIX}{user_id}:"
    presets = [(label, f"{prefix}{label}") for label in LOCATION_PRESETS]
    rows = [presets[index : index + 2] for index in range(0, len(presets), 2)]
    rows.append(
        [
            ("Other…", f"{prefix}{OTHER_CHOICE}"),
            ("Skip", f"{prefix}{SKIP_CHOICE}"),
        ]
    )
    return _inline_keyboard(rows)
