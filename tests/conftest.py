"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from animal_identifier.adapters.file_fetcher import FileFetcher
from animal_identifier.adapters.inaturalist_client import TaxonomyClient
from animal_identifier.adapters.memory_session_repository import (
    InMemorySessionRepository,
)
from animal_identifier.adapters.telegram_client import TelegramClient
from animal_identifier.adapters.telegram_file_client import TelegramFileClient
from animal_identifier.config import Settings
from animal_identifier.containers import AppContainer
from animal_identifier.domain.delivery import Delivered, DeliveryResult, Unreachable
from animal_identifier.services.cache import InMemoryCache
from animal_identifier.services.conversation import ConversationService
from animal_identifier.services.reference_photos import ReferencePhotoService
from animal_identifier.services.resolver import IdentificationBackend, SpeciesResolver

FALCON_ANSWER = (
    '{"commonName": "Peregrine Falcon", "scientificName": "Falco peregrinus"}'
)
FALCON_PHOTO_URL = "https://static.inaturalist.org/photos/4795/medium.jpg"


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records every outbound action."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    sent: list[dict[str, object]] = field(default_factory=list)
    photos: list[tuple[int, str, str | None]] = field(default_factory=list)
    edits: list[tuple[int, int, str]] = field(default_factory=list)
    deleted: list[tuple[int, int]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    unreachable_chats: set[int] = field(default_factory=set)
    photo_error: Exception | None = None
    updates: list[list[dict[str, object]]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None
    webhook: str | None = None
    webhook_deleted: bool = False
    _next_message_id: int = 1000

    def _new_message_id(self) -> int:
        self._next_message_id += 1
        return self._next_message_id

    async def send_message(  # noqa: PLR0913
        self,
        chat_id: int,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> DeliveryResult:
        if chat_id in self.unreachable_chats:
            return Unreachable(reason="Forbidden: bot was blocked by the user")
        self.messages.append((chat_id, text))
        self.sent.append(
            {
                "chat_id": chat_id,
                "text": text,
                "reply_markup": reply_markup,
                "parse_mode": parse_mode,
                "reply_to_message_id": reply_to_message_id,
            }
        )
        return Delivered(message_id=self._new_message_id())

    async def send_photo(
        self,
        chat_id: int,
        photo_url: str,
        caption: str | None = None,
        parse_mode: str | None = None,
    ) -> DeliveryResult:
        if self.photo_error is not None:
            raise self.photo_error
        if chat_id in self.unreachable_chats:
            return Unreachable(reason="Forbidden: bot was blocked by the user")
        self.photos.append((chat_id, photo_url, caption))
        return Delivered(message_id=self._new_message_id())

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        self.edits.append((chat_id, message_id, text))

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        self.deleted.append((chat_id, message_id))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, object]]:
        await asyncio.sleep(0)
        return self.updates.pop(0) if self.updates else []

    async def set_webhook(self, url: str) -> None:
        self.webhook = url

    async def delete_webhook(self) -> None:
        self.webhook_deleted = True

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button


@dataclass
class FakeTelegramFileClient(TelegramFileClient):
    """Fake file client returning predictable download URLs."""

    requested: list[str] = field(default_factory=list)

    async def get_file_url(self, file_id: str) -> str:
        self.requested.append(file_id)
        return f"https://files.test/{file_id}.jpg"


@dataclass
class FakeFileFetcher(FileFetcher):
    """Fake fetcher that returns static bytes or raises."""

    content: bytes = b"\xff\xd8\xff-fake-jpeg"
    error: Exception | None = None
    urls: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.content


@dataclass
class FakeBackend(IdentificationBackend):
    """Fake backend replying with fixed text or raising."""

    label: str = "fake-model"
    answer: str = FALCON_ANSWER
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.label

    async def identify(
        self,
        *,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        location_hint: str | None = None,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "image_bytes": image_bytes,
                "mime_type": mime_type,
                "location_hint": location_hint,
            }
        )
        if self.error is not None:
            raise self.error
        return self.answer


@dataclass
class FakeTaxonomyClient(TaxonomyClient):
    """Fake iNaturalist client."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "total_results": 1,
            "results": [
                {
                    "id": 4647,
                    "name": "Falco peregrinus",
                    "default_photo": {"medium_url": FALCON_PHOTO_URL},
                }
            ],
        }
    )
    error: Exception | None = None
    queries: list[str] = field(default_factory=list)

    async def search_taxa(self, query: str, per_page: int = 1) -> dict[str, object]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        gemini_api_key="gemini-key",
        environment="test",
    )


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def file_fetcher() -> FakeFileFetcher:
    return FakeFileFetcher()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def taxonomy_client() -> FakeTaxonomyClient:
    return FakeTaxonomyClient()


@pytest.fixture
def resolver(
    backend: FakeBackend, taxonomy_client: FakeTaxonomyClient
) -> SpeciesResolver:
    return SpeciesResolver(
        backends=[backend],
        reference_photos=ReferencePhotoService(
            taxonomy_client=taxonomy_client, cache=InMemoryCache()
        ),
    )


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def conversation_service(
    session_repository: InMemorySessionRepository,
    telegram_client: FakeTelegramClient,
    file_fetcher: FakeFileFetcher,
    resolver: SpeciesResolver,
) -> ConversationService:
    return ConversationService(
        session_repository=session_repository,
        telegram_client=telegram_client,
        file_client=FakeTelegramFileClient(),
        file_fetcher=file_fetcher,
        resolver=resolver,
    )


@pytest.fixture
def container(
    settings: Settings,
    telegram_client: FakeTelegramClient,
    file_fetcher: FakeFileFetcher,
    resolver: SpeciesResolver,
    conversation_service: ConversationService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        telegram_file_client=conversation_service.file_client,
        file_fetcher=file_fetcher,
        resolver=resolver,
        conversation_service=conversation_service,
        close_resources=close_resources,
    )
