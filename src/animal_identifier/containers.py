"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from animal_identifier.adapters.file_fetcher import FileFetcher, HttpxFileFetcher
from animal_identifier.adapters.gemini_backend import GeminiBackend
from animal_identifier.adapters.inaturalist_client import HttpxINaturalistClient
from animal_identifier.adapters.memory_session_repository import (
    InMemorySessionRepository,
)
from animal_identifier.adapters.openai_backend import OpenAIBackend
from animal_identifier.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from animal_identifier.adapters.telegram_file_client import (
    HttpxTelegramFileClient,
    TelegramFileClient,
)
from animal_identifier.config import Settings
from animal_identifier.services.cache import InMemoryCache
from animal_identifier.services.conversation import ConversationService
from animal_identifier.services.reference_photos import ReferencePhotoService
from animal_identifier.services.resolver import IdentificationBackend, SpeciesResolver


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient
    file_fetcher: FileFetcher
    resolver: SpeciesResolver
    conversation_service: ConversationService
    close_resources: Callable[[], Awaitable[None]]


def build_backends(settings: Settings) -> list[IdentificationBackend]:
    """Return the ordered backend attempt chain for the configured providers."""
    backends: list[IdentificationBackend] = list(
        GeminiBackend.chain(settings.gemini_api_key, settings.gemini_models)
    )
    if settings.openai_api_key:
        backends.append(
            OpenAIBackend.create(settings.openai_api_key, settings.openai_model)
        )
    return backends


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token
    )
    file_fetcher = HttpxFileFetcher.create()
    taxonomy_client = HttpxINaturalistClient.create(
        resolved_settings.inaturalist_base_url
    )
    resolver = SpeciesResolver(
        backends=build_backends(resolved_settings),
        reference_photos=ReferencePhotoService(
            taxonomy_client=taxonomy_client,
            cache=InMemoryCache(),
            ttl_seconds=resolved_settings.reference_photo_ttl_seconds,
        ),
        location_in_prompt=resolved_settings.identification_location_in_prompt,
    )
    conversation_service = ConversationService(
        session_repository=InMemorySessionRepository(),
        telegram_client=telegram_client,
        file_client=telegram_file_client,
        file_fetcher=file_fetcher,
        resolver=resolver,
        debug_errors=resolved_settings.environment == "local",
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()
        await file_fetcher.close()
        await taxonomy_client.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        file_fetcher=file_fetcher,
        resolver=resolver,
        conversation_service=conversation_service,
        close_resources=close_resources,
    )
