"""Species identification with backend fallback."""

import logging
from dataclasses import dataclass
from typing import Protocol

from animal_identifier.domain.identification import (
    ALL_BACKENDS_FAILED_REASON,
    NOT_IDENTIFIED_REASON,
    IdentificationFailure,
    IdentificationResult,
    IdentificationSuccess,
    ParsedAnswer,
)
from animal_identifier.services.answers import parse_answer
from animal_identifier.services.reference_photos import ReferencePhotoService

_logger = logging.getLogger(__name__)

IDENTIFICATION_PROMPT = """You are an expert wildlife biologist. Analyze this image and identify the animal species.

Respond with ONLY a JSON object in this exact format (no other text):
{"commonName": "Peregrine Falcon", "scientificName": "Falco peregrinus"}

If the image does not contain an animal or you cannot identify it, respond with:
{"commonName": null, "scientificName": null}"""  # noqa: E501


class IdentificationBackend(Protocol):
    """Interface for one model that can name the animal in an image."""

    @property
    def name(self) -> str:
        """Identifier used in logs."""

    async def identify(
        self,
        *,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        location_hint: str | None = None,
    ) -> str:
        """Return the raw answer text for a single inlined image."""


@dataclass
class SpeciesResolver:
    """Try each backend in order and enrich the first usable answer."""

    backends: list[IdentificationBackend]
    reference_photos: ReferencePhotoService
    location_in_prompt: bool = False

    async def resolve(
        self, image_bytes: bytes, location_hint: str | None = None
    ) -> IdentificationResult:
        """Identify the animal in ``image_bytes``."""
        mime_type = detect_mime_type(image_bytes)
        prompt = build_prompt(location_hint if self.location_in_prompt else None)
        last_error: str | None = None

        for backend in self.backends:
            _logger.info("Trying identification backend %s", backend.name)
            try:
                text = await backend.identify(
                    prompt=prompt,
                    image_bytes=image_bytes,
                    mime_type=mime_type,
                    location_hint=location_hint,
                )
            except Exception as exc:
                _logger.warning("Backend %s failed: %s", backend.name, exc)
                last_error = str(exc)
                continue

            parsed = parse_answer(text)
            if not isinstance(parsed, ParsedAnswer):
                _logger.warning(
                    "Backend %s answer unusable: %s", backend.name, parsed.reason
                )
                last_error = parsed.reason
                continue

            if not parsed.is_identified:
                _logger.info("Backend %s could not identify the animal", backend.name)
                return IdentificationFailure(reason=NOT_IDENTIFIED_REASON)

            _logger.info(
                "Backend %s identified %s", backend.name, parsed.scientific_name
            )
            return IdentificationSuccess(
                common_name=parsed.common_name,
                scientific_name=parsed.scientific_name,
                reference_image_url=await self.reference_photos.find_photo_url(
                    parsed.common_name
                ),
            )

        return IdentificationFailure(reason=last_error or ALL_BACKENDS_FAILED_REASON)


def build_prompt(location_hint: str | None = None) -> str:
    """Return the instruction prompt, optionally mentioning where it was seen."""
    if not location_hint:
        return IDENTIFICATION_PROMPT
    return (
        f"{IDENTIFICATION_PROMPT}\n\n"
        f"The photo was taken near: {location_hint}. "
        "Use this only to choose between similar-looking species."
    )


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
