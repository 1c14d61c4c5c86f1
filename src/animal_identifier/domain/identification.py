"""Domain models for species identification."""

from dataclasses import dataclass

NOT_IDENTIFIED_REASON = "Could not identify animal"
ALL_BACKENDS_FAILED_REASON = "All models failed"


@dataclass(frozen=True)
class IdentificationSuccess:
    """A resolved species with an optional reference photo."""

    common_name: str
    scientific_name: str
    reference_image_url: str | None = None

    def to_payload(self) -> dict[str, str | None]:
        """Return the JSON payload exposed by the HTTP API."""
        return {
            "commonName": self.common_name,
            "scientificName": self.scientific_name,
            "imageUrl": self.reference_image_url,
        }


@dataclass(frozen=True)
class IdentificationFailure:
    """An identification attempt that produced no species."""

    reason: str


IdentificationResult = IdentificationSuccess | IdentificationFailure


@dataclass(frozen=True)
class ParsedAnswer:
    """Name pair extracted from a backend answer.

    Both names are ``None`` when the backend reported the animal as not
    identifiable.
    """

    common_name: str | None
    scientific_name: str | None

    @property
    def is_identified(self) -> bool:
        return bool(self.common_name) and bool(self.scientific_name)


@dataclass(frozen=True)
class ExtractionFailed:
    """No JSON object could be found or decoded in the answer text."""

    reason: str


@dataclass(frozen=True)
class SchemaInvalid:
    """A JSON object was found but its fields have the wrong shape."""

    reason: str


AnswerParseResult = ParsedAnswer | ExtractionFailed | SchemaInvalid
