"""Extraction of the species name pair from free-form model output."""

import json
import re

from animal_identifier.domain.identification import (
    AnswerParseResult,
    ExtractionFailed,
    ParsedAnswer,
    SchemaInvalid,
)

# Spans the first "{" through the last "}".
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_answer(text: str) -> AnswerParseResult:
    """Extract the first brace-delimited JSON object and read both names."""
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        return ExtractionFailed(reason="No JSON object in model response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return ExtractionFailed(reason=f"Invalid JSON in model response: {exc.msg}")
    if not isinstance(data, dict):
        return SchemaInvalid(reason="Model response is not a JSON object")

    common_name = data.get("commonName")
    scientific_name = data.get("scientificName")
    for field_name, value in (
        ("commonName", common_name),
        ("scientificName", scientific_name),
    ):
        if value is not None and not isinstance(value, str):
            return SchemaInvalid(reason=f"{field_name} must be a string or null")
    return ParsedAnswer(
        common_name=_clean(common_name),
        scientific_name=_clean(scientific_name),
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
