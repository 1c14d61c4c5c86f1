"""Stateless identification endpoint for non-chat clients."""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from animal_identifier.domain.identification import IdentificationSuccess

if TYPE_CHECKING:
    from animal_identifier.containers import AppContainer

SERVICE_NAME = "Animal Identification API"

_logger = logging.getLogger(__name__)

router = APIRouter(tags=["identify"])


class NodeBuffer(BaseModel):
    """A Buffer serialized by ``JSON.stringify`` in Node.js."""

    type: str = "Buffer"
    data: list[int]


class IdentifyRequest(BaseModel):
    """Request body accepted by ``/identify``."""

    model_config = ConfigDict(populate_by_name=True)

    action: str | None = None
    image_base64: str | None = Field(default=None, alias="imageBase64")
    image_buffer: list[int] | NodeBuffer | None = Field(
        default=None, alias="imageBuffer"
    )
    location: str | None = None


class InvalidImageError(ValueError):
    """The request carried an image field that could not be decoded."""


@router.api_route("/identify", methods=["GET", "POST"])
async def identify(request: Request) -> JSONResponse:
    """Dispatch on ``action``: ``health`` or ``identify`` (default)."""
    try:
        body = IdentifyRequest.model_validate(await _read_body(request))
    except (ValueError, ValidationError) as exc:
        return _error(status.HTTP_400_BAD_REQUEST, f"Invalid request body: {exc}")

    action = request.query_params.get("action") or body.action or "identify"
    if action == "health":
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": datetime.now(tz=UTC).isoformat(),
                "service": SERVICE_NAME,
            }
        )
    if action != "identify":
        return _error(
            status.HTTP_400_BAD_REQUEST,
            f"Unknown action: {action}. Use 'identify' or 'health'.",
        )

    container: AppContainer = request.app.state.container
    try:
        image_bytes = decode_image(body)
        if image_bytes is None:
            return _error(
                status.HTTP_400_BAD_REQUEST,
                "No image provided. Send imageBase64 in request body.",
            )
        result = await container.resolver.resolve(image_bytes, body.location)
    except InvalidImageError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except Exception:
        _logger.exception("Identify request failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    if isinstance(result, IdentificationSuccess):
        return JSONResponse({"success": True, "data": result.to_payload()})
    return _error(status.HTTP_400_BAD_REQUEST, result.reason)


def decode_image(body: IdentifyRequest) -> bytes | None:
    """Return image bytes from the request, preferring ``imageBase64``."""
    if body.image_base64:
        encoded = body.image_base64.strip()
        if encoded.startswith("data:") and "," in encoded:
            encoded = encoded.split(",", maxsplit=1)[1]
        # Accept MIME line-wrapped and unpadded input.
        encoded = "".join(encoded.split())
        encoded += "=" * (-len(encoded) % 4)
        try:
            decoded = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImageError("imageBase64 is not valid base64") from exc
        return decoded or None

    buffer = body.image_buffer
    if isinstance(buffer, NodeBuffer):
        buffer = buffer.data
    if not buffer:
        return None
    try:
        return bytes(buffer)
    except ValueError as exc:
        raise InvalidImageError("imageBuffer values must be bytes (0-255)") from exc


async def _read_body(request: Request) -> dict[str, object]:
    raw = await request.body()
    if not raw.strip():
        return {}
    payload = await request.json()
    if not isinstance(payload, dict):
        raise ValueError("expected a JSON object")
    return payload


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)
