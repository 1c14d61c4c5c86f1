"""Tests for identification backend adapters."""

import asyncio
from types import SimpleNamespace

import pytest

from animal_identifier.adapters.gemini_backend import GeminiBackend
from animal_identifier.adapters.openai_backend import OpenAIBackend
from tests.conftest import FALCON_ANSWER


class _FakeGeminiModels:
    def __init__(self, text: str | None) -> None:
        self.text = text
        self.last_kwargs: dict[str, object] | None = None

    async def generate_content(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_kwargs = kwargs
        return SimpleNamespace(text=self.text)


def _gemini_client(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=_FakeGeminiModels(text)))


def test_gemini_backend_sends_prompt_and_inline_image() -> None:
    client = _gemini_client(FALCON_ANSWER)
    backend = GeminiBackend(client=client, model="gemini-2.5-flash")

    text = asyncio.run(
        backend.identify(prompt="Name it", image_bytes=b"img", mime_type="image/png")
    )

    assert text == FALCON_ANSWER
    kwargs = client.aio.models.last_kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    prompt, part = kwargs["contents"]
    assert prompt == "Name it"
    assert part.inline_data.data == b"img"
    assert part.inline_data.mime_type == "image/png"
    assert backend.name == "gemini-2.5-flash"


def test_gemini_backend_rejects_empty_text() -> None:
    backend = GeminiBackend(client=_gemini_client(None), model="gemini-2.0-flash")

    with pytest.raises(RuntimeError):
        asyncio.run(
            backend.identify(
                prompt="Name it", image_bytes=b"img", mime_type="image/jpeg"
            )
        )


def test_gemini_chain_keeps_model_order() -> None:
    backends = GeminiBackend.chain("key", ["gemini-2.5-pro", "gemini-2.5-flash"])

    assert [backend.name for backend in backends] == [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
    ]
    assert backends[0].client is backends[1].client


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return SimpleNamespace(output_text=self.output_text)


def test_openai_backend_sends_data_url() -> None:
    responses = _FakeResponses(FALCON_ANSWER)
    backend = OpenAIBackend(
        client=SimpleNamespace(responses=responses), model="gpt-4o-mini"
    )

    text = asyncio.run(
        backend.identify(prompt="Name it", image_bytes=b"img", mime_type="image/jpeg")
    )

    assert text == FALCON_ANSWER
    content = responses.last_payload["input"][0]["content"]
    assert content[0] == {"type": "input_text", "text": "Name it"}
    assert content[1]["image_url"] == "data:image/jpeg;base64,aW1n"
    assert responses.last_payload["text"]["format"]["strict"] is True
    assert backend.name == "openai:gpt-4o-mini"


def test_openai_backend_rejects_empty_output() -> None:
    backend = OpenAIBackend(
        client=SimpleNamespace(responses=_FakeResponses("")), model="gpt-4o-mini"
    )

    with pytest.raises(RuntimeError):
        asyncio.run(
            backend.identify(
                prompt="Name it", image_bytes=b"img", mime_type="image/jpeg"
            )
        )
