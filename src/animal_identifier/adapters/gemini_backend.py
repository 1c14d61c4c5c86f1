"""Google Gemini identification backend."""

from dataclasses import dataclass

from google import genai
from google.genai import types

from animal_identifier.services.resolver import IdentificationBackend


@dataclass
class GeminiBackend(IdentificationBackend):
    """Identification backend backed by a single Gemini model."""

    client: genai.Client
    model: str

    @property
    def name(self) -> str:
        return self.model

    @classmethod
    def chain(cls, api_key: str, models: list[str]) -> list["GeminiBackend"]:
        """Create one backend per model, sharing a single API client."""
        client = genai.Client(api_key=api_key)
        return [cls(client=client, model=model) for model in models]

    async def identify(
        self,
        *,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        location_hint: str | None = None,
    ) -> str:
        """Send the prompt and the inlined image, return the answer text."""
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                prompt,
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
            ],
        )
        text = response.text
        if not text:
            raise RuntimeError(f"{self.model} returned an empty response")
        return text
