"""OpenAI Responses API identification backend."""

import base64
from dataclasses import dataclass

from openai import AsyncOpenAI

from animal_identifier.services.resolver import IdentificationBackend

SPECIES_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "commonName": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "scientificName": {"anyOf": [{"type": "string"}, {"type": "null"}]},
    },
    "required": ["commonName", "scientificName"],
    "additionalProperties": False,
}


@dataclass
class OpenAIBackend(IdentificationBackend):
    """Identification backend backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    store: bool = False

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    @classmethod
    def create(cls, api_key: str, model: str) -> "OpenAIBackend":
        """Create an OpenAI backend."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model)

    async def identify(
        self,
        *,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        location_hint: str | None = None,
    ) -> str:
        """Call OpenAI Responses API with structured outputs."""
        encoded = base64.b64encode(image_bytes).decode("utf-8")
        response = await self.client.responses.create(
            model=self.model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {
                            "type": "input_image",
                            "image_url": f"data:{mime_type};base64,{encoded}",
                        },
                    ],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "species_identification",
                    "strict": True,
                    "schema": SPECIES_SCHEMA,
                }
            },
            store=self.store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text
