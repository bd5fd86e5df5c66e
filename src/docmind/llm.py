"""Thin LiteLLM wrapper around the three remote capabilities we use.

One ``ModelClient`` is built per run from a config profile and handed to
the pipelines that need it: embeddings, chat completion and multimodal
text extraction.
"""

from __future__ import annotations

import base64
import logging
import math

import litellm

from docmind.config import LLMProfile, get_settings
from docmind.errors import EmbeddingError, ExtractionError, GenerationError

log = logging.getLogger(__name__)


def data_part(data: bytes, mime_type: str) -> dict:
    """Build a message content part carrying *data* as a base64 data URL."""
    encoded = base64.b64encode(data).decode("utf-8")
    url = f"data:{mime_type};base64,{encoded}"
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": url}}
    return {"type": "file", "file": {"file_data": url}}


class ModelClient:
    """Embedding, chat and extraction calls for one model profile."""

    def __init__(self, profile: LLMProfile | None = None):
        self.profile = profile or get_settings().llm

    @property
    def embed_model(self) -> str:
        return self.profile.embed_model

    @property
    def embed_dim(self) -> int:
        return self.profile.embed_dim

    async def embed(self, text: str) -> list[float]:
        """Embed a single text. Raises EmbeddingError on any bad result."""
        try:
            response = await litellm.aembedding(model=self.embed_model, input=[text])
        except Exception as e:
            raise EmbeddingError(f"Embedding call failed: {e}") from e

        data = getattr(response, "data", None)
        if not data:
            raise EmbeddingError("Embedding model returned no result")

        try:
            vector = data[0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmbeddingError("Embedding model returned a malformed result") from e

        if not vector or not all(
            isinstance(v, (int, float)) and math.isfinite(v) for v in vector
        ):
            raise EmbeddingError("Embedding model returned an empty or malformed vector")
        return [float(v) for v in vector]

    async def complete(self, messages: list[dict], **kwargs) -> str:
        """Chat completion using the profile's chat_model."""
        temperature = kwargs.pop("temperature", self.profile.temperature)
        max_tokens = kwargs.pop("max_tokens", self.profile.max_tokens)
        model = kwargs.pop("model", self.profile.chat_model)

        try:
            response = await litellm.acompletion(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except Exception as e:
            raise GenerationError(f"Chat completion failed: {e}") from e

        try:
            return response.choices[0].message.content or ""
        except (IndexError, AttributeError, TypeError) as e:
            raise GenerationError("Chat model returned a malformed reply") from e

    async def extract_text(
        self,
        data: bytes,
        mime_type: str,
        *,
        prompt: str | None = None,
    ) -> str:
        """Ask the vision model to transcribe a file (PDF, image, text...)."""
        prompt = prompt or get_settings().prompts.extraction_prompt

        try:
            response = await litellm.acompletion(
                model=self.profile.vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            data_part(data, mime_type),
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
                max_tokens=self.profile.max_tokens,
            )
        except Exception as e:
            raise ExtractionError(f"Failed to extract text from file: {e}") from e

        try:
            text = response.choices[0].message.content
        except (IndexError, AttributeError, TypeError) as e:
            raise ExtractionError("Extraction model returned a malformed reply") from e
        if not isinstance(text, str) or not text.strip():
            raise ExtractionError("Extraction model returned no text")
        return text

    async def close(self) -> None:
        """Release client resources. LiteLLM keeps none per client today."""

    async def __aenter__(self) -> ModelClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
