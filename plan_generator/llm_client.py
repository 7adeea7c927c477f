"""Inference client implemented via the OpenAI Chat Completions API."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from openai import OpenAI, OpenAIError

from .errors import InferenceError

DEFAULT_TIMEOUT = 60.0
DEFAULT_BASE_URL = "http://localhost:11434/v1"
DEFAULT_MODEL = "llama3.1:8b"

LOGGER = logging.getLogger("plan_generator.llm")


@dataclass(frozen=True)
class InferenceSettings:
    """Connection details for an OpenAI-compatible endpoint."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = "ollama"
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT


class InferenceClient:
    """Wrapper around the chat completions endpoint."""

    def __init__(self, settings: Optional[InferenceSettings] = None, *, client: Any = None) -> None:
        self.settings = settings or InferenceSettings()
        self.model = self.settings.model
        self.client = client or OpenAI(api_key=self.settings.api_key, base_url=self.settings.base_url)

    def complete(
        self,
        prompt: str,
        *,
        temperature: float,
        top_p: float,
        max_tokens: int,
    ) -> str:
        """Send one prompt and return the raw text of the reply."""
        LOGGER.info("Sending prompt to %s (%s)", self.model, self.settings.base_url)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                top_p=top_p,
                max_tokens=max_tokens,
                stream=False,
                timeout=self.settings.timeout,
            )
        except OpenAIError as exc:
            raise InferenceError(f"LLM API call failed: {exc}") from exc

        if not response.choices:
            raise InferenceError("LLM returned no choices")

        message = response.choices[0].message
        content = getattr(message, "content", None)
        if isinstance(content, str):
            LOGGER.info("LLM response received")
            return content

        # content may arrive as a list of parts
        if isinstance(content, list):
            texts = [item.get("text") for item in content if isinstance(item, dict) and item.get("text")]
            if texts:
                return "".join(texts)

        raise InferenceError("LLM response contains no text content")

    def list_models(self) -> List[str]:
        """Return the model ids the endpoint serves."""
        try:
            page = self.client.models.list()
        except OpenAIError as exc:
            raise InferenceError(f"Could not reach LLM endpoint: {exc}") from exc
        return [model.id for model in page.data]
