"""Text-generation collaborators.

Call sites receive a ``TextGenerator`` explicitly. ``OpenAITextGenerator`` is
the present variant; ``OfflineTextGenerator`` is the absent one, used when no
API key is configured, so every caller can take its deterministic fallback.
"""

from __future__ import annotations

import logging

from openai import OpenAI

from newsletter_app.core.config import DEFAULT_OPENAI_MODEL, NewsletterSettings
from newsletter_app.core.errors import TextGenerationUnavailable

logger = logging.getLogger(__name__)


class TextGenerator:
    available: bool = True

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float | None = None,
        system: str | None = None,
    ) -> str:
        raise NotImplementedError


class OfflineTextGenerator(TextGenerator):
    available = False

    def complete(self, prompt, *, max_tokens, temperature=None, system=None) -> str:
        raise TextGenerationUnavailable("No text-generation backend configured")


class OpenAITextGenerator(TextGenerator):
    def __init__(self, client: OpenAI | None = None, *, api_key: str | None = None, model: str = DEFAULT_OPENAI_MODEL):
        self.client = client or OpenAI(api_key=api_key)
        self.model = model

    def complete(self, prompt, *, max_tokens, temperature=None, system=None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        kwargs = {"model": self.model, "max_tokens": max_tokens, "messages": messages}
        if temperature is not None:
            kwargs["temperature"] = temperature
        response = self.client.chat.completions.create(**kwargs)
        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()


def build_text_generator(settings: NewsletterSettings) -> TextGenerator:
    if not settings.openai_api_key:
        logger.info("OPENAI_API_KEY not set; editorial text uses offline fallbacks")
        return OfflineTextGenerator()
    return OpenAITextGenerator(api_key=settings.openai_api_key, model=settings.openai_model)
