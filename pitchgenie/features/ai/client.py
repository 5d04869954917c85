"""OpenRouter chat-completions client (OpenAI-compatible API)."""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI

from pitchgenie.core.config import settings

logger = logging.getLogger("pitchgenie")


@dataclass(frozen=True)
class Completion:
    text: str
    total_tokens: int


class OpenRouterClient:
    """Thin wrapper over AsyncOpenAI pointed at OpenRouter.

    The SDK client is created on first use so a missing API key surfaces as a
    generation failure rather than an import-time error.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY") or settings.OPENROUTER_API_KEY
        self.base_url = base_url or settings.OPENROUTER_BASE_URL
        self._client: Optional[AsyncOpenAI] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("OPENROUTER_API_KEY is not configured")
            self._client = AsyncOpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                default_headers={"HTTP-Referer": settings.APP_URL, "X-Title": "PitchGenie"},
            )
        return self._client

    async def generate_text(self, model: str, prompt: str, *, max_tokens: int, temperature: float) -> Completion:
        response = await self._get_client().chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not getattr(response, "choices", None):
            raise ValueError("Provider returned no output")
        text = response.choices[0].message.content or ""
        total = response.usage.total_tokens if getattr(response, "usage", None) else 0
        logger.info("ai.completion", extra={"model": model, "tokens": total})
        return Completion(text=text, total_tokens=total or 0)
