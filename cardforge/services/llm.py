"""Completion client for the hosted LLM API."""
import logging
from typing import Protocol

from groq import APIError, AsyncGroq

from cardforge.core.errors import GenerationError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    async def complete(self, prompt: str) -> str:
        ...


class GroqCompletionClient:
    """Single-turn, non-streaming chat completion against Groq."""

    def __init__(self, api_key: str | None, model: str):
        self.api_key = api_key
        self.model = model
        self._client: AsyncGroq | None = None

    @property
    def client(self) -> AsyncGroq:
        # built on first use so the app starts without a key
        if self._client is None:
            if not self.api_key:
                raise GenerationError("LLM API key is not configured")
            self._client = AsyncGroq(api_key=self.api_key)
        return self._client

    async def complete(self, prompt: str) -> str:
        try:
            completion = await self.client.chat.completions.create(
                messages=[{"role": "user", "content": prompt}],
                model=self.model,
                stream=False,
            )
        except APIError as e:
            logger.error("Groq API error: %s", e)
            raise GenerationError("LLM completion failed", details=str(e)) from e
        return completion.choices[0].message.content or ""
