"""OpenAI LLM provider."""

from __future__ import annotations

from typing import Any

from bizcontext.llm.base import LLMProvider, LLMResponse, Message


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI and OpenAI-compatible APIs (Ollama, vLLM, etc.).

    Also serves embeddings, so it can back :class:`EmbeddingSimilarity`.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        embedding_model: str = "text-embedding-3-small",
    ) -> None:
        super().__init__(model, api_key, base_url, temperature, max_tokens)
        self.embedding_model = embedding_model
        self._async_client = None

    def _get_client(self):
        if self._async_client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                from bizcontext.exceptions import ProviderNotAvailableError
                raise ProviderNotAvailableError("openai", "openai")

            kwargs: dict[str, Any] = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._async_client = AsyncOpenAI(**kwargs)
        return self._async_client

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[{"role": m.role, "content": m.content} for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        choice = response.choices[0]
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            }

        return LLMResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "",
            usage=usage,
        )

    async def embed(self, text: str) -> list[float]:
        """Embed a single string with the configured embedding model."""
        client = self._get_client()
        response = await client.embeddings.create(model=self.embedding_model, input=text)
        return list(response.data[0].embedding)
