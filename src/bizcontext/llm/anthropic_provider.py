"""Anthropic Claude LLM provider."""

from __future__ import annotations

from typing import Any

from bizcontext.llm.base import LLMProvider, LLMResponse, Message


class AnthropicProvider(LLMProvider):
    """Provider for Anthropic's Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-5-20250929",
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> None:
        super().__init__(model, api_key, base_url, temperature, max_tokens)
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                from bizcontext.exceptions import ProviderNotAvailableError
                raise ProviderNotAvailableError("anthropic", "anthropic")

            kwargs: dict[str, Any] = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = AsyncAnthropic(**kwargs)
        return self._client

    def _format_messages(self, messages: list[Message]) -> tuple[str, list[dict]]:
        """Split out the system prompt; Anthropic takes it as a separate argument."""
        system = ""
        result = []
        for msg in messages:
            if msg.role == "system":
                system = msg.content
                continue
            result.append({"role": msg.role, "content": msg.content})
        return system, result

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        client = self._get_client()
        system, formatted_msgs = self._format_messages(messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": formatted_msgs,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        response = await client.messages.create(**kwargs)

        content = "".join(block.text for block in response.content if block.type == "text")

        return LLMResponse(
            content=content,
            finish_reason=response.stop_reason or "",
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
            },
        )
