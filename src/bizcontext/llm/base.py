"""Base LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

CLASSIFIER_SYSTEM_PROMPT = (
    "You analyze business questions for a reporting assistant. "
    "Answer with the requested JSON only, no prose and no markdown."
)


class Message(BaseModel):
    """A message in the conversation."""

    role: str  # "system", "user", "assistant"
    content: str = ""


class LLMResponse(BaseModel):
    """Response from the LLM."""

    content: str = ""
    finish_reason: str = ""
    usage: dict[str, int] = Field(default_factory=dict)


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """Send a completion request to the LLM."""
        ...

    async def classify(self, prompt: str, max_tokens: int | None = None) -> str:
        """Run a structured-output prompt and return the raw reply text.

        Uses the provider's configured temperature and reply size unless
        `max_tokens` is given. Parsing is left to the caller; the reply is not
        guaranteed to be valid JSON.
        """
        response = await self.complete(
            [
                Message(role="system", content=CLASSIFIER_SYSTEM_PROMPT),
                Message(role="user", content=prompt),
            ],
            temperature=self.temperature,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
        )
        return response.content
