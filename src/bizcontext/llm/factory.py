"""Build the configured LLM provider.

Providers answer the interpretation prompts (intent, entities, time context).
The OpenAI provider also serves embeddings; the CLI backs domain and glossary
matching with them when it is selected. "local" means any OpenAI-compatible
server (Ollama, vLLM) reached through `base_url`.
"""

from __future__ import annotations

from bizcontext.config import LLMConfig
from bizcontext.llm.base import LLMProvider

SUPPORTED_PROVIDERS = ("openai", "anthropic", "local")


def create_provider(config: LLMConfig) -> LLMProvider:
    """Create the provider named by `config.provider`, carrying its sampling settings.

    Raises:
        ValueError: If the provider is unknown.
    """
    provider = config.provider.lower()
    common = dict(
        model=config.model,
        api_key=config.api_key,
        base_url=config.base_url,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )

    if provider in ("openai", "local"):
        from bizcontext.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(embedding_model=config.embedding_model, **common)
    if provider == "anthropic":
        from bizcontext.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(**common)
    raise ValueError(
        f"Unknown LLM provider: '{provider}'. "
        f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
    )
