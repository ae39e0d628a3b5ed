"""LLM provider abstraction layer."""

from bizcontext.llm.base import LLMProvider, LLMResponse, Message
from bizcontext.llm.factory import create_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "create_provider",
]
