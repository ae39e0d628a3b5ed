"""Custom exceptions for bizcontext."""


class BizContextError(Exception):
    """Base exception for all bizcontext errors."""


class ConfigError(BizContextError):
    """Configuration-related errors."""


class LLMError(BizContextError):
    """LLM provider errors."""


class ClassificationError(BizContextError):
    """Structured output from the language model could not be parsed."""


class PrioritizationError(BizContextError):
    """Context scoring or selection errors."""


class ProviderNotAvailableError(LLMError):
    """Raised when an LLM provider's SDK is not installed."""

    def __init__(self, provider: str, package: str):
        super().__init__(
            f"Provider '{provider}' requires the '{package}' package. "
            f"Install it with: pip install bizcontext[{provider}]"
        )
