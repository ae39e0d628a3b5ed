"""Token counting and prompt budget sizing.

Counts are estimates: one token per word plus one per two punctuation marks,
scaled by how densely each kind of content tokenizes. They only need to be
consistent between sections, since they feed the knapsack weights.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from bizcontext.cache import TTLCache, make_cache_key
from bizcontext.interpretation.models import BusinessContextProfile, IntentType

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\b\w+\b")
_PUNCT_RE = re.compile(r"[^\w\s]")

# Token multipliers per content kind
CONTENT_TYPE_MULTIPLIERS = MappingProxyType({
    "sql": 1.3,
    "json": 1.2,
    "schema": 1.1,
    "business_context": 1.0,
    "examples": 1.15,
    "rules": 1.05,
    "glossary": 1.0,
})

TOKEN_COUNT_TTL = 60 * 60
BUDGET_TTL = 60 * 60

SYSTEM_PROMPT_TOKENS = 150
TEMPLATE_STRUCTURE_TOKENS = 100


class TokenCounter:
    """Estimate token counts, memoized through the shared cache."""

    def __init__(self, cache: TTLCache | None = None) -> None:
        self.cache = cache

    def count(self, text: str, category_hint: str = "business_context") -> int:
        if not text or not text.strip():
            return 0

        key = make_cache_key("token_count", category_hint, text)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        words = len(_WORD_RE.findall(text))
        punctuation = len(_PUNCT_RE.findall(text))
        multiplier = CONTENT_TYPE_MULTIPLIERS.get(category_hint, 1.0)
        tokens = math.ceil((words + punctuation // 2) * multiplier)

        if self.cache is not None:
            self.cache.set(key, tokens, ttl=TOKEN_COUNT_TTL)
        return tokens


class AllocationStrategy(BaseModel):
    """Share of the context budget given to each kind of content."""

    model_config = ConfigDict(frozen=True)

    schema_pct: float
    business_pct: float
    examples_pct: float
    rules_pct: float
    glossary_pct: float


ALLOCATION_STRATEGIES = MappingProxyType({
    IntentType.AGGREGATION: AllocationStrategy(
        schema_pct=0.40, business_pct=0.25, examples_pct=0.20, rules_pct=0.10, glossary_pct=0.05
    ),
    IntentType.TREND: AllocationStrategy(
        schema_pct=0.35, business_pct=0.30, examples_pct=0.20, rules_pct=0.10, glossary_pct=0.05
    ),
    IntentType.COMPARISON: AllocationStrategy(
        schema_pct=0.45, business_pct=0.25, examples_pct=0.15, rules_pct=0.10, glossary_pct=0.05
    ),
    IntentType.DETAIL: AllocationStrategy(
        schema_pct=0.50, business_pct=0.20, examples_pct=0.15, rules_pct=0.10, glossary_pct=0.05
    ),
    IntentType.EXPLORATORY: AllocationStrategy(
        schema_pct=0.30, business_pct=0.35, examples_pct=0.20, rules_pct=0.10, glossary_pct=0.05
    ),
    IntentType.OPERATIONAL: AllocationStrategy(
        schema_pct=0.40, business_pct=0.30, examples_pct=0.15, rules_pct=0.10, glossary_pct=0.05
    ),
    IntentType.ANALYTICAL: AllocationStrategy(
        schema_pct=0.35, business_pct=0.30, examples_pct=0.20, rules_pct=0.10, glossary_pct=0.05
    ),
})


class TokenBudget(BaseModel):
    """Request-scoped token ceilings. `available_context_tokens` bounds selection."""

    model_config = ConfigDict(frozen=True)

    max_total_tokens: int = Field(ge=0)
    available_context_tokens: int = Field(ge=0)
    intent: IntentType = IntentType.UNKNOWN
    base_prompt_tokens: int = 0
    reserved_response_tokens: int = 0
    schema_budget: int = 0
    business_budget: int = 0
    examples_budget: int = 0
    rules_budget: int = 0
    glossary_budget: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def minimal(cls, intent: IntentType = IntentType.UNKNOWN) -> TokenBudget:
        """Fallback used when the requested ceiling leaves no room for context."""
        return cls(
            max_total_tokens=1000,
            available_context_tokens=500,
            intent=intent,
            base_prompt_tokens=300,
            reserved_response_tokens=200,
            schema_budget=200,
            business_budget=150,
            examples_budget=100,
            rules_budget=30,
            glossary_budget=20,
        )


class TokenBudgetManager:
    """Size a TokenBudget for a profile."""

    def __init__(self, counter: TokenCounter, cache: TTLCache | None = None) -> None:
        self.counter = counter
        self.cache = cache

    def estimate_base_prompt_tokens(self, question: str) -> int:
        return (
            SYSTEM_PROMPT_TOKENS
            + self.counter.count(question, "business_context")
            + TEMPLATE_STRUCTURE_TOKENS
        )

    def create_budget(
        self,
        profile: BusinessContextProfile,
        max_tokens: int = 4000,
        reserved_response_tokens: int = 500,
    ) -> TokenBudget:
        intent = profile.intent.type
        key = make_cache_key(
            "token_budget", intent.value, profile.domain.name.lower(),
            max_tokens, reserved_response_tokens, profile.original_question,
        )
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Retrieved cached token budget for intent %s", intent.value)
                return cached

        base = self.estimate_base_prompt_tokens(profile.original_question)
        available = max_tokens - base - reserved_response_tokens
        if available <= 0:
            logger.warning(
                "No tokens available for context. Max: %d, Base: %d, Reserved: %d",
                max_tokens, base, reserved_response_tokens,
            )
            return TokenBudget.minimal(intent)

        strategy = ALLOCATION_STRATEGIES.get(intent, ALLOCATION_STRATEGIES[IntentType.ANALYTICAL])
        sub_budgets = {
            "schema_budget": int(available * strategy.schema_pct),
            "business_budget": int(available * strategy.business_pct),
            "examples_budget": int(available * strategy.examples_pct),
            "rules_budget": int(available * strategy.rules_pct),
            "glossary_budget": int(available * strategy.glossary_pct),
        }
        _apply_domain_adjustments(sub_budgets, profile.domain.name)

        budget = TokenBudget(
            max_total_tokens=max_tokens,
            available_context_tokens=available,
            intent=intent,
            base_prompt_tokens=base,
            reserved_response_tokens=reserved_response_tokens,
            **sub_budgets,
        )
        if self.cache is not None:
            self.cache.set(key, budget, ttl=BUDGET_TTL)

        logger.info(
            "Created token budget for %s: total=%d context=%d schema=%d business=%d",
            intent.value, budget.max_total_tokens, budget.available_context_tokens,
            budget.schema_budget, budget.business_budget,
        )
        return budget


def _apply_domain_adjustments(sub_budgets: dict[str, int], domain_name: str) -> None:
    domain = domain_name.lower()
    if domain == "gaming":
        sub_budgets["examples_budget"] = int(sub_budgets["examples_budget"] * 1.2)
        sub_budgets["business_budget"] = int(sub_budgets["business_budget"] * 0.9)
    elif domain in ("financial", "banking"):
        sub_budgets["rules_budget"] = int(sub_budgets["rules_budget"] * 1.5)
        sub_budgets["examples_budget"] = int(sub_budgets["examples_budget"] * 0.8)
