"""Business context analysis of natural-language questions.

Five signals are derived independently and concurrently:

  intent        LLM classification into a closed IntentType set
  domain        best catalog match by text similarity
  entities      LLM extraction of tables, columns, metrics, ...
  terms         keyword candidates, optionally filtered against a glossary
  time context  LLM extraction of a date range / granularity

Each branch owns its failure handling and always returns a Signal, so the
join is a plain barrier over five completed results. A branch that fails
contributes its neutral default and is listed in
`BusinessContextProfile.degraded_signals`.

Aggregate confidence:
    0.3 * intent.confidence + 0.3 * domain.relevance + 0.4 * mean(entity confidence)
with the entity mean taken as 0.5 when no entities were found.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Sequence

from bizcontext.cache import TTLCache, make_cache_key
from bizcontext.config import AnalysisConfig
from bizcontext.exceptions import LLMError
from bizcontext.interpretation import prompts
from bizcontext.interpretation.domains import DEFAULT_DOMAINS, UNKNOWN_DOMAIN, DomainDetector
from bizcontext.interpretation.models import (
    BusinessContextProfile,
    BusinessDomain,
    BusinessEntity,
    EntityType,
    QueryIntent,
    Signal,
    TimeRange,
)
from bizcontext.interpretation.parsing import (
    parse_business_entities,
    parse_query_intent,
    parse_time_range,
)
from bizcontext.llm.base import LLMProvider
from bizcontext.similarity import SimilarityCapability

logger = logging.getLogger(__name__)

INTENT_WEIGHT = 0.3
DOMAIN_WEIGHT = 0.3
ENTITY_WEIGHT = 0.4
DEFAULT_ENTITY_CONFIDENCE = 0.5

COMPARISON_KEYWORDS: tuple[str, ...] = (
    "vs",
    "versus",
    "compared to",
    "compare",
    "difference between",
    "higher than",
    "lower than",
    "better than",
    "worse than",
)

_TERM_RE = re.compile(r"[A-Za-z][A-Za-z0-9_\-]*")

_STOP_WORDS = frozenset({
    "what", "which", "when", "where", "show", "list", "give", "tell", "from",
    "with", "that", "this", "these", "those", "have", "were", "been", "them",
    "their", "there", "about", "into", "over", "than", "then", "each", "only",
    "also", "does", "please", "many", "much", "most", "more", "some", "could",
    "would", "should", "between", "after", "before", "during", "last", "next",
})


def calculate_confidence(
    intent: QueryIntent, domain: BusinessDomain, entities: Sequence[BusinessEntity]
) -> float:
    """Weighted confidence of a profile; stays in [0, 1] for inputs in [0, 1]."""
    if entities:
        entity_confidence = sum(e.confidence for e in entities) / len(entities)
    else:
        entity_confidence = DEFAULT_ENTITY_CONFIDENCE
    score = (
        intent.confidence * INTENT_WEIGHT
        + domain.relevance * DOMAIN_WEIGHT
        + entity_confidence * ENTITY_WEIGHT
    )
    return min(1.0, max(0.0, score))


def extract_comparison_terms(question: str) -> list[str]:
    """Comparison keywords present in the question (case-insensitive substring match)."""
    lowered = question.lower()
    return [kw for kw in COMPARISON_KEYWORDS if kw in lowered]


def candidate_terms(question: str, min_length: int = 4) -> list[str]:
    """Distinct significant words of the question, in order of appearance."""
    seen: set[str] = set()
    terms: list[str] = []
    for word in _TERM_RE.findall(question):
        lowered = word.lower()
        if len(word) < min_length or lowered in _STOP_WORDS or lowered in seen:
            continue
        seen.add(lowered)
        terms.append(word)
    return terms


class BusinessContextAnalyzer:
    """Interpret a question into a cached BusinessContextProfile.

    Usage:
        analyzer = BusinessContextAnalyzer(provider, LexicalSimilarity(), TTLCache())
        profile = await analyzer.analyze("Top 10 games by revenue last month", user_id="u1")
    """

    def __init__(
        self,
        provider: LLMProvider | None,
        similarity: SimilarityCapability | None,
        cache: TTLCache,
        domain_catalog: Sequence[BusinessDomain] | None = DEFAULT_DOMAINS,
        glossary: Sequence[str] | None = None,
        config: AnalysisConfig | None = None,
    ) -> None:
        self.provider = provider
        self.similarity = similarity
        self.cache = cache
        self.config = config or AnalysisConfig()
        self.glossary = tuple(glossary) if glossary else ()
        self.domain_detector = DomainDetector(similarity, domain_catalog)

    @staticmethod
    def cache_key(question: str, user_id: str | None) -> str:
        return make_cache_key("context_profile", question, user_id or "")

    async def analyze(self, question: str, user_id: str | None = None) -> BusinessContextProfile:
        """Interpret a question. Never raises for upstream failures."""
        key = self.cache_key(question, user_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Using cached context profile for question")
            return cached

        start = time.perf_counter()
        logger.info("Analyzing user question: %s", question[:100])

        intent, domain, entities, terms, time_context = await asyncio.gather(
            self.classify_intent(question),
            self.detect_domain(question),
            self.extract_entities(question),
            self.extract_business_terms(question),
            self.extract_time_context(question),
        )

        signals = (intent, domain, entities, terms, time_context)
        degraded = [s.name for s in signals if s.degraded]

        profile = BusinessContextProfile(
            original_question=question,
            user_id=user_id,
            intent=intent.value,
            domain=domain.value,
            entities=entities.value,
            business_terms=terms.value,
            time_context=time_context.value,
            identified_metrics=[e.name for e in entities.value if e.type == EntityType.METRIC],
            identified_dimensions=[e.name for e in entities.value if e.type == EntityType.DIMENSION],
            comparison_terms=extract_comparison_terms(question),
            confidence_score=calculate_confidence(intent.value, domain.value, entities.value),
            degraded_signals=degraded,
        )

        self.cache.set(key, profile, ttl=self.config.cache_ttl_seconds)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Context analysis completed in %.1fms: intent=%s domain=%s entities=%d confidence=%.2f%s",
            elapsed_ms,
            profile.intent.type.value,
            profile.domain.name,
            len(profile.entities),
            profile.confidence_score,
            f" degraded={','.join(degraded)}" if degraded else "",
        )
        return profile

    # -------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------

    async def _ask(self, prompt: str) -> str:
        if self.provider is None:
            raise LLMError("no LLM provider configured")
        return await self.provider.classify(prompt)

    async def classify_intent(self, question: str) -> Signal[QueryIntent]:
        try:
            response = await self._ask(prompts.intent_prompt(question))
            return Signal.ok("intent", parse_query_intent(response))
        except Exception as e:
            logger.exception("Error classifying business intent")
            return Signal.fallback("intent", QueryIntent(), e)

    async def detect_domain(self, question: str) -> Signal[BusinessDomain]:
        try:
            return Signal.ok("domain", await self.domain_detector.detect(question))
        except Exception as e:
            logger.exception("Error detecting business domain")
            return Signal.fallback("domain", UNKNOWN_DOMAIN, e)

    async def extract_entities(self, question: str) -> Signal[list[BusinessEntity]]:
        try:
            response = await self._ask(prompts.entities_prompt(question))
            return Signal.ok("entities", parse_business_entities(response))
        except Exception as e:
            logger.exception("Error extracting business entities")
            return Signal.fallback("entities", [], e)

    async def extract_business_terms(self, question: str) -> Signal[list[str]]:
        try:
            terms = candidate_terms(question, self.config.min_term_length)
            if self.glossary and self.similarity is not None:
                terms = [t for t in terms if await self._matches_glossary(t)]
            return Signal.ok("terms", terms)
        except Exception as e:
            logger.exception("Error extracting business terms")
            return Signal.fallback("terms", [], e)

    async def _matches_glossary(self, term: str) -> bool:
        threshold = self.config.term_match_threshold
        for entry in self.glossary:
            if await self.similarity.similarity(term, entry) > threshold:
                return True
        return False

    async def extract_time_context(self, question: str) -> Signal[TimeRange | None]:
        try:
            response = await self._ask(prompts.time_context_prompt(question))
            return Signal.ok("time_context", parse_time_range(response))
        except Exception as e:
            logger.exception("Error extracting time context")
            return Signal.fallback("time_context", None, e)
