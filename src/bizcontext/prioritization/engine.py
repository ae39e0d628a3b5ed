"""Context Prioritization Engine.

Pipeline:
  1. Materialize every candidate into a ContextSection (text + token cost)
  2. Score: importance from the intent's weight row, efficiency = relevance / tokens,
       priority = 0.4 · relevance + 0.4 · importance + 0.2 · efficiency
  3. Select under a strategy (0/1 knapsack by default, see solvers.py)
  4. Reorder into the fixed presentation sequence
  5. Cache a copy of the ordered selection and record metrics

Scoring never writes into the sections it is given.

Any failure in steps 1-4 is logged and turned into an empty selection, so a
broken prioritization never blocks prompt construction. The detailed entry
points report it through `ContextOptimizationResult.degraded`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence

from bizcontext.cache import TTLCache, make_cache_key
from bizcontext.config import PrioritizationConfig
from bizcontext.interpretation.models import BusinessContextProfile
from bizcontext.metrics import MetricsRegistry, PrioritizationReport
from bizcontext.prioritization.models import (
    PRESENTATION_ORDER,
    BusinessRuleCandidate,
    CandidateSchema,
    ColumnCandidate,
    ContextOptimizationResult,
    ContextSection,
    ExampleCandidate,
    GlossaryCandidate,
    OptimizationStrategy,
    RelationshipCandidate,
    SectionCategory,
    TableCandidate,
)
from bizcontext.prioritization.solvers import get_solver
from bizcontext.prioritization.weights import category_importance, weights_for
from bizcontext.tokens import TokenBudget, TokenCounter

logger = logging.getLogger(__name__)

RELEVANCE_WEIGHT = 0.4
IMPORTANCE_WEIGHT = 0.4
EFFICIENCY_WEIGHT = 0.2

PRIORITIZATION_OPERATION = "context_prioritization"
OPTIMIZATION_OPERATION = "context_optimization"


# ---------------------------------------------------------------------------
# Section content
# ---------------------------------------------------------------------------

def render_table(table: TableCandidate) -> str:
    return (
        f"Table: {table.schema_name}.{table.table_name}\n"
        f"Purpose: {table.business_purpose}\n"
        f"Context: {table.business_context}\n"
        f"Use Case: {table.primary_use_case}"
    )


def render_column(column: ColumnCandidate) -> str:
    return (
        f"Column: {column.column_name} ({column.data_type})\n"
        f"Meaning: {column.business_meaning}\n"
        f"Context: {column.business_context}"
    )


def render_rule(rule: BusinessRuleCandidate) -> str:
    return f"Rule: {rule.description}\nType: {rule.type}\nSQL: {rule.sql_expression}"


def render_example(example: ExampleCandidate) -> str:
    return (
        f"Example: {example.business_context}\n"
        f"Query: {example.natural_language_query}\n"
        f"SQL: {example.generated_sql}"
    )


def render_relationship(rel: RelationshipCandidate) -> str:
    return (
        f"Relationship: {rel.from_table} → {rel.to_table}\n"
        f"Type: {rel.type}\n"
        f"Keys: {rel.from_column} = {rel.to_column}\n"
        f"Business Meaning: {rel.business_meaning}"
    )


def render_glossary(term: GlossaryCandidate) -> str:
    return f"Term: {term.term}\nDefinition: {term.definition}\nContext: {term.business_context}"


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def materialize_sections(
    schema: CandidateSchema,
    counter: TokenCounter,
    relationship_relevance: float = 0.6,
) -> list[ContextSection]:
    """Turn every candidate into a ContextSection."""
    sections: list[ContextSection] = []

    def add(category: SectionCategory, content: str, hint: str, relevance: float, **ids) -> None:
        sections.append(
            ContextSection(
                category=category,
                content=content,
                token_count=counter.count(content, hint),
                relevance_score=relevance,
                attributes={"section_category": category.value, **ids},
            )
        )

    for table in schema.tables:
        add(SectionCategory.TABLE_DEFINITION, render_table(table), "schema",
            table.relevance_score, table_id=table.id, table_name=table.table_name)

    for column in schema.columns:
        add(SectionCategory.COLUMN_DEFINITION, render_column(column), "schema",
            column.relevance_score, column_id=column.id, column_name=column.column_name,
            table_id=column.table_id)

    for rule in schema.business_rules:
        add(SectionCategory.BUSINESS_RULE, render_rule(rule), "rules",
            rule.relevance_score, rule_id=rule.id, rule_type=rule.type)

    for example in schema.examples:
        add(SectionCategory.EXAMPLE, render_example(example), "examples",
            example.relevance_score, example_id=example.id, example_type=example.intent_type)

    for rel in schema.relationships:
        add(SectionCategory.RELATIONSHIP, render_relationship(rel), "schema",
            relationship_relevance, relationship_from=rel.from_table,
            relationship_to=rel.to_table, relationship_type=rel.type)

    for term in schema.glossary_terms:
        add(SectionCategory.GLOSSARY, render_glossary(term), "glossary",
            term.relevance_score, term_id=term.id, term=term.term)

    return sections


def score_sections(
    sections: Iterable[ContextSection], profile: BusinessContextProfile
) -> list[ContextSection]:
    """Scored copies of the sections; the inputs are left untouched."""
    weights = weights_for(profile.intent.type)
    scored = []
    for section in sections:
        importance = category_importance(weights, section.category)
        efficiency = (
            section.relevance_score / section.token_count if section.token_count > 0 else 0.0
        )
        priority = (
            section.relevance_score * RELEVANCE_WEIGHT
            + importance * IMPORTANCE_WEIGHT
            + efficiency * EFFICIENCY_WEIGHT
        )
        attributes = {
            **section.attributes,
            "importance_score": importance,
            "efficiency_score": efficiency,
            "priority_score": priority,
        }
        scored.append(section.model_copy(update={"attributes": attributes}))
    return scored


def _copy_sections(sections: Iterable[ContextSection]) -> list[ContextSection]:
    return [s.model_copy(deep=True) for s in sections]


def apply_final_ordering(sections: Iterable[ContextSection]) -> list[ContextSection]:
    """Group by category in presentation order, each group by relevance descending."""
    groups: dict[SectionCategory, list[ContextSection]] = {c: [] for c in PRESENTATION_ORDER}
    for section in sections:
        groups[section.category].append(section)

    ordered: list[ContextSection] = []
    for category in PRESENTATION_ORDER:
        ordered.extend(sorted(groups[category], key=lambda s: s.relevance_score, reverse=True))
    return ordered


def _schema_fingerprint(schema: CandidateSchema) -> str:
    return schema.model_dump_json()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ContextPrioritizationEngine:
    """Select the most valuable context sections that fit a token budget.

    Usage:
        engine = ContextPrioritizationEngine(TokenCounter(cache), cache)
        sections = engine.prioritize(schema, profile, budget)
    """

    def __init__(
        self,
        token_counter: TokenCounter,
        cache: TTLCache,
        metrics: MetricsRegistry | None = None,
        config: PrioritizationConfig | None = None,
    ) -> None:
        self.token_counter = token_counter
        self.cache = cache
        self.metrics = metrics or MetricsRegistry()
        self.config = config or PrioritizationConfig()

    def cache_key(
        self, schema: CandidateSchema, profile: BusinessContextProfile, token_budget: int
    ) -> str:
        return make_cache_key(
            "prioritized_context",
            _schema_fingerprint(schema),
            profile.intent.type.value,
            token_budget,
        )

    def prioritize(
        self,
        schema: CandidateSchema,
        profile: BusinessContextProfile,
        token_budget: TokenBudget,
    ) -> list[ContextSection]:
        """Ordered selection of sections for the profile within the budget."""
        return self.prioritize_detailed(schema, profile, token_budget).selected_sections

    def prioritize_detailed(
        self,
        schema: CandidateSchema,
        profile: BusinessContextProfile,
        token_budget: TokenBudget,
    ) -> ContextOptimizationResult:
        budget = token_budget.available_context_tokens
        strategy = OptimizationStrategy.BALANCED
        key = self.cache_key(schema, profile, budget)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Retrieved cached prioritized context sections")
            return self._result(
                strategy, budget, schema.candidate_count, _copy_sections(cached), 0.0
            )

        start = time.perf_counter()
        try:
            logger.info(
                "Prioritizing context sections for %s with %d token budget",
                profile.intent.type.value, budget,
            )
            sections = materialize_sections(
                schema, self.token_counter, self.config.relationship_relevance
            )
            scored = score_sections(sections, profile)
            chosen = get_solver(strategy, self.config.value_scale)(scored, budget)
            ordered = apply_final_ordering(chosen)
        except Exception as e:
            logger.exception("Error in context prioritization")
            return self._result(
                strategy, budget, schema.candidate_count, [],
                (time.perf_counter() - start) * 1000, error=e,
            )

        # The cache holds its own copies so callers can't alter later hits
        self.cache.set(key, tuple(_copy_sections(ordered)), ttl=self.config.cache_ttl_seconds)

        duration_ms = (time.perf_counter() - start) * 1000
        self.metrics.record(PRIORITIZATION_OPERATION, duration_ms, len(sections), len(ordered))
        result = self._result(strategy, budget, len(sections), ordered, duration_ms)
        logger.info(
            "Context prioritization completed in %.1fms: %d → %d sections, %d/%d tokens",
            duration_ms, len(sections), len(ordered), result.total_tokens_used, budget,
        )
        return result

    def optimize(
        self,
        candidate_sections: Sequence[ContextSection],
        profile: BusinessContextProfile,
        token_budget: int,
        strategy: OptimizationStrategy = OptimizationStrategy.BALANCED,
    ) -> ContextOptimizationResult:
        """Score and select pre-built sections with any strategy (uncached)."""
        start = time.perf_counter()
        try:
            scored = score_sections(candidate_sections, profile)
            chosen = get_solver(strategy, self.config.value_scale)(scored, token_budget)
            ordered = apply_final_ordering(chosen)
        except Exception as e:
            logger.exception("Error in context optimization")
            return self._result(
                strategy, token_budget, len(candidate_sections), [],
                (time.perf_counter() - start) * 1000, error=e,
            )

        duration_ms = (time.perf_counter() - start) * 1000
        self.metrics.record(OPTIMIZATION_OPERATION, duration_ms, len(candidate_sections), len(ordered))
        result = self._result(strategy, token_budget, len(candidate_sections), ordered, duration_ms)
        logger.debug(
            "Context optimization (%s): %d/%d sections, %d/%d tokens, %.3f avg relevance",
            strategy.value, len(ordered), len(candidate_sections),
            result.total_tokens_used, token_budget, result.average_relevance,
        )
        return result

    def report(self, operation: str | None = None) -> PrioritizationReport:
        return self.metrics.report(operation)

    @staticmethod
    def _result(
        strategy: OptimizationStrategy,
        token_budget: int,
        candidate_count: int,
        sections: list[ContextSection],
        duration_ms: float,
        error: BaseException | None = None,
    ) -> ContextOptimizationResult:
        total = sum(s.token_count for s in sections)
        return ContextOptimizationResult(
            strategy=strategy,
            token_budget=token_budget,
            candidate_count=candidate_count,
            selected_sections=sections,
            total_tokens_used=total,
            average_relevance=(
                sum(s.relevance_score for s in sections) / len(sections) if sections else 0.0
            ),
            token_utilization=total / token_budget if token_budget > 0 else 0.0,
            duration_ms=round(duration_ms, 3),
            degraded=error is not None,
            error=f"{type(error).__name__}: {error}" if error is not None else "",
        )
