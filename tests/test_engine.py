"""Tests for the context prioritization engine."""

from __future__ import annotations

import pytest

from bizcontext.cache import TTLCache
from bizcontext.interpretation.models import IntentType
from bizcontext.metrics import MetricsRegistry
from bizcontext.prioritization.engine import (
    OPTIMIZATION_OPERATION,
    PRIORITIZATION_OPERATION,
    ContextPrioritizationEngine,
    apply_final_ordering,
    materialize_sections,
    score_sections,
)
from bizcontext.prioritization.models import (
    PRESENTATION_ORDER,
    CandidateSchema,
    ContextSection,
    OptimizationStrategy,
    SectionCategory,
    TableCandidate,
)
from bizcontext.prioritization.weights import (
    DEFAULT_CATEGORY_IMPORTANCE,
    IMPORTANCE_WEIGHTS,
    category_importance,
    weights_for,
)
from bizcontext.tokens import TokenBudget, TokenCounter


def budget_of(tokens: int) -> TokenBudget:
    return TokenBudget(max_total_tokens=tokens + 750, available_context_tokens=tokens)


@pytest.fixture
def engine(counter: TokenCounter, cache: TTLCache) -> ContextPrioritizationEngine:
    return ContextPrioritizationEngine(counter, cache, MetricsRegistry())


def assert_presentation_order(sections: list[ContextSection]) -> None:
    ranks = [PRESENTATION_ORDER.index(s.category) for s in sections]
    assert ranks == sorted(ranks)
    for category in PRESENTATION_ORDER:
        group = [s.relevance_score for s in sections if s.category == category]
        assert group == sorted(group, reverse=True)


class TestWeights:
    def test_aggregation_row(self):
        w = IMPORTANCE_WEIGHTS[IntentType.AGGREGATION]
        assert w.table_definitions == 0.9
        assert w.glossary_terms == 0.4

    def test_fallback_row(self):
        assert weights_for(IntentType.UNKNOWN) == IMPORTANCE_WEIGHTS[IntentType.ANALYTICAL]

    def test_unmapped_category(self):
        w = weights_for(IntentType.TREND)
        assert category_importance(w, "performance_hint") == DEFAULT_CATEGORY_IMPORTANCE


class TestMaterialize:
    def test_one_section_per_candidate(self, sample_schema: CandidateSchema, counter: TokenCounter):
        sections = materialize_sections(sample_schema, counter)
        assert len(sections) == sample_schema.candidate_count

    def test_table_content(self, sample_schema: CandidateSchema, counter: TokenCounter):
        table = materialize_sections(sample_schema, counter)[0]
        assert table.category == SectionCategory.TABLE_DEFINITION
        assert table.content.startswith("Table: dbo.tbl_Daily_actions_games\nPurpose: ")
        assert table.attributes["table_id"] == "t1"
        assert table.relevance_score == 0.95
        assert table.token_count == counter.count(table.content, "schema")

    def test_relationship_relevance(self, sample_schema: CandidateSchema, counter: TokenCounter):
        sections = materialize_sections(sample_schema, counter)
        rel = next(s for s in sections if s.category == SectionCategory.RELATIONSHIP)
        assert rel.relevance_score == 0.6
        assert "Keys: GameID = GameID" in rel.content

    def test_rule_token_hint(self, sample_schema: CandidateSchema, counter: TokenCounter):
        sections = materialize_sections(sample_schema, counter)
        rule = next(s for s in sections if s.category == SectionCategory.BUSINESS_RULE)
        assert rule.token_count == counter.count(rule.content, "rules")


class TestScoring:
    def test_priority_formula(self, aggregation_profile, counter: TokenCounter):
        sections = materialize_sections(
            CandidateSchema(tables=[TableCandidate(id="t", table_name="T", relevance_score=0.5)]),
            counter,
        )
        [scored] = score_sections(sections, aggregation_profile)
        efficiency = 0.5 / scored.token_count
        assert scored.importance_score == 0.9
        assert scored.efficiency_score == pytest.approx(efficiency)
        assert scored.priority_score == pytest.approx(0.4 * 0.5 + 0.4 * 0.9 + 0.2 * efficiency)

    def test_zero_tokens_zero_efficiency(self, aggregation_profile):
        section = ContextSection(
            category=SectionCategory.GLOSSARY, content="", token_count=0, relevance_score=0.7,
        )
        [scored] = score_sections([section], aggregation_profile)
        assert scored.efficiency_score == 0.0

    def test_inputs_untouched(self, aggregation_profile, sample_schema, counter: TokenCounter):
        sections = materialize_sections(sample_schema, counter)
        before = [dict(s.attributes) for s in sections]
        scored = score_sections(sections, aggregation_profile)
        assert [s.attributes for s in sections] == before
        assert all(s.priority_score > 0 for s in scored)


class TestFinalOrdering:
    def test_category_then_relevance(self):
        sections = [
            ContextSection(category=SectionCategory.GLOSSARY, content="g", token_count=1, relevance_score=0.9),
            ContextSection(category=SectionCategory.EXAMPLE, content="e", token_count=1, relevance_score=0.5),
            ContextSection(category=SectionCategory.TABLE_DEFINITION, content="t1", token_count=1, relevance_score=0.3),
            ContextSection(category=SectionCategory.RELATIONSHIP, content="r", token_count=1, relevance_score=0.6),
            ContextSection(category=SectionCategory.TABLE_DEFINITION, content="t2", token_count=1, relevance_score=0.8),
            ContextSection(category=SectionCategory.COLUMN_DEFINITION, content="c", token_count=1, relevance_score=0.1),
            ContextSection(category=SectionCategory.BUSINESS_RULE, content="b", token_count=1, relevance_score=0.2),
        ]
        ordered = apply_final_ordering(sections)
        assert [s.content for s in ordered] == ["t2", "t1", "c", "r", "b", "e", "g"]


class TestPrioritize:
    def test_fits_budget_and_ordered(self, engine, sample_schema, aggregation_profile):
        result = engine.prioritize_detailed(sample_schema, aggregation_profile, budget_of(120))
        assert result.selected_sections
        assert result.total_tokens_used <= 120
        assert not result.degraded
        assert_presentation_order(result.selected_sections)

    def test_generous_budget_takes_everything(self, engine, sample_schema, aggregation_profile):
        sections = engine.prioritize(sample_schema, aggregation_profile, budget_of(10_000))
        assert len(sections) == sample_schema.candidate_count
        assert sections[0].category == SectionCategory.TABLE_DEFINITION
        assert sections[-1].category == SectionCategory.GLOSSARY

    def test_zero_budget(self, engine, sample_schema, aggregation_profile):
        assert engine.prioritize(sample_schema, aggregation_profile, budget_of(0)) == []

    def test_empty_schema(self, engine, aggregation_profile):
        result = engine.prioritize_detailed(CandidateSchema(), aggregation_profile, budget_of(500))
        assert result.selected_sections == []
        assert result.token_utilization == 0.0

    def test_cached(self, engine, sample_schema, aggregation_profile):
        first = engine.prioritize(sample_schema, aggregation_profile, budget_of(120))
        second = engine.prioritize(sample_schema, aggregation_profile, budget_of(120))
        assert [s.content for s in first] == [s.content for s in second]
        # Only the computing call is recorded
        report = engine.report(PRIORITIZATION_OPERATION)
        assert report.operations[0].total_operations == 1

    def test_cache_returns_copy(self, engine, sample_schema, aggregation_profile):
        first = engine.prioritize(sample_schema, aggregation_profile, budget_of(120))
        first.clear()
        assert engine.prioritize(sample_schema, aggregation_profile, budget_of(120))

    def test_rescoring_output_keeps_cache_intact(
        self, engine, sample_schema, profile_factory
    ):
        aggregation = profile_factory(IntentType.AGGREGATION)
        first = engine.prioritize(sample_schema, aggregation, budget_of(10_000))
        assert first[0].importance_score == 0.9

        trend = engine.optimize(
            first, profile_factory(IntentType.TREND), 10_000, OptimizationStrategy.MAX_RELEVANCE
        )
        assert trend.selected_sections[0].importance_score == 0.8
        assert first[0].importance_score == 0.9

        again = engine.prioritize(sample_schema, aggregation, budget_of(10_000))
        assert [s.importance_score for s in again] == [s.importance_score for s in first]
        assert again[0].importance_score == 0.9

    def test_cached_sections_not_shared(self, engine, sample_schema, aggregation_profile):
        first = engine.prioritize(sample_schema, aggregation_profile, budget_of(10_000))
        first[0].attributes["priority_score"] = -1.0
        second = engine.prioritize(sample_schema, aggregation_profile, budget_of(10_000))
        assert second[0].priority_score > 0
        assert second[0] is not first[0]

    def test_cache_keyed_by_intent(self, engine, sample_schema, profile_factory):
        engine.prioritize(sample_schema, profile_factory(IntentType.AGGREGATION), budget_of(120))
        engine.prioritize(sample_schema, profile_factory(IntentType.TREND), budget_of(120))
        report = engine.report(PRIORITIZATION_OPERATION)
        assert report.operations[0].total_operations == 2

    def test_failure_returns_empty(self, cache, sample_schema, aggregation_profile):
        class BrokenCounter(TokenCounter):
            def count(self, text, category_hint="business_context"):
                raise RuntimeError("tokenizer unavailable")

        engine = ContextPrioritizationEngine(BrokenCounter(), cache)
        result = engine.prioritize_detailed(sample_schema, aggregation_profile, budget_of(500))
        assert result.selected_sections == []
        assert result.degraded
        assert "tokenizer unavailable" in result.error
        assert engine.prioritize(sample_schema, aggregation_profile, budget_of(500)) == []

    def test_metrics(self, engine, sample_schema, aggregation_profile):
        result = engine.prioritize_detailed(sample_schema, aggregation_profile, budget_of(120))
        analytics = engine.report().for_operation(PRIORITIZATION_OPERATION)
        assert analytics.total_operations == 1
        assert analytics.average_input_sections == sample_schema.candidate_count
        assert analytics.average_output_sections == len(result.selected_sections)
        assert 0.0 < analytics.selection_ratio <= 1.0


class TestOptimize:
    @pytest.mark.parametrize("strategy", list(OptimizationStrategy))
    def test_every_strategy(self, engine, sample_schema, counter, aggregation_profile, strategy):
        sections = materialize_sections(sample_schema, counter)
        result = engine.optimize(sections, aggregation_profile, 100, strategy)
        assert result.strategy == strategy
        assert result.total_tokens_used <= 100
        assert result.candidate_count == len(sections)
        assert_presentation_order(result.selected_sections)
        if result.selected_sections:
            assert result.token_utilization == pytest.approx(result.total_tokens_used / 100)

    def test_average_relevance(self, engine, sample_schema, counter, aggregation_profile):
        sections = materialize_sections(sample_schema, counter)
        result = engine.optimize(sections, aggregation_profile, 10_000)
        expected = sum(s.relevance_score for s in sections) / len(sections)
        assert result.average_relevance == pytest.approx(expected)

    def test_records_metrics(self, engine, sample_schema, counter, aggregation_profile):
        sections = materialize_sections(sample_schema, counter)
        engine.optimize(sections, aggregation_profile, 100)
        engine.optimize(sections, aggregation_profile, 100, OptimizationStrategy.MIN_TOKENS)
        assert engine.report(OPTIMIZATION_OPERATION).operations[0].total_operations == 2

    def test_summary(self, engine, sample_schema, counter, aggregation_profile):
        sections = materialize_sections(sample_schema, counter)
        summary = engine.optimize(sections, aggregation_profile, 100).summary()
        assert "Strategy: balanced" in summary
        assert "Tokens:" in summary
