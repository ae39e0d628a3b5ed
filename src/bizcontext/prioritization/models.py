"""Data models for context prioritization."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bizcontext.exceptions import PrioritizationError


class SectionCategory(str, Enum):
    """Kind of context fragment."""

    TABLE_DEFINITION = "table_definition"
    COLUMN_DEFINITION = "column_definition"
    BUSINESS_RULE = "business_rule"
    EXAMPLE = "example"
    RELATIONSHIP = "relationship"
    GLOSSARY = "glossary"


# Presentation order of the final selection
PRESENTATION_ORDER: tuple[SectionCategory, ...] = (
    SectionCategory.TABLE_DEFINITION,
    SectionCategory.COLUMN_DEFINITION,
    SectionCategory.RELATIONSHIP,
    SectionCategory.BUSINESS_RULE,
    SectionCategory.EXAMPLE,
    SectionCategory.GLOSSARY,
)


class OptimizationStrategy(str, Enum):
    """Which selection algorithm processes the scored candidates."""

    MAX_RELEVANCE = "max_relevance"
    MAX_COVERAGE = "max_coverage"
    MIN_TOKENS = "min_tokens"
    BALANCED = "balanced"  # 0/1 knapsack (default)


class ContextSection(BaseModel):
    """A scoreable, selectable fragment of context."""

    category: SectionCategory
    content: str
    token_count: int = Field(ge=0)
    relevance_score: float = Field(ge=0.0, le=1.0)
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def importance_score(self) -> float:
        return float(self.attributes.get("importance_score", 0.0))

    @property
    def efficiency_score(self) -> float:
        return float(self.attributes.get("efficiency_score", 0.0))

    @property
    def priority_score(self) -> float:
        return float(self.attributes.get("priority_score", 0.0))


class ImportanceWeights(BaseModel):
    """How valuable each section category is for one intent."""

    model_config = ConfigDict(frozen=True)

    table_definitions: float = Field(ge=0.0, le=1.0)
    column_definitions: float = Field(ge=0.0, le=1.0)
    business_rules: float = Field(ge=0.0, le=1.0)
    examples: float = Field(ge=0.0, le=1.0)
    relationships: float = Field(ge=0.0, le=1.0)
    glossary_terms: float = Field(ge=0.0, le=1.0)
    performance_hints: float = Field(ge=0.0, le=1.0)


# ---------------------------------------------------------------------------
# Candidate metadata (as handed over by catalog/search collaborators)
# ---------------------------------------------------------------------------

class TableCandidate(BaseModel):
    id: str
    table_name: str
    schema_name: str = "dbo"
    business_purpose: str = ""
    business_context: str = ""
    primary_use_case: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class ColumnCandidate(BaseModel):
    id: str
    table_id: str
    column_name: str
    data_type: str = ""
    business_meaning: str = ""
    business_context: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class BusinessRuleCandidate(BaseModel):
    id: str
    description: str
    type: str = ""
    sql_expression: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class ExampleCandidate(BaseModel):
    id: str
    natural_language_query: str
    generated_sql: str = ""
    business_context: str = ""
    intent_type: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class RelationshipCandidate(BaseModel):
    """Join between two tables; carries no relevance of its own."""

    from_table: str
    to_table: str
    from_column: str = ""
    to_column: str = ""
    type: str = ""
    business_meaning: str = ""


class GlossaryCandidate(BaseModel):
    id: str
    term: str
    definition: str = ""
    business_context: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class CandidateSchema(BaseModel):
    """Candidate pool gathered for one profile."""

    tables: list[TableCandidate] = Field(default_factory=list)
    columns: list[ColumnCandidate] = Field(default_factory=list)
    business_rules: list[BusinessRuleCandidate] = Field(default_factory=list)
    examples: list[ExampleCandidate] = Field(default_factory=list)
    relationships: list[RelationshipCandidate] = Field(default_factory=list)
    glossary_terms: list[GlossaryCandidate] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> CandidateSchema:
        """Read a candidate pool from a JSON file."""
        try:
            return cls.model_validate_json(Path(path).read_text())
        except (OSError, ValidationError) as e:
            raise PrioritizationError(f"Cannot load candidates from {path}: {e}") from e

    @property
    def candidate_count(self) -> int:
        return (
            len(self.tables) + len(self.columns) + len(self.business_rules)
            + len(self.examples) + len(self.relationships) + len(self.glossary_terms)
        )


class ContextOptimizationResult(BaseModel):
    """Selection plus the numbers describing it."""

    strategy: OptimizationStrategy
    token_budget: int
    candidate_count: int = 0
    selected_sections: list[ContextSection] = Field(default_factory=list)
    total_tokens_used: int = 0
    average_relevance: float = 0.0
    token_utilization: float = 0.0
    duration_ms: float = 0.0
    degraded: bool = False
    error: str = ""

    def summary(self) -> str:
        """Human-readable summary of the selection."""
        lines = [
            f"Strategy: {self.strategy.value}",
            f"Tokens: {self.total_tokens_used:,} / {self.token_budget:,} "
            f"({self.token_utilization * 100:.0f}%)",
            f"Sections: {len(self.selected_sections)} selected, {self.candidate_count} candidates",
            f"Average relevance: {self.average_relevance:.3f}",
            f"Time: {self.duration_ms:.1f}ms",
        ]
        if self.degraded:
            lines.append(f"Degraded: {self.error}")
        return "\n".join(lines)
