"""Data models for interpreted business questions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class _LooseEnum(str, Enum):
    """Enum whose values also parse from CamelCase/any-case LLM spellings."""

    @classmethod
    def parse(cls, raw: str):
        """Parse 'TimeReference', 'time_reference' or 'TIME REFERENCE' alike.

        Raises ValueError for anything outside the closed set.
        """
        key = "".join(ch for ch in str(raw).lower() if ch.isalnum())
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        raise ValueError(f"{raw!r} is not a valid {cls.__name__}")


class IntentType(_LooseEnum):
    """Analytical purpose of a question."""

    ANALYTICAL = "analytical"
    OPERATIONAL = "operational"
    EXPLORATORY = "exploratory"
    COMPARISON = "comparison"
    AGGREGATION = "aggregation"
    TREND = "trend"
    DETAIL = "detail"
    UNKNOWN = "unknown"


class EntityType(_LooseEnum):
    TABLE = "table"
    COLUMN = "column"
    METRIC = "metric"
    DIMENSION = "dimension"
    TIME_REFERENCE = "time_reference"
    COMPARISON_VALUE = "comparison_value"


class TimeGranularity(_LooseEnum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    UNKNOWN = "unknown"


class QueryIntent(BaseModel):
    """What the question is trying to do."""

    model_config = ConfigDict(frozen=True)

    type: IntentType = IntentType.UNKNOWN
    description: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sub_intents: tuple[str, ...] = ()


class BusinessDomain(BaseModel):
    """Business area a question belongs to."""

    model_config = ConfigDict(frozen=True)

    name: str = "Unknown"
    description: str = ""
    related_tables: tuple[str, ...] = ()
    key_concepts: tuple[str, ...] = ()
    relevance: float = Field(default=0.0, ge=0.0, le=1.0)

    def describe(self) -> str:
        """Text compared against the question during domain detection."""
        return (
            f"{self.name}: {self.description} - "
            f"Key concepts: {', '.join(self.key_concepts)}"
        )


class BusinessEntity(BaseModel):
    """A table, column, metric, etc. mentioned in the question."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: EntityType
    original_text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class TimeRange(BaseModel):
    """Time window the question refers to."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None
    relative_expression: str = ""
    granularity: TimeGranularity = TimeGranularity.UNKNOWN


class BusinessContextProfile(BaseModel):
    """Interpretation of one question. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)

    original_question: str
    user_id: str | None = None
    intent: QueryIntent = Field(default_factory=QueryIntent)
    domain: BusinessDomain = Field(default_factory=BusinessDomain)
    entities: tuple[BusinessEntity, ...] = ()
    business_terms: tuple[str, ...] = ()
    time_context: TimeRange | None = None
    identified_metrics: tuple[str, ...] = ()
    identified_dimensions: tuple[str, ...] = ()
    comparison_terms: tuple[str, ...] = ()
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    degraded_signals: tuple[str, ...] = ()
    analysis_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_signals)


@dataclass(frozen=True)
class Signal(Generic[T]):
    """Outcome of one analysis branch.

    A degraded signal carries the branch's neutral default in `value` and the
    reason in `error`.
    """

    name: str
    value: T
    degraded: bool = False
    error: str = ""

    @classmethod
    def ok(cls, name: str, value: T) -> Signal[T]:
        return cls(name=name, value=value)

    @classmethod
    def fallback(cls, name: str, value: T, error: BaseException | str) -> Signal[T]:
        return cls(name=name, value=value, degraded=True, error=str(error))
