"""Defensive parsing of structured LLM replies.

Models wrap JSON in prose or markdown fences often enough that every reply
goes through `extract_json` first. Anything that still does not fit the
expected shape raises ClassificationError; the analysis branches turn that
into their neutral defaults.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from bizcontext.exceptions import ClassificationError
from bizcontext.interpretation.models import (
    BusinessEntity,
    EntityType,
    IntentType,
    QueryIntent,
    TimeGranularity,
    TimeRange,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json(response: str) -> Any:
    """Return the first JSON value in `response`.

    Raises:
        ClassificationError: If no JSON value can be decoded.
    """
    if response is None:
        raise ClassificationError("empty response")

    text = response.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Fall back to the first object/array embedded in surrounding prose
    decoder = json.JSONDecoder()
    for i, ch in enumerate(text):
        if ch in "{[":
            try:
                value, _ = decoder.raw_decode(text[i:])
                return value
            except json.JSONDecodeError:
                continue
    raise ClassificationError(f"no JSON found in response: {text[:80]!r}")


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


class _RawIntent(BaseModel):
    type: str
    description: str = ""
    confidence: float = 0.0
    subIntents: list[str] = Field(default_factory=list)


class _RawEntity(BaseModel):
    name: str
    type: str
    originalText: str = ""
    confidence: float = 0.0


class _RawTimeRange(BaseModel):
    startDate: str | None = None
    endDate: str | None = None
    relativeExpression: str | None = ""
    granularity: str | None = "Unknown"


def parse_query_intent(response: str) -> QueryIntent:
    data = extract_json(response)
    try:
        raw = _RawIntent.model_validate(data)
        intent_type = IntentType.parse(raw.type)
    except (ValidationError, ValueError) as e:
        raise ClassificationError(f"invalid intent payload: {e}") from e

    return QueryIntent(
        type=intent_type,
        description=raw.description,
        confidence=_clamp(raw.confidence),
        sub_intents=[s for s in raw.subIntents if s],
    )


def parse_business_entities(response: str) -> list[BusinessEntity]:
    """Parse an entity array; entries with unknown types are skipped."""
    data = extract_json(response)
    if not isinstance(data, list):
        raise ClassificationError(f"expected a JSON array of entities, got {type(data).__name__}")

    entities: list[BusinessEntity] = []
    for item in data:
        try:
            raw = _RawEntity.model_validate(item)
            entity_type = EntityType.parse(raw.type)
        except (ValidationError, ValueError) as e:
            logger.debug("Skipping malformed entity %r: %s", item, e)
            continue
        if not raw.name.strip():
            continue
        entities.append(
            BusinessEntity(
                name=raw.name.strip(),
                type=entity_type,
                original_text=raw.originalText,
                confidence=_clamp(raw.confidence),
            )
        )
    return entities


def _parse_datetime(value: str | None) -> datetime | None:
    if not value or value.lower() == "null":
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_time_range(response: str) -> TimeRange | None:
    """Parse a time-context reply; the literal `null` means no time context."""
    if response is not None and response.strip().lower() in ("null", "none", ""):
        return None

    data = extract_json(response)
    if data is None:
        return None
    try:
        raw = _RawTimeRange.model_validate(data)
    except ValidationError as e:
        raise ClassificationError(f"invalid time context payload: {e}") from e

    try:
        granularity = TimeGranularity.parse(raw.granularity or "unknown")
    except ValueError:
        granularity = TimeGranularity.UNKNOWN

    return TimeRange(
        start=_parse_datetime(raw.startDate),
        end=_parse_datetime(raw.endDate),
        relative_expression=raw.relativeExpression or "",
        granularity=granularity,
    )
