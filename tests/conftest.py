"""Shared test fixtures for bizcontext."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bizcontext.cache import TTLCache
from bizcontext.interpretation.models import (
    BusinessContextProfile,
    BusinessDomain,
    IntentType,
    QueryIntent,
)
from bizcontext.llm.base import LLMProvider, LLMResponse, Message
from bizcontext.prioritization.models import (
    BusinessRuleCandidate,
    CandidateSchema,
    ColumnCandidate,
    ExampleCandidate,
    GlossaryCandidate,
    RelationshipCandidate,
    TableCandidate,
)
from bizcontext.tokens import TokenCounter

INTENT_REPLY = json.dumps({
    "type": "Aggregation",
    "description": "Total revenue per game",
    "confidence": 0.9,
    "subIntents": ["ranking"],
})

ENTITIES_REPLY = """Here are the entities:
```json
[
    {"name": "revenue", "type": "Metric", "originalText": "revenue", "confidence": 0.9},
    {"name": "game", "type": "Dimension", "originalText": "games", "confidence": 0.8},
    {"name": "Games", "type": "Table", "originalText": "games", "confidence": 0.7}
]
```"""

TIME_REPLY = json.dumps({
    "startDate": "2024-05-01T00:00:00",
    "endDate": "2024-05-31T23:59:59",
    "relativeExpression": "last month",
    "granularity": "Month",
})


class FakeProvider(LLMProvider):
    """Provider that answers each analysis prompt with a canned reply.

    `replies` maps a prompt marker ("intent", "entities", "time") to the reply
    text, or to an exception instance to raise for that prompt.
    """

    def __init__(self, replies: dict[str, object] | None = None) -> None:
        super().__init__(model="fake")
        self.replies = {
            "intent": INTENT_REPLY,
            "entities": ENTITIES_REPLY,
            "time": TIME_REPLY,
        }
        self.replies.update(replies or {})
        self.calls: list[str] = []

    @staticmethod
    def _marker(prompt: str) -> str:
        if prompt.startswith("Classify"):
            return "intent"
        if prompt.startswith("Extract business entities"):
            return "entities"
        return "time"

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        prompt = messages[-1].content
        marker = self._marker(prompt)
        self.calls.append(marker)
        reply = self.replies[marker]
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=str(reply), finish_reason="stop")


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def cache() -> TTLCache:
    return TTLCache()


@pytest.fixture
def counter(cache: TTLCache) -> TokenCounter:
    return TokenCounter(cache)


def make_profile(
    intent: IntentType = IntentType.AGGREGATION,
    question: str = "Top 10 games by revenue last month",
    domain: str = "Unknown",
) -> BusinessContextProfile:
    return BusinessContextProfile(
        original_question=question,
        intent=QueryIntent(type=intent, confidence=0.9),
        domain=BusinessDomain(name=domain, relevance=0.5),
    )


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def aggregation_profile() -> BusinessContextProfile:
    return make_profile(IntentType.AGGREGATION)


@pytest.fixture
def sample_schema() -> CandidateSchema:
    """A small gaming warehouse candidate pool."""
    return CandidateSchema(
        tables=[
            TableCandidate(
                id="t1", table_name="tbl_Daily_actions_games",
                business_purpose="Daily bets, wins and revenue per game",
                business_context="Gaming activity",
                primary_use_case="Game performance reporting",
                relevance_score=0.95,
            ),
            TableCandidate(
                id="t2", table_name="Games",
                business_purpose="Game catalog",
                business_context="Reference data",
                primary_use_case="Game lookups",
                relevance_score=0.8,
            ),
            TableCandidate(
                id="t3", table_name="tbl_Countries",
                business_purpose="Country reference",
                relevance_score=0.2,
            ),
        ],
        columns=[
            ColumnCandidate(
                id="c1", table_id="t1", column_name="RealBetAmount", data_type="decimal",
                business_meaning="Real money wagered", business_context="Revenue driver",
                relevance_score=0.9,
            ),
            ColumnCandidate(
                id="c2", table_id="t1", column_name="GameID", data_type="int",
                business_meaning="Game identifier", relevance_score=0.7,
            ),
            ColumnCandidate(
                id="c3", table_id="t2", column_name="GameName", data_type="nvarchar",
                business_meaning="Display name of the game", relevance_score=0.75,
            ),
        ],
        business_rules=[
            BusinessRuleCandidate(
                id="r1", description="Revenue is real bets minus real wins",
                type="Calculation", sql_expression="SUM(RealBetAmount - RealWinAmount)",
                relevance_score=0.85,
            ),
        ],
        examples=[
            ExampleCandidate(
                id="e1", natural_language_query="Top games by bets yesterday",
                generated_sql="SELECT TOP 10 GameID, SUM(RealBetAmount) FROM tbl_Daily_actions_games GROUP BY GameID",
                business_context="Game ranking", intent_type="Aggregation",
                relevance_score=0.7,
            ),
        ],
        relationships=[
            RelationshipCandidate(
                from_table="tbl_Daily_actions_games", to_table="Games",
                from_column="GameID", to_column="GameID", type="ManyToOne",
                business_meaning="Activity rows belong to a game",
            ),
        ],
        glossary_terms=[
            GlossaryCandidate(
                id="g1", term="GGR", definition="Gross gaming revenue",
                business_context="Gaming finance", relevance_score=0.6,
            ),
        ],
    )


@pytest.fixture
def candidates_file(tmp_path: Path, sample_schema: CandidateSchema) -> Path:
    path = tmp_path / "candidates.json"
    path.write_text(sample_schema.model_dump_json(indent=2))
    return path
