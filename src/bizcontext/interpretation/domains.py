"""Business domain catalog and similarity-based domain detection."""

from __future__ import annotations

import logging

from bizcontext.interpretation.models import BusinessDomain
from bizcontext.similarity import SimilarityCapability

logger = logging.getLogger(__name__)

UNKNOWN_DOMAIN = BusinessDomain(name="Unknown", description="", relevance=0.0)

DEFAULT_DOMAINS: tuple[BusinessDomain, ...] = (
    BusinessDomain(
        name="Banking",
        description=(
            "Banking and financial data including deposits, withdrawals, "
            "transactions, and financial metrics"
        ),
        related_tables=[
            "tbl_Daily_actions", "tbl_Daily_actions_players", "tbl_Countries",
            "tbl_Currencies", "tbl_Daily_actionsGBP_transactions",
        ],
        key_concepts=[
            "Revenue", "Profit", "Cost", "Budget", "ROI", "financial transactions",
            "customer deposits", "payment processing", "banking operations",
        ],
    ),
    BusinessDomain(
        name="Gaming",
        description="Gaming-specific metrics, player activity data, and casino operations",
        related_tables=["tbl_Daily_actions", "Games", "tbl_Daily_actions_games", "tbl_White_labels"],
        key_concepts=[
            "Games", "Bets", "Wins", "Losses", "Activity", "game sessions",
            "player activities", "gaming metrics", "casino operations",
        ],
    ),
    BusinessDomain(
        name="Customer",
        description="Customer data including demographics, behavior, and engagement",
        related_tables=["tbl_Daily_actions_players", "tbl_Countries", "tbl_Currencies"],
        key_concepts=[
            "Customer", "User", "Player", "Engagement", "Retention",
            "customer behavior", "player analytics",
        ],
    ),
    BusinessDomain(
        name="Geographic",
        description="Geographic domain focusing on location-based analysis and regional insights",
        related_tables=["tbl_Countries", "tbl_Regions"],
        key_concepts=[
            "geographic analysis", "location-based insights",
            "regional performance", "country metrics",
        ],
    ),
)


class DomainDetector:
    """Pick the catalog domain most similar to a question.

    Usage:
        detector = DomainDetector(LexicalSimilarity())
        domain = await detector.detect("total deposits by country last month")
    """

    def __init__(
        self,
        similarity: SimilarityCapability | None,
        catalog: list[BusinessDomain] | tuple[BusinessDomain, ...] | None = DEFAULT_DOMAINS,
    ) -> None:
        self.similarity = similarity
        self.catalog = tuple(catalog) if catalog else ()

    async def detect(self, question: str) -> BusinessDomain:
        if self.similarity is None or not self.catalog:
            logger.warning("Domain catalog or similarity unavailable; using Unknown domain")
            return UNKNOWN_DOMAIN

        best = self.catalog[0]
        best_score = -1.0
        for domain in self.catalog:
            score = await self.similarity.similarity(question, domain.describe())
            logger.debug("Domain %s score: %.3f", domain.name, score)
            if score > best_score:
                best, best_score = domain, score

        return best.model_copy(update={"relevance": min(1.0, max(0.0, best_score))})
