"""Context interpretation: turn a question into a BusinessContextProfile.

Usage:
    from bizcontext.interpretation import BusinessContextAnalyzer

    analyzer = BusinessContextAnalyzer(provider, similarity, cache)
    profile = await analyzer.analyze("Revenue by country last quarter")
"""

from bizcontext.interpretation.analyzer import BusinessContextAnalyzer
from bizcontext.interpretation.domains import DEFAULT_DOMAINS, DomainDetector
from bizcontext.interpretation.models import (
    BusinessContextProfile,
    BusinessDomain,
    BusinessEntity,
    EntityType,
    IntentType,
    QueryIntent,
    TimeGranularity,
    TimeRange,
)

__all__ = [
    "BusinessContextAnalyzer",
    "BusinessContextProfile",
    "BusinessDomain",
    "BusinessEntity",
    "DEFAULT_DOMAINS",
    "DomainDetector",
    "EntityType",
    "IntentType",
    "QueryIntent",
    "TimeGranularity",
    "TimeRange",
]
