"""Context prioritization: pick the context sections worth their tokens.

Usage:
    from bizcontext.prioritization import ContextPrioritizationEngine

    engine = ContextPrioritizationEngine(TokenCounter(cache), cache)
    sections = engine.prioritize(schema, profile, budget)
"""

from bizcontext.prioritization.engine import ContextPrioritizationEngine
from bizcontext.prioritization.models import (
    CandidateSchema,
    ContextOptimizationResult,
    ContextSection,
    OptimizationStrategy,
    SectionCategory,
)

__all__ = [
    "CandidateSchema",
    "ContextOptimizationResult",
    "ContextPrioritizationEngine",
    "ContextSection",
    "OptimizationStrategy",
    "SectionCategory",
]
