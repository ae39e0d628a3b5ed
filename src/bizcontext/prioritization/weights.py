"""Per-intent importance of each section category.

Engineering-tuned constants; Analytical is the fallback row.
"""

from __future__ import annotations

from types import MappingProxyType

from bizcontext.interpretation.models import IntentType
from bizcontext.prioritization.models import ImportanceWeights, SectionCategory

DEFAULT_CATEGORY_IMPORTANCE = 0.5

IMPORTANCE_WEIGHTS: MappingProxyType[IntentType, ImportanceWeights] = MappingProxyType({
    IntentType.AGGREGATION: ImportanceWeights(
        table_definitions=0.9, column_definitions=0.8, business_rules=0.7, examples=0.8,
        relationships=0.6, glossary_terms=0.4, performance_hints=0.3,
    ),
    IntentType.TREND: ImportanceWeights(
        table_definitions=0.8, column_definitions=0.9, business_rules=0.6, examples=0.8,
        relationships=0.7, glossary_terms=0.4, performance_hints=0.3,
    ),
    IntentType.COMPARISON: ImportanceWeights(
        table_definitions=0.9, column_definitions=0.8, business_rules=0.8, examples=0.7,
        relationships=0.8, glossary_terms=0.5, performance_hints=0.4,
    ),
    IntentType.DETAIL: ImportanceWeights(
        table_definitions=0.9, column_definitions=0.9, business_rules=0.6, examples=0.6,
        relationships=0.7, glossary_terms=0.5, performance_hints=0.3,
    ),
    IntentType.EXPLORATORY: ImportanceWeights(
        table_definitions=0.7, column_definitions=0.7, business_rules=0.8, examples=0.9,
        relationships=0.8, glossary_terms=0.7, performance_hints=0.4,
    ),
    IntentType.OPERATIONAL: ImportanceWeights(
        table_definitions=0.8, column_definitions=0.8, business_rules=0.9, examples=0.6,
        relationships=0.6, glossary_terms=0.4, performance_hints=0.7,
    ),
    IntentType.ANALYTICAL: ImportanceWeights(
        table_definitions=0.8, column_definitions=0.8, business_rules=0.7, examples=0.8,
        relationships=0.7, glossary_terms=0.5, performance_hints=0.4,
    ),
})

# ImportanceWeights field for each section category
_CATEGORY_FIELDS: MappingProxyType[SectionCategory, str] = MappingProxyType({
    SectionCategory.TABLE_DEFINITION: "table_definitions",
    SectionCategory.COLUMN_DEFINITION: "column_definitions",
    SectionCategory.BUSINESS_RULE: "business_rules",
    SectionCategory.EXAMPLE: "examples",
    SectionCategory.RELATIONSHIP: "relationships",
    SectionCategory.GLOSSARY: "glossary_terms",
})


def weights_for(intent: IntentType) -> ImportanceWeights:
    return IMPORTANCE_WEIGHTS.get(intent, IMPORTANCE_WEIGHTS[IntentType.ANALYTICAL])


def category_importance(weights: ImportanceWeights, category: SectionCategory | str) -> float:
    try:
        field = _CATEGORY_FIELDS[SectionCategory(category)]
    except (KeyError, ValueError):
        return DEFAULT_CATEGORY_IMPORTANCE
    return getattr(weights, field)
