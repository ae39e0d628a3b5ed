#!/usr/bin/env python3
"""Demo: Using bizcontext as a Python library.

Interprets a question without a language model (intent and entities fall back
to their defaults), sizes a token budget, and prioritizes a small candidate
pool under it.
"""

import asyncio

from bizcontext.cache import TTLCache
from bizcontext.interpretation import BusinessContextAnalyzer
from bizcontext.prioritization import CandidateSchema, ContextPrioritizationEngine
from bizcontext.prioritization.models import (
    BusinessRuleCandidate,
    ColumnCandidate,
    RelationshipCandidate,
    TableCandidate,
)
from bizcontext.similarity import LexicalSimilarity
from bizcontext.tokens import TokenBudgetManager, TokenCounter


async def main():
    cache = TTLCache()

    # 1. Interpret the question
    analyzer = BusinessContextAnalyzer(None, LexicalSimilarity(), cache)
    profile = await analyzer.analyze("Total deposits vs withdrawals by country last quarter")
    print(f"Domain: {profile.domain.name} ({profile.domain.relevance:.2f})")
    print(f"Comparison terms: {profile.comparison_terms}")
    print(f"Business terms: {profile.business_terms}")
    print(f"Degraded signals: {profile.degraded_signals}")

    # 2. Size the budget
    counter = TokenCounter(cache)
    budget = TokenBudgetManager(counter, cache).create_budget(profile, max_tokens=1200)
    print(f"\nContext budget: {budget.available_context_tokens} tokens")

    # 3. Prioritize candidates
    schema = CandidateSchema(
        tables=[
            TableCandidate(id="t1", table_name="tbl_Daily_actions",
                           business_purpose="Daily deposits and withdrawals per player",
                           relevance_score=0.9),
            TableCandidate(id="t2", table_name="tbl_Countries",
                           business_purpose="Country reference", relevance_score=0.7),
        ],
        columns=[
            ColumnCandidate(id="c1", table_id="t1", column_name="Deposits", data_type="money",
                            business_meaning="Total deposits of the day", relevance_score=0.85),
            ColumnCandidate(id="c2", table_id="t1", column_name="CashoutRequests",
                            data_type="money", business_meaning="Withdrawal requests",
                            relevance_score=0.8),
        ],
        business_rules=[
            BusinessRuleCandidate(id="r1", description="Exclude test accounts",
                                  sql_expression="IsTestAccount = 0", relevance_score=0.6),
        ],
        relationships=[
            RelationshipCandidate(from_table="tbl_Daily_actions", to_table="tbl_Countries",
                                  from_column="CountryID", to_column="CountryID",
                                  type="ManyToOne"),
        ],
    )

    engine = ContextPrioritizationEngine(counter, cache)
    result = engine.prioritize_detailed(schema, profile, budget)
    print()
    print(result.summary())
    for section in result.selected_sections:
        print(f"\n[{section.category.value}] {section.token_count} tokens")
        print(section.content)


if __name__ == "__main__":
    asyncio.run(main())
