"""Selection policies over scored context sections.

Formulation (Balanced):
  Given sections s_1..s_n with token cost c_i and priority p_i, and budget B:

  Select X ⊆ {1..n} maximizing  Σ v_i  subject to  Σ c_i ≤ B  for i ∈ X

  where v_i = int(p_i · scale) is the priority quantized to an integer
  (scale defaults to 1000). Solved exactly by dynamic programming in
  O(n · B) time and space, so B must be a bounded integer token count.

The other policies are single-pass greedy approximations:

  max_relevance  relevance descending; a section that does not fit is skipped
                 for good, even if a smaller one later would have
  max_coverage   the best section of every present category first, then
                 relevance descending
  min_tokens     relevance per token descending; zero-cost sections excluded

Every policy returns an empty selection for a budget ≤ 0.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from bizcontext.prioritization.models import ContextSection, OptimizationStrategy

DEFAULT_VALUE_SCALE = 1000

Solver = Callable[[Sequence[ContextSection], int], list[ContextSection]]


def quantize(priority: float, scale: int = DEFAULT_VALUE_SCALE) -> int:
    """Knapsack value of a section. Truncates toward zero."""
    return int(priority * scale)


def solve_knapsack(
    sections: Sequence[ContextSection],
    token_budget: int,
    value_scale: int = DEFAULT_VALUE_SCALE,
) -> list[ContextSection]:
    """Exact 0/1 knapsack over quantized priority scores.

    On a tie between including and excluding an item, excluding wins.
    The selection is returned in reverse input order (backtracking order).
    """
    if not sections or token_budget <= 0:
        return []

    n = len(sections)
    values = [quantize(s.priority_score, value_scale) for s in sections]
    weights = [s.token_count for s in sections]

    # prev[w] = best value using items 0..i-1 within weight w
    prev = [0] * (token_budget + 1)
    # take[i][w] marks that item i-1 is included in the optimum of row i at weight w
    take = [bytearray(token_budget + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        item_weight = weights[i - 1]
        item_value = values[i - 1]
        cur = prev[:]
        row = take[i]
        for w in range(item_weight, token_budget + 1):
            include = item_value + prev[w - item_weight]
            if include > prev[w]:
                cur[w] = include
                row[w] = 1
        prev = cur

    selected: list[ContextSection] = []
    w = token_budget
    for i in range(n, 0, -1):
        if take[i][w]:
            selected.append(sections[i - 1])
            w -= weights[i - 1]
    return selected


def _greedy_fill(
    ordered: Sequence[ContextSection],
    token_budget: int,
    selected: list[ContextSection] | None = None,
    used: int = 0,
) -> list[ContextSection]:
    result = selected if selected is not None else []
    for section in ordered:
        if used + section.token_count <= token_budget:
            result.append(section)
            used += section.token_count
    return result


def solve_max_relevance(
    sections: Sequence[ContextSection], token_budget: int
) -> list[ContextSection]:
    if token_budget <= 0:
        return []
    ordered = sorted(sections, key=lambda s: s.relevance_score, reverse=True)
    return _greedy_fill(ordered, token_budget)


def solve_max_coverage(
    sections: Sequence[ContextSection], token_budget: int
) -> list[ContextSection]:
    if token_budget <= 0:
        return []

    by_category: dict[str, list[ContextSection]] = {}
    for section in sections:
        by_category.setdefault(section.category.value, []).append(section)

    result: list[ContextSection] = []
    used = 0

    # Fairness pass: one representative per category
    for group in by_category.values():
        best = max(group, key=lambda s: s.relevance_score)
        if used + best.token_count <= token_budget:
            result.append(best)
            used += best.token_count

    chosen = {id(s) for s in result}
    rest = sorted(
        (s for s in sections if id(s) not in chosen),
        key=lambda s: s.relevance_score,
        reverse=True,
    )
    return _greedy_fill(rest, token_budget, result, used)


def solve_min_tokens(
    sections: Sequence[ContextSection], token_budget: int
) -> list[ContextSection]:
    if token_budget <= 0:
        return []
    ordered = sorted(
        (s for s in sections if s.token_count > 0),
        key=lambda s: s.relevance_score / s.token_count,
        reverse=True,
    )
    return _greedy_fill(ordered, token_budget)


def get_solver(strategy: OptimizationStrategy, value_scale: int = DEFAULT_VALUE_SCALE) -> Solver:
    if strategy == OptimizationStrategy.MAX_RELEVANCE:
        return solve_max_relevance
    if strategy == OptimizationStrategy.MAX_COVERAGE:
        return solve_max_coverage
    if strategy == OptimizationStrategy.MIN_TOKENS:
        return solve_min_tokens
    return lambda sections, budget: solve_knapsack(sections, budget, value_scale)
