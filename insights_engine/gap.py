"""Demand/supply gap scoring and ranking."""

from __future__ import annotations

from insights_engine.schema import CategoryDistributionEntry, GapEntry

DEFAULT_TOP_N = 5


def score(
    demand: list[CategoryDistributionEntry], supply: list[CategoryDistributionEntry]
) -> list[GapEntry]:
    """Return demand share minus supply share for every category on either side.

    Categories keep the order they were first observed in, demand side first.
    A category missing from one side counts as 0% there.
    """

    demand_pct: dict[str, float] = {}
    for entry in demand:
        demand_pct[entry.category] = demand_pct.get(entry.category, 0.0) + entry.percentage

    supply_pct: dict[str, float] = {}
    for entry in supply:
        supply_pct[entry.category] = supply_pct.get(entry.category, 0.0) + entry.percentage

    categories = list(demand_pct)
    categories.extend(category for category in supply_pct if category not in demand_pct)

    return [
        GapEntry(category=category, gap_score=demand_pct.get(category, 0.0) - supply_pct.get(category, 0.0))
        for category in categories
    ]


def top_opportunities(gaps: list[GapEntry], n: int = DEFAULT_TOP_N) -> list[GapEntry]:
    """Under-supplied categories, largest positive gap first."""

    if n <= 0:
        return []
    positive = [gap for gap in gaps if gap.gap_score > 0]
    return sorted(positive, key=lambda gap: -gap.gap_score)[:n]


def top_oversupply(gaps: list[GapEntry], n: int = DEFAULT_TOP_N) -> list[GapEntry]:
    """Over-supplied categories, most negative gap first."""

    if n <= 0:
        return []
    negative = [gap for gap in gaps if gap.gap_score < 0]
    return sorted(negative, key=lambda gap: gap.gap_score)[:n]
