"""Campaign recommendation synthesis."""

from __future__ import annotations

from typing import Optional

from insights_engine.schema import (
    CampaignRecommendation,
    DemandVsSupply,
    Funnel,
    GapEntry,
    GlobalKPIs,
    Signal,
)

TYPE_LABELS = {
    "search": "Search",
    "conversion": "Conversion",
    "property": "Properties",
    "device": "Devices",
}

TYPE_ICONS = {
    "search": "target",
    "conversion": "trending-up",
    "property": "building",
    "device": "smartphone",
}

PRIORITY_LABELS = {
    "high": "High priority",
    "medium": "Medium priority",
    "low": "Low priority",
}

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

ACTION_LINKS = {
    "View search analysis": "/admin/insights/search",
    "View conversion analysis": "/admin/insights/conversion",
    "View property analysis": "/admin/insights/properties",
    "View device analysis": "/admin/insights",
}

STRONG_GAP = 10.0
LOW_CONVERSION_RATE = 2.0
FAVORITE_DROPOFF_ALERT = 95.0
MOBILE_SHARE_ALERT = 60.0


def action_link(action: Optional[str]) -> Optional[str]:
    if not action:
        return None
    return ACTION_LINKS.get(action)


def synthesize(signal: Signal) -> CampaignRecommendation:
    """Turn a detected signal into a displayable recommendation."""

    if signal.type not in TYPE_LABELS:
        raise ValueError(f"Unknown recommendation type '{signal.type}'")
    if signal.priority not in PRIORITY_LABELS:
        raise ValueError(f"Unknown recommendation priority '{signal.priority}'")

    return CampaignRecommendation(
        type=signal.type,
        priority=signal.priority,
        title=signal.title,
        description=signal.description,
        action=signal.action,
        label=f"{TYPE_LABELS[signal.type]} • {PRIORITY_LABELS[signal.priority]}",
        icon=TYPE_ICONS[signal.type],
        link=action_link(signal.action),
    )


def sort_recommendations(recommendations: list[CampaignRecommendation]) -> list[CampaignRecommendation]:
    """Order by priority (high first), keeping detection order within a level."""

    return sorted(recommendations, key=lambda rec: PRIORITY_RANK[rec.priority])


def _percentage_of(entries, category: str) -> float:
    for entry in entries:
        if entry.category == category:
            return entry.percentage
    return 0.0


def detect_signals(
    demand_vs_supply: DemandVsSupply,
    opportunities: list[GapEntry],
    oversupply: list[GapEntry],
    kpis: GlobalKPIs,
    funnel: Funnel,
    devices: Optional[dict[str, int]] = None,
) -> list[Signal]:
    """Derive recommendation signals from the computed insights."""

    signals: list[Signal] = []

    if opportunities:
        top = opportunities[0]
        demand_pct = _percentage_of(demand_vs_supply.demand, top.category)
        supply_pct = _percentage_of(demand_vs_supply.supply, top.category)
        signals.append(
            Signal(
                type="search",
                priority="high" if top.gap_score >= STRONG_GAP else "medium",
                title=f"High demand for {top.category}",
                description=(
                    f"{demand_pct:.1f}% of searches target {top.category} but only "
                    f"{supply_pct:.1f}% of listings match. Prioritise acquiring this stock."
                ),
                action="View search analysis",
            )
        )

    if oversupply:
        worst = oversupply[0]
        signals.append(
            Signal(
                type="property",
                priority="medium" if worst.gap_score <= -STRONG_GAP else "low",
                title=f"Excess stock of {worst.category}",
                description=(
                    f"Listings of {worst.category} exceed search interest by "
                    f"{abs(worst.gap_score):.1f} points. Consider promotions or price reviews."
                ),
                action="View property analysis",
            )
        )

    if kpis.total_sessions > 0 and kpis.conversion_rate < LOW_CONVERSION_RATE:
        signals.append(
            Signal(
                type="conversion",
                priority="high",
                title="Low conversion rate",
                description=(
                    f"Only {kpis.conversion_rate:.2f}% of sessions produced a lead. "
                    "Review contact forms and calls to action."
                ),
                action="View conversion analysis",
            )
        )

    view_to_favorite = funnel.dropoff_rates.get("viewToFavorite", 0.0)
    if funnel.property_views > 0 and view_to_favorite >= FAVORITE_DROPOFF_ALERT:
        signals.append(
            Signal(
                type="property",
                priority="low",
                title="Few favourites per property view",
                description=(
                    f"{view_to_favorite:.1f}% of property views end without a favourite. "
                    "Improve photos and listing descriptions."
                ),
                action="View property analysis",
            )
        )

    if devices:
        total = sum(devices.values())
        mobile_share = devices.get("mobile", 0) / total * 100.0 if total else 0.0
        if mobile_share >= MOBILE_SHARE_ALERT:
            signals.append(
                Signal(
                    type="device",
                    priority="medium",
                    title="Most visits come from mobile",
                    description=f"{mobile_share:.1f}% of visits are mobile. Check the mobile search experience.",
                    action="View device analysis",
                )
            )

    return signals


def recommend(signals: list[Signal]) -> list[CampaignRecommendation]:
    return sort_recommendations([synthesize(signal) for signal in signals])
