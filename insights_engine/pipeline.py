"""End-to-end insights report for one site and period."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable, Optional

from insights_engine.distribution import (
    aggregate,
    demand_records,
    partition_records,
    round_percentage,
    supply_records,
)
from insights_engine.gap import DEFAULT_TOP_N, score, top_oversupply, top_opportunities
from insights_engine.kpis import (
    DEFAULT_LIMIT,
    conversion_sources,
    device_split,
    funnel,
    global_kpis,
    journey_stats,
    popular_properties,
)
from insights_engine.log import get_logger
from insights_engine.recommendations import detect_signals, recommend
from insights_engine.schema import (
    CampaignRecommendation,
    CanonicalAttributeKey,
    ConversionSource,
    DemandVsSupply,
    Funnel,
    GapEntry,
    GlobalKPIs,
    InventoryRecord,
    Journey,
    Period,
    PopularProperty,
    RawEvent,
    naive_utc,
)
from insights_engine.tables import TABLE_VERSION

logger = get_logger("pipeline")


@dataclass(frozen=True)
class InsightsReport:
    period: Period
    dimension: CanonicalAttributeKey
    kpis: GlobalKPIs
    demand_vs_supply: DemandVsSupply
    journey: Journey
    funnel: Funnel
    opportunities: list[GapEntry]
    oversupply: list[GapEntry]
    recommendations: list[CampaignRecommendation]
    rejected: int = 0
    site_key: Optional[str] = None
    devices: dict[str, int] = field(default_factory=dict)
    conversion_sources: list[ConversionSource] = field(default_factory=list)
    popular_properties: list[PopularProperty] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with dashboard field names and presentation rounding."""

        def distribution(entries):
            return [
                {"category": e.category, "count": e.count, "percentage": round_percentage(e.percentage)}
                for e in entries
            ]

        def gaps(entries):
            return [{"category": e.category, "gapScore": round_percentage(e.gap_score)} for e in entries]

        return {
            "siteKey": self.site_key,
            "tableVersion": TABLE_VERSION,
            "dimension": self.dimension.value,
            "period": {"start": self.period.start.isoformat(), "end": self.period.end.isoformat()},
            "kpis": {
                "uniqueVisitors": self.kpis.unique_visitors,
                "leadsGenerated": self.kpis.leads_generated,
                "totalSessions": self.kpis.total_sessions,
                "conversionRate": round(self.kpis.conversion_rate, 2),
                "avgPropertiesViewed": round(self.kpis.avg_properties_viewed, 1),
                "totalFavorites": self.kpis.total_favorites,
            },
            "demandVsSupply": {
                "demand": distribution(self.demand_vs_supply.demand),
                "supply": distribution(self.demand_vs_supply.supply),
                "gap": gaps(self.demand_vs_supply.gap),
            },
            "opportunities": gaps(self.opportunities),
            "oversupply": gaps(self.oversupply),
            "journey": {
                "avgTimeOnSite": int(round(self.journey.avg_time_on_site)),
                "avgPageDepth": round(self.journey.avg_page_depth, 1),
                "recurrentVisitorsPercentage": round(self.journey.recurrent_visitors_percentage, 2),
            },
            "funnel": {
                "searches": self.funnel.searches,
                "resultsClicks": self.funnel.results_clicks,
                "propertyViews": self.funnel.property_views,
                "favorites": self.funnel.favorites,
                "leads": self.funnel.leads,
                "dropoffRates": {k: round(v, 1) for k, v in self.funnel.dropoff_rates.items()},
            },
            "devices": dict(self.devices),
            "conversionSources": [
                {"source": s.source, "conversions": s.conversions, "percentage": round(s.percentage, 2)}
                for s in self.conversion_sources
            ],
            "popularProperties": [
                {
                    "code": p.code,
                    "url": p.url,
                    "views": p.views,
                    "favorites": p.favorites,
                    "leads": p.leads,
                    "engagementScore": p.engagement_score,
                }
                for p in self.popular_properties
            ],
            "recommendations": [
                {
                    "type": rec.type,
                    "priority": rec.priority,
                    "title": rec.title,
                    "description": rec.description,
                    "action": rec.action,
                    "label": rec.label,
                    "icon": rec.icon,
                    "link": rec.link,
                }
                for rec in self.recommendations
            ],
            "rejected": self.rejected,
        }


def _split_events(events: Iterable[RawEvent], period: Period) -> tuple[list[RawEvent], list[RawEvent], int]:
    """Return (events in period, events up to the period end, rejected count)."""

    start, end = naive_utc(period.start), naive_utc(period.end)
    in_period: list[RawEvent] = []
    with_history: list[RawEvent] = []
    rejected = 0
    for event in events:
        if not isinstance(event.timestamp, datetime):
            logger.warning("Rejected event '%s': missing or malformed timestamp", event.name)
            rejected += 1
            continue
        if event.timestamp.tzinfo is not None:
            event = replace(event, timestamp=naive_utc(event.timestamp))
        if event.timestamp > end:
            continue
        with_history.append(event)
        if event.timestamp >= start:
            in_period.append(event)
    return in_period, with_history, rejected


def demand_vs_supply(
    events: Iterable[RawEvent],
    inventory: Iterable[InventoryRecord],
    dimension: CanonicalAttributeKey = CanonicalAttributeKey.TYPE,
) -> tuple[DemandVsSupply, int]:
    """Build demand, supply and gap for one dimension; also return rejections."""

    demand_valid, demand_rejected = partition_records(demand_records(events, dimension))
    supply_valid, supply_rejected = partition_records(supply_records(inventory, dimension))

    demand = aggregate(demand_valid)
    supply = aggregate(supply_valid)
    result = DemandVsSupply(demand=demand, supply=supply, gap=score(demand, supply))
    return result, len(demand_rejected) + len(supply_rejected)


def build_report(
    events: Iterable[RawEvent],
    inventory: Iterable[InventoryRecord],
    *,
    period: Period,
    dimension: CanonicalAttributeKey = CanonicalAttributeKey.TYPE,
    top_n: int = DEFAULT_TOP_N,
    site_key: Optional[str] = None,
    user_agents: Optional[Iterable[Optional[str]]] = None,
    limit: int = DEFAULT_LIMIT,
) -> InsightsReport:
    """Run classification, aggregation, gap ranking and recommendations."""

    in_period, with_history, rejected_events = _split_events(events, period)
    logger.debug("Site %s: %d events in period, %d rejected", site_key, len(in_period), rejected_events)

    dvs, rejected_records = demand_vs_supply(in_period, inventory, dimension)
    opportunities = top_opportunities(dvs.gap, top_n)
    oversupply = top_oversupply(dvs.gap, top_n)

    kpis = global_kpis(in_period)
    journey = journey_stats(with_history, naive_utc(period.start))
    steps = funnel(in_period)
    devices = device_split(user_agents) if user_agents is not None else {}
    sources = conversion_sources(in_period, limit)
    properties = popular_properties(in_period, limit)

    signals = detect_signals(dvs, opportunities, oversupply, kpis, steps, devices or None)
    recommendations = recommend(signals)

    logger.info(
        "Site %s: %d demand categories, %d supply categories, %d recommendations",
        site_key,
        len(dvs.demand),
        len(dvs.supply),
        len(recommendations),
    )

    return InsightsReport(
        period=period,
        dimension=dimension,
        kpis=kpis,
        demand_vs_supply=dvs,
        journey=journey,
        funnel=steps,
        opportunities=opportunities,
        oversupply=oversupply,
        recommendations=recommendations,
        rejected=rejected_events + rejected_records,
        site_key=site_key,
        devices=devices,
        conversion_sources=sources,
        popular_properties=properties,
    )
