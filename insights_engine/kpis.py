"""Scalar KPI, journey and funnel summaries over classified events."""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional

import numpy as np

from insights_engine.attributes import normalize_attributes
from insights_engine.schema import (
    CanonicalAttributeKey,
    ConversionSource,
    EventCategory,
    Funnel,
    GlobalKPIs,
    Journey,
    PopularProperty,
    RawEvent,
    naive_utc,
)
from insights_engine.taxonomy import classify, page_view_events

_PROPERTY_VIEW_EVENTS = ("view_property", "property_page_view")
_RESULT_CLICK_EVENTS = ("click_property_card",)
_PROPERTY_LEAD_EVENTS = ("click_contact", "submit_lead_form")

DEFAULT_LIMIT = 10
DEFAULT_SOURCE = "Site"

_MOBILE_PATTERN = re.compile(r"iPhone|IEMobile|Windows Phone|Mobi|Mobile|iPad|Tablet", re.IGNORECASE)
_BOT_PATTERN = re.compile(r"bot|crawler|spider|facebookexternalhit|Slackbot|WhatsApp", re.IGNORECASE)


def _visitor_key(event: RawEvent) -> Optional[str]:
    return event.visitor_id or event.session_id


def _is_favorite_added(event: RawEvent) -> bool:
    if event.name != "toggle_favorite":
        return False
    action = normalize_attributes(event.attributes or {}).get(CanonicalAttributeKey.ACTION)
    return action is not None and str(action).strip().lower() == "add"


def global_kpis(events: list[RawEvent]) -> GlobalKPIs:
    """Compute visitor, lead and engagement totals.

    Conversion rate is leads per distinct session, so several leads in one
    session can push it above 100%.
    """

    visitors = {key for key in (_visitor_key(event) for event in events) if key}
    sessions = {event.session_id for event in events if event.session_id}
    leads = sum(1 for event in events if classify(event.name) is EventCategory.CONVERSION)
    views = sum(1 for event in events if event.name in _PROPERTY_VIEW_EVENTS)
    favorites = sum(1 for event in events if _is_favorite_added(event))

    unique_visitors = len(visitors)
    return GlobalKPIs(
        unique_visitors=unique_visitors,
        leads_generated=leads,
        total_sessions=len(sessions),
        conversion_rate=(leads / len(sessions) * 100.0) if sessions else 0.0,
        avg_properties_viewed=(views / unique_visitors) if unique_visitors else 0.0,
        total_favorites=favorites,
    )


def journey_stats(events: list[RawEvent], period_start: datetime) -> Journey:
    """Session duration, page depth and recurring visitors.

    Events dated before ``period_start`` are history: they only decide whether
    a visitor of the period is recurring.
    """

    period_start = naive_utc(period_start)
    events = [replace(event, timestamp=naive_utc(event.timestamp)) for event in events]
    in_period = [event for event in events if event.timestamp >= period_start]
    history_visitors = {
        event.visitor_id for event in events if event.timestamp < period_start and event.visitor_id
    }

    session_times: dict[str, list[datetime]] = defaultdict(list)
    session_depth: Counter = Counter()
    pages = set(page_view_events())
    for event in in_period:
        if not event.session_id:
            continue
        session_times[event.session_id].append(event.timestamp)
        if event.name in pages:
            session_depth[event.session_id] += 1

    durations = [
        (max(times) - min(times)).total_seconds() for times in session_times.values() if len(times) > 1
    ]
    depths = list(session_depth.values())

    period_visitors = {event.visitor_id for event in in_period if event.visitor_id}
    recurrent = period_visitors & history_visitors

    return Journey(
        avg_time_on_site=float(np.mean(durations)) if durations else 0.0,
        avg_page_depth=float(np.mean(depths)) if depths else 0.0,
        recurrent_visitors_percentage=(len(recurrent) / len(period_visitors) * 100.0) if period_visitors else 0.0,
    )


def _dropoff(previous: int, current: int) -> float:
    if previous == 0:
        return 0.0
    return max(0.0, (1.0 - current / previous) * 100.0)


def funnel(events: list[RawEvent]) -> Funnel:
    """Count each step of search -> click -> view -> favourite -> lead."""

    searches = sum(1 for event in events if classify(event.name) is EventCategory.SEARCH)
    clicks = sum(1 for event in events if event.name in _RESULT_CLICK_EVENTS)
    views = sum(1 for event in events if event.name in _PROPERTY_VIEW_EVENTS)
    favorites = sum(1 for event in events if _is_favorite_added(event))
    leads = sum(1 for event in events if classify(event.name) is EventCategory.CONVERSION)

    return Funnel(
        searches=searches,
        results_clicks=clicks,
        property_views=views,
        favorites=favorites,
        leads=leads,
        dropoff_rates={
            "searchToClick": _dropoff(searches, clicks),
            "clickToView": _dropoff(clicks, views),
            "viewToFavorite": _dropoff(views, favorites),
            "favoriteToLead": _dropoff(favorites, leads),
        },
    )


def device_split(user_agents: Iterable[Optional[str]]) -> dict[str, int]:
    """Count mobile and desktop user agents, ignoring bots and blanks."""

    counts = {"mobile": 0, "desktop": 0}
    for agent in user_agents:
        if not agent or _BOT_PATTERN.search(agent):
            continue
        counts["mobile" if _MOBILE_PATTERN.search(agent) else "desktop"] += 1
    return counts


def conversion_sources(events: list[RawEvent], limit: int = DEFAULT_LIMIT) -> list[ConversionSource]:
    """Group conversion events by lead source, most conversions first.

    Events without a source count as ``DEFAULT_SOURCE``. Percentages are
    shares of the sources returned.
    """

    if limit <= 0:
        return []

    counts: Counter = Counter()
    for event in events:
        if classify(event.name) is not EventCategory.CONVERSION:
            continue
        source = normalize_attributes(event.attributes or {}).get(CanonicalAttributeKey.LEAD_SOURCE)
        label = str(source).strip() if source is not None else ""
        counts[label or DEFAULT_SOURCE] += 1

    ranked = sorted(counts.items(), key=lambda item: -item[1])[:limit]
    total = sum(count for _, count in ranked)
    return [
        ConversionSource(source=source, conversions=count, percentage=count / total * 100.0)
        for source, count in ranked
    ]


@dataclass
class _PropertyTally:
    sessions: set = field(default_factory=set)
    favorites: int = 0
    leads: int = 0
    url: str = ""
    url_seen_at: Optional[datetime] = None


def popular_properties(events: list[RawEvent], limit: int = DEFAULT_LIMIT) -> list[PopularProperty]:
    """Rank properties by distinct viewing sessions.

    Favourites count only ``add`` toggles; leads are contact clicks and lead
    forms. The URL is the latest one seen on a view, skipping thank-you pages.
    """

    if limit <= 0:
        return []

    tallies: dict[str, _PropertyTally] = {}
    for event in events:
        if event.name not in ("view_property", "toggle_favorite", *_PROPERTY_LEAD_EVENTS):
            continue
        attributes = normalize_attributes(event.attributes or {})
        code = attributes.get(CanonicalAttributeKey.PROPERTY_ID)
        code = str(code).strip() if code is not None else ""
        if not code:
            continue

        tally = tallies.setdefault(code, _PropertyTally())
        if event.name == "view_property":
            if event.session_id:
                tally.sessions.add(event.session_id)
            url = attributes.get(CanonicalAttributeKey.PROPERTY_URL)
            if url and "/obrigado" not in str(url):
                seen_at = naive_utc(event.timestamp)
                if tally.url_seen_at is None or seen_at >= tally.url_seen_at:
                    tally.url = str(url)
                    tally.url_seen_at = seen_at
        elif event.name == "toggle_favorite":
            tally.favorites += 1 if _is_favorite_added(event) else 0
        else:
            tally.leads += 1

    ranked = [
        PopularProperty(code=code, url=t.url, views=len(t.sessions), favorites=t.favorites, leads=t.leads)
        for code, t in tallies.items()
    ]
    return sorted(ranked, key=lambda prop: -prop.views)[:limit]
