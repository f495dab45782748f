from datetime import datetime, timedelta, timezone

import pytest

from insights_engine.kpis import (
    conversion_sources,
    device_split,
    funnel,
    global_kpis,
    journey_stats,
    popular_properties,
)
from insights_engine.schema import RawEvent


def sample_events():
    return [
        RawEvent("home_view", {}, datetime.fromisoformat("2024-12-30T10:00:00"), "s0", "v2"),
        RawEvent("search", {"type": "apartment"}, datetime.fromisoformat("2025-01-02T09:00:00"), "s1", "v1"),
        RawEvent("results_view", {}, datetime.fromisoformat("2025-01-02T09:00:30"), "s1", "v1"),
        RawEvent("view_property", {"propertyId": "A"}, datetime.fromisoformat("2025-01-02T09:01:00"), "s1", "v1"),
        RawEvent("toggle_favorite", {"action": "add"}, datetime.fromisoformat("2025-01-02T09:03:00"), "s1", "v1"),
        RawEvent("submit_lead_form", {}, datetime.fromisoformat("2025-01-03T10:00:00"), "s2", "v2"),
        RawEvent("toggle_favorite", {"action": "remove"}, datetime.fromisoformat("2025-01-03T10:01:00"), "s2", "v2"),
    ]


def in_period():
    return [event for event in sample_events() if event.timestamp >= datetime(2025, 1, 1)]


def test_global_kpis():
    kpis = global_kpis(in_period())
    assert kpis.unique_visitors == 2
    assert kpis.leads_generated == 1
    assert kpis.conversion_rate == pytest.approx(50.0)
    assert kpis.avg_properties_viewed == pytest.approx(0.5)
    assert kpis.total_favorites == 1


def test_global_kpis_empty():
    kpis = global_kpis([])
    assert kpis.unique_visitors == 0
    assert kpis.conversion_rate == 0.0


def test_journey_stats_uses_history_for_recurrence():
    journey = journey_stats(sample_events(), datetime(2025, 1, 1))
    assert journey.avg_time_on_site == pytest.approx(120.0)
    assert journey.avg_page_depth == pytest.approx(1.0)
    assert journey.recurrent_visitors_percentage == pytest.approx(50.0)


def test_journey_stats_empty():
    journey = journey_stats([], datetime(2025, 1, 1))
    assert journey.avg_time_on_site == 0.0
    assert journey.avg_page_depth == 0.0
    assert journey.recurrent_visitors_percentage == 0.0


def test_funnel_steps_and_dropoff():
    steps = funnel(in_period())
    assert (steps.searches, steps.results_clicks, steps.property_views, steps.favorites, steps.leads) == (
        1,
        0,
        1,
        1,
        1,
    )
    assert steps.dropoff_rates["searchToClick"] == pytest.approx(100.0)
    assert steps.dropoff_rates["clickToView"] == 0.0
    assert steps.dropoff_rates["viewToFavorite"] == pytest.approx(0.0)


def test_device_split_ignores_bots():
    agents = [
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0) Mobile/15E148",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
        "Googlebot/2.1",
        None,
        "Mozilla/5.0 (iPad; CPU OS 17_0)",
    ]
    assert device_split(agents) == {"mobile": 2, "desktop": 1}


def _at(minute):
    return datetime(2025, 1, 2, 9, 0) + timedelta(minutes=minute)


def test_conversion_rate_is_per_session():
    events = [
        RawEvent("submit_lead_form", {}, _at(0), "s1", "v1"),
        RawEvent("click_contact", {}, _at(1), "s1", "v1"),
        RawEvent("submit_lead_form", {}, _at(2), "s2", "v1"),
        RawEvent("home_view", {}, _at(3), "s3", "v1"),
    ]
    kpis = global_kpis(events)
    assert kpis.unique_visitors == 1
    assert kpis.total_sessions == 3
    assert kpis.leads_generated == 3
    assert kpis.conversion_rate == pytest.approx(100.0)


def test_favorite_without_action_is_not_an_add():
    events = [
        RawEvent("view_property", {"propertyId": "A"}, _at(0), "s1", "v1"),
        RawEvent("toggle_favorite", {"propertyId": "A"}, _at(1), "s1", "v1"),
        RawEvent("toggle_favorite", {"propertyId": "A", "action": " ADD "}, _at(2), "s1", "v1"),
    ]
    assert global_kpis(events).total_favorites == 1
    assert funnel(events).favorites == 1


def test_journey_stats_accepts_aware_timestamps():
    utc = timezone.utc
    events = [
        RawEvent("home_view", {}, datetime(2024, 12, 30, 10, tzinfo=utc), "s0", "v1"),
        RawEvent("home_view", {}, datetime(2025, 1, 2, 9, tzinfo=utc), "s1", "v1"),
        RawEvent("results_view", {}, datetime(2025, 1, 2, 9, 2), "s1", "v1"),
    ]
    journey = journey_stats(events, datetime(2025, 1, 1, tzinfo=utc))
    assert journey.avg_time_on_site == pytest.approx(120.0)
    assert journey.recurrent_visitors_percentage == pytest.approx(100.0)


def test_conversion_sources_group_and_rank():
    events = [
        RawEvent("submit_lead_form", {"source": "Instagram"}, _at(0), "s1", "v1"),
        RawEvent("submit_lead_form", {}, _at(1), "s2", "v2"),
        RawEvent("click_contact", {"source": "Google"}, _at(2), "s3", "v3"),
        RawEvent("submit_lead_form", {"source": "Google"}, _at(3), "s4", "v4"),
        RawEvent("search", {"source": "Google"}, _at(4), "s5", "v5"),
    ]
    sources = conversion_sources(events)
    assert [(s.source, s.conversions) for s in sources] == [("Google", 2), ("Instagram", 1), ("Site", 1)]
    assert sources[0].percentage == pytest.approx(50.0)

    top = conversion_sources(events, limit=1)
    assert [(s.source, s.percentage) for s in top] == [("Google", 100.0)]
    assert conversion_sources(events, limit=0) == []
    assert conversion_sources([]) == []


def test_popular_properties_rank_by_viewing_sessions():
    events = [
        RawEvent("view_property", {"propertyId": "A", "url": "/imovel/a"}, _at(0), "s1", "v1"),
        RawEvent("view_property", {"propertyId": "A"}, _at(1), "s1", "v1"),
        RawEvent("view_property", {"propertyId": "B", "url": "/imovel/b"}, _at(2), "s1", "v1"),
        RawEvent("view_property", {"propertyId": "B", "url": "/imovel/b-2"}, _at(3), "s2", "v2"),
        RawEvent("view_property", {"propertyId": "B", "url": "/imovel/b/obrigado"}, _at(4), "s3", "v3"),
        RawEvent("toggle_favorite", {"propertyId": "A", "action": "add"}, _at(5), "s1", "v1"),
        RawEvent("toggle_favorite", {"propertyId": "A", "action": "remove"}, _at(6), "s1", "v1"),
        RawEvent("click_contact", {"propertyId": "B"}, _at(7), "s2", "v2"),
        RawEvent("submit_lead_form", {"propertyId": "B"}, _at(8), "s3", "v3"),
        RawEvent("view_property", {}, _at(9), "s4", "v4"),
    ]
    ranked = popular_properties(events)
    assert [(p.code, p.views, p.favorites, p.leads) for p in ranked] == [("B", 3, 0, 2), ("A", 1, 1, 0)]
    assert ranked[0].url == "/imovel/b-2"
    assert ranked[1].url == "/imovel/a"
    assert ranked[1].engagement_score == 4

    assert [p.code for p in popular_properties(events, limit=1)] == ["B"]
    assert popular_properties(events, limit=0) == []
