import pytest

from insights_engine.recommendations import (
    ACTION_LINKS,
    detect_signals,
    recommend,
    sort_recommendations,
    synthesize,
)
from insights_engine.schema import (
    CategoryDistributionEntry,
    DemandVsSupply,
    Funnel,
    GapEntry,
    GlobalKPIs,
    Signal,
)


def test_synthesize_label_icon_and_link():
    rec = synthesize(Signal("search", "high", "High demand", "desc", "View search analysis"))
    assert rec.label == "Search • High priority"
    assert rec.icon == "target"
    assert rec.link == "/admin/insights/search"


def test_unmatched_or_missing_action_has_no_link():
    assert synthesize(Signal("device", "low", "t", "d", "Open somewhere")).link is None
    assert synthesize(Signal("device", "low", "t", "d")).link is None


def test_unknown_type_or_priority_raises():
    with pytest.raises(ValueError):
        synthesize(Signal("email", "high", "t", "d"))
    with pytest.raises(ValueError):
        synthesize(Signal("search", "urgent", "t", "d"))


def test_sort_by_priority_is_stable():
    recs = [
        synthesize(Signal("property", "low", "first low", "d")),
        synthesize(Signal("search", "high", "first high", "d")),
        synthesize(Signal("device", "medium", "medium", "d")),
        synthesize(Signal("conversion", "high", "second high", "d")),
    ]
    assert [rec.title for rec in sort_recommendations(recs)] == [
        "first high",
        "second high",
        "medium",
        "first low",
    ]


def test_detect_signals_from_gaps_and_kpis():
    dvs = DemandVsSupply(
        demand=[CategoryDistributionEntry("apartment", 70.0), CategoryDistributionEntry("house", 30.0)],
        supply=[CategoryDistributionEntry("apartment", 40.0), CategoryDistributionEntry("house", 60.0)],
        gap=[GapEntry("apartment", 30.0), GapEntry("house", -30.0)],
    )
    kpis = GlobalKPIs(unique_visitors=10, leads_generated=0, total_sessions=10, conversion_rate=0.0)
    signals = detect_signals(dvs, [GapEntry("apartment", 30.0)], [GapEntry("house", -30.0)], kpis, Funnel())

    assert [(s.type, s.priority) for s in signals] == [
        ("search", "high"),
        ("property", "medium"),
        ("conversion", "high"),
    ]
    assert "70.0%" in signals[0].description

    recs = recommend(signals)
    assert [rec.type for rec in recs] == ["search", "conversion", "property"]


def test_device_and_favorite_signals():
    funnel = Funnel(property_views=100, favorites=2, dropoff_rates={"viewToFavorite": 98.0})
    signals = detect_signals(DemandVsSupply(), [], [], GlobalKPIs(), funnel, {"mobile": 7, "desktop": 3})
    assert [(s.type, s.priority) for s in signals] == [("property", "low"), ("device", "medium")]


def test_no_signals_without_data():
    assert detect_signals(DemandVsSupply(), [], [], GlobalKPIs(), Funnel()) == []


def test_every_linked_action_is_emitted():
    dvs = DemandVsSupply(
        demand=[CategoryDistributionEntry("apartment", 70.0)],
        supply=[CategoryDistributionEntry("house", 100.0)],
    )
    kpis = GlobalKPIs(unique_visitors=5, total_sessions=5, conversion_rate=0.0)
    funnel = Funnel(property_views=100, favorites=1, dropoff_rates={"viewToFavorite": 99.0})
    signals = detect_signals(
        dvs, [GapEntry("apartment", 70.0)], [GapEntry("house", -100.0)], kpis, funnel, {"mobile": 9, "desktop": 1}
    )
    assert {s.action for s in signals} == set(ACTION_LINKS)
    assert all(rec.link is not None for rec in recommend(signals))


def test_conversion_signal_needs_sessions():
    kpis = GlobalKPIs(unique_visitors=3, total_sessions=0, conversion_rate=0.0)
    assert detect_signals(DemandVsSupply(), [], [], kpis, Funnel()) == []
