"""Event taxonomy classification."""

from __future__ import annotations

from typing import Optional

from insights_engine.schema import EventCategory
from insights_engine.tables import EVENT_CATEGORY_TABLE, EVENT_INDEX

# Events that represent a rendered page for journey depth.
_PAGE_VIEW_EVENTS = ("property_page_view", "search_submit", "home_view", "results_view")


def classify(event_name: str) -> Optional[EventCategory]:
    """Return the category for an event name, or None when it is not in the table."""

    return EVENT_INDEX.get(event_name)


def events_in_category(category: EventCategory) -> tuple[str, ...]:
    """Return every event name of a category, in table declaration order."""

    category = EventCategory(category)
    return tuple(name for name, _ in EVENT_CATEGORY_TABLE if EVENT_INDEX[name] is category)


def is_in_category(event_name: str, category: EventCategory) -> bool:
    return classify(event_name) is EventCategory(category)


def page_view_events() -> tuple[str, ...]:
    return _PAGE_VIEW_EVENTS
