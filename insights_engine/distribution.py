"""Demand and supply percentage distributions."""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Any, Iterable

from insights_engine.attributes import normalize_attributes
from insights_engine.errors import MalformedRecordError
from insights_engine.log import get_logger
from insights_engine.schema import (
    CanonicalAttributeKey,
    CategoryDistributionEntry,
    EventCategory,
    InventoryRecord,
    RawEvent,
)
from insights_engine.taxonomy import classify

logger = get_logger("distribution")

PRESENTATION_DECIMALS = 1


def category_value(value: Any) -> str | None:
    """Return the comparable form of a category value, or None when blank."""

    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().lower()
    return text or None


def _check_record(record, index: int) -> tuple[str, float]:
    try:
        raw_value, raw_weight = record
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"Record {index}: expected a (category, weight) pair", record) from exc

    category = category_value(raw_value)
    if category is None:
        raise MalformedRecordError(f"Record {index}: empty category value", record)

    if isinstance(raw_weight, bool) or not isinstance(raw_weight, (int, float)):
        raise MalformedRecordError(f"Record {index}: non-numeric weight {raw_weight!r}", record)
    weight = float(raw_weight)
    if math.isnan(weight) or math.isinf(weight) or weight < 0:
        raise MalformedRecordError(f"Record {index}: invalid weight {raw_weight!r}", record)

    return category, weight


def partition_records(records: Iterable) -> tuple[list[tuple[str, float]], list[MalformedRecordError]]:
    """Split records into usable (category, weight) pairs and rejections."""

    valid: list[tuple[str, float]] = []
    rejected: list[MalformedRecordError] = []
    for index, record in enumerate(records, start=1):
        try:
            valid.append(_check_record(record, index))
        except MalformedRecordError as exc:
            logger.warning("Rejected record: %s", exc)
            rejected.append(exc)
    return valid, rejected


def aggregate(records: Iterable) -> list[CategoryDistributionEntry]:
    """Group weighted category records into an unrounded percentage distribution.

    Entries come out in the order each category was first observed. Malformed
    records are skipped; a zero total yields an empty list.
    """

    valid, _ = partition_records(records)

    totals: dict[str, float] = defaultdict(float)
    for category, weight in valid:
        totals[category] += weight

    grand_total = sum(totals.values())
    if grand_total <= 0:
        return []

    return [
        CategoryDistributionEntry(category=category, percentage=(weight / grand_total) * 100.0, count=weight)
        for category, weight in totals.items()
    ]


def round_percentage(value: float, decimals: int = PRESENTATION_DECIMALS) -> float:
    return round(value, decimals)


def _values(raw: Any) -> list[Any]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def demand_records(events: Iterable[RawEvent], key: CanonicalAttributeKey) -> list[tuple[Any, float]]:
    """Build demand records from search events carrying the given attribute.

    Multi-select filters contribute one record per selected value.
    """

    records: list[tuple[Any, float]] = []
    for event in events:
        if classify(event.name) is not EventCategory.SEARCH:
            continue
        attributes = normalize_attributes(event.attributes or {})
        if key not in attributes:
            continue
        for value in _values(attributes[key]):
            if category_value(value) is not None:
                records.append((value, 1.0))
    return records


def supply_records(inventory: Iterable[InventoryRecord], key: CanonicalAttributeKey) -> list[tuple[Any, Any]]:
    """Build supply records from inventory listings carrying the given attribute.

    A listing tagged with several values splits its weight evenly across them,
    so each listing still adds its own weight to the supply total. A listing
    with a malformed weight yields one record, to be rejected once.
    """

    records: list[tuple[Any, Any]] = []
    for listing in inventory:
        attributes = normalize_attributes(listing.attributes or {})
        values = [value for value in _values(attributes.get(key)) if category_value(value) is not None]
        if not values:
            continue
        weight = listing.weight
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            records.append((values[0], weight))
            continue
        records.extend((value, weight / len(values)) for value in values)
    return records
