"""CSV adapter for raw events and inventory listings."""

from __future__ import annotations

import csv
from datetime import datetime

from insights_engine.errors import MalformedRecordError
from insights_engine.log import get_logger
from insights_engine.schema import InventoryRecord, RawEvent, naive_utc

logger = get_logger("adapters.csv")

_EVENT_FIELDS = {"name", "timestamp", "session_id", "visitor_id"}
_LIST_SEPARATOR = "|"


def _attributes(row: dict, reserved: set[str]) -> dict:
    attributes = {}
    for key, value in row.items():
        if key is None or key in reserved or value in (None, ""):
            continue
        value = value.strip()
        attributes[key] = [v.strip() for v in value.split(_LIST_SEPARATOR)] if _LIST_SEPARATOR in value else value
    return attributes


def _parse_row(row: dict, row_number: int) -> RawEvent:
    if not row.get("name"):
        raise MalformedRecordError(f"Row {row_number}: missing event name", row)
    if not row.get("timestamp"):
        raise MalformedRecordError(f"Row {row_number}: missing timestamp", row)

    try:
        timestamp = datetime.fromisoformat(row["timestamp"].strip())
    except ValueError as exc:
        raise MalformedRecordError(f"Row {row_number}: malformed timestamp", row) from exc

    return RawEvent(
        name=row["name"].strip(),
        attributes=_attributes(row, _EVENT_FIELDS),
        timestamp=naive_utc(timestamp),
        session_id=(row.get("session_id") or "").strip() or None,
        visitor_id=(row.get("visitor_id") or "").strip() or None,
    )


def _parse_listing(row: dict, row_number: int) -> InventoryRecord:
    weight_raw = row.get("weight")
    weight = 1.0
    if weight_raw not in (None, ""):
        try:
            weight = float(weight_raw)
        except ValueError as exc:
            raise MalformedRecordError(f"Row {row_number}: invalid weight", row) from exc

    return InventoryRecord(attributes=_attributes(row, {"weight"}), weight=weight)


def _read(file_path: str, parse_row, strict: bool) -> list:
    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        records = []
        for row_number, row in enumerate(reader, start=2):
            try:
                records.append(parse_row(row, row_number))
            except MalformedRecordError as exc:
                if strict:
                    raise
                logger.warning("Skipping %s: %s", file_path, exc)
        return records


def parse(file_path: str, strict: bool = False) -> list[RawEvent]:
    """Parse a CSV event log; malformed rows are skipped unless strict."""

    return _read(file_path, _parse_row, strict)


def parse_inventory(file_path: str, strict: bool = False) -> list[InventoryRecord]:
    """Parse a CSV inventory export, one listing per row."""

    return _read(file_path, _parse_listing, strict)
