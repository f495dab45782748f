"""JSON adapter for raw events and inventory listings."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from insights_engine.errors import MalformedRecordError
from insights_engine.log import get_logger
from insights_engine.schema import InventoryRecord, RawEvent, naive_utc

logger = get_logger("adapters.json")


def _parse_timestamp(value, index: int) -> datetime:
    if isinstance(value, bool) or value in (None, ""):
        raise MalformedRecordError(f"Item {index}: missing timestamp", value)
    if isinstance(value, (int, float)):
        # tracker payloads send epoch milliseconds
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc).replace(tzinfo=None)
    try:
        return naive_utc(datetime.fromisoformat(str(value)))
    except ValueError as exc:
        raise MalformedRecordError(f"Item {index}: malformed timestamp", value) from exc


def _optional_str(value) -> str | None:
    if value in (None, ""):
        return None
    return str(value).strip() or None


def _parse_item(item: dict, index: int) -> RawEvent:
    if not isinstance(item, dict):
        raise MalformedRecordError(f"Item {index}: expected an object", item)
    if not item.get("name"):
        raise MalformedRecordError(f"Item {index}: missing event name", item)

    timestamp = _parse_timestamp(item.get("timestamp", item.get("ts")), index)

    attributes = item.get("attributes", item.get("properties")) or {}
    if not isinstance(attributes, dict):
        raise MalformedRecordError(f"Item {index}: attributes must be an object", item)

    return RawEvent(
        name=str(item["name"]).strip(),
        attributes=attributes,
        timestamp=timestamp,
        session_id=_optional_str(item.get("session_id", item.get("sessionId"))),
        visitor_id=_optional_str(item.get("visitor_id", item.get("userId"))),
    )


def _parse_listing(item: dict, index: int) -> InventoryRecord:
    if not isinstance(item, dict):
        raise MalformedRecordError(f"Item {index}: expected an object", item)

    if "attributes" in item:
        attributes = item["attributes"]
        if not isinstance(attributes, dict):
            raise MalformedRecordError(f"Item {index}: attributes must be an object", item)
    else:
        attributes = {key: value for key, value in item.items() if key != "weight"}

    weight_raw = item.get("weight", 1)
    if isinstance(weight_raw, bool) or not isinstance(weight_raw, (int, float)):
        raise MalformedRecordError(f"Item {index}: invalid weight", item)

    return InventoryRecord(attributes=attributes, weight=float(weight_raw))


def _read(file_path: str, parse_item, strict: bool) -> list:
    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")

    records = []
    for index, item in enumerate(payload, start=1):
        try:
            records.append(parse_item(item, index))
        except MalformedRecordError as exc:
            if strict:
                raise
            logger.warning("Skipping %s: %s", file_path, exc)
    return records


def parse(file_path: str, strict: bool = False) -> list[RawEvent]:
    """Parse a JSON event list; malformed items are skipped unless strict."""

    return _read(file_path, _parse_item, strict)


def parse_inventory(file_path: str, strict: bool = False) -> list[InventoryRecord]:
    """Parse a JSON list of inventory listings."""

    return _read(file_path, _parse_listing, strict)
