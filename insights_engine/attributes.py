"""Attribute key normalization."""

from __future__ import annotations

from typing import Any, Optional

from insights_engine.schema import CanonicalAttributeKey
from insights_engine.tables import ATTRIBUTE_INDEX


def normalize(raw_key: str) -> Optional[CanonicalAttributeKey]:
    """Map a raw payload key to its canonical key, or None when undeclared."""

    return ATTRIBUTE_INDEX.get(raw_key)


def normalize_attributes(attributes: dict[str, Any]) -> dict[CanonicalAttributeKey, Any]:
    """Rename payload keys to canonical keys and drop the unknown ones.

    When two raw keys of the same payload map to one canonical key, the value
    of the key that appears first in the payload is kept.
    """

    normalized: dict[CanonicalAttributeKey, Any] = {}
    for raw_key, value in attributes.items():
        canonical = normalize(raw_key)
        if canonical is None or canonical in normalized:
            continue
        normalized[canonical] = value
    return normalized
