"""Versioned lookup tables for event classification and key normalization.

Both tables are plain sequences of pairs so they can be audited and diffed
independently of the lookup code. They are validated once at import time;
a broken table is a deployment defect and raises ``ConfigurationError``.
"""

from __future__ import annotations

from insights_engine.errors import ConfigurationError
from insights_engine.schema import CanonicalAttributeKey, EventCategory

TABLE_VERSION = "2024.1"

EVENT_CATEGORY_TABLE: tuple[tuple[str, str], ...] = (
    ("search", "search"),
    ("search_submit", "search"),
    ("click_property_card", "navigation"),
    ("view_property", "navigation"),
    ("property_page_view", "navigation"),
    ("results_view", "navigation"),
    ("home_view", "navigation"),
    ("toggle_favorite", "property"),
    ("click_contact", "conversion"),
    ("submit_lead_form", "conversion"),
    ("conversion_whatsapp_click", "conversion"),
    ("thank_you_view", "conversion"),
    ("conversion_generate_lead", "conversion"),
)

# Each raw key is declared on its own line, even when two raw keys look alike.
ATTRIBUTE_KEY_TABLE: tuple[tuple[str, str], ...] = (
    ("status", "STATUS"),
    ("finalidade", "STATUS"),
    ("type", "TYPE"),
    ("tipo", "TYPE"),
    ("city", "CITY"),
    ("cidade", "CITY"),
    ("neighborhood", "NEIGHBORHOOD"),
    ("bairro", "NEIGHBORHOOD"),
    ("bedrooms", "BEDROOMS"),
    ("quartos", "BEDROOMS"),
    ("suites", "SUITES"),
    ("bathrooms", "BATHROOMS"),
    ("garage", "GARAGE"),
    ("living_rooms", "LIVING_ROOMS"),
    ("warehouses", "WAREHOUSES"),
    ("rooms", "ROOMS"),
    ("leisure", "LEISURE"),
    ("security", "SECURITY"),
    ("amenities", "AMENITIES"),
    ("price_sale", "PRICE_SALE"),
    ("price_rent", "PRICE_RENT"),
    ("area", "AREA"),
    ("furnished", "FURNISHED"),
    ("mobiliado", "FURNISHED"),
    ("promotion", "PROMOTION"),
    ("promocao", "PROMOTION"),
    ("pet_friendly", "PET_FRIENDLY"),
    ("query", "QUERY"),
    ("code", "CODE"),
    ("codigo", "CODE"),
    ("search_term", "SEARCH_TERM"),
    ("term", "SEARCH_TERM"),
    ("propertyId", "PROPERTY_ID"),
    ("property_code", "PROPERTY_CODE"),
    ("url", "PROPERTY_URL"),
    ("action", "ACTION"),
    ("source", "LEAD_SOURCE"),
    ("hasName", "LEAD_HAS_NAME"),
    ("hasEmail", "LEAD_HAS_EMAIL"),
    ("hasPhone", "LEAD_HAS_PHONE"),
    ("interest", "LEAD_INTEREST"),
    ("interesse", "LEAD_INTEREST"),
    ("category", "LEAD_CATEGORY"),
    ("categoria", "LEAD_CATEGORY"),
    ("value", "LEAD_VALUE"),
    ("valor_venda", "LEAD_VALUE"),
    ("rental_value", "LEAD_RENTAL_VALUE"),
    ("valor_aluguel", "LEAD_RENTAL_VALUE"),
    ("method", "CONTACT_METHOD"),
    ("destination", "CONTACT_DESTINATION"),
)


def build_event_index(table) -> dict[str, EventCategory]:
    """Validate an event table and return a name -> category index."""

    index: dict[str, EventCategory] = {}
    for event_name, category_name in table:
        if event_name in index:
            raise ConfigurationError(f"Duplicate event name in category table: '{event_name}'")
        try:
            index[event_name] = EventCategory(category_name)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown event category '{category_name}' for '{event_name}'") from exc
    return index


def build_attribute_index(table) -> dict[str, CanonicalAttributeKey]:
    """Validate a key table and return a raw key -> canonical key index."""

    index: dict[str, CanonicalAttributeKey] = {}
    for raw_key, canonical_name in table:
        if raw_key in index:
            raise ConfigurationError(f"Duplicate raw attribute key: '{raw_key}'")
        try:
            index[raw_key] = CanonicalAttributeKey[canonical_name]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown canonical key '{canonical_name}' for '{raw_key}'") from exc
    return index


EVENT_INDEX = build_event_index(EVENT_CATEGORY_TABLE)
ATTRIBUTE_INDEX = build_attribute_index(ATTRIBUTE_KEY_TABLE)
