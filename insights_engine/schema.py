"""Core data schema for analytics events, inventory and insight results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class EventCategory(str, Enum):
    """Semantic category of a tracked event."""

    SEARCH = "search"
    NAVIGATION = "navigation"
    CONVERSION = "conversion"
    PROPERTY = "property"


class CanonicalAttributeKey(str, Enum):
    """Normalized attribute vocabulary shared by events and inventory."""

    # search filters
    STATUS = "status"
    TYPE = "type"
    CITY = "city"
    NEIGHBORHOOD = "neighborhood"
    BEDROOMS = "bedrooms"
    SUITES = "suites"
    BATHROOMS = "bathrooms"
    GARAGE = "garage"
    LIVING_ROOMS = "living_rooms"
    WAREHOUSES = "warehouses"
    ROOMS = "rooms"
    LEISURE = "leisure"
    SECURITY = "security"
    AMENITIES = "amenities"

    # price and area
    PRICE_SALE = "price_sale"
    PRICE_RENT = "price_rent"
    AREA = "area"

    # switches
    FURNISHED = "furnished"
    PROMOTION = "promotion"
    PET_FRIENDLY = "pet_friendly"

    # search metadata
    QUERY = "query"
    CODE = "code"
    SEARCH_TERM = "search_term"

    # property details
    PROPERTY_ID = "property_id"
    PROPERTY_CODE = "property_code"
    PROPERTY_URL = "property_url"

    ACTION = "action"

    # lead / contact
    LEAD_SOURCE = "lead_source"
    LEAD_HAS_NAME = "lead_has_name"
    LEAD_HAS_EMAIL = "lead_has_email"
    LEAD_HAS_PHONE = "lead_has_phone"
    LEAD_INTEREST = "lead_interest"
    LEAD_CATEGORY = "lead_category"
    LEAD_VALUE = "lead_value"
    LEAD_RENTAL_VALUE = "lead_rental_value"
    CONTACT_METHOD = "contact_method"
    CONTACT_DESTINATION = "contact_destination"


def naive_utc(moment: datetime) -> datetime:
    """Return an aware datetime as naive UTC; naive values pass through."""

    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class RawEvent:
    """One tracked visitor action as delivered by the collection pipeline."""

    name: str
    attributes: dict[str, Any]
    timestamp: datetime
    session_id: Optional[str] = None
    visitor_id: Optional[str] = None


@dataclass(frozen=True)
class InventoryRecord:
    """One current listing; weight is the number of units it represents."""

    attributes: dict[str, Any]
    weight: float = 1.0


@dataclass(frozen=True)
class Period:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CategoryDistributionEntry:
    category: str
    percentage: float
    count: float = 0.0


@dataclass(frozen=True)
class GapEntry:
    category: str
    gap_score: float


@dataclass(frozen=True)
class Signal:
    """A detected condition worth surfacing as a campaign recommendation."""

    type: str
    priority: str
    title: str
    description: str
    action: Optional[str] = None


@dataclass(frozen=True)
class CampaignRecommendation:
    type: str
    priority: str
    title: str
    description: str
    action: Optional[str]
    label: str
    icon: str
    link: Optional[str] = None


@dataclass(frozen=True)
class DemandVsSupply:
    demand: list[CategoryDistributionEntry] = field(default_factory=list)
    supply: list[CategoryDistributionEntry] = field(default_factory=list)
    gap: list[GapEntry] = field(default_factory=list)


@dataclass(frozen=True)
class GlobalKPIs:
    unique_visitors: int = 0
    leads_generated: int = 0
    total_sessions: int = 0
    conversion_rate: float = 0.0
    avg_properties_viewed: float = 0.0
    total_favorites: int = 0


@dataclass(frozen=True)
class Journey:
    avg_time_on_site: float = 0.0
    avg_page_depth: float = 0.0
    recurrent_visitors_percentage: float = 0.0


@dataclass(frozen=True)
class Funnel:
    searches: int = 0
    results_clicks: int = 0
    property_views: int = 0
    favorites: int = 0
    leads: int = 0
    dropoff_rates: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ConversionSource:
    source: str
    conversions: int
    percentage: float


@dataclass(frozen=True)
class PopularProperty:
    code: str
    url: str
    views: int
    favorites: int
    leads: int

    @property
    def engagement_score(self) -> int:
        return self.views + 3 * self.favorites
