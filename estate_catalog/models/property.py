"""Property data model."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Loosely typed record as it arrives from the server, before normalization
RawPropertyInput = Mapping[str, Any]


class RecordKind(str, Enum):
    """Position of a record in the hierarchy."""

    LISTING = "listing"
    CONTAINER = "container"


class PropertyCategory(str, Enum):
    """Container sub-kind, or normal for a non-contained listing."""

    NORMAL = "normal"
    TOWER = "tower"
    APARTMENT = "apartment"
    MARKET = "market"
    SHARAK = "sharak"


class Currency(str, Enum):
    """Currencies a price can be quoted in."""

    AF = "AF"
    USD = "USD"


class PropertyStatus(str, Enum):
    """Publication status."""

    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"


class NamedRef(BaseModel):
    """Denormalized lookup reference (province, district, area)."""

    id: int | None = None
    name: str | None = None


class ParentRef(BaseModel):
    """Snapshot of the parent container embedded by the server."""

    property_id: int | None = None
    title: str | None = None
    property_type: str | None = None


class PersonSnapshot(BaseModel):
    """Denormalized agent/creator/owner; not refreshed by the client."""

    person_id: int | None = None
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None


class PropertyRecord(BaseModel):
    """Canonical property record produced by the normalizer."""

    model_config = ConfigDict(validate_assignment=True)

    # Identity
    property_id: int | None = Field(None, description="Server-assigned id, None for new drafts")

    # Hierarchy
    record_kind: RecordKind = RecordKind.LISTING
    parent_id: int | None = Field(None, description="Back-reference to the owning container")
    property_category: PropertyCategory = PropertyCategory.NORMAL
    property_type: str = ""
    status: PropertyStatus = PropertyStatus.ACTIVE
    parent: ParentRef | None = None

    # Basic info
    title: str | None = None
    description: str | None = None
    purpose: str | None = None

    # Commercial terms
    for_sale: bool = False
    for_rent: bool = False
    sale_price: float | None = None
    sale_currency: Currency = Currency.AF
    rent_price: float | None = None
    rent_currency: Currency = Currency.AF

    # Physical attributes
    area_size: float | None = None
    area_unit: str = "sqft"
    bedrooms: int | None = None
    bathrooms: int | None = None
    floor: str | None = None
    unit_number: str | None = None
    total_floors: int | None = None
    planned_units: int | None = None

    # Location (owned by standalone records and containers only)
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    location: str | None = None
    city: str | None = None
    area_id: int | None = None
    district_id: int | None = None
    province_id: int | None = None
    area_data: NamedRef | None = None
    area: NamedRef | None = None
    area_name: str | None = None
    district_data: NamedRef | None = None
    province_data: NamedRef | None = None
    province: NamedRef | None = None
    province_name: str | None = None

    # Media
    photos: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)

    # Amenities
    amenities: list[str] = Field(default_factory=list, description="Unit-specific labels")
    facilities: list[str] = Field(default_factory=list, description="Container-level labels")

    # Relationships
    agent_id: int | None = None
    owner_person_id: int | None = None
    created_by_user_id: int | None = None
    agent: PersonSnapshot | None = None
    creator: PersonSnapshot | None = None
    owner: PersonSnapshot | None = None

    # Metadata
    created_at: str | None = None
    updated_at: str | None = None


class LookupItem(BaseModel):
    """Entry of a province/district/area picker."""

    id: int
    name: str


class MediaAttachment(BaseModel):
    """File picked on the device, waiting to be uploaded."""

    uri: str
    name: str
    mime_type: str | None = None
    content: bytes | None = Field(None, description="File bytes; read from uri when absent")


class MetaItem(BaseModel):
    """One icon/value pair of a listing's metadata row."""

    icon: str
    value: str


class SubmitResult(BaseModel):
    """Outcome of a successful submission."""

    property_id: int
