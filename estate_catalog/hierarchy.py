"""
Hierarchy classifier.

Decides where a record sits in the container/unit hierarchy and, from that,
which fields it owns, which it inherits from its container and which the
creation wizard shows. Rendering and validation both read classify(), so the
two cannot disagree about what a record carries.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from estate_catalog.catalog import (
    CATEGORY_CHILD_TYPES,
    CONTAINER_CATEGORIES,
    ROOM_TYPES,
    property_type_info,
)
from estate_catalog.models import PropertyCategory, PropertyRecord, RecordKind

# =============================================================================
# FIELD GROUPS
# =============================================================================

BASIC_FIELDS = frozenset({"title", "description", "property_type", "property_category"})
CONTAINER_FIELDS = frozenset({"total_floors", "planned_units"})
ROOM_FIELDS = frozenset({"bedrooms", "bathrooms"})
UNIT_FIELDS = frozenset({"floor", "unit_number"})
AREA_FIELDS = frozenset({"area_size", "area_unit"})
PRICING_FIELDS = frozenset({
    "for_sale", "for_rent",
    "sale_price", "sale_currency",
    "rent_price", "rent_currency",
})
LOCATION_FIELDS = frozenset({
    "province_id", "district_id", "area_id",
    "address", "location", "latitude", "longitude",
})
MEDIA_FIELDS = frozenset({"photos", "videos", "attachments"})


class Classification(BaseModel):
    """Hierarchy position of a record and the fields that follow from it."""

    model_config = ConfigDict(frozen=True)

    is_container: bool
    is_child: bool
    inherits_location: bool
    inherits_facilities: bool
    visible_fields: frozenset[str]

    def shows(self, field: str) -> bool:
        """True when the field is part of the record's visible set."""
        return field in self.visible_fields


def is_container(record: PropertyRecord) -> bool:
    return record.record_kind == RecordKind.CONTAINER


def is_child(record: PropertyRecord) -> bool:
    # A stray parent_id on a container is ignored
    return record.parent_id is not None and not is_container(record)


def visible_fields(record: PropertyRecord) -> frozenset[str]:
    """
    Fields a record of this position and type carries.

    Containers get floor/unit counts and no rooms or pricing; children of
    unit types get floor and unit number; standalone houses and apartments
    get room counts; every non-container gets an area size and pricing;
    only records that own their location get location fields.
    """
    fields = set(BASIC_FIELDS) | MEDIA_FIELDS

    if is_container(record):
        fields |= CONTAINER_FIELDS | LOCATION_FIELDS | {"facilities"}
        return frozenset(fields)

    fields |= AREA_FIELDS | PRICING_FIELDS | {"amenities"}
    property_type = record.property_type.strip().lower()

    if is_child(record):
        info = property_type_info(property_type)
        if info is not None:
            fields |= set(info.unit_fields)
    else:
        fields |= LOCATION_FIELDS
        if property_type in ROOM_TYPES:
            fields |= ROOM_FIELDS

    return frozenset(fields)


def classify(record: PropertyRecord) -> Classification:
    """Classify a normalized record."""
    child = is_child(record)
    return Classification(
        is_container=is_container(record),
        is_child=child,
        inherits_location=child,
        inherits_facilities=child,
        visible_fields=visible_fields(record),
    )


# =============================================================================
# INHERITANCE
# =============================================================================

def location_source(record: PropertyRecord, parent: PropertyRecord | None = None) -> PropertyRecord:
    """
    Record that owns the location to display for `record`.

    Children defer to their container when it is known; without it the
    child itself is returned and display falls back to its placeholders.
    """
    if parent is not None and classify(record).inherits_location:
        return parent
    return record


def display_amenities(record: PropertyRecord, parent: PropertyRecord | None = None) -> list[str]:
    """
    Amenity labels to show for a record.

    For children this is the container's facilities followed by the unit's
    own amenities, without duplicates. Neither record is modified.
    """
    labels: list[str] = []
    sources: list[Iterable[str]] = []

    if parent is not None and classify(record).inherits_facilities:
        sources.append(parent.facilities)
    if is_container(record):
        sources.append(record.facilities)
    sources.append(record.amenities)

    for source in sources:
        for label in source:
            if label not in labels:
                labels.append(label)
    return labels


# =============================================================================
# CATEGORY RULES
# =============================================================================

def allowed_child_types(category: PropertyCategory | str) -> tuple[str, ...]:
    """Unit types a container category may hold (or a standalone listing may be)."""
    try:
        category = PropertyCategory(category)
    except ValueError:
        return ()
    return CATEGORY_CHILD_TYPES.get(category, ())


def is_allowed_child_type(category: PropertyCategory | str, property_type: str) -> bool:
    return property_type.strip().lower() in allowed_child_types(category)


def is_container_category(category: PropertyCategory | str) -> bool:
    try:
        return PropertyCategory(category) in CONTAINER_CATEGORIES
    except ValueError:
        return False


def children_of(parent_id: int, records: Iterable[PropertyRecord]) -> list[PropertyRecord]:
    """Units whose parent_id points at `parent_id`."""
    return [record for record in records if is_child(record) and record.parent_id == parent_id]
