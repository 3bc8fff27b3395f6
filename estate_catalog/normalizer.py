"""
Property record normalizer.

Turns the loosely typed records the server returns (camelCase or snake_case
keys, flags spelled four different ways, media lists that are sometimes
JSON-encoded strings) into a canonical PropertyRecord. Never raises: every
malformed value degrades to a default.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from estate_catalog.models import (
    Currency,
    NamedRef,
    ParentRef,
    PersonSnapshot,
    PropertyCategory,
    PropertyRecord,
    PropertyStatus,
    RecordKind,
)
from estate_catalog.utils import clean_text, coerce_bool, parse_int, parse_number

logger = logging.getLogger(__name__)

# Historical spellings of the availability flags
FOR_SALE_KEYS = ("forSale", "is_available_for_sale", "for_sale", "isAvailableForSale")
FOR_RENT_KEYS = ("forRent", "is_available_for_rent", "for_rent", "isAvailableForRent")

PARENT_KEYS = ("parent_id", "parentId", "parent_property_id", "parentPropertyId", "apartment_id")

MALFORMED = object()


def pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first value among keys that is not None."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _parse_json(value: str, field: str) -> Any:
    """json.loads that reports failure as MALFORMED plus a debug line."""
    try:
        return json.loads(value)
    except ValueError:
        logger.debug("Malformed JSON in %s: %.60r", field, value)
        return MALFORMED


def coerce_media_list(value: Any, field: str = "media") -> list[str]:
    """
    Coerce a photos/videos/attachments value into a list of URIs.

    A string is parsed as JSON; when that fails the string itself is the only
    entry. A parse result that is not a list yields no entries. Object
    entries contribute their "url", falsy entries are dropped.
    """
    if value is None:
        return []

    if isinstance(value, str):
        if not value.strip():
            return []
        parsed = _parse_json(value, field)
        if parsed is MALFORMED:
            return [value.strip()]
        value = parsed

    if not isinstance(value, (list, tuple)):
        return []

    uris = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("url")
        if isinstance(item, str) and item.strip():
            uris.append(item.strip())
    return uris


def coerce_label_list(value: Any, field: str = "labels") -> list[str]:
    """
    Coerce an amenities/facilities value into a list of unique labels.

    Strings are parsed as JSON; anything that does not end up as a list
    yields no labels.
    """
    if value is None:
        return []

    if isinstance(value, str):
        value = _parse_json(value, field) if value.strip() else None

    if not isinstance(value, (list, tuple, set)):
        return []

    labels = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("label") or item.get("name")
        label = clean_text(item) if isinstance(item, (str, int, float)) else None
        if label and label not in labels:
            labels.append(label)
    return labels


def coerce_named_ref(value: Any) -> NamedRef | None:
    """Read a denormalized {id, name} object."""
    if not isinstance(value, Mapping):
        return None
    ref = NamedRef(id=parse_int(pick(value, "id", "area_id", "district_id", "province_id")),
                   name=clean_text(value.get("name")))
    if ref.id is None and ref.name is None:
        return None
    return ref


def coerce_person(value: Any) -> PersonSnapshot | None:
    """Read an Agent/Creator/Owner snapshot."""
    if not isinstance(value, Mapping):
        return None
    return PersonSnapshot(
        person_id=parse_int(pick(value, "person_id", "personId", "user_id", "userId", "id")),
        full_name=clean_text(pick(value, "full_name", "fullName", "name")),
        phone=clean_text(value.get("phone")),
        email=clean_text(value.get("email")),
    )


def coerce_parent(value: Any) -> ParentRef | None:
    """Read the embedded Parent snapshot."""
    if not isinstance(value, Mapping):
        return None
    return ParentRef(
        property_id=parse_int(pick(value, "property_id", "propertyId", "id")),
        title=clean_text(value.get("title")),
        property_type=clean_text(pick(value, "property_type", "propertyType")),
    )


def coerce_currency(value: Any) -> Currency:
    """USD when spelled so, AF for everything else."""
    text = clean_text(value)
    if text and text.upper() in ("USD", "$", "US$"):
        return Currency.USD
    return Currency.AF


def coerce_record_kind(raw: Mapping[str, Any]) -> RecordKind:
    """Explicit record_kind wins; otherwise the legacy is_parent flag decides."""
    kind = clean_text(pick(raw, "record_kind", "recordKind"))
    if kind:
        kind = kind.lower()
        if kind == RecordKind.CONTAINER.value:
            return RecordKind.CONTAINER
        if kind == RecordKind.LISTING.value:
            return RecordKind.LISTING
    if coerce_bool(pick(raw, "is_parent", "isParent")):
        return RecordKind.CONTAINER
    return RecordKind.LISTING


def coerce_category(value: Any) -> PropertyCategory:
    """Lower-cased category, normal when unknown."""
    text = clean_text(value)
    if text:
        try:
            return PropertyCategory(text.lower())
        except ValueError:
            pass
    return PropertyCategory.NORMAL


def coerce_status(value: Any) -> PropertyStatus:
    """Lower-cased status, active when unknown."""
    text = clean_text(value)
    if text:
        try:
            return PropertyStatus(text.lower())
        except ValueError:
            pass
    return PropertyStatus.ACTIVE


def coerce_price(value: Any) -> float | None:
    """A zero or negative price means no price."""
    number = parse_number(value)
    if number is None or number <= 0:
        return None
    return number


def coerce_count(value: Any) -> int | None:
    """Non-negative integer count."""
    number = parse_int(value)
    if number is None or number < 0:
        return None
    return number


def coerce_coordinate(value: Any, limit: float) -> float | None:
    """Latitude/longitude inside its valid range."""
    number = parse_number(value)
    if number is None or abs(number) > limit:
        return None
    return number


def normalize(raw: Any) -> PropertyRecord:
    """
    Normalize a raw server record.

    Args:
        raw: Anything; non-mappings produce an empty record

    Returns:
        Canonical PropertyRecord (never raises)
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug("Ignoring non-mapping record of type %s", type(raw).__name__)
        return PropertyRecord()

    record_kind = coerce_record_kind(raw)
    parent_id = parse_int(pick(raw, *PARENT_KEYS))
    if record_kind == RecordKind.CONTAINER and parent_id is not None:
        # Containers cannot be nested
        logger.debug("Dropping parent_id=%s from container record", parent_id)
        parent_id = None

    photos = coerce_media_list(raw.get("photos"), "photos")
    if not photos:
        photos = coerce_media_list(raw.get("images"), "images")

    details = raw.get("details") if isinstance(raw.get("details"), Mapping) else {}

    def value(*keys: str) -> Any:
        found = pick(raw, *keys)
        return found if found is not None else pick(details, *keys)

    return PropertyRecord(
        property_id=parse_int(pick(raw, "property_id", "propertyId", "id")),
        record_kind=record_kind,
        parent_id=parent_id,
        property_category=coerce_category(pick(raw, "property_category", "propertyCategory")),
        property_type=clean_text(pick(raw, "property_type", "propertyType")) or "",
        status=coerce_status(raw.get("status")),
        parent=coerce_parent(pick(raw, "Parent", "parent")),
        title=clean_text(raw.get("title")),
        description=clean_text(raw.get("description")),
        purpose=clean_text(raw.get("purpose")),
        for_sale=any(coerce_bool(raw.get(key)) for key in FOR_SALE_KEYS),
        for_rent=any(coerce_bool(raw.get(key)) for key in FOR_RENT_KEYS),
        sale_price=coerce_price(pick(raw, "sale_price", "salePrice")),
        sale_currency=coerce_currency(pick(raw, "sale_currency", "saleCurrency")),
        rent_price=coerce_price(pick(raw, "rent_price", "rentPrice")),
        rent_currency=coerce_currency(pick(raw, "rent_currency", "rentCurrency")),
        area_size=parse_number(value("area_size", "areaSize")),
        area_unit=clean_text(value("area_unit", "areaUnit")) or "sqft",
        bedrooms=coerce_count(value("bedrooms")),
        bathrooms=coerce_count(value("bathrooms")),
        floor=clean_text(value("floor")),
        unit_number=clean_text(value("unit_number", "unitNumber")),
        total_floors=coerce_count(value("total_floors", "totalFloors")),
        planned_units=coerce_count(value("planned_units", "plannedUnits", "total_units", "totalUnits")),
        latitude=coerce_coordinate(raw.get("latitude"), 90),
        longitude=coerce_coordinate(raw.get("longitude"), 180),
        address=clean_text(raw.get("address")),
        location=clean_text(raw.get("location")),
        city=clean_text(raw.get("city")),
        area_id=parse_int(pick(raw, "area_id", "areaId")),
        district_id=parse_int(pick(raw, "district_id", "districtId")),
        province_id=parse_int(pick(raw, "province_id", "provinceId")),
        area_data=coerce_named_ref(raw.get("AreaData")),
        area=coerce_named_ref(raw.get("area")),
        area_name=clean_text(pick(raw, "area_name", "areaName")),
        district_data=coerce_named_ref(raw.get("DistrictData")),
        province_data=coerce_named_ref(raw.get("ProvinceData")),
        province=coerce_named_ref(raw.get("province")),
        province_name=clean_text(pick(raw, "province_name", "provinceName")),
        photos=photos,
        videos=coerce_media_list(raw.get("videos"), "videos"),
        attachments=coerce_media_list(raw.get("attachments"), "attachments"),
        amenities=coerce_label_list(raw.get("amenities"), "amenities"),
        facilities=coerce_label_list(raw.get("facilities"), "facilities"),
        agent_id=parse_int(pick(raw, "agent_id", "agentId")),
        owner_person_id=parse_int(pick(raw, "owner_person_id", "ownerPersonId")),
        created_by_user_id=parse_int(pick(raw, "created_by_user_id", "createdByUserId")),
        agent=coerce_person(pick(raw, "Agent", "agent")),
        creator=coerce_person(pick(raw, "Creator", "creator")),
        owner=coerce_person(pick(raw, "Owner", "owner", "current_owner")),
        created_at=clean_text(pick(raw, "createdAt", "created_at")),
        updated_at=clean_text(pick(raw, "updatedAt", "updated_at")),
    )


def normalize_many(raws: Any) -> list[PropertyRecord]:
    """Normalize a list of raw records; a non-list yields no records."""
    if not isinstance(raws, (list, tuple)):
        return []
    return [normalize(raw) for raw in raws]
