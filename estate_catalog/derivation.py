"""
Listing derivation engine.

Pure functions computing every display value of a listing from a normalized
PropertyRecord: price, title, address, metadata row and visibility. Each has
a total fallback, so a record with every optional field missing still renders.
"""

import re
from decimal import ROUND_DOWN, Decimal

from estate_catalog.catalog import COMMERCIAL_TYPES, LAND_TYPES, META_ICONS
from estate_catalog.config import settings
from estate_catalog.hierarchy import classify, location_source
from estate_catalog.models import Currency, MetaItem, PropertyCategory, PropertyRecord
from estate_catalog.utils import capitalize_first, format_grouped, format_plain

PRICE_ON_REQUEST = "Price on Request"
LOCATION_NOT_SPECIFIED = "Location not specified"
DEFAULT_CONTAINER_LABEL = "Building"
DEFAULT_TYPE_LABEL = "Property"
MISSING_VALUE = "-"

CRORE = Decimal(10_000_000)
LAKH = Decimal(100_000)
TWO_PLACES = Decimal("0.01")

# "District 5", "Nahiya 12" and the like add nothing to a display address
ADMIN_NOISE_PATTERN = re.compile(r"(District|Nahiya)\s+\d+", re.IGNORECASE)
EDGE_PUNCTUATION_PATTERN = re.compile(r"^[\s,]+|[\s,]+$")


# =============================================================================
# PRICE
# =============================================================================

def format_price(amount: float, currency: Currency | str = Currency.AF) -> str:
    """
    Format an amount in its currency.

    USD renders as "$1,500". AF uses crore/lakh suffixes above 10,000,000 and
    100,000, truncated to two decimals ("99.99 Lac AF" for 9,999,999).
    """
    if Currency(currency) == Currency.USD:
        return f"${format_grouped(amount)}"

    value = Decimal(str(amount))
    if value >= CRORE:
        return f"{(value / CRORE).quantize(TWO_PLACES, rounding=ROUND_DOWN)} Cr AF"
    if value >= LAKH:
        return f"{(value / LAKH).quantize(TWO_PLACES, rounding=ROUND_DOWN)} Lac AF"
    return f"{format_grouped(int(amount))} AF"


def _sale_price(record: PropertyRecord) -> str | None:
    if not record.sale_price:
        return None
    return format_price(record.sale_price, record.sale_currency)


def _rent_price(record: PropertyRecord) -> str | None:
    if not record.rent_price:
        return None
    return f"{format_price(record.rent_price, record.rent_currency)}/mo"


def container_label(record: PropertyRecord) -> str:
    """Capitalized category of a container ("Tower"), "Building" if unset."""
    # normal is the normalizer's default, not a container category
    if record.property_category == PropertyCategory.NORMAL:
        return DEFAULT_CONTAINER_LABEL
    return capitalize_first(record.property_category.value) or DEFAULT_CONTAINER_LABEL


def derive_price(record: PropertyRecord) -> str:
    """Display price of a listing, or the container's category label."""
    if classify(record).is_container:
        return container_label(record)

    if record.for_sale and not record.for_rent:
        return _sale_price(record) or PRICE_ON_REQUEST
    if record.for_rent and not record.for_sale:
        return _rent_price(record) or PRICE_ON_REQUEST
    if record.for_sale and record.for_rent:
        return _sale_price(record) or _rent_price(record) or PRICE_ON_REQUEST
    return PRICE_ON_REQUEST


# =============================================================================
# TITLE
# =============================================================================

def derive_title(record: PropertyRecord) -> str:
    """User-entered title verbatim, otherwise one generated from type and position."""
    if record.title:
        return record.title

    property_type = record.property_type or DEFAULT_TYPE_LABEL
    position = classify(record)

    if position.is_child:
        if record.unit_number and record.floor:
            return f"{property_type} {record.unit_number} (Floor {record.floor})"
        if record.unit_number:
            return f"{property_type} {record.unit_number}"
        purpose = "Rent" if record.for_rent and not record.for_sale else "Sale"
        return f"{property_type} for {purpose}"

    if position.is_container:
        return container_label(record)

    if record.for_sale and record.for_rent:
        return f"{property_type} for Sale/Rent"
    if record.for_sale:
        return f"{property_type} for Sale"
    if record.for_rent:
        return f"{property_type} for Rent"
    return property_type


# =============================================================================
# ADDRESS
# =============================================================================

def strip_admin_noise(text: str) -> str:
    """Remove "District N"/"Nahiya N" tokens and the punctuation left around them."""
    cleaned = ADMIN_NOISE_PATTERN.sub("", text).strip()
    return EDGE_PUNCTUATION_PATTERN.sub("", cleaned).strip()


def _area_name(record: PropertyRecord) -> str | None:
    for ref in (record.area_data, record.area):
        if ref is not None and ref.name:
            return ref.name
    return record.area_name


def _city_name(record: PropertyRecord) -> str | None:
    for ref in (record.province_data, record.province):
        if ref is not None and ref.name:
            return ref.name
    return record.city or record.province_name


def derive_address(record: PropertyRecord, parent: PropertyRecord | None = None) -> str:
    """
    Short display address ("Karte Char, Kabul").

    Children read the location of their container when it is passed in.
    """
    source = location_source(record, parent)
    parts = []

    area_name = _area_name(source)
    raw_address = source.address or source.location
    if area_name:
        cleaned = strip_admin_noise(area_name)
        if cleaned:
            parts.append(cleaned)
    elif raw_address:
        cleaned = strip_admin_noise(raw_address)
        if cleaned:
            parts.append(cleaned.split(",")[0].strip())

    city_name = _city_name(source)
    if city_name:
        parts.append(city_name)

    return ", ".join(parts) if parts else LOCATION_NOT_SPECIFIED


# =============================================================================
# LISTING META
# =============================================================================

def derive_listing_meta(record: PropertyRecord) -> list[MetaItem]:
    """Icon/value pairs for the listing card, chosen by property type (max two)."""
    property_type = record.property_type.strip().lower()
    area_value = format_plain(record.area_size) or MISSING_VALUE

    if property_type in COMMERCIAL_TYPES:
        floor_value = record.floor or MISSING_VALUE
        unit_value = record.unit_number or MISSING_VALUE
        if record.floor or record.unit_number:
            return [
                MetaItem(icon=META_ICONS["floor"], value=floor_value),
                MetaItem(icon=META_ICONS["unit_number"], value=unit_value),
            ]
        return [
            MetaItem(icon=META_ICONS["floor"], value=area_value),
            MetaItem(icon=META_ICONS["unit_number"], value="Office" if property_type == "office" else "Shop"),
        ]

    if property_type in LAND_TYPES:
        return [
            MetaItem(icon=META_ICONS["area_size"], value=area_value),
            MetaItem(icon=META_ICONS["land"], value="Plot" if property_type == "plot" else "Land"),
        ]

    return [
        MetaItem(icon=META_ICONS["bedrooms"], value=str(record.bedrooms or 0)),
        MetaItem(icon=META_ICONS["bathrooms"], value=str(record.bathrooms or 0)),
    ]


# =============================================================================
# MEDIA & VISIBILITY
# =============================================================================

def display_photos(record: PropertyRecord) -> list[str]:
    """Photo paths in display order (raw paths, not resolved URLs)."""
    return list(record.photos)


def cover_photo(record: PropertyRecord) -> str | None:
    return record.photos[0] if record.photos else None


def is_publicly_available(record: PropertyRecord) -> bool:
    return record.for_sale or record.for_rent


def is_visible_to(record: PropertyRecord, viewer_id: int | None = None, policy: str | None = None) -> bool:
    """
    Whether a viewer may see a record.

    Listings for sale or rent are visible to everyone. Others (drafts with
    neither flag) follow the draft visibility policy: "owner" shows them to
    the creator, agent or owner; "private" shows them to nobody.
    """
    if is_publicly_available(record):
        return True

    policy = policy or settings.draft_visibility
    if policy == "private" or viewer_id is None:
        return False

    related_ids = {record.created_by_user_id, record.agent_id, record.owner_person_id}
    for person in (record.creator, record.agent, record.owner):
        if person is not None:
            related_ids.add(person.person_id)
    related_ids.discard(None)
    return viewer_id in related_ids
