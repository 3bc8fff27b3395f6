"""
Static lookup tables.

Includes:
- Amenity labels and their icons
- Property types and the unit fields a child unit of that type carries
- Which unit types each container category may hold
- Icons used by the listing metadata row
"""

from pydantic import BaseModel

from estate_catalog.models import PropertyCategory


class AmenityInfo(BaseModel):
    """Display metadata for an amenity label."""

    icon: str
    provider: str = "ion"


class PropertyTypeInfo(BaseModel):
    """Display metadata for a property type."""

    label: str
    value: str
    icon: str
    active_icon: str
    unit_fields: tuple[str, ...] = ()


# =============================================================================
# AMENITIES
# =============================================================================

AMENITIES: dict[str, AmenityInfo] = {
    "Parking": AmenityInfo(icon="car-outline"),
    "Security Guard": AmenityInfo(icon="shield-checkmark-outline"),
    "Central Heating System": AmenityInfo(icon="thermometer-outline"),
    "Cupboards": AmenityInfo(icon="closet-outline", provider="mci"),
    "Sunny": AmenityInfo(icon="sunny-outline"),
    "Basement": AmenityInfo(icon="stairs-down", provider="mci"),
    "AC": AmenityInfo(icon="air-conditioner", provider="mci"),
    "Lift": AmenityInfo(icon="elevator-passenger-outline", provider="mci"),
    "Furnished": AmenityInfo(icon="chair-rolling", provider="mci"),
    "Semi-Furnished": AmenityInfo(icon="chair-school", provider="mci"),
    "Solar Facility": AmenityInfo(icon="solar-power-variant-outline", provider="mci"),
    "Generator Facility": AmenityInfo(icon="engine-outline", provider="mci"),
}

DEFAULT_AMENITY = AmenityInfo(icon="checkmark-circle-outline")


# =============================================================================
# PROPERTY TYPES
# =============================================================================

UNIT_FIELDS = ("floor", "unit_number")

PROPERTY_TYPES: dict[str, PropertyTypeInfo] = {
    "house": PropertyTypeInfo(
        label="House", value="house",
        icon="home-variant-outline", active_icon="home-variant",
    ),
    "apartment": PropertyTypeInfo(
        label="Apartment", value="apartment",
        icon="office-building-marker-outline", active_icon="office-building-marker",
        unit_fields=UNIT_FIELDS,
    ),
    "shop": PropertyTypeInfo(
        label="Shop", value="shop",
        icon="storefront-outline", active_icon="storefront",
        unit_fields=UNIT_FIELDS,
    ),
    "office": PropertyTypeInfo(
        label="Office", value="office",
        icon="briefcase-variant-outline", active_icon="briefcase-variant",
        unit_fields=UNIT_FIELDS,
    ),
    "land": PropertyTypeInfo(
        label="Land/Plot", value="land",
        icon="map-outline", active_icon="map",
    ),
    "plot": PropertyTypeInfo(
        label="Land/Plot", value="plot",
        icon="map-outline", active_icon="map",
    ),
}

# Types that carry bedroom/bathroom counts when listed on their own
ROOM_TYPES = {"house", "apartment"}
COMMERCIAL_TYPES = {"shop", "office"}
LAND_TYPES = {"land", "plot"}


# =============================================================================
# HIERARCHY RULES
# =============================================================================

CONTAINER_CATEGORIES = {
    PropertyCategory.TOWER,
    PropertyCategory.APARTMENT,
    PropertyCategory.MARKET,
    PropertyCategory.SHARAK,
}

CATEGORY_CHILD_TYPES: dict[PropertyCategory, tuple[str, ...]] = {
    PropertyCategory.TOWER: ("apartment", "shop", "office"),
    PropertyCategory.APARTMENT: ("apartment", "shop", "office"),
    PropertyCategory.MARKET: ("shop", "office"),
    PropertyCategory.SHARAK: ("apartment", "shop", "office", "land", "plot", "house"),
    PropertyCategory.NORMAL: ("house", "apartment", "shop", "office", "land", "plot"),
}


# =============================================================================
# LISTING META ICONS
# =============================================================================

META_ICONS = {
    "bedrooms": "bed-outline",
    "bathrooms": "shower",
    "floor": "layers-outline",
    "unit_number": "pricetag-outline",
    "area_size": "scan-outline",
    "land": "map-outline",
}


def amenity_info(label: str) -> AmenityInfo:
    """Icon metadata for an amenity, with a generic fallback."""
    return AMENITIES.get(label, DEFAULT_AMENITY)


def property_type_info(property_type: str | None) -> PropertyTypeInfo | None:
    """Catalog entry for a property type (case-insensitive)."""
    if not property_type:
        return None
    return PROPERTY_TYPES.get(property_type.strip().lower())
