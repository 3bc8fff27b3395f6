"""Property hierarchy and listing derivation engine for a real-estate catalog."""

from estate_catalog.derivation import (
    derive_address,
    derive_listing_meta,
    derive_price,
    derive_title,
    format_price,
    is_publicly_available,
    is_visible_to,
)
from estate_catalog.favorites import FavoriteSet
from estate_catalog.hierarchy import Classification, classify, display_amenities
from estate_catalog.models import PropertyRecord
from estate_catalog.normalizer import normalize
from estate_catalog.wizard import PropertyWizard, Step

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "FavoriteSet",
    "PropertyRecord",
    "PropertyWizard",
    "Step",
    "classify",
    "derive_address",
    "derive_listing_meta",
    "derive_price",
    "derive_title",
    "display_amenities",
    "format_price",
    "is_publicly_available",
    "is_visible_to",
    "normalize",
]
