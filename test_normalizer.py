"""
Tests for the property record normalizer.

Run with: pytest test_normalizer.py -v
"""

import json

import pytest

from estate_catalog.models import Currency, PropertyCategory, PropertyRecord, PropertyStatus, RecordKind
from estate_catalog.normalizer import (
    coerce_label_list,
    coerce_media_list,
    normalize,
    normalize_many,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def snake_record():
    """Record as returned by the listing endpoints."""
    return {
        "property_id": 42,
        "record_kind": "listing",
        "property_category": "normal",
        "property_type": "house",
        "is_available_for_sale": 1,
        "is_available_for_rent": 0,
        "sale_price": "2500000",
        "sale_currency": "AF",
        "area_size": "1,200",
        "bedrooms": "4",
        "bathrooms": 2,
        "photos": '["uploads/a.jpg", {"url": "uploads/b.jpg"}, ""]',
        "amenities": '["Parking", "Lift"]',
        "AreaData": {"id": 7, "name": "Karte Char District 3"},
        "ProvinceData": {"id": 1, "name": "Kabul"},
        "Agent": {"person_id": 9, "full_name": "Ahmad Zia"},
    }


@pytest.fixture
def camel_record():
    """Record as built by the mobile client."""
    return {
        "propertyId": 43,
        "recordKind": "listing",
        "propertyType": "apartment",
        "forRent": True,
        "rentPrice": 450,
        "rentCurrency": "USD",
        "parentId": 10,
        "unitNumber": "4B",
        "floor": 2,
    }


# =============================================================================
# TESTS: total behaviour
# =============================================================================

class TestNormalizeNeverThrows:
    """normalize() returns a record for any input."""

    @pytest.mark.parametrize("raw", [None, 0, "text", [], ["a"], 3.5, object()])
    def test_non_mapping_gives_empty_record(self, raw):
        """Non-mappings become an empty record."""
        record = normalize(raw)
        assert isinstance(record, PropertyRecord)
        assert record.property_id is None

    def test_empty_mapping(self):
        """Empty dict gets every default."""
        record = normalize({})
        assert record.record_kind == RecordKind.LISTING
        assert record.property_category == PropertyCategory.NORMAL
        assert record.for_sale is False
        assert record.for_rent is False
        assert record.status == PropertyStatus.ACTIVE

    @pytest.mark.parametrize("field", ["photos", "videos", "attachments", "amenities", "facilities"])
    @pytest.mark.parametrize("value", [None, "", "not json", "{bad", 12, {"a": 1}, "null", "{}"])
    def test_collections_are_always_lists(self, field, value):
        """Collections never come back as None."""
        record = normalize({field: value})
        assert isinstance(getattr(record, field), list)

    def test_garbage_values_degrade(self):
        """Wrong types on scalar fields fall back to None."""
        record = normalize({
            "property_id": "abc",
            "sale_price": {"x": 1},
            "bedrooms": [],
            "latitude": "north",
            "AreaData": "Karte Char",
            "Agent": 5,
            "details": "none",
        })
        assert record.property_id is None
        assert record.sale_price is None
        assert record.bedrooms is None
        assert record.latitude is None
        assert record.area_data is None
        assert record.agent is None


# =============================================================================
# TESTS: field spellings
# =============================================================================

class TestFieldSpellings:
    """snake_case and camelCase both map onto the canonical record."""

    def test_snake_case(self, snake_record):
        """Listing endpoint shape."""
        record = normalize(snake_record)
        assert record.property_id == 42
        assert record.property_type == "house"
        assert record.for_sale is True
        assert record.for_rent is False
        assert record.sale_price == 2500000
        assert record.area_size == 1200
        assert record.bedrooms == 4
        assert record.bathrooms == 2
        assert record.area_data.name == "Karte Char District 3"
        assert record.province_data.name == "Kabul"
        assert record.agent.full_name == "Ahmad Zia"

    def test_camel_case(self, camel_record):
        """Mobile client shape."""
        record = normalize(camel_record)
        assert record.property_id == 43
        assert record.property_type == "apartment"
        assert record.for_rent is True
        assert record.rent_price == 450
        assert record.rent_currency == Currency.USD
        assert record.parent_id == 10
        assert record.unit_number == "4B"
        assert record.floor == "2"

    @pytest.mark.parametrize("key", ["parent_id", "parentId", "parent_property_id", "parentPropertyId", "apartment_id"])
    def test_parent_spellings(self, key):
        """Every legacy parent key is understood."""
        assert normalize({key: "15"}).parent_id == 15

    def test_details_block(self):
        """Unit details nested under "details" are read."""
        record = normalize({"details": {"floor": "3", "unit_number": "12", "total_floors": 9}})
        assert record.floor == "3"
        assert record.unit_number == "12"
        assert record.total_floors == 9

    def test_top_level_beats_details(self):
        """Top-level value wins over the details block."""
        record = normalize({"floor": "1", "details": {"floor": "3"}})
        assert record.floor == "1"

    def test_unknown_currency_is_af(self):
        """Anything but USD is afghani."""
        assert normalize({"sale_currency": "AFN"}).sale_currency == Currency.AF
        assert normalize({"sale_currency": "usd"}).sale_currency == Currency.USD

    def test_zero_price_is_no_price(self):
        """Zero and negative prices are treated as missing."""
        assert normalize({"sale_price": 0}).sale_price is None
        assert normalize({"rent_price": "-5"}).rent_price is None

    def test_out_of_range_coordinates_dropped(self):
        """Latitude beyond 90 is ignored."""
        record = normalize({"latitude": 123, "longitude": "69.17"})
        assert record.latitude is None
        assert record.longitude == pytest.approx(69.17)


# =============================================================================
# TESTS: availability flags
# =============================================================================

class TestAvailabilityFlags:
    """Four spellings of each availability flag coalesce into one boolean."""

    @pytest.mark.parametrize("key", ["forSale", "is_available_for_sale", "for_sale", "isAvailableForSale"])
    def test_sale_spellings(self, key):
        record = normalize({key: True})
        assert record.for_sale is True
        assert record.for_rent is False

    @pytest.mark.parametrize("key", ["forRent", "is_available_for_rent", "for_rent", "isAvailableForRent"])
    def test_rent_spellings(self, key):
        record = normalize({key: True})
        assert record.for_rent is True
        assert record.for_sale is False

    def test_truthy_in_any_spelling_wins(self):
        """One true spelling is enough even if another says false."""
        record = normalize({"forSale": False, "is_available_for_sale": 1, "for_sale": "false"})
        assert record.for_sale is True

    @pytest.mark.parametrize("value,expected", [
        (1, True), (0, False), ("1", True), ("0", False),
        ("true", True), ("false", False), ("yes", True), ("", False), (None, False),
    ])
    def test_value_representations(self, value, expected):
        assert normalize({"for_rent": value}).for_rent is expected

    def test_both_flags_independent(self):
        record = normalize({"forSale": True, "forRent": True})
        assert record.for_sale and record.for_rent


# =============================================================================
# TESTS: media and labels
# =============================================================================

class TestMediaCoercion:
    """coerce_media_list() accepts lists, JSON strings and plain strings."""

    def test_real_list(self):
        assert coerce_media_list(["a.jpg", "b.jpg"]) == ["a.jpg", "b.jpg"]

    def test_json_string(self):
        assert coerce_media_list('["a.jpg", "b.jpg"]') == ["a.jpg", "b.jpg"]

    def test_unparseable_string_is_single_entry(self):
        """A plain path is kept as the only entry."""
        assert coerce_media_list("uploads/a.jpg") == ["uploads/a.jpg"]

    def test_non_array_json_is_empty(self):
        """Valid JSON that is not an array gives nothing."""
        assert coerce_media_list('{"url": "a.jpg"}') == []
        assert coerce_media_list("12") == []
        assert coerce_media_list("null") == []

    def test_objects_contribute_url(self):
        assert coerce_media_list([{"url": "a.jpg"}, {"name": "x"}, "b.jpg"]) == ["a.jpg", "b.jpg"]

    def test_falsy_entries_dropped(self):
        assert coerce_media_list(["", None, 0, "a.jpg", {"url": ""}]) == ["a.jpg"]

    def test_photos_fall_back_to_images(self):
        """Legacy "images" is used when "photos" is empty."""
        record = normalize({"photos": [], "images": json.dumps(["x.jpg"])})
        assert record.photos == ["x.jpg"]

    def test_snake_record_photos(self, snake_record):
        assert normalize(snake_record).photos == ["uploads/a.jpg", "uploads/b.jpg"]


class TestLabelCoercion:
    """coerce_label_list() for amenities and facilities."""

    def test_json_string(self):
        assert coerce_label_list('["Parking", "Lift"]') == ["Parking", "Lift"]

    def test_malformed_json_is_empty(self):
        """Unlike media, a bad string does not become a label."""
        assert coerce_label_list("Parking, Lift") == []

    def test_duplicates_removed_in_order(self):
        assert coerce_label_list(["Lift", "Parking", "Lift"]) == ["Lift", "Parking"]

    def test_object_labels(self):
        assert coerce_label_list([{"label": "AC"}, {"name": "Sunny"}, {}]) == ["AC", "Sunny"]


# =============================================================================
# TESTS: hierarchy fields
# =============================================================================

class TestHierarchyFields:
    """Record kind, category and the container invariant."""

    def test_is_parent_implies_container(self):
        """Legacy is_parent flag marks a container."""
        assert normalize({"is_parent": 1}).record_kind == RecordKind.CONTAINER

    def test_explicit_kind_wins(self):
        assert normalize({"record_kind": "listing", "is_parent": True}).record_kind == RecordKind.LISTING

    def test_container_drops_parent(self):
        """Containers cannot be nested."""
        record = normalize({"record_kind": "container", "parent_id": 3})
        assert record.parent_id is None

    def test_category_case_insensitive(self):
        assert normalize({"property_category": "Tower"}).property_category == PropertyCategory.TOWER

    def test_unknown_category_is_normal(self):
        assert normalize({"property_category": "castle"}).property_category == PropertyCategory.NORMAL

    def test_total_units_alias(self):
        assert normalize({"record_kind": "container", "total_units": 40}).planned_units == 40


class TestNormalizeMany:
    """Batch normalization."""

    def test_list(self):
        records = normalize_many([{"property_id": 1}, "junk", {"property_id": 2}])
        assert [r.property_id for r in records] == [1, None, 2]

    def test_non_list(self):
        assert normalize_many({"property_id": 1}) == []
