import pytest

from listings_hub.services.listing_validate import validate_listing


def _fields(**overrides):
    fields = {
        "mls_number": "1929100",
        "address": "305 Theresa St, Watertown, WI 53094",
        "price": 324900,
        "status": "Active",
        "description": None,
    }
    fields.update(overrides)
    return fields


def test_valid_listing_produces_candidate():
    result = validate_listing(_fields())
    assert result.ok
    assert result.candidate.mls_number == "1929100"
    assert result.candidate.price == 324900
    assert result.reason is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"mls_number": None}, "MLS Number is required"),
        ({"mls_number": "x" * 51}, "MLS Number must be less than 50 characters"),
        ({"mls_number": "19 29"}, "MLS Number can only contain letters, numbers, and hyphens"),
        ({"address": None}, "Address is required"),
        ({"address": "1 A"}, "Address must be at least 5 characters"),
        ({"address": "a" * 501}, "Address must be less than 500 characters"),
        ({"price": 0}, "Valid price is required"),
        ({"price": -10}, "Price must be greater than 0"),
        ({"price": 1_000_000_000}, "Price must be less than $1 billion"),
        ({"price": 1.5}, "Valid price is required"),
        ({"status": "Closed"}, "Status must be Active, Pending, or Sold"),
        ({"status": "active"}, "Status must be Active, Pending, or Sold"),
        ({"description": "d" * 2001}, "Description must be less than 2000 characters"),
    ],
)
def test_rejections_carry_readable_reason(overrides, message):
    result = validate_listing(_fields(**overrides))
    assert not result.ok
    assert result.candidate is None
    assert result.reason == message


def test_boundaries_are_accepted():
    result = validate_listing(_fields(
        mls_number="A-" + "9" * 48,
        address="12345",
        price=999_999_999,
        description="d" * 2000,
    ))
    assert result.ok


def test_first_violation_follows_field_order():
    result = validate_listing(_fields(mls_number=None, price=0, status="Gone"))
    assert not result.ok
    assert [v.field for v in result.violations] == ["mls_number", "price", "status"]
    assert result.reason == "MLS Number is required"


def test_unknown_fields_are_ignored():
    result = validate_listing(_fields(**{"Square Feet": "1800"}))
    assert result.ok
