"""
Item details form tests - suggestion merge, rooms rule, validation, price mapping.
"""

import pytest

from marketplace.ai.content import ListingSuggestion
from marketplace.core.errors import ValidationError
from marketplace.schemas.wizard import ItemFormData
from marketplace.services.item_form import ItemDetailsForm, format_price, parse_price

CATEGORIES = ["tools", "rooms", "other"]


def _suggestion(**overrides) -> ListingSuggestion:
    values = dict(
        title="Drill Set",
        description="Cordless drill",
        category="tools",
        condition="used",
        listing_type="sell",
        sale_price=45,
    )
    values.update(overrides)
    return ListingSuggestion(**values)


def test_initialize_renders_price_with_two_decimals():
    form = ItemDetailsForm.initialize(_suggestion())
    assert form.data.title == "Drill Set"
    assert form.data.sale_price == "45.00"
    assert form.touched == set()


def test_initialize_without_suggestion_is_empty():
    assert ItemDetailsForm.initialize().data == ItemFormData()


def test_apply_suggestion_fills_only_untouched_fields():
    form = ItemDetailsForm.initialize()
    form.set_field("title", "Cordless Drill Set")
    applied = form.apply_suggestion(_suggestion())
    assert form.data.title == "Cordless Drill Set"
    assert form.data.category == "tools"
    assert "title" not in applied
    assert "category" in applied


def test_choosing_rooms_switches_sell_to_rent():
    form = ItemDetailsForm.initialize(_suggestion())
    form.set_field("category", "rooms")
    assert form.data.listing_type == "rent"
    assert form.listing_type_options() == ["rent", "both"]


def test_rooms_suggestion_never_sells():
    form = ItemDetailsForm.initialize(_suggestion(category="rooms", listing_type="sell"))
    assert form.data.listing_type == "rent"


def test_validate_reports_missing_fields():
    result = ItemDetailsForm(ItemFormData(title="  ", category="tools")).validate(CATEGORIES)
    assert not result.valid
    assert result.missing_fields == ["title", "condition", "listing_type"]


def test_validate_rejects_rooms_for_sale_and_unknown_category():
    form = ItemDetailsForm(ItemFormData(title="Room", category="rooms", condition="used", listing_type="sell"))
    assert "Rooms can only be rented, not sold." in form.validate(CATEGORIES).errors

    form = ItemDetailsForm(ItemFormData(title="Boat", category="boats", condition="used", listing_type="sell"))
    assert form.validate(CATEGORIES).errors == ["Invalid category: boats"]


def test_require_valid_raises_with_missing_fields():
    with pytest.raises(ValidationError) as exc_info:
        ItemDetailsForm().require_valid(CATEGORIES)
    assert exc_info.value.missing_fields == ["title", "category", "condition", "listing_type"]


def test_to_item_values_maps_prices():
    form = ItemDetailsForm(
        ItemFormData(
            title=" Drill ",
            category="tools",
            condition="used",
            listing_type="both",
            sale_price="12,5",
            rental_price="abc",
        )
    )
    values = form.to_item_values()
    assert values["title"] == "Drill"
    assert values["sale_price"] == 12.5
    assert values["rental_price"] is None
    assert values["rental_period"] is None


@pytest.mark.parametrize("raw", ["", "   ", "-1", "nan", "inf", "ten"])
def test_parse_price_invalid_is_none(raw):
    assert parse_price(raw) is None


def test_format_price():
    assert format_price(45) == "45.00"
    assert format_price(None) == ""


def test_from_submission_marks_filled_fields_touched():
    form = ItemDetailsForm.from_submission(ItemFormData(title="Mine", category="tools"))
    assert form.touched == {"title", "category"}
    form.apply_suggestion(_suggestion())
    assert form.data.title == "Mine"
    assert form.data.condition == "used"
