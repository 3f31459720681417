"""
BDD step definitions for the item details form (pytest-bdd).
"""

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from marketplace.ai.content import ListingSuggestion
from marketplace.services.item_form import ItemDetailsForm

scenarios("../features/item_details.feature")

CATEGORIES = ["tools", "rooms", "other"]


@pytest.fixture
def form_holder():
    return {}


@given("an empty item details form")
def empty_form(form_holder):
    form_holder["form"] = ItemDetailsForm.initialize()


@when(parsers.parse('the AI suggests "{title}" in "{category}" for sale at "{price:g}"'))
def ai_suggests(form_holder, title, category, price):
    form_holder["form"].apply_suggestion(
        ListingSuggestion(
            title=title,
            description="",
            category=category,
            condition="used",
            listing_type="sell",
            sale_price=price,
        )
    )


@when(parsers.parse('I set "{name}" to "{value}"'))
def set_field(form_holder, name, value):
    form_holder["form"].set_field(name, value)


@then(parsers.parse('the "{name}" field should be "{value}"'))
def field_equals(form_holder, name, value):
    assert getattr(form_holder["form"].data, name) == value


@then("the form should be valid")
def form_valid(form_holder):
    assert form_holder["form"].validate(CATEGORIES).valid


@then("selling should not be offered")
def no_sell_option(form_holder):
    assert "sell" not in form_holder["form"].listing_type_options()


@then(parsers.parse('the form should be missing "{fields}"'))
def form_missing(form_holder, fields):
    result = form_holder["form"].validate(CATEGORIES)
    assert result.missing_fields == fields.split(", ")
