"""
Item details form - user-edited listing attributes merged with AI suggestions.
Challenge: Suggestions pre-fill the form but never overwrite what the user typed.
"""

import math
from dataclasses import dataclass, field

from marketplace.ai.content import ListingSuggestion
from marketplace.core.errors import ValidationError
from marketplace.db.models.enums import ROOMS_CATEGORY, ItemCondition, ListingType, RentalPeriod
from marketplace.schemas.wizard import ItemFormData

REQUIRED_FIELDS = ("title", "category", "condition", "listing_type")
FORM_FIELDS = tuple(ItemFormData.model_fields)


@dataclass
class FormValidation:
    valid: bool
    missing_fields: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_price(value: str | None) -> float | None:
    """'12.5' -> 12.5; blank, non-numeric, negative or non-finite -> None."""
    if value is None or not str(value).strip():
        return None
    try:
        price = float(str(value).strip().replace(",", "."))
    except ValueError:
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return round(price, 2)


def format_price(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else ""


class ItemDetailsForm:
    """Form state plus the set of fields the user has touched."""

    def __init__(self, data: ItemFormData | None = None):
        self.data = data or ItemFormData()
        self.touched: set[str] = set()
        self.ai_fields: set[str] = set()

    @classmethod
    def initialize(cls, suggestion: ListingSuggestion | None = None) -> "ItemDetailsForm":
        form = cls()
        if suggestion is not None:
            form.apply_suggestion(suggestion)
        return form

    @classmethod
    def from_submission(cls, data: ItemFormData) -> "ItemDetailsForm":
        """A submitted form: every non-empty field counts as the user's choice."""
        form = cls(data.model_copy())
        form.touched = {name for name in FORM_FIELDS if getattr(data, name)}
        return form

    def set_field(self, name: str, value: str) -> None:
        if name not in FORM_FIELDS:
            raise ValidationError(f"Unknown field: {name}")
        setattr(self.data, name, value or "")
        self.touched.add(name)
        self.ai_fields.discard(name)
        if (
            name == "category"
            and value == ROOMS_CATEGORY
            and self.data.listing_type == ListingType.SELL.value
        ):
            self.data.listing_type = ListingType.RENT.value
            self.ai_fields.discard("listing_type")

    def apply_suggestion(self, suggestion: ListingSuggestion) -> list[str]:
        """Fill untouched fields from the suggestion. Returns the fields changed."""
        values = {
            "title": suggestion.title,
            "description": suggestion.description,
            "category": suggestion.category,
            "condition": suggestion.condition,
            "listing_type": suggestion.listing_type,
            "sale_price": format_price(suggestion.sale_price),
        }
        if values["category"] == ROOMS_CATEGORY and values["listing_type"] == ListingType.SELL.value:
            values["listing_type"] = ListingType.RENT.value
        applied = []
        for name, value in values.items():
            if name in self.touched or not value:
                continue
            setattr(self.data, name, value)
            self.ai_fields.add(name)
            applied.append(name)
        return applied

    def listing_type_options(self) -> list[str]:
        """Choices offered in the listing type dropdown; rooms can only be rented."""
        options = [t.value for t in ListingType]
        if self.data.category == ROOMS_CATEGORY:
            options.remove(ListingType.SELL.value)
        return options

    def validate(self, allowed_categories: list[str] | None = None) -> FormValidation:
        missing = [name for name in REQUIRED_FIELDS if not getattr(self.data, name).strip()]
        errors = []
        if self.data.condition and self.data.condition not in {c.value for c in ItemCondition}:
            errors.append(f"Invalid condition: {self.data.condition}")
        if self.data.listing_type and self.data.listing_type not in {t.value for t in ListingType}:
            errors.append(f"Invalid listing type: {self.data.listing_type}")
        if (
            self.data.category == ROOMS_CATEGORY
            and self.data.listing_type == ListingType.SELL.value
        ):
            errors.append("Rooms can only be rented, not sold.")
        if allowed_categories and self.data.category and self.data.category not in allowed_categories:
            errors.append(f"Invalid category: {self.data.category}")
        if self.data.rental_period and self.data.rental_period not in {p.value for p in RentalPeriod}:
            errors.append(f"Invalid rental period: {self.data.rental_period}")
        return FormValidation(valid=not missing and not errors, missing_fields=missing, errors=errors)

    def require_valid(self, allowed_categories: list[str] | None = None) -> None:
        result = self.validate(allowed_categories)
        if result.missing_fields:
            raise ValidationError(
                "Please fill in all required fields: " + ", ".join(result.missing_fields),
                missing_fields=result.missing_fields,
            )
        if result.errors:
            raise ValidationError(" ".join(result.errors))

    def to_item_values(self) -> dict:
        """Typed column values for the items table."""
        return {
            "title": self.data.title.strip(),
            "description": self.data.description,
            "category": self.data.category,
            "condition": self.data.condition,
            "listing_type": self.data.listing_type,
            "sale_price": parse_price(self.data.sale_price),
            "rental_price": parse_price(self.data.rental_price),
            "rental_period": self.data.rental_period or None,
        }
