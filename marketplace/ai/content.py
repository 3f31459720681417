"""
Model output parsing and resolution into allowed listing values.
"""

import json
import logging
import math
import re
from dataclasses import dataclass

from marketplace.db.models.enums import (
    FALLBACK_CATEGORY,
    ROOMS_CATEGORY,
    ItemCondition,
    ListingType,
)

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 60
DEFAULT_TITLE = "Quality Item"
DEFAULT_DESCRIPTION = "A quality item in good condition."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_TITLE_PREFIX = re.compile(r"^title:?\s*", re.IGNORECASE)


@dataclass
class AIContent:
    """Raw suggestion as the model phrased it (optional fields unchecked)."""

    title: str
    description: str
    category: str | None = None
    condition: str | None = None
    listing_type: str | None = None
    sale_price: float | None = None


@dataclass
class ListingSuggestion:
    """Suggestion after clamping every field to allowed values."""

    title: str
    description: str
    category: str
    condition: str
    listing_type: str
    sale_price: float | None = None


def _lower_or_none(value) -> str | None:
    return value.lower() if isinstance(value, str) else None


def parse_model_output(text: str) -> AIContent:
    """
    Read the first JSON object in the model reply.

    Anything unparseable falls back to first line = title, rest = description
    so a chatty reply still produces a usable suggestion.
    """
    try:
        match = _JSON_OBJECT.search(text or "")
        if not match:
            raise ValueError("No JSON found in response")
        data = json.loads(match.group(0))
        if not isinstance(data, dict) or not data.get("title") or not data.get("description"):
            raise ValueError("Missing title or description in response")
        price = data.get("sale_price")
        return AIContent(
            title=str(data["title"])[:TITLE_MAX_LENGTH],
            description=str(data["description"]),
            category=_lower_or_none(data.get("category")),
            condition=_lower_or_none(data.get("condition")),
            listing_type=_lower_or_none(data.get("listing_type")),
            sale_price=float(price) if isinstance(price, (int, float)) and not isinstance(price, bool) else None,
        )
    except ValueError as exc:
        logger.warning("Unstructured model output, using line fallback: %s", exc)
        lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
        title = _TITLE_PREFIX.sub("", lines[0])[:TITLE_MAX_LENGTH] if lines else ""
        description = " ".join(lines[1:])
        return AIContent(
            title=title or DEFAULT_TITLE,
            description=description or DEFAULT_DESCRIPTION,
        )


def resolve_suggestion(content: AIContent, allowed_categories: list[str]) -> ListingSuggestion:
    """Clamp optional fields; rooms can never be sold."""
    allowed = {c.lower() for c in allowed_categories} or {FALLBACK_CATEGORY}

    category = (content.category or FALLBACK_CATEGORY).lower()
    if category not in allowed:
        category = FALLBACK_CATEGORY

    condition = (content.condition or ItemCondition.USED.value).lower()
    if condition not in {c.value for c in ItemCondition}:
        condition = ItemCondition.USED.value

    listing_type = (content.listing_type or ListingType.SELL.value).lower()
    if listing_type not in {t.value for t in ListingType}:
        listing_type = ListingType.SELL.value
    if category == ROOMS_CATEGORY and listing_type == ListingType.SELL.value:
        listing_type = ListingType.RENT.value

    sale_price = None
    if content.sale_price is not None and math.isfinite(content.sale_price):
        sale_price = round(max(0.0, content.sale_price), 2)

    return ListingSuggestion(
        title=content.title[:TITLE_MAX_LENGTH],
        description=content.description,
        category=category,
        condition=condition,
        listing_type=listing_type,
        sale_price=sale_price,
    )
