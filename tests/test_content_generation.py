"""
AI content tests - model output parsing, resolution to allowed values, prompts, image helpers.
"""

import httpx
import pytest

from marketplace.ai.content import AIContent, DEFAULT_TITLE, parse_model_output, resolve_suggestion
from marketplace.ai.images import add_transform_params, make_thumbnail, resize_to_width
from marketplace.ai.prompts import build_listing_prompt, language_instruction
from marketplace.core.errors import NotFoundError, TransportError, ValidationError
from marketplace.services.content_generation import ContentGenerationService, fetch_image

CATEGORIES = ["electronics", "tools", "rooms", "other"]


def test_parse_json_inside_chatty_reply():
    text = 'Sure! Here it is:\n```json\n{"title": "Drill Set", "description": "Cordless", "category": "Tools", "sale_price": 45}\n```'
    content = parse_model_output(text)
    assert content.title == "Drill Set"
    assert content.category == "tools"
    assert content.sale_price == 45.0


def test_parse_truncates_title():
    content = parse_model_output('{"title": "%s", "description": "d"}' % ("x" * 80))
    assert len(content.title) == 60


def test_parse_falls_back_to_lines():
    content = parse_model_output("Title: Vintage lamp\nBrass lamp, works fine.\nSmall dent.")
    assert content.title == "Vintage lamp"
    assert content.description == "Brass lamp, works fine. Small dent."
    assert content.category is None


def test_parse_empty_uses_defaults():
    assert parse_model_output("").title == DEFAULT_TITLE


def test_resolve_clamps_unknown_values():
    suggestion = resolve_suggestion(
        AIContent(title="t", description="d", category="boats", condition="mint", listing_type="swap", sale_price=-3),
        CATEGORIES,
    )
    assert (suggestion.category, suggestion.condition, suggestion.listing_type) == ("other", "used", "sell")
    assert suggestion.sale_price == 0.0


def test_resolve_forces_rent_for_rooms():
    suggestion = resolve_suggestion(
        AIContent(title="Room", description="d", category="rooms", listing_type="sell", sale_price=12.346),
        CATEGORIES,
    )
    assert suggestion.listing_type == "rent"
    assert suggestion.sale_price == 12.35


def test_prompt_language_and_categories():
    prompt = build_listing_prompt("de", CATEGORIES)
    assert prompt.startswith("Bitte antworten Sie auf Deutsch.")
    assert "one of: electronics, tools, rooms, other" in prompt
    assert language_instruction("xx") == "Please respond in English."


def test_add_transform_params_replaces_existing():
    url = add_transform_params("https://cdn.example.com/a.jpg?width=50&x=1", 1200, 85)
    assert url == "https://cdn.example.com/a.jpg?x=1&width=1200&quality=85"


def test_resize_and_thumbnail(png):
    data, mime = resize_to_width(png(2400, 1200), 1200)
    assert mime == "image/jpeg"
    _, width, height = make_thumbnail(png(2400, 1200), 300)
    assert (width, height) == (300, 150)


def test_resize_rejects_non_image():
    with pytest.raises(ValidationError):
        resize_to_width(b"not an image", 1200)


@pytest.mark.asyncio
async def test_fetch_image_foreign_url_uses_transform_params(storage, png):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, content=png(), headers={"content-type": "image/png"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        obj = await fetch_image(storage, "https://cdn.example.com/photo.png", client)
    assert obj.content_type == "image/png"
    assert seen[0].params["width"] == "1200"
    assert seen[0].params["quality"] == "85"


@pytest.mark.asyncio
async def test_fetch_image_http_error(storage):
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404))) as client:
        with pytest.raises(TransportError):
            await fetch_image(storage, "https://cdn.example.com/missing.png", client)


@pytest.mark.asyncio
async def test_fetch_own_missing_image_is_validation_error(storage):
    url = storage.get_public_url("item-images", "nope/0.png")
    with pytest.raises(ValidationError):
        await fetch_image(storage, url)


@pytest.mark.asyncio
async def test_generate_for_item_persists_suggestion(published_item, session_factory, storage, generator):
    async with session_factory() as s:
        service = ContentGenerationService(s, storage, generator)
        suggestion = await service.generate_for_item(published_item.id, published_item.images[0].image_url, "fr")
        await s.commit()
        assert generator.calls[-1]["language"] == "fr"
        stored = await service.item_suggestion(published_item.id)
    assert stored == suggestion
    assert stored.listing_type == "sell"


@pytest.mark.asyncio
async def test_generate_requires_url_and_item(session_factory, storage, generator):
    async with session_factory() as s:
        service = ContentGenerationService(s, storage, generator)
        with pytest.raises(ValidationError):
            await service.generate("")
        with pytest.raises(NotFoundError):
            await service.generate_for_item("missing", "https://cdn.example.com/a.png")
