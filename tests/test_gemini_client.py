"""
Gemini client tests - request shape and error mapping over httpx.MockTransport.
"""

import json

import httpx
import pytest

from marketplace.ai.gemini_client import GeminiClient
from marketplace.ai.generator import GeminiContentGenerator
from marketplace.core.errors import TransportError


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.mark.asyncio
async def test_generate_sends_prompt_and_inline_image():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = request.url
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("hello"))

    client = GeminiClient(api_key="k", model="m", base_url="https://gemini.test/v1beta", transport=httpx.MockTransport(handler))
    assert await client.generate("prompt", b"\x89PNG", "image/png") == "hello"
    assert captured["url"].path == "/v1beta/models/m:generateContent"
    assert captured["url"].params["key"] == "k"
    parts = captured["body"]["contents"][0]["parts"]
    assert parts[0] == {"text": "prompt"}
    assert parts[1]["inline_data"] == {"mime_type": "image/png", "data": "iVBORw=="}
    assert captured["body"]["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 1000}


@pytest.mark.asyncio
async def test_missing_key_is_transport_error():
    with pytest.raises(TransportError, match="API key not configured"):
        await GeminiClient(api_key="").generate("p", b"x", "image/jpeg")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"candidates": []}),
        httpx.Response(200, json={"candidates": [{"content": {}}]}),
    ],
)
async def test_bad_responses_are_transport_errors(response):
    client = GeminiClient(api_key="k", transport=httpx.MockTransport(lambda r: response))
    with pytest.raises(TransportError):
        await client.generate("p", b"x", "image/jpeg")


@pytest.mark.asyncio
async def test_network_error_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    client = GeminiClient(api_key="k", transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError):
        await client.generate("p", b"x", "image/jpeg")


@pytest.mark.asyncio
async def test_generator_parses_model_reply():
    reply = '{"title": "Lamp", "description": "Brass lamp", "category": "furniture", "condition": "used"}'
    client = GeminiClient(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=_reply(reply))))
    content = await GeminiContentGenerator(client).generate(b"x", "image/jpeg", "en", ["furniture"])
    assert content.title == "Lamp"
    assert content.category == "furniture"
