"""
Gemini REST client for image + text prompts.
Uses httpx directly; the model reply is returned as raw text for parsing.
"""

import base64
import logging
from typing import Any

import httpx

from marketplace.config import get_settings
from marketplace.core.errors import TransportError

logger = logging.getLogger(__name__)


class GeminiClient:
    """Minimal client for the generateContent endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.gemini_timeout_seconds
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        image: bytes,
        mime_type: str,
        temperature: float = 0.7,
        max_output_tokens: int = 1000,
    ) -> str:
        """
        Send one prompt with an inline image and return the first candidate's text.

        Raises TransportError when the key is missing, the request fails, or the
        model returns no candidates.
        """
        if not self.api_key:
            raise TransportError("Google Gemini API key not configured")

        payload: dict[str, Any] = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                    ]
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        logger.debug("Calling Gemini model %s", self.model)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise TransportError(f"Gemini request failed: {exc}") from exc

        if response.status_code != 200:
            logger.error("Gemini API error %s: %s", response.status_code, response.text)
            raise TransportError(
                f"Gemini API error: {response.status_code} {response.reason_phrase}"
            )

        result = response.json()
        candidates = result.get("candidates") or []
        if not candidates:
            raise TransportError("No content generated by Gemini API")
        try:
            return candidates[0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise TransportError("Unexpected Gemini response shape") from exc
