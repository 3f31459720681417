"""
Content generator - turns one item photo into a listing suggestion.
"""

import logging

from marketplace.ai.content import AIContent, parse_model_output
from marketplace.ai.gemini_client import GeminiClient
from marketplace.ai.prompts import build_listing_prompt

logger = logging.getLogger(__name__)


class ContentGenerator:
    """Interface used by the pipeline; tests substitute a scripted generator."""

    async def generate(
        self, image: bytes, mime_type: str, language: str, categories: list[str]
    ) -> AIContent:
        raise NotImplementedError


class GeminiContentGenerator(ContentGenerator):
    def __init__(self, client: GeminiClient | None = None):
        self.client = client or GeminiClient()

    async def generate(
        self, image: bytes, mime_type: str, language: str, categories: list[str]
    ) -> AIContent:
        prompt = build_listing_prompt(language, categories)
        text = await self.client.generate(prompt, image, mime_type)
        logger.debug("Raw model response: %s", text)
        return parse_model_output(text)


_generator: ContentGenerator | None = None


def get_content_generator() -> ContentGenerator:
    """FastAPI dependency; tests override it with a fake."""
    global _generator
    if _generator is None:
        _generator = GeminiContentGenerator()
    return _generator
