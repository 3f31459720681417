"""Prompt text for listing generation from an item photo."""

LANGUAGE_INSTRUCTIONS = {
    "en": "Please respond in English.",
    "es": "Por favor responde en español.",
    "fr": "Veuillez répondre en français.",
    "de": "Bitte antworten Sie auf Deutsch.",
    "it": "Si prega di rispondere in italiano.",
    "pt": "Por favor responda em português.",
    "nl": "Gelieve te antwoorden in het Nederlands.",
    "ru": "Пожалуйста, отвечайте на русском языке.",
    "ja": "日本語でお答えください。",
    "ko": "한국어로 답변해 주세요.",
    "zh": "请用中文回答。",
    "ar": "يرجى الرد باللغة العربية.",
    "hi": "कृपया हिंदी में उत्तर दें।",
}

LISTING_PROMPT = """{language_instruction}

Analyze this image of an item that someone wants to list for sale or rent. Generate:

1. A concise, appealing title (max 60 characters)
2. A detailed description (100-200 words) that includes:
   - What the item is
   - Its condition and notable features
   - Potential uses or benefits
   - Any visible details that make it appealing

Be descriptive but honest. Focus on what you can actually see in the image.

Format your response as JSON:
{{
  "title": "your generated title",
  "description": "your generated description",
  "category": "one of: {categories}",
  "condition": "one of: new, used, broken",
  "listing_type": "sell (default), rent, or both. Use rent for rooms.",
  "sale_price": number // suggested sale price in EUR, non-negative
}}"""


def language_instruction(language: str) -> str:
    """Instruction for the user's language; unknown codes fall back to English."""
    return LANGUAGE_INSTRUCTIONS.get((language or "en").lower(), LANGUAGE_INSTRUCTIONS["en"])


def build_listing_prompt(language: str, categories: list[str]) -> str:
    return LISTING_PROMPT.format(
        language_instruction=language_instruction(language),
        categories=", ".join(categories),
    )
