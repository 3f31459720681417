"""Prometheus metrics for the listing pipeline (exposed at /metrics)."""

from prometheus_client import Counter, Histogram

AI_GENERATIONS = Counter(
    "marketplace_ai_generations_total",
    "AI content generation attempts by outcome",
    ["outcome"],
)

AI_GENERATION_SECONDS = Histogram(
    "marketplace_ai_generation_seconds",
    "Time spent generating listing content from an image",
)

WIZARD_SUBMISSIONS = Counter(
    "marketplace_wizard_submissions_total",
    "Listing wizard image-step submissions by mode",
    ["mode"],
)

ITEMS_PUBLISHED = Counter(
    "marketplace_items_published_total",
    "Items promoted from draft to available",
)
