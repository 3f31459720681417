"""
Search endpoint - Elasticsearch full-text search over available items.
Challenge: Expose search API, pagination, graceful fallback if ES down.
"""

from fastapi import APIRouter, Query

from marketplace.config import get_settings
from marketplace.search.elasticsearch_client import search_items

router = APIRouter()
settings = get_settings()


@router.get("/items")
async def search_items_endpoint(
    q: str = Query(..., min_length=1),
    category: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """Full-text search on items (title, description) via Elasticsearch."""
    hits = await search_items(query=q, category=category, skip=skip, limit=limit)
    return {"query": q, "results": hits, "count": len(hits)}
