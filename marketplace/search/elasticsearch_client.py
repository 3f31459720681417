"""
Elasticsearch client - full-text search over available listings.
Challenge: Index management, async operations, graceful degradation when ES is down.
Sync helpers used by Celery workers (no event loop in fork).
"""

import logging
from typing import Any
from urllib.parse import urlparse

from elasticsearch import AsyncElasticsearch, Elasticsearch

from marketplace.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Index name for listings
ITEMS_INDEX = "marketplace-items"

_es_client: AsyncElasticsearch | None = None


def _es_client_options() -> dict:
    """Build Elasticsearch client options from settings (supports HTTPS + basic auth in URL)."""
    url = settings.elasticsearch_url
    basic_auth = None
    if "@" in url and "://" in url:
        parsed = urlparse(url)
        if parsed.username and parsed.password:
            basic_auth = (parsed.username, parsed.password)
        # The client takes credentials separately
        netloc = parsed.hostname or ""
        if parsed.port:
            netloc += f":{parsed.port}"
        url = f"{parsed.scheme}://{netloc}"
    opts = {
        "hosts": [url],
        "verify_certs": settings.elasticsearch_verify_certs,
        "request_timeout": 30,
    }
    if basic_auth:
        opts["basic_auth"] = basic_auth
    return opts


async def get_elasticsearch() -> AsyncElasticsearch:
    """Get Elasticsearch client. Dependency injection for tests."""
    global _es_client
    if _es_client is None:
        _es_client = AsyncElasticsearch(**_es_client_options())
    return _es_client


async def close_elasticsearch() -> None:
    global _es_client
    if _es_client is not None:
        await _es_client.close()
        _es_client = None


def _items_index_mappings() -> dict:
    """Mapping for the listings index (shared by async and sync create)."""
    return {
        "properties": {
            "id": {"type": "keyword"},
            "user_id": {"type": "keyword"},
            "title": {"type": "text", "analyzer": "standard"},
            "description": {"type": "text", "analyzer": "standard"},
            "category": {"type": "keyword"},
            "condition": {"type": "keyword"},
            "listing_type": {"type": "keyword"},
            "status": {"type": "keyword"},
            "sale_price": {"type": "float"},
            "rental_price": {"type": "float"},
            "rental_period": {"type": "keyword"},
            "primary_image_url": {"type": "keyword", "index": False},
            "created_at": {"type": "date"},
        }
    }


def _payload(doc: dict[str, Any]) -> dict[str, Any]:
    # ES rejects null dates; drop empty values entirely
    payload = {k: v for k, v in doc.items() if v is not None}
    payload.setdefault("created_at", "1970-01-01T00:00:00Z")
    return payload


async def ensure_items_index() -> None:
    """Create the listings index if missing. Single-node: 0 replicas to avoid unassigned shards."""
    es = await get_elasticsearch()
    if not await es.indices.exists(index=ITEMS_INDEX):
        await es.indices.create(
            index=ITEMS_INDEX,
            settings={"index": {"number_of_replicas": 0}},
            mappings=_items_index_mappings(),
        )


async def index_item(doc: dict[str, Any]) -> bool:
    """Index a single listing. ES 8 expects id as str."""
    try:
        es = await get_elasticsearch()
        await es.index(index=ITEMS_INDEX, id=str(doc["id"]), document=_payload(doc))
        return True
    except Exception as e:
        logger.warning("index_item failed for id=%s: %s", doc.get("id"), e)
        return False


async def search_items(
    query: str, category: str | None = None, skip: int = 0, limit: int = 20
) -> list[dict[str, Any]]:
    """Full-text search on title and description of available listings."""
    if not settings.search_indexing_enabled:
        return []
    filters: list[dict] = [{"term": {"status": "available"}}]
    if category and category != "all":
        filters.append({"term": {"category": category}})
    try:
        es = await get_elasticsearch()
        response = await es.search(
            index=ITEMS_INDEX,
            query={
                "bool": {
                    "must": {
                        "multi_match": {
                            "query": query,
                            "fields": ["title^2", "description"],
                            "fuzziness": "AUTO",
                        }
                    },
                    "filter": filters,
                }
            },
            from_=skip,
            size=limit,
        )
        body = getattr(response, "body", response)
        hits = body["hits"]["hits"]
        if not hits:
            logger.info("search_items: query=%r returned 0 hits", query)
        return [hit["_source"] for hit in hits]
    except Exception as e:
        logger.warning("search_items failed: query=%r error=%s", query, e)
        return []


async def remove_item_from_index(item_id: str) -> bool:
    """Remove a listing from the index when deleted or unpublished."""
    if not settings.search_indexing_enabled:
        return False
    try:
        es = await get_elasticsearch()
        await es.options(ignore_status=404).delete(index=ITEMS_INDEX, id=str(item_id))
        return True
    except Exception as e:
        logger.warning("remove_item_from_index failed for id=%s: %s", item_id, e)
        return False


# --- Sync API for Celery (workers run in sync context; async + new_event_loop fails after fork) ---

def _sync_es_client() -> Elasticsearch:
    """New sync client per call (safe in forked Celery worker)."""
    return Elasticsearch(**_es_client_options())


def ensure_items_index_sync() -> None:
    """Create the listings index if missing. Call from Celery task."""
    try:
        es = _sync_es_client()
        if not es.indices.exists(index=ITEMS_INDEX):
            es.indices.create(
                index=ITEMS_INDEX,
                settings={"index": {"number_of_replicas": 0}},
                mappings=_items_index_mappings(),
            )
    except Exception as e:
        logger.warning("ensure_items_index_sync failed: %s", e)


def index_item_sync(doc: dict[str, Any]) -> bool:
    """Index a single listing. Call from Celery task."""
    try:
        es = _sync_es_client()
        es.index(index=ITEMS_INDEX, id=str(doc["id"]), document=_payload(doc))
        return True
    except Exception as e:
        logger.warning("index_item_sync failed for doc id=%s: %s", doc.get("id"), e)
        return False


def remove_item_sync(item_id: str) -> bool:
    try:
        es = _sync_es_client()
        es.options(ignore_status=404).delete(index=ITEMS_INDEX, id=str(item_id))
        return True
    except Exception as e:
        logger.warning("remove_item_sync failed for id=%s: %s", item_id, e)
        return False
