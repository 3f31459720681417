#!/usr/bin/env python3
"""
Reindex all available listings from the database into Elasticsearch via Celery.
Use this after fixing the worker or when the index was empty; no new data is created.
Requires: database reachable. Celery worker must be running to process the queue.

If you get 503 / no_shard_available from Elasticsearch, delete the broken index and reindex:
  python scripts/reindex_elasticsearch.py --reset-index

  python scripts/reindex_elasticsearch.py
  python scripts/reindex_elasticsearch.py --batch-size 200
"""

import argparse
import asyncio

from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.session import async_session_maker, engine
from marketplace.queue.tasks import index_item_task
from marketplace.search.elasticsearch_client import ITEMS_INDEX, _sync_es_client
from marketplace.services.item_service import item_to_doc


def delete_items_index():
    """Delete the items index so Celery will recreate it with number_of_replicas=0 (single-node safe)."""
    es = _sync_es_client()
    if es.indices.exists(index=ITEMS_INDEX):
        es.indices.delete(index=ITEMS_INDEX)
        print(f"Deleted index '{ITEMS_INDEX}'. Celery will recreate it when processing the first task.")
    else:
        print(f"Index '{ITEMS_INDEX}' does not exist (already deleted or never created).")


async def enqueue_all(batch_size: int) -> int:
    count = 0
    async with async_session_maker() as session:
        repo = ItemRepository(session)
        skip = 0
        while True:
            page = await repo.list_available(skip=skip, limit=batch_size)
            for item in page:
                index_item_task.delay(item_to_doc(item))
            count += len(page)
            if len(page) < batch_size:
                break
            skip += batch_size
    await engine.dispose()
    return count


def main():
    ap = argparse.ArgumentParser(description="Enqueue all available listings for Elasticsearch reindex")
    ap.add_argument("--batch-size", type=int, default=100, help="Listings read per query")
    ap.add_argument("--reset-index", action="store_true", help="Delete the items index first (fixes 503 / no_shard_available), then enqueue")
    args = ap.parse_args()

    if args.reset_index:
        delete_items_index()
        print()

    count = asyncio.run(enqueue_all(args.batch_size))
    if not count:
        print("No available listings in the database. Publish items through the listing wizard first.")
        return
    print(f"Enqueued {count} listings for Elasticsearch reindex. Ensure Celery worker is running.")
    print(f"Wait a few seconds, then: curl -s 'http://localhost:9200/{ITEMS_INDEX}/_count?pretty'")


if __name__ == "__main__":
    main()
