"""
Processing job endpoints - latest job per item and a live event stream.
Challenge: The details page must learn a background job's outcome, even after a reload.
"""

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from marketplace.core.dependencies import CurrentUserId, Feed
from marketplace.core.errors import AuthorizationError, NotFoundError
from marketplace.core.security import decode_access_token
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.processing_job_repository import ProcessingJobRepository
from marketplace.db.session import DbSession
from marketplace.realtime.feed import ChangeEvent
from marketplace.schemas.job import ProcessingJobResponse
from marketplace.services.processing_jobs import JOBS_TABLE

logger = logging.getLogger(__name__)
router = APIRouter()


async def _require_owner(session, item_id: str, user_id: str) -> None:
    if not await ItemOwnerRepository(session).is_owner(item_id, user_id):
        raise AuthorizationError("Only owners can see processing jobs of this item")


@router.get("/{item_id}", response_model=list[ProcessingJobResponse])
async def list_jobs(session: DbSession, item_id: str, user_id: CurrentUserId):
    await _require_owner(session, item_id, user_id)
    return await ProcessingJobRepository(session).list_for_item(item_id)


@router.get("/{item_id}/latest", response_model=ProcessingJobResponse)
async def latest_job(session: DbSession, item_id: str, user_id: CurrentUserId):
    """The authoritative (most recent) job of the item."""
    await _require_owner(session, item_id, user_id)
    job = await ProcessingJobRepository(session).latest_for_item(item_id)
    if job is None:
        raise NotFoundError("No processing job for this item")
    return job


@router.websocket("/{item_id}/events")
async def job_events(
    websocket: WebSocket,
    session: DbSession,
    feed: Feed,
    item_id: str,
    token: str | None = Query(None),
):
    """
    Stream {"event", "new"} for every status change of the item's jobs.
    The latest job (if any) is sent first so late subscribers catch up.
    """
    payload = decode_access_token(token) if token else None
    if not payload or not await ItemOwnerRepository(session).is_owner(item_id, payload.get("sub", "")):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
    subscription = await feed.subscribe(JOBS_TABLE, "item_id", item_id, queue.put)
    latest = await ProcessingJobRepository(session).latest_for_item(item_id)
    if latest is not None:
        await websocket.send_json({"event": "snapshot", "new": latest.to_row()})

    async def forward() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json({"event": event.event, "new": event.new})

    forwarder = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Job event stream for %s closed by client", item_id)
    finally:
        forwarder.cancel()
        await subscription.unsubscribe()
