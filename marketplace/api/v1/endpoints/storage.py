"""
Storage routes - serve objects of the local storage backend.
Public bucket objects are open; signed URLs carry a short-lived token and
may ask for a downscaled copy (width/quality).
"""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import Response

from marketplace.ai.images import resize_to_width
from marketplace.core.dependencies import Storage
from marketplace.core.security import verify_storage_token

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/object/public/{bucket}/{path:path}")
async def public_object(storage: Storage, bucket: str, path: str):
    obj = await storage.download(bucket, path)
    return Response(content=obj.data, media_type=obj.content_type)


@router.get("/object/sign/{bucket}/{path:path}")
async def signed_object(
    storage: Storage,
    bucket: str,
    path: str,
    token: str = Query(...),
    width: int | None = Query(None, ge=1, le=4000),
    quality: int = Query(85, ge=1, le=100),
):
    if not verify_storage_token(token, bucket, path):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")
    obj = await storage.download(bucket, path)
    if width is None:
        return Response(content=obj.data, media_type=obj.content_type)
    data, media_type = await asyncio.to_thread(resize_to_width, obj.data, width, quality)
    return Response(content=data, media_type=media_type)
