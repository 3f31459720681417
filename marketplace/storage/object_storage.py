"""
Object storage for item images and thumbnails.
Challenge: Same upload/URL contract for local development and S3 in production.
Design: Small async interface; S3 calls (boto3 is sync) run in a worker thread.
"""

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote, urlencode, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from marketplace.config import Settings, get_settings
from marketplace.core.errors import NotFoundError, TransportError
from marketplace.core.security import create_storage_token

logger = logging.getLogger(__name__)

PUBLIC_MARKER = "/storage/v1/object/public/"
SIGNED_MARKER = "/storage/v1/object/sign/"


@dataclass
class StoredObject:
    data: bytes
    content_type: str


@dataclass
class StorageLocation:
    bucket: str
    path: str


def parse_storage_url(url: str) -> StorageLocation | None:
    """Split a public or signed storage URL into bucket and object path."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    for marker in (PUBLIC_MARKER, SIGNED_MARKER):
        idx = parsed.path.find(marker)
        if idx != -1:
            bucket, _, path = parsed.path[idx + len(marker):].partition("/")
            if bucket and path:
                return StorageLocation(bucket=bucket, path=unquote(path))
    return None


def transform_query(transform: dict | None) -> dict:
    """Only width/height/quality are understood by the image transform."""
    if not transform:
        return {}
    return {k: transform[k] for k in ("width", "height", "quality") if transform.get(k)}


class ObjectStorage:
    """Upload bytes under bucket/path and hand out retrievable URLs."""

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        raise NotImplementedError

    async def download(self, bucket: str, path: str) -> StoredObject:
        raise NotImplementedError

    async def delete(self, bucket: str, path: str) -> None:
        raise NotImplementedError

    def get_public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    async def create_signed_url(
        self, bucket: str, path: str, ttl_seconds: int, transform: dict | None = None
    ) -> str:
        raise NotImplementedError

    def owns(self, url: str) -> StorageLocation | None:
        """Location of an object this storage served, or None for foreign URLs."""
        return parse_storage_url(url)


class LocalObjectStorage(ObjectStorage):
    """Filesystem-backed storage; objects are served by the /storage routes."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _file(self, bucket: str, path: str) -> Path:
        target = (self.root / bucket / path).resolve()
        if self.root.resolve() not in target.parents:
            raise NotFoundError("Object not found")
        return target

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        target = self._file(bucket, path)
        try:
            await asyncio.to_thread(_write_file, target, data)
        except OSError as exc:
            logger.error("Local upload failed bucket=%s path=%s: %s", bucket, path, exc)
            raise TransportError("Failed to upload image") from exc

    async def download(self, bucket: str, path: str) -> StoredObject:
        target = self._file(bucket, path)
        if not target.is_file():
            raise NotFoundError("Object not found")
        data = await asyncio.to_thread(target.read_bytes)
        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        return StoredObject(data=data, content_type=content_type)

    async def delete(self, bucket: str, path: str) -> None:
        target = self._file(bucket, path)
        target.unlink(missing_ok=True)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}{PUBLIC_MARKER}{bucket}/{quote(path)}"

    async def create_signed_url(
        self, bucket: str, path: str, ttl_seconds: int, transform: dict | None = None
    ) -> str:
        params = {"token": create_storage_token(bucket, path, ttl_seconds), **transform_query(transform)}
        return f"{self.public_base_url}{SIGNED_MARKER}{bucket}/{quote(path)}?{urlencode(params)}"


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


class S3ObjectStorage(ObjectStorage):
    """S3 buckets; public URLs follow the virtual-hosted style."""

    def __init__(self, region: str, client=None):
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)

    def get_public_url(self, bucket: str, path: str) -> str:
        if self.region == "us-east-1" or not self.region:
            return f"https://{bucket}.s3.amazonaws.com/{quote(path)}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{quote(path)}"

    def owns(self, url: str) -> StorageLocation | None:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        if ".s3." not in host and not host.endswith(".s3.amazonaws.com"):
            return None
        return StorageLocation(bucket=host.split(".s3")[0], path=unquote(parsed.path.lstrip("/")))

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            await asyncio.to_thread(
                self.client.put_object, Bucket=bucket, Key=path, Body=data, **extra
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 upload failed s3://%s/%s: %s", bucket, path, exc)
            raise TransportError("Failed to upload image") from exc

    async def download(self, bucket: str, path: str) -> StoredObject:
        try:
            response = await asyncio.to_thread(self.client.get_object, Bucket=bucket, Key=path)
            data = await asyncio.to_thread(response["Body"].read)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("Object not found") from exc
            raise TransportError("Failed to download image") from exc
        except BotoCoreError as exc:
            raise TransportError("Failed to download image") from exc
        return StoredObject(data=data, content_type=response.get("ContentType") or "image/jpeg")

    async def delete(self, bucket: str, path: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=bucket, Key=path)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError("Failed to delete image") from exc

    async def create_signed_url(
        self, bucket: str, path: str, ttl_seconds: int, transform: dict | None = None
    ) -> str:
        # S3 has no on-the-fly transforms; callers downscale after download.
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": bucket, "Key": path},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise TransportError("Failed to sign image URL") from exc


_storage: ObjectStorage | None = None


def build_object_storage(settings: Settings) -> ObjectStorage:
    if settings.storage_backend == "s3":
        return S3ObjectStorage(region=settings.storage_s3_region)
    return LocalObjectStorage(settings.storage_root, settings.storage_public_base_url)


def get_object_storage() -> ObjectStorage:
    """Shared storage client. FastAPI dependency; tests override it."""
    global _storage
    if _storage is None:
        _storage = build_object_storage(get_settings())
    return _storage
