"""
Image management - selection limits, sequential uploads, reorder and removal.
Challenge: display_order stays dense and zero-based; the primary is always order 0.
"""

import logging
import time
from dataclasses import dataclass

from marketplace.ai.images import file_extension
from marketplace.config import get_settings
from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.db.models.item_image import ItemImage
from marketplace.db.repositories.item_image_repository import ItemImageRepository
from marketplace.storage.object_storage import ObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class NewImage:
    """An image chosen by the user but not uploaded yet."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class ImageSet:
    """Existing (stored) plus newly selected images for one item, capped at max_images."""

    def __init__(
        self,
        existing: list[ItemImage] | None = None,
        max_images: int | None = None,
        max_bytes: int | None = None,
    ):
        settings = get_settings()
        self.existing: list[ItemImage] = sorted(existing or [], key=lambda img: img.display_order)
        self.new: list[NewImage] = []
        self.max_images = max_images or settings.max_images
        self.max_bytes = max_bytes or settings.max_image_bytes

    @property
    def total_images(self) -> int:
        return len(self.existing) + len(self.new)

    def add(self, files: list[NewImage]) -> list[str]:
        """
        Add a batch of files. The whole batch is refused if it would exceed the
        cap; otherwise non-images and oversized files are skipped and reported.
        """
        if self.total_images + len(files) > self.max_images:
            raise ValidationError(f"Maximum {self.max_images} images allowed")
        rejected = []
        for f in files:
            if not (f.content_type or "").startswith("image/"):
                rejected.append(f"{f.filename}: please select only image files")
                continue
            if f.size > self.max_bytes:
                rejected.append(
                    f"{f.filename}: images must be smaller than {self.max_bytes // (1024 * 1024)}MB"
                )
                continue
            self.new.append(f)
        return rejected

    def remove_new(self, index: int) -> NewImage:
        if not 0 <= index < len(self.new):
            raise NotFoundError("Image not found")
        return self.new.pop(index)

    async def remove_existing(self, repo: ItemImageRepository, image_id: str) -> list[ItemImage]:
        """Delete a stored image and renumber the rest (next image becomes primary)."""
        image = next((img for img in self.existing if img.id == image_id), None)
        if image is None:
            raise NotFoundError("Image not found")
        await repo.delete(image)
        self.existing = [img for img in self.existing if img.id != image_id]
        await self._persist_positions(repo)
        return self.existing

    async def reorder(self, repo: ItemImageRepository, from_index: int, to_index: int) -> list[ItemImage]:
        """Move one existing image; every position is written in the same transaction."""
        if not (0 <= from_index < len(self.existing) and 0 <= to_index < len(self.existing)):
            raise ValidationError("Image position out of range")
        if from_index == to_index:
            return self.existing
        moved = self.existing.pop(from_index)
        self.existing.insert(to_index, moved)
        await self._persist_positions(repo)
        return self.existing

    async def _persist_positions(self, repo: ItemImageRepository) -> None:
        for order, img in enumerate(self.existing):
            img.display_order = order
            img.is_primary = order == 0
        await repo.set_positions([(img.id, order) for order, img in enumerate(self.existing)])


class ImageUploader:
    """Uploads images one at a time, in order, and records an item_images row for each."""

    def __init__(self, storage: ObjectStorage, repo: ItemImageRepository, bucket: str | None = None):
        self.storage = storage
        self.repo = repo
        self.bucket = bucket or get_settings().item_images_bucket

    def object_path(self, item_id: str, index: int, image: NewImage) -> str:
        ext = file_extension(image.filename, image.content_type)
        return f"{item_id}/{int(time.time() * 1000)}-{index}.{ext}"

    async def upload(self, item_id: str, images: list[NewImage], start_order: int = 0) -> list[ItemImage]:
        """
        Sequential on purpose: display_order follows selection order exactly.
        A storage failure raises TransportError; rows already written stay.
        """
        uploaded = []
        for index, image in enumerate(images):
            path = self.object_path(item_id, start_order + index, image)
            await self.storage.upload(self.bucket, path, image.data, image.content_type)
            order = start_order + index
            row = await self.repo.add(
                ItemImage(
                    item_id=item_id,
                    image_url=self.storage.get_public_url(self.bucket, path),
                    display_order=order,
                    is_primary=order == 0,
                )
            )
            logger.info("Uploaded image %s for item %s at position %s", path, item_id, order)
            uploaded.append(row)
        return uploaded


async def read_uploads(files) -> list[NewImage]:
    """Multipart uploads (Starlette UploadFile) to NewImage, keeping selection order."""
    images = []
    for f in files or []:
        images.append(NewImage(filename=f.filename or "image", content_type=f.content_type or "", data=await f.read()))
    return images
