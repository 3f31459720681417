"""
Processing job repository - AI generation attempts per item.
"""

from sqlalchemy import select

from marketplace.db.models.processing_job import ProcessingJob
from marketplace.db.repositories.base_repository import BaseRepository


class ProcessingJobRepository(BaseRepository[ProcessingJob]):
    def __init__(self, session):
        super().__init__(session, ProcessingJob)

    async def get_fresh(self, id: str) -> ProcessingJob | None:
        """Re-read a job, overwriting any stale copy held in the identity map."""
        result = await self.session.execute(
            select(ProcessingJob)
            .where(ProcessingJob.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def latest_for_item(self, item_id: str) -> ProcessingJob | None:
        """The authoritative job: most recently created for the item."""
        result = await self.session.execute(
            select(ProcessingJob)
            .where(ProcessingJob.item_id == item_id)
            .order_by(ProcessingJob.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_item(self, item_id: str) -> list[ProcessingJob]:
        result = await self.session.execute(
            select(ProcessingJob)
            .where(ProcessingJob.item_id == item_id)
            .order_by(ProcessingJob.created_at)
        )
        return list(result.scalars().all())

    async def reassign_item(self, from_item_id: str, to_item_id: str) -> int:
        jobs = await self.list_for_item(from_item_id)
        for job in jobs:
            job.item_id = to_item_id
        await self.session.flush()
        return len(jobs)
