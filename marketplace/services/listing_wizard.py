"""
Listing wizard - two steps (images -> details) from photos to a published item.
Challenge: Uploads, a draft record and a slow, unreliable AI call must never
lose the user's work; AI failure is never fatal.
Design: The draft item anchors uploads and generation. The wizard can be used
in-process (one object for the whole flow) or rehydrated per request from the
draft id via resume().
"""

import asyncio
import enum
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.ai.content import ListingSuggestion
from marketplace.ai.generator import ContentGenerator
from marketplace.config import AiInvocationMode, Settings, get_settings
from marketplace.core.errors import AuthorizationError, MarketplaceError, NotFoundError, TransportError, ValidationError
from marketplace.core.metrics import ITEMS_PUBLISHED, WIZARD_SUBMISSIONS
from marketplace.db.models.enums import FALLBACK_CATEGORY, ItemCondition, ItemStatus, JobStatus, ListingType, OwnerRole
from marketplace.db.models.item import Item
from marketplace.db.models.item_owner import ItemOwner
from marketplace.db.models.processing_job import ProcessingJob
from marketplace.db.repositories.item_image_repository import ItemImageRepository
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.repositories.processing_job_repository import ProcessingJobRepository
from marketplace.queue.tasks import generate_item_content_task, retry_item_content_task
from marketplace.realtime.feed import ChangeEvent, ChangeFeed, Subscription
from marketplace.schemas.job import ProcessingJobResponse
from marketplace.schemas.wizard import (
    ItemFormData,
    NoticeResponse,
    SuggestionResponse,
    WizardStateResponse,
)
from marketplace.services.content_generation import ContentGenerationService
from marketplace.services.image_manager import ImageSet, ImageUploader, NewImage
from marketplace.services.item_form import ItemDetailsForm
from marketplace.services.item_service import enqueue_index
from marketplace.services.processing_jobs import BackgroundJobRunner, ProcessingJobTracker
from marketplace.storage.object_storage import ObjectStorage

logger = logging.getLogger(__name__)

DRAFT_TITLE = "New Draft Item"
PROGRESS_CEILING = 90


class WizardStep(str, enum.Enum):
    IMAGES = "images"
    DETAILS = "details"


class ProcessingState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class SubmitMode(str, enum.Enum):
    WITH_AI = "with_ai"
    SKIP_AI = "skip_ai"
    SKIP_IMAGES = "skip_images"


@dataclass
class UserContext:
    """The acting user as the wizard needs it."""

    user_id: str
    language: str = "en"


@dataclass
class Notice:
    """User-visible message (the API returns these; a UI shows them as toasts)."""

    level: str  # info | success | warning | error
    title: str
    description: str


class ListingWizard:
    def __init__(
        self,
        session: AsyncSession,
        user: UserContext,
        *,
        storage: ObjectStorage,
        generator: ContentGenerator,
        feed: ChangeFeed,
        runner: BackgroundJobRunner | None = None,
        ai_mode: AiInvocationMode | str | None = None,
        promote_draft: bool = True,
        settings: Settings | None = None,
    ):
        self.session = session
        self.user = user
        self.storage = storage
        self.generator = generator
        self.feed = feed
        self.runner = runner
        self.settings = settings or get_settings()
        self.ai_mode = AiInvocationMode(ai_mode or self.settings.ai_invocation_mode)
        self.promote_draft = promote_draft

        self.items = ItemRepository(session)
        self.image_repo = ItemImageRepository(session)
        self.owner_repo = ItemOwnerRepository(session)
        self.job_repo = ProcessingJobRepository(session)
        self.tracker = ProcessingJobTracker(session, feed, storage, generator)
        self.uploader = ImageUploader(storage, self.image_repo, self.settings.item_images_bucket)

        self.step = WizardStep.IMAGES
        self.processing_state = ProcessingState.IDLE
        self.progress = 0
        self.notices: list[Notice] = []
        self.item_id: str | None = None
        self.images = ImageSet(max_images=self.settings.max_images, max_bytes=self.settings.max_image_bytes)
        self.form = ItemDetailsForm.initialize()
        self.suggestion: ListingSuggestion | None = None
        self.job: dict | None = None
        self.published = False

        self._ticker: asyncio.Task | None = None
        self._subscription: Subscription | None = None

    @classmethod
    async def resume(cls, session: AsyncSession, user: UserContext, draft_item_id: str, **kwargs) -> "ListingWizard":
        """Rehydrate the wizard at the details step from a draft the user owns."""
        wizard = cls(session, user, **kwargs)
        item = await wizard.items.get_with_images(draft_item_id)
        if item is None:
            raise NotFoundError("Draft not found")
        if not await wizard.owner_repo.is_owner(item.id, user.user_id):
            raise AuthorizationError("Only owners can edit this draft")
        if item.status != ItemStatus.DRAFT.value:
            raise ValidationError("Item is already published")
        wizard.item_id = item.id
        wizard.images = ImageSet(item.images, wizard.settings.max_images, wizard.settings.max_image_bytes)
        wizard.step = WizardStep.DETAILS
        job = await wizard.job_repo.latest_for_item(item.id)
        if job is not None:
            wizard.job = job.to_row()
        wizard.processing_state = _state_for_job(job)
        if item.title != DRAFT_TITLE:
            # Generation already wrote its suggestion onto the draft row
            wizard.suggestion = ListingSuggestion(
                title=item.title,
                description=item.description or "",
                category=item.category,
                condition=item.condition,
                listing_type=item.listing_type,
                sale_price=item.sale_price,
            )
            wizard.form.apply_suggestion(wizard.suggestion)
        return wizard

    def _notify(self, level: str, title: str, description: str) -> None:
        self.notices.append(Notice(level, title, description))

    # --- Step 1: images -------------------------------------------------

    async def submit_images(self, selection: list[NewImage] = (), mode: SubmitMode | str = SubmitMode.WITH_AI) -> "ListingWizard":
        mode = SubmitMode(mode)
        WIZARD_SUBMISSIONS.labels(mode=mode.value).inc()

        if mode == SubmitMode.SKIP_IMAGES:
            self.step = WizardStep.DETAILS
            return self

        try:
            for message in self.images.add(list(selection)):
                self._notify("warning", "Image skipped", message)
        except ValidationError as exc:
            self._notify("error", "Too many images", exc.message)
            raise

        if mode == SubmitMode.WITH_AI and not self.images.new and not self.images.existing:
            self._notify("error", "No Images", "Please upload at least one image to use AI processing.")
            raise ValidationError("Please upload at least one image to use AI processing.")

        if self.images.new:
            await self._upload_selection()

        if mode == SubmitMode.WITH_AI:
            await self._start_ai()
        else:
            self.processing_state = ProcessingState.COMPLETED
            self.progress = 100
            if self.item_id:
                self._notify("info", "Item created", "Add the details of your item.")
        self.step = WizardStep.DETAILS
        return self

    async def _upload_selection(self) -> None:
        self.processing_state = ProcessingState.UPLOADING
        self.progress = 10
        created = self.item_id is None
        try:
            await self._ensure_draft()
            self.progress = 30
            uploaded = await self.uploader.upload(
                self.item_id, self.images.new, start_order=len(self.images.existing)
            )
            await self.session.commit()
        except MarketplaceError as exc:
            await self._abandon_upload(exc, created)
            raise TransportError(exc.message) from exc
        except SQLAlchemyError as exc:
            await self._abandon_upload(exc, created)
            raise TransportError("Failed to save item") from exc
        self.images.existing.extend(uploaded)
        self.images.new = []
        self.progress = 50

    async def _abandon_upload(self, exc: Exception, created: bool) -> None:
        logger.error("Draft upload failed for user %s: %s", self.user.user_id, exc)
        await self.session.rollback()
        if created:
            # The draft row never committed
            self.item_id = None
        self.processing_state = ProcessingState.ERROR
        self._notify("error", "Error", "Failed to create draft item. Please try again.")

    async def _ensure_draft(self) -> None:
        if self.item_id is not None:
            return
        item = await self.items.add(
            Item(
                user_id=self.user.user_id,
                title=DRAFT_TITLE,
                description="",
                category=FALLBACK_CATEGORY,
                condition=ItemCondition.USED.value,
                listing_type=ListingType.SELL.value,
                status=ItemStatus.DRAFT.value,
            )
        )
        self.item_id = item.id
        await self._ensure_owner(item.id)
        logger.info("Created draft item %s for user %s", item.id, self.user.user_id)

    async def _ensure_owner(self, item_id: str) -> None:
        if await self.owner_repo.get(item_id, self.user.user_id) is None:
            await self.owner_repo.add(
                ItemOwner(
                    item_id=item_id,
                    user_id=self.user.user_id,
                    role=OwnerRole.OWNER.value,
                    added_by=self.user.user_id,
                )
            )

    @property
    def primary_image_url(self) -> str | None:
        return self.images.existing[0].image_url if self.images.existing else None

    async def _start_ai(self) -> None:
        self.processing_state = ProcessingState.PROCESSING
        self.progress = 65
        self._notify("info", "Item created", "Generating AI content…")
        if self.ai_mode == AiInvocationMode.BACKGROUND:
            await self._start_background()
        elif self.ai_mode == AiInvocationMode.QUEUED:
            await self._start_queued()
        else:
            await self._generate_inline()

    async def _tick_progress(self) -> None:
        while True:
            await asyncio.sleep(self.settings.progress_tick_seconds)
            if self.progress < PROGRESS_CEILING:
                self.progress += 1

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _generate_inline(self) -> None:
        service = ContentGenerationService(self.session, self.storage, self.generator)
        self._ticker = asyncio.create_task(self._tick_progress())
        try:
            suggestion = await service.generate_for_item(self.item_id, self.primary_image_url, self.user.language)
            await self.session.commit()
        except MarketplaceError as exc:
            logger.warning("AI generation failed for draft %s: %s", self.item_id, exc.message)
            self._finish_ai(None)
            return
        finally:
            self._cancel_ticker()
        self._finish_ai(suggestion)

    def _finish_ai(self, suggestion: ListingSuggestion | None) -> None:
        self.progress = 100
        self.processing_state = ProcessingState.COMPLETED
        if suggestion is None:
            self._notify("error", "AI Failed", "Opening editor so you can fill details manually.")
            return
        self.suggestion = suggestion
        self.form.apply_suggestion(suggestion)
        self._notify("success", "AI Ready", "Content generated. Opening details...")

    async def _create_job(self) -> ProcessingJob:
        job = await self.tracker.create(
            self.item_id, [img.image_url for img in self.images.existing], self.user.language
        )
        self.job = job.to_row()
        return job

    async def _start_background(self) -> None:
        if self.runner is None:
            raise RuntimeError("background AI mode needs a BackgroundJobRunner")
        job = await self._create_job()
        await self._subscribe()
        self.runner.run_job(
            job.id, self.user.language, storage=self.storage, generator=self.generator, feed=self.feed
        )
        self._notify("info", "Taking Longer", "Opening editor while AI finishes in background.")

    async def _start_queued(self) -> None:
        job = await self._create_job()
        try:
            generate_item_content_task.delay(job.id, self.user.language)
        except Exception as exc:
            logger.error("Could not queue processing job %s: %s", job.id, exc)
            failed = await self.tracker.mark_failed(job, "Could not queue AI generation")
            self.job = failed.to_row()
            self._finish_ai(None)
            return
        self._notify("info", "Taking Longer", "Opening editor while AI finishes in background.")

    async def _subscribe(self) -> None:
        if self._subscription is None:
            self._subscription = await self.tracker.subscribe(self.item_id, self._on_job_event)

    async def _on_job_event(self, event: ChangeEvent) -> None:
        row = event.new
        self.job = row
        status = row.get("status")
        if status == JobStatus.COMPLETED.value:
            if self.published:
                logger.info("Job for %s finished after publishing; form left as submitted", self.item_id)
                return
            service = ContentGenerationService(self.session, self.storage, self.generator)
            self._finish_ai(await service.item_suggestion(self.item_id))
        elif status == JobStatus.FAILED.value:
            logger.info("Background job for %s failed: %s", self.item_id, row.get("error_message"))
            self._finish_ai(None)

    async def retry_ai(self) -> "ListingWizard":
        """Explicit, user-initiated re-run of generation for the draft."""
        if self.item_id is None or not self.images.existing:
            raise ValidationError("Please upload at least one image to use AI processing.")
        self.processing_state = ProcessingState.PROCESSING
        self.progress = 65
        if self.ai_mode == AiInvocationMode.INLINE:
            await self._generate_inline()
            return self
        if await self.job_repo.latest_for_item(self.item_id) is None:
            await self._start_ai()
            return self
        if self.ai_mode == AiInvocationMode.BACKGROUND:
            if self.runner is None:
                raise RuntimeError("background AI mode needs a BackgroundJobRunner")
            await self._subscribe()
            self.runner.retry_item(
                self.item_id, self.user.language, storage=self.storage, generator=self.generator, feed=self.feed
            )
        else:
            try:
                retry_item_content_task.delay(self.item_id, self.user.language)
            except Exception as exc:
                logger.error("Could not queue retry for item %s: %s", self.item_id, exc)
                self._finish_ai(None)
                return self
        self._notify("info", "Retrying", "Generating AI content…")
        return self

    def back(self) -> WizardStep:
        if self.step == WizardStep.DETAILS:
            self.step = WizardStep.IMAGES
        return self.step

    # --- Step 2: details ------------------------------------------------

    async def submit_details(
        self, form: ItemFormData | ItemDetailsForm | None = None, new_images: list[NewImage] = ()
    ) -> Item:
        """Validate, publish the item (promoting or replacing the draft) and index it."""
        if form is None:
            form = self.form
        elif isinstance(form, ItemFormData):
            form = ItemDetailsForm.from_submission(form)
        categories = await self.items.get_category_values()
        try:
            form.require_valid(categories)
        except ValidationError as exc:
            self._notify("error", "Missing information", exc.message)
            raise
        self.form = form

        if new_images:
            for message in self.images.add(list(new_images)):
                self._notify("warning", "Image skipped", message)

        values = form.to_item_values()
        try:
            if self.item_id is None:
                item = await self.items.add(
                    Item(user_id=self.user.user_id, status=ItemStatus.AVAILABLE.value, **values)
                )
                self.item_id = item.id
            elif self.promote_draft:
                item = await self._promote(values)
            else:
                item = await self._transfer(values)
            await self._ensure_owner(item.id)
            if self.images.new:
                start = await self.image_repo.count_for_item(item.id)
                await self.uploader.upload(item.id, self.images.new, start_order=start)
                self.images.new = []
            await self.session.commit()
        except MarketplaceError as exc:
            logger.error("Publishing item for user %s failed: %s", self.user.user_id, exc.message)
            self._notify("error", "Error", "Failed to create item. Please try again.")
            raise
        except SQLAlchemyError as exc:
            logger.error("Publishing item for user %s failed: %s", self.user.user_id, exc)
            self._notify("error", "Error", "Failed to create item. Please try again.")
            raise TransportError("Failed to create item") from exc

        self.published = True
        item = await self.items.get_with_images(self.item_id)
        ITEMS_PUBLISHED.inc()
        enqueue_index(item)
        self._notify("success", "Success", "Item listed successfully!")
        logger.info("Published item %s for user %s", item.id, self.user.user_id)
        return item

    async def _promote(self, values: dict) -> Item:
        item = await self.items.get_by_id(self.item_id)
        if item is None:
            raise NotFoundError("Draft not found")
        return await self.items.update(item, status=ItemStatus.AVAILABLE.value, **values)

    async def _transfer(self, values: dict) -> Item:
        """Publish as a fresh item; the draft row goes away only once nothing points at it."""
        draft_id = self.item_id
        item = await self.items.add(Item(user_id=self.user.user_id, status=ItemStatus.AVAILABLE.value, **values))
        await self._ensure_owner(item.id)
        moved = await self.image_repo.reassign_item(draft_id, item.id)
        await self.job_repo.reassign_item(draft_id, item.id)
        await self.session.commit()

        if await self.image_repo.count_for_item(draft_id) or await self.job_repo.list_for_item(draft_id):
            logger.error("Transfer from draft %s to %s incomplete; keeping draft", draft_id, item.id)
            raise TransportError("Failed to move images to the new item; the draft was kept")
        draft = await self.items.get_with_images(draft_id)
        if draft is not None:
            await self.items.delete(draft)
        self.item_id = item.id
        logger.info("Moved %d images from draft %s to item %s", moved, draft_id, item.id)
        return item

    async def close(self) -> None:
        """Stop the progress ticker and drop the job subscription. Safe to call twice."""
        self._cancel_ticker()
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            await subscription.unsubscribe()

    def to_state(self) -> WizardStateResponse:
        return WizardStateResponse(
            item_id=self.item_id,
            step=self.step.value,
            processing_state=self.processing_state.value,
            progress=self.progress,
            ai_mode=self.ai_mode.value,
            form=self.form.data,
            listing_type_options=self.form.listing_type_options(),
            suggestion=SuggestionResponse(**vars(self.suggestion)) if self.suggestion else None,
            job=ProcessingJobResponse(**self.job) if self.job else None,
            notices=[NoticeResponse(**vars(n)) for n in self.notices],
        )


def _state_for_job(job: ProcessingJob | None) -> ProcessingState:
    if job is None:
        return ProcessingState.COMPLETED
    if job.status in (JobStatus.PENDING.value, JobStatus.PROCESSING.value):
        return ProcessingState.PROCESSING
    return ProcessingState.COMPLETED
