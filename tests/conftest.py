"""
Pytest fixtures - test DB, client, auth, storage and AI fakes (TDD/BDD support).
Challenge: Isolated tests; no PostgreSQL, Redis, Elasticsearch or model calls.
"""

import io
import os

# Settings are cached on first import; configure the environment before that.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("SEARCH_INDEXING_ENABLED", "false")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("REALTIME_BACKEND", "memory")
os.environ.setdefault("AI_INVOCATION_MODE", "inline")
os.environ.setdefault("PROGRESS_TICK_SECONDS", "0.01")
os.environ.setdefault("STORAGE_PUBLIC_BASE_URL", "http://test")

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from marketplace.ai.content import AIContent
from marketplace.ai.generator import ContentGenerator, get_content_generator
from marketplace.core.errors import TransportError
from marketplace.core.security import create_access_token, hash_password
from marketplace.db.base import Base
from marketplace.db.models import ItemCategory, User
from marketplace.db.models.enums import DEFAULT_CATEGORIES
from marketplace.db.session import get_db, get_session_factory
from marketplace.main import app
from marketplace.realtime.feed import InMemoryChangeFeed, get_change_feed
from marketplace.schemas.wizard import ItemFormData
from marketplace.services.image_manager import NewImage
from marketplace.services.listing_wizard import ListingWizard, UserContext
from marketplace.services.processing_jobs import BackgroundJobRunner, get_background_runner
from marketplace.storage.object_storage import LocalObjectStorage, get_object_storage


class ScriptedGenerator(ContentGenerator):
    """Returns `content` (or raises `error`) and records every call."""

    def __init__(self):
        self.content = AIContent(
            title="Drill Set",
            description="Cordless drill with two batteries and a set of bits.",
            category="tools",
            condition="used",
            listing_type="sell",
            sale_price=45,
        )
        self.error: Exception | None = None
        self.calls: list[dict] = []

    async def generate(self, image, mime_type, language, categories):
        self.calls.append({"mime_type": mime_type, "language": language, "categories": list(categories)})
        if self.error is not None:
            raise self.error
        return self.content

    def fail(self, message: str = "Gemini API error: 500 Internal Server Error") -> None:
        self.error = TransportError(message)


def make_png(width: int = 800, height: int = 600, color=(200, 80, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def png():
    """Factory for real PNG bytes."""
    return make_png


@pytest.fixture
def new_image():
    def _new_image(name: str = "photo.png", width: int = 800, height: int = 600) -> NewImage:
        return NewImage(filename=name, content_type="image/png", data=make_png(width, height))

    return _new_image


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_sessionmaker(engine, expire_on_commit=False)() as s:
        s.add_all([ItemCategory(value=v, sort_order=i) for i, v in enumerate(DEFAULT_CATEGORIES)])
        await s.commit()
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path / "storage", "http://test")


@pytest.fixture
def feed() -> InMemoryChangeFeed:
    return InMemoryChangeFeed()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest_asyncio.fixture
async def runner(session_factory) -> AsyncGenerator[BackgroundJobRunner, None]:
    runner = BackgroundJobRunner(session_factory)
    yield runner
    await runner.shutdown()


@pytest_asyncio.fixture
async def client(session_factory, storage, feed, generator, runner):
    async def override_get_db():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_change_feed] = lambda: feed
    app.dependency_overrides[get_content_generator] = lambda: generator
    app.dependency_overrides[get_background_runner] = lambda: runner
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_user(session_factory, email: str, display_name: str, language: str = "en") -> User:
    async with session_factory() as s:
        user = User(
            email=email,
            hashed_password=hash_password("password123"),
            display_name=display_name,
            preferred_language=language,
        )
        s.add(user)
        await s.commit()
        return user


@pytest_asyncio.fixture
async def test_user(session_factory) -> User:
    return await _create_user(session_factory, "test@example.com", "Test User")


@pytest_asyncio.fixture
async def other_user(session_factory) -> User:
    return await _create_user(session_factory, "neighbour@example.com", "Neighbour")


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return headers_for(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return headers_for(other_user)


@pytest_asyncio.fixture
async def make_wizard(session_factory, storage, feed, generator, runner):
    """Build a wizard for a user on its own session (closed at teardown)."""
    created = []

    async def _make(user: User, **kwargs) -> ListingWizard:
        s = session_factory()
        kwargs.setdefault("storage", storage)
        kwargs.setdefault("generator", generator)
        kwargs.setdefault("feed", feed)
        kwargs.setdefault("runner", runner)
        wizard = ListingWizard(s, UserContext(user.id, user.preferred_language), **kwargs)
        created.append(wizard)
        return wizard

    yield _make
    for wizard in created:
        await wizard.close()
        await wizard.session.close()


@pytest_asyncio.fixture
async def published_item(make_wizard, test_user, new_image):
    """An available "Drill Set" listing of test_user with three images."""
    wizard = await make_wizard(test_user)
    await wizard.submit_images([new_image("a.png"), new_image("b.png"), new_image("c.png")], "skip_ai")
    item = await wizard.submit_details(
        ItemFormData(
            title="Drill Set",
            category="tools",
            condition="used",
            listing_type="both",
            sale_price="45",
            rental_price="5",
            rental_period="daily",
        )
    )
    return item
