"""Shared fixtures: file-backed SQLite database, seeding helpers, HTTP client."""

import json
import os

# Point settings at SQLite before any catalog_api module builds the engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./catalog-test.db")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from catalog_api.catalog.categories import Category
from catalog_api.catalog.models import Product, Review, User
from catalog_api.infrastructure.blob_storage import BlobStorageClient, get_blob_storage_client
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import Base, get_session
from catalog_api.main import app

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session on the test database."""
    async with session_factory() as session:
        yield session


# ============================================================================
# Seeding Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def author(session_factory: async_sessionmaker[AsyncSession]) -> User:
    """Insert the account owning test products."""
    async with session_factory() as s:
        user = User(email="owner@shop.test", username="owner")
        s.add(user)
        await s.commit()
        return user


@pytest_asyncio.fixture
async def reviewer(session_factory: async_sessionmaker[AsyncSession]) -> User:
    """Insert an account that writes reviews."""
    async with session_factory() as s:
        user = User(email="reader@shop.test", username="reader")
        s.add(user)
        await s.commit()
        return user


@pytest.fixture
def make_product(
    session_factory: async_sessionmaker[AsyncSession],
    author: User,
) -> Callable[..., Awaitable[Product]]:
    """Factory inserting products directly, bypassing validation.

    Each call gets a creation time one minute after the previous one, so
    listing order is deterministic.
    """
    counter = {"n": 0}

    async def _make(**overrides: Any) -> Product:
        counter["n"] += 1
        values: dict[str, Any] = {
            "name": f"Product {counter['n']}",
            "category": Category.COVERS.value,
            "description": "Test product",
            "price": 10.0,
            "images": ["https://cdn.test/default.jpg"],
            "author_id": author.id,
            "created_at": BASE_TIME + timedelta(minutes=counter["n"]),
        }
        values.update(overrides)
        async with session_factory() as s:
            product = Product(**values)
            s.add(product)
            await s.commit()
            return product

    return _make


@pytest.fixture
def make_review(
    session_factory: async_sessionmaker[AsyncSession],
    reviewer: User,
) -> Callable[..., Awaitable[Review]]:
    """Factory inserting reviews for a product."""

    async def _make(product_id: str, **overrides: Any) -> Review:
        values: dict[str, Any] = {
            "product_id": product_id,
            "user_id": reviewer.id,
            "comment": "Works as described",
            "rating": 5,
        }
        values.update(overrides)
        async with session_factory() as s:
            review = Review(**values)
            s.add(review)
            await s.commit()
            return review

    return _make


# ============================================================================
# Blob Storage Fixtures
# ============================================================================


class RecordingBlobStore:
    """httpx handler standing in for the blob storage service."""

    def __init__(self) -> None:
        self.uploads: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.uploads.append(payload["data"])
        return httpx.Response(201, json={"url": f"https://cdn.test/blobs/{payload['data']}"})


@pytest.fixture
def blob_store() -> RecordingBlobStore:
    """Recording blob storage backend."""
    return RecordingBlobStore()


@pytest_asyncio.fixture
async def blob_storage(blob_store: RecordingBlobStore) -> AsyncGenerator[BlobStorageClient, None]:
    """Blob storage client talking to the recording backend."""
    client = BlobStorageClient(
        base_url="http://blob.test",
        token="test-token",
        transport=httpx.MockTransport(blob_store),
    )
    yield client
    await client.close()


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    blob_storage: BlobStorageClient,
) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient bound to the app and the test database."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_blob_storage_client] = lambda: blob_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Headers carrying the admin API key."""
    return {"Authorization": f"Bearer {settings.admin_api_key}"}
