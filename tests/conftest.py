"""
Test configuration and fixtures
"""

import os

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import csv
import io
from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from catalog_etl.api import deps
from catalog_etl.api.v1.auth import limiter
from catalog_etl.core.config import settings
from catalog_etl.core.database import DatabaseSessionManager, get_async_session, init_db
from catalog_etl.main import app
from catalog_etl.repositories import CatalogStore
from catalog_etl.services import AudienceClassifier, BlobStorage, ImageReplicator, TextGenerator
from catalog_etl.services.batch_import import BatchImportService
from catalog_etl.sources.csv_source import (
    COL_CATEGORY,
    COL_DESCRIPTION,
    COL_IMAGES,
    COL_IN_STOCK,
    COL_MSRP,
    COL_NAME,
    COL_SKU,
    COL_STOCK_GOOD,
    COL_SUPPLIER,
    COL_WEIGHT,
)

CSV_COLUMNS = [
    COL_SKU,
    COL_SUPPLIER,
    COL_NAME,
    COL_DESCRIPTION,
    COL_WEIGHT,
    COL_MSRP,
    COL_IN_STOCK,
    COL_CATEGORY,
    COL_IMAGES,
    COL_STOCK_GOOD,
]


class FakeTextGenerator(TextGenerator):
    """Answers from a canned map keyed by a substring of the prompt"""

    def __init__(self, answers: Optional[Dict[str, str]] = None, default: str = '["other"]', error: Optional[Exception] = None):
        self.answers = answers or {}
        self.default = default
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        for needle, answer in self.answers.items():
            if needle in prompt:
                return answer
        return self.default


class InMemoryStorage(BlobStorage):
    """Dict-backed blob storage"""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.content_types: Dict[str, str] = {}

    async def get(self, name: str) -> Optional[bytes]:
        return self.objects.get(name)

    async def put(self, name: str, data: bytes, content_type: str = "image/jpeg") -> None:
        self.objects[name] = data
        self.content_types[name] = content_type


def build_csv(rows: List[Dict[str, str]]) -> bytes:
    """Render rows as a BOM-prefixed CSV export, the way spreadsheet tools save it"""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow({column: row.get(column, "") for column in CSV_COLUMNS})
    return buffer.getvalue().encode("utf-8-sig")


def image_transport(images: Dict[str, httpx.Response]) -> httpx.MockTransport:
    """Serve canned responses per URL; unknown URLs are 404"""

    def handler(request: httpx.Request) -> httpx.Response:
        return images.get(str(request.url), httpx.Response(404))

    return httpx.MockTransport(handler)


@pytest_asyncio.fixture
async def db_manager():
    """In-memory SQLite shared across sessions through a single connection"""
    manager = DatabaseSessionManager(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(manager)
    yield manager
    await manager.close()


@pytest.fixture
def store(db_manager) -> CatalogStore:
    return CatalogStore(db_manager)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def images() -> Dict[str, httpx.Response]:
    return {}


@pytest.fixture
def replicator(storage, images) -> ImageReplicator:
    return ImageReplicator(storage, timeout=5.0, transport=image_transport(images))


@pytest.fixture
def service(store, storage, generator, replicator) -> BatchImportService:
    return BatchImportService(store, storage, AudienceClassifier(generator), replicator, settings)


@pytest_asyncio.fixture
async def client(db_manager, store, storage, generator, replicator):
    """Create test client wired to the in-memory store and fakes"""

    async def get_test_session():
        async with db_manager.session() as session:
            yield session

    async def get_test_store():
        return store

    async def get_test_replicator():
        return replicator

    app.dependency_overrides[get_async_session] = get_test_session
    app.dependency_overrides[deps.get_catalog_store] = get_test_store
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_text_generator] = lambda: generator
    app.dependency_overrides[deps.get_image_replicator] = get_test_replicator
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_csv():
    return build_csv


@pytest.fixture
def fake_generator_factory():
    return FakeTextGenerator
