"""
Test blob storage backends
"""

import json

import httpx
import pytest

from catalog_etl.core.config import Settings
from catalog_etl.core.exceptions import StorageError
from catalog_etl.services.storage import LocalBlobStorage, SupabaseStorage, create_storage


@pytest.mark.asyncio
async def test_local_storage_round_trip(tmp_path):
    storage = LocalBlobStorage(str(tmp_path))

    await storage.put("WEDO/A1/image-1.jpg", b"bytes", content_type="image/png")

    assert await storage.get("WEDO/A1/image-1.jpg") == b"bytes"
    assert (tmp_path / "WEDO/A1/image-1.jpg.content-type").read_text() == "image/png"
    assert await storage.get("missing.csv") is None


@pytest.mark.asyncio
async def test_local_storage_rejects_escaping_names(tmp_path):
    storage = LocalBlobStorage(str(tmp_path / "root"))

    with pytest.raises(StorageError):
        await storage.put("../outside.jpg", b"x")


def supabase(handler) -> SupabaseStorage:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseStorage("https://proj.supabase.co", "service-key", "catalog-files", client=client)


@pytest.mark.asyncio
async def test_supabase_put_creates_bucket_and_upserts():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/storage/v1/bucket/catalog-files":
            return httpx.Response(404, json={"error": "not_found"})
        if request.url.path == "/storage/v1/bucket":
            return httpx.Response(200, json={"name": "catalog-files"})
        return httpx.Response(200, json={"Key": "catalog-files/WEDO/A1/image-1.jpg"})

    storage = supabase(handler)
    await storage.put("WEDO/A1/image-1.jpg", b"jpeg", content_type="image/jpeg")
    await storage.put("WEDO/A1/image-2.jpg", b"jpeg")

    assert json.loads(requests[1].content)["id"] == "catalog-files"
    upload = requests[2]
    assert upload.url.path == "/storage/v1/object/catalog-files/WEDO/A1/image-1.jpg"
    assert upload.headers["x-upsert"] == "true"
    assert upload.headers["content-type"] == "image/jpeg"
    # bucket is checked once per storage instance
    assert len(requests) == 4


@pytest.mark.asyncio
async def test_supabase_get_handles_missing_objects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("present.csv"):
            return httpx.Response(200, content=b"a,b\n")
        if request.url.path.endswith("legacy.csv"):
            return httpx.Response(400, json={"error": "not_found", "message": "Object not found"})
        if request.url.path.endswith("broken.csv"):
            return httpx.Response(500, text="boom")
        return httpx.Response(404)

    storage = supabase(handler)

    assert await storage.get("present.csv") == b"a,b\n"
    assert await storage.get("absent.csv") is None
    assert await storage.get("legacy.csv") is None
    with pytest.raises(StorageError):
        await storage.get("broken.csv")


def test_create_storage_selects_backend(tmp_path):
    assert isinstance(create_storage(Settings(storage_backend="local", local_storage_dir=str(tmp_path))), LocalBlobStorage)
    assert isinstance(
        create_storage(Settings(storage_backend="supabase", supabase_url="https://p.supabase.co", supabase_service_key="k")),
        SupabaseStorage,
    )
    with pytest.raises(StorageError):
        create_storage(Settings(storage_backend="supabase"))
