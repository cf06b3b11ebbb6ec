"""
Blob storage backends: Supabase Storage over HTTP, or a local directory for development
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from catalog_etl.core.config import Settings, settings
from catalog_etl.core.exceptions import StorageError
from catalog_etl.core.logging import log

DEFAULT_CONTENT_TYPE = "image/jpeg"


class BlobStorage(ABC):
    """Minimal object store interface used by the importer"""

    @abstractmethod
    async def get(self, name: str) -> Optional[bytes]:
        """Return the object's bytes, or None when it doesn't exist"""
        pass

    @abstractmethod
    async def put(self, name: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        """Store bytes under name, overwriting any existing object"""
        pass

    async def close(self):
        pass


class SupabaseStorage(BlobStorage):
    """
    Supabase Storage bucket accessed through its REST API.
    Uploads use x-upsert so re-importing the same image overwrites it.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        bucket: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.supabase_url = supabase_url.rstrip("/")
        self.bucket = bucket
        self.client = client or httpx.AsyncClient(
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            },
            timeout=30.0,
        )
        self._bucket_ready = False

    def _object_url(self, name: str) -> str:
        return f"{self.supabase_url}/storage/v1/object/{self.bucket}/{quote(name)}"

    async def ensure_bucket(self) -> None:
        """Create the storage bucket if it doesn't exist"""
        if self._bucket_ready:
            return

        response = await self.client.get(f"{self.supabase_url}/storage/v1/bucket/{self.bucket}")
        if response.status_code == 200:
            self._bucket_ready = True
            return

        if response.status_code in (400, 404):
            response = await self.client.post(
                f"{self.supabase_url}/storage/v1/bucket",
                json={"id": self.bucket, "name": self.bucket, "public": False},
            )
            if response.status_code in (200, 201):
                log.info(f"Created storage bucket: {self.bucket}")
                self._bucket_ready = True
                return

        raise StorageError(f"Storage bucket unavailable: {response.status_code} {response.text[:200]}")

    async def get(self, name: str) -> Optional[bytes]:
        try:
            response = await self.client.get(self._object_url(name))
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to read {name}: {e}", object=name)

        if response.status_code == 200:
            return response.content
        # Supabase reports missing objects as 400 {"error": "not_found"} on some versions
        if response.status_code == 404 or (response.status_code == 400 and "not_found" in response.text):
            return None
        raise StorageError(f"Failed to read {name}: {response.status_code}", object=name)

    async def put(self, name: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        await self.ensure_bucket()
        try:
            response = await self.client.post(
                self._object_url(name),
                content=data,
                headers={
                    "Content-Type": content_type,
                    "Cache-Control": "max-age=31536000",
                    "x-upsert": "true",
                },
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to upload {name}: {e}", object=name)

        if response.status_code not in (200, 201):
            raise StorageError(f"Failed to upload {name}: {response.status_code} {response.text[:200]}", object=name)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()


class LocalBlobStorage(BlobStorage):
    """Directory-backed storage; content types are kept in a sidecar file"""

    def __init__(self, root: str):
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        path = (self.root / name).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Object name escapes storage root: {name}", object=name)
        return path

    async def get(self, name: str) -> Optional[bytes]:
        path = self._path(name)
        if not path.is_file():
            return None
        return await asyncio.to_thread(path.read_bytes)

    async def put(self, name: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        path = self._path(name)

        def _write():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            path.with_name(path.name + ".content-type").write_text(content_type)

        await asyncio.to_thread(_write)


def create_storage(config: Settings = settings) -> BlobStorage:
    """Build the configured storage backend"""
    if config.storage_backend == "supabase":
        if not config.supabase_url or not config.supabase_service_key:
            raise StorageError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required for supabase storage")
        return SupabaseStorage(config.supabase_url, config.supabase_service_key, config.storage_bucket)
    return LocalBlobStorage(config.local_storage_dir)
