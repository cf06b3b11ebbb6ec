"""
Image replication: download source images and mirror them into blob storage
under deterministic keys.
"""

from dataclasses import dataclass
from typing import List, Optional

import httpx

from catalog_etl.core.config import settings
from catalog_etl.core.logging import log
from catalog_etl.schemas.batch import StepResult
from catalog_etl.schemas.product import ImageRef
from catalog_etl.services.storage import DEFAULT_CONTENT_TYPE, BlobStorage


def image_key(supplier_id: str, sku: str, position: int) -> str:
    """Blob key for an image; position is zero-based, the key is one-based"""
    return f"{supplier_id}/{sku}/image-{position + 1}.jpg"


@dataclass(frozen=True)
class DeferredUpload:
    """An upload scheduled to run after the response has been sent"""

    supplier_id: str
    sku: str
    image: ImageRef

    @property
    def key(self) -> str:
        return image_key(self.supplier_id, self.sku, self.image.position)


class ImageReplicator:
    """Fetches images over HTTP and stores them; every image succeeds or fails on its own"""

    def __init__(
        self,
        storage: BlobStorage,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.storage = storage
        self.timeout = timeout or settings.image_fetch_timeout
        self.transport = transport

    async def replicate(self, supplier_id: str, sku: str, image: ImageRef) -> StepResult[str]:
        """Copy one image; the result carries the blob key or the failure reason"""
        key = image_key(supplier_id, sku, image.position)

        try:
            # A short-lived client per download, so deferred uploads outlive the request
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(
                    image.url,
                    follow_redirects=True,
                    headers={"User-Agent": "Mozilla/5.0 (compatible; CatalogETL/1.0)"},
                )

            if not response.is_success:
                return StepResult.failure(f"HTTP {response.status_code} fetching {image.url}")

            content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
            await self.storage.put(key, response.content, content_type=content_type)

        except Exception as e:
            log.debug("Image replication failed", sku=sku, url=image.url, error=str(e))
            return StepResult.failure(str(e) or e.__class__.__name__)

        return StepResult.success(key)

    async def run_deferred(self, uploads: List[DeferredUpload]) -> None:
        """Background task body; outcomes only reach the service log"""
        for upload in uploads:
            result = await self.replicate(upload.supplier_id, upload.sku, upload.image)
            if result.ok:
                log.info("Background image upload finished", sku=upload.sku, key=result.value)
            else:
                log.error("Background image upload failed", sku=upload.sku, key=upload.key, reason=result.reason)
