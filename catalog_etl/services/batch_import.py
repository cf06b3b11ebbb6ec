"""
Batch import orchestration.

One call processes one page of the source: rows are normalized, classified,
planned and have their images mirrored in order, then every planned write is
committed at once. The caller resumes with the returned cursor.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Set

from catalog_etl.core.config import Settings, settings
from catalog_etl.core.exceptions import DatabaseError
from catalog_etl.core.logging import log
from catalog_etl.models import utc_now
from catalog_etl.repositories.catalog import CatalogStore
from catalog_etl.schemas.batch import BatchImportRequest, BatchReport
from catalog_etl.schemas.product import CanonicalProduct
from catalog_etl.services.audience_classifier import AudienceClassifier
from catalog_etl.services.image_replicator import DeferredUpload, ImageReplicator
from catalog_etl.services.persistence_planner import (
    WriteOperation,
    plan_image_write,
    plan_product_writes,
    plan_supplier_write,
)
from catalog_etl.services.storage import BlobStorage
from catalog_etl.sources import RecordSource, SourceAdapter, SourceAdapterFactory, create_record_source

RecordSourceFactory = Callable[[str], RecordSource]


@dataclass
class BatchContext:
    """State of one batch invocation"""

    synced_at: datetime = field(default_factory=utc_now)
    logs: List[str] = field(default_factory=list)
    writes: List[WriteOperation] = field(default_factory=list)
    known_suppliers: Set[str] = field(default_factory=set)
    deferred_uploads: List[DeferredUpload] = field(default_factory=list)
    processed: int = 0

    def add_log(self, line: str):
        self.logs.append(line)


class BatchImportService:
    """Runs one bounded batch of the catalog import"""

    def __init__(
        self,
        store: CatalogStore,
        storage: BlobStorage,
        classifier: AudienceClassifier,
        replicator: ImageReplicator,
        config: Settings = settings,
        record_source_factory: Optional[RecordSourceFactory] = None,
    ):
        self.store = store
        self.storage = storage
        self.classifier = classifier
        self.replicator = replicator
        self.config = config
        self.record_source_factory = record_source_factory or (
            lambda source: create_record_source(source, self.storage, self.config)
        )

    def resolve_batch_size(self, requested: Optional[int]) -> int:
        size = requested or self.config.batch_size
        return max(1, min(size, self.config.max_batch_size))

    async def run_batch(self, request: BatchImportRequest, context: Optional[BatchContext] = None) -> BatchReport:
        """
        Process one page and report progress.

        Page fetch and commit failures propagate; per-row failures are
        recorded in the report logs instead.
        """
        started = time.perf_counter()
        context = context or BatchContext()
        adapter = SourceAdapterFactory.get_adapter(request.source)
        batch_size = self.resolve_batch_size(request.batch_size)
        # Rows without a supplier column fall back to the caller's supplier, then the configured default
        fallback_supplier = request.supplier or self.config.default_supplier_id

        record_source = self.record_source_factory(request.source)
        try:
            page = await record_source.list_page(batch_size, request.cursor)
        finally:
            await record_source.close()

        if not page.rows:
            context.add_log("No rows left to import; import complete")
            return self._report(context, None, page.remaining, started)

        log.info(
            "Processing batch",
            source=adapter.name,
            cursor=request.cursor,
            rows=len(page.rows),
        )

        for raw in page.rows:
            await self._process_row(raw, adapter, fallback_supplier, context)

        if context.writes:
            await self.store.execute(context.writes)
        else:
            context.add_log("Warning: this batch produced no writes")

        report = self._report(context, page.next_cursor, page.remaining, started)
        log.info(
            "Batch finished",
            processed=report.processed,
            next_cursor=report.next_cursor,
            remaining=report.remaining,
            duration=report.duration_seconds,
        )
        for line in report.logs:
            log.info(line)
        return report

    async def _process_row(
        self,
        raw,
        adapter: SourceAdapter,
        fallback_supplier: str,
        context: BatchContext,
    ):
        product = adapter.normalize(raw, fallback_supplier)
        if product is None:
            return

        try:
            await self.ensure_supplier(product.supplier_id, context)
        except DatabaseError as e:
            log.error("Supplier ensure failed", sku=product.sku, supplier_id=product.supplier_id, error=str(e))
            context.add_log(f"SKU {product.sku} skipped: supplier {product.supplier_id} could not be created ({e.detail})")
            return

        classification = await self.classifier.classify(product, adapter.vocabulary)
        if not classification.ok:
            context.add_log(
                f"SKU {product.sku} audience classification failed: {classification.reason}. "
                f"Using default [{adapter.vocabulary.fallback}]"
            )
        tags = classification.value

        context.writes.extend(plan_product_writes(product, tags, context.synced_at))
        context.processed += 1
        context.add_log(f"SKU {product.sku} -> audience: [{', '.join(tags)}] -> queued for import")

        await self._replicate_images(product, context)

    async def _replicate_images(self, product: CanonicalProduct, context: BatchContext):
        background = self.config.image_upload_mode == "background"

        for image in product.images:
            number = image.position + 1

            if background:
                upload = DeferredUpload(product.supplier_id, product.sku, image)
                context.deferred_uploads.append(upload)
                context.writes.append(plan_image_write(product.sku, upload.key, image.position))
                context.add_log(f"  image {number} -> upload scheduled in background: {upload.key}")
                continue

            result = await self.replicator.replicate(product.supplier_id, product.sku, image)
            if result.ok:
                context.writes.append(plan_image_write(product.sku, result.value, image.position))
                context.add_log(f"  image {number} -> uploaded: {result.value}")
            else:
                context.add_log(f"  image {number} ({image.url}) failed: {result.reason}")

    async def ensure_supplier(self, supplier_id: str, context: BatchContext):
        """Insert the supplier if absent; runs immediately and once per batch"""
        if supplier_id in context.known_suppliers:
            return

        await self.store.execute([
            plan_supplier_write(supplier_id, self.config.supplier_email_domain, context.synced_at)
        ])
        context.known_suppliers.add(supplier_id)

    def _report(self, context: BatchContext, next_cursor: Optional[str], remaining: Optional[int], started: float) -> BatchReport:
        return BatchReport(
            processed=context.processed,
            next_cursor=next_cursor,
            remaining=remaining,
            duration_seconds=round(time.perf_counter() - started, 3),
            logs=list(context.logs),
        )

