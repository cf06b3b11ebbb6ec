"""
Batch import endpoints
"""
import traceback
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Query

from catalog_etl.api.deps import AdminKeyDep, BatchImportServiceDep
from catalog_etl.core.config import settings
from catalog_etl.core.exceptions import BaseAPIException, BatchImportError, ErrorResponse
from catalog_etl.core.logging import log
from catalog_etl.schemas.batch import BatchImportRequest, BatchReport
from catalog_etl.services.batch_import import BatchContext, BatchImportService

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


async def _run_batch(
    service: BatchImportService,
    batch_request: BatchImportRequest,
    background_tasks: BackgroundTasks,
) -> BatchReport:
    context = BatchContext()
    try:
        report = await service.run_batch(batch_request, context)
    except BaseAPIException:
        raise
    except Exception as e:
        log.opt(exception=e).error("Batch import failed", source=batch_request.source, cursor=batch_request.cursor)
        if settings.DEBUG:
            raise BatchImportError(f"Batch import failed: {e}", trace=traceback.format_exc())
        raise BatchImportError()

    if context.deferred_uploads:
        background_tasks.add_task(service.replicator.run_deferred, list(context.deferred_uploads))

    return report


@router.get(
    "/batch-import",
    response_model=BatchReport,
    responses=ERROR_RESPONSES,
    summary="Import one batch",
    description="Process one page of the catalog source and return the cursor for the next call",
)
async def batch_import(
    _: AdminKeyDep,
    service: BatchImportServiceDep,
    background_tasks: BackgroundTasks,
    cursor: Optional[str] = Query(None, description="Cursor returned by the previous batch"),
    source: str = Query("csv", description="Source id: csv or records"),
    supplier: Optional[str] = Query(None, description="Supplier id for rows whose supplier column is empty"),
    batch_size: Optional[int] = Query(None, ge=1, description="Rows per batch"),
) -> BatchReport:
    batch_request = BatchImportRequest(cursor=cursor, source=source, supplier=supplier, batch_size=batch_size)
    return await _run_batch(service, batch_request, background_tasks)


@router.post(
    "/batch-import",
    response_model=BatchReport,
    responses=ERROR_RESPONSES,
    summary="Import one batch (JSON body)",
)
async def batch_import_post(
    _: AdminKeyDep,
    batch_request: BatchImportRequest,
    service: BatchImportServiceDep,
    background_tasks: BackgroundTasks,
) -> BatchReport:
    return await _run_batch(service, batch_request, background_tasks)
