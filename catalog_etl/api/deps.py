"""
API Dependencies for dependency injection
"""
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_etl.core.config import settings
from catalog_etl.core.database import db_manager, get_async_session
from catalog_etl.core.security import verify_admin_api_key
from catalog_etl.repositories import CatalogStore, UserRepository
from catalog_etl.services import (
    AudienceClassifier,
    BlobStorage,
    GeminiTextGenerator,
    ImageReplicator,
    TextGenerator,
    create_storage,
)
from catalog_etl.services.batch_import import BatchImportService


# Database session
AsyncSessionDep = Annotated[AsyncSession, Depends(get_async_session)]


# Shared clients, built on first use and closed by the application lifespan
@lru_cache()
def get_storage() -> BlobStorage:
    return create_storage(settings)


@lru_cache()
def get_text_generator() -> TextGenerator:
    return GeminiTextGenerator()


StorageDep = Annotated[BlobStorage, Depends(get_storage)]
TextGeneratorDep = Annotated[TextGenerator, Depends(get_text_generator)]


# Repositories
async def get_catalog_store() -> CatalogStore:
    """Get catalog store bound to the global session manager"""
    return CatalogStore(db_manager)


async def get_user_repository(session: AsyncSessionDep) -> UserRepository:
    """Get user repository instance"""
    return UserRepository(session)


CatalogStoreDep = Annotated[CatalogStore, Depends(get_catalog_store)]
UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]


# Services
async def get_audience_classifier(generator: TextGeneratorDep) -> AudienceClassifier:
    return AudienceClassifier(generator)


async def get_image_replicator(storage: StorageDep) -> ImageReplicator:
    return ImageReplicator(storage, timeout=settings.image_fetch_timeout)


AudienceClassifierDep = Annotated[AudienceClassifier, Depends(get_audience_classifier)]
ImageReplicatorDep = Annotated[ImageReplicator, Depends(get_image_replicator)]


async def get_batch_import_service(
    store: CatalogStoreDep,
    storage: StorageDep,
    classifier: AudienceClassifierDep,
    replicator: ImageReplicatorDep,
) -> BatchImportService:
    """Get batch import service instance"""
    return BatchImportService(store, storage, classifier, replicator, settings)


BatchImportServiceDep = Annotated[BatchImportService, Depends(get_batch_import_service)]


# Admin guard
AdminKeyDep = Annotated[bool, Depends(verify_admin_api_key)]
