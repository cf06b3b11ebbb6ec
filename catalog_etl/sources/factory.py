"""
Factory for creating source adapters and their record readers
"""
from typing import Dict, Type

from catalog_etl.core.config import Settings, settings
from catalog_etl.core.exceptions import BadRequestError
from catalog_etl.services.storage import BlobStorage
from catalog_etl.sources.base import RecordSource, SourceAdapter
from catalog_etl.sources.csv_source import CsvRecordSource, CsvSourceAdapter
from catalog_etl.sources.records_api import RecordsApiSource, RecordsSourceAdapter


class SourceAdapterFactory:
    """Factory for creating source-specific adapters"""

    # Registry of available adapters
    _adapters: Dict[str, Type[SourceAdapter]] = {
        CsvSourceAdapter.name: CsvSourceAdapter,
        RecordsSourceAdapter.name: RecordsSourceAdapter,
    }

    @classmethod
    def get_adapter(cls, source: str) -> SourceAdapter:
        """Get adapter instance for a source id"""
        source_lower = (source or "").lower()

        if source_lower not in cls._adapters:
            raise BadRequestError(
                f"Unknown source: {source}",
                supported=cls.get_supported_sources(),
            )

        return cls._adapters[source_lower]()

    @classmethod
    def get_supported_sources(cls) -> list:
        """Get list of supported source ids"""
        return list(cls._adapters.keys())

    @classmethod
    def is_supported(cls, source: str) -> bool:
        """Check if a source id is supported"""
        return (source or "").lower() in cls._adapters


def create_record_source(source: str, storage: BlobStorage, config: Settings = settings) -> RecordSource:
    """Build the paginated reader that feeds the given source id"""
    source_lower = (source or "").lower()

    if source_lower == CsvSourceAdapter.name:
        return CsvRecordSource(storage, config.csv_file_name)

    if source_lower == RecordsSourceAdapter.name:
        if not config.records_base_id:
            raise BadRequestError("Records source is not configured (RECORDS_BASE_ID missing)")
        return RecordsApiSource(
            base_url=config.records_api_url,
            base_id=config.records_base_id,
            table=config.records_table,
            api_key=config.records_api_key,
            timeout=config.records_api_timeout,
        )

    raise BadRequestError(f"Unknown source: {source}", supported=SourceAdapterFactory.get_supported_sources())
