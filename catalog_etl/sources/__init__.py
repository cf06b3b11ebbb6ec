"""
Catalog sources: paginated readers and row adapters
"""

from .base import RecordPage, RecordSource, SourceAdapter, SourceRow
from .csv_source import CsvRecordSource, CsvSourceAdapter
from .factory import SourceAdapterFactory, create_record_source
from .records_api import RecordsApiSource, RecordsSourceAdapter

__all__ = [
    "RecordPage",
    "RecordSource",
    "SourceAdapter",
    "SourceRow",
    "CsvRecordSource",
    "CsvSourceAdapter",
    "RecordsApiSource",
    "RecordsSourceAdapter",
    "SourceAdapterFactory",
    "create_record_source",
]
