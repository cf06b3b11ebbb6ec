"""
Base classes for catalog sources.

A source is split in two: a `RecordSource` that pages raw rows out of some
external system, and a `SourceAdapter` that maps one raw row onto a
`CanonicalProduct`. The batch orchestrator only depends on these interfaces.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from catalog_etl.core.taxonomy import AudienceVocabulary
from catalog_etl.schemas.product import CanonicalProduct, ImageRef

SourceRow = Dict[str, Any]


@dataclass
class RecordPage:
    """One page of raw rows plus the cursor for the next page (None when done)"""
    rows: List[SourceRow] = field(default_factory=list)
    next_cursor: Optional[str] = None
    #: rows left after this page, when the source can tell
    remaining: Optional[int] = None


class RecordSource(ABC):
    """Paginated reader over an external table"""

    @abstractmethod
    async def list_page(self, page_size: int, cursor: Optional[str] = None) -> RecordPage:
        """Fetch one page; an absent cursor means start from the beginning"""
        pass

    async def close(self):
        pass


class SourceAdapter(ABC):
    """Maps raw rows of one source kind onto canonical products"""

    #: registry key, also accepted as the `source` request parameter
    name: str = ""
    #: audience tags the classifier may assign to rows from this source
    vocabulary: AudienceVocabulary

    @abstractmethod
    def normalize(self, raw: SourceRow, fallback_supplier_id: str) -> Optional[CanonicalProduct]:
        """Return the canonical product, or None when the row has no SKU"""
        pass

    @staticmethod
    def build_image_refs(urls: List[str]) -> List[ImageRef]:
        """Number image URLs in source order; the first one is primary"""
        return [ImageRef(url=url, position=index) for index, url in enumerate(urls) if url]
