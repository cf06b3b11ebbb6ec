"""
CSV master file held in blob storage, with localized (Traditional Chinese) column names
"""
import csv
import io
from typing import List, Optional

from catalog_etl.core.config import settings
from catalog_etl.core.exceptions import BadRequestError, SourceUnavailableError
from catalog_etl.core.logging import log
from catalog_etl.core.taxonomy import CSV_AUDIENCE_TAG_SETS, AudienceVocabulary
from catalog_etl.schemas.product import CanonicalProduct
from catalog_etl.services.storage import BlobStorage
from catalog_etl.sources.base import RecordPage, RecordSource, SourceAdapter, SourceRow
from catalog_etl.utils.normalization import (
    clean_text,
    extract_parenthesized_urls,
    is_affirmative,
    optional_text,
    parse_float,
    parse_int,
    parse_price,
)

# Column headers of the supplier master sheet
COL_SKU = "商品貨號"
COL_SUPPLIER = "供應商"
COL_NAME = "產品名稱"
COL_NAME_EN = "英文品名"
COL_BARCODE = "國際條碼"
COL_BRAND = "品牌名稱"
COL_DESCRIPTION = "商品介紹"
COL_INGREDIENTS = "成份/材質"
COL_DIMENSIONS = "商品尺寸"
COL_WEIGHT = "重量g"
COL_ORIGIN = "產地"
COL_MSRP = "建議售價"
COL_CASE_PACK = "箱入數"
COL_IN_STOCK = "現貨商品"
COL_CATEGORY = "類別"
COL_IMAGES = "商品圖檔"
COL_STOCK_GOOD = "庫存_正品_可用"
COL_STOCK_DEFECTIVE = "庫存_次品_可用"

AFFIRMATIVE = "是"


class CsvSourceAdapter(SourceAdapter):
    """Adapter for rows of the localized CSV master file"""

    name = "csv"

    @property
    def vocabulary(self) -> AudienceVocabulary:
        return CSV_AUDIENCE_TAG_SETS[settings.csv_audience_tags]

    def normalize(self, raw: SourceRow, fallback_supplier_id: str) -> Optional[CanonicalProduct]:
        sku = clean_text(raw.get(COL_SKU))
        if not sku:
            return None

        return CanonicalProduct(
            sku=sku,
            supplier_id=clean_text(raw.get(COL_SUPPLIER)) or fallback_supplier_id,
            name=clean_text(raw.get(COL_NAME)),
            name_en=clean_text(raw.get(COL_NAME_EN)),
            barcode=optional_text(raw.get(COL_BARCODE)),
            brand=clean_text(raw.get(COL_BRAND)),
            description=clean_text(raw.get(COL_DESCRIPTION)),
            ingredients=clean_text(raw.get(COL_INGREDIENTS)),
            dimensions=clean_text(raw.get(COL_DIMENSIONS)),
            weight_grams=parse_float(raw.get(COL_WEIGHT)),
            origin=clean_text(raw.get(COL_ORIGIN)),
            msrp=parse_price(raw.get(COL_MSRP)),
            case_pack=clean_text(raw.get(COL_CASE_PACK)),
            is_active=is_affirmative(raw.get(COL_IN_STOCK), AFFIRMATIVE),
            category=optional_text(raw.get(COL_CATEGORY)),
            available_good=parse_int(raw.get(COL_STOCK_GOOD)),
            available_defective=parse_int(raw.get(COL_STOCK_DEFECTIVE)),
            images=self.build_image_refs(extract_parenthesized_urls(raw.get(COL_IMAGES))),
        )


def parse_csv(data: bytes) -> List[SourceRow]:
    """Decode a CSV export (tolerating an Excel BOM) into row dicts, dropping blank lines"""
    text = data.decode("utf-8-sig")
    reader = csv.DictReader(io.StringIO(text))
    return [row for row in reader if any(clean_text(value) for value in row.values())]


def parse_offset_cursor(cursor: Optional[str]) -> int:
    """Offset cursors are plain non-negative integers"""
    if cursor is None or cursor == "":
        return 0
    try:
        offset = int(cursor)
    except ValueError:
        raise BadRequestError(f"Invalid cursor: {cursor!r}", cursor=cursor)
    if offset < 0:
        raise BadRequestError(f"Invalid cursor: {cursor!r}", cursor=cursor)
    return offset


class CsvRecordSource(RecordSource):
    """
    Pages through a CSV file stored in blob storage.

    The file is read fresh on every call; the cursor is the row offset of the
    next page. Any non-empty page hands back a cursor, so the walk always ends
    with one empty page whose cursor is None.
    """

    def __init__(self, storage: BlobStorage, file_name: str):
        self.storage = storage
        self.file_name = file_name

    async def list_page(self, page_size: int, cursor: Optional[str] = None) -> RecordPage:
        offset = parse_offset_cursor(cursor)

        data = await self.storage.get(self.file_name)
        if data is None:
            raise SourceUnavailableError(f"CSV file not found in storage: {self.file_name}", file=self.file_name)

        try:
            rows = parse_csv(data)
        except (UnicodeDecodeError, csv.Error) as e:
            raise SourceUnavailableError(f"CSV file is unreadable: {e}", file=self.file_name)

        page = rows[offset:offset + page_size]
        log.debug("Read CSV page", file=self.file_name, offset=offset, rows=len(page), total=len(rows))

        return RecordPage(
            rows=page,
            next_cursor=str(offset + len(page)) if page else None,
            remaining=max(len(rows) - offset - len(page), 0),
        )
