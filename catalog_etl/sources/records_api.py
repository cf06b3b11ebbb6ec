"""
Airtable-style records API: English field names, attachment lists, opaque offset tokens
"""
from typing import Any, Dict, List, Optional, Tuple

import httpx

from catalog_etl.core.exceptions import SourceUnavailableError
from catalog_etl.core.logging import log
from catalog_etl.core.taxonomy import ENGLISH_AUDIENCE
from catalog_etl.schemas.product import CanonicalProduct
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

# Accepted field names, compared case-insensitively
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "sku": ("sku", "product sku", "item code"),
    "supplier": ("supplier", "supplier_id", "supplier id"),
    "name": ("name", "product name", "title"),
    "name_en": ("name_en", "english name", "name (en)"),
    "barcode": ("barcode", "ean", "upc", "gtin"),
    "brand": ("brand", "brand name"),
    "description": ("description", "details"),
    "ingredients": ("ingredients", "materials", "ingredients/materials"),
    "dimensions": ("dimensions", "size"),
    "weight": ("weight_g", "weight (g)", "weight"),
    "origin": ("origin", "country of origin"),
    "msrp": ("msrp", "retail price", "price"),
    "case_pack": ("case_pack", "case pack"),
    "active": ("active", "is_active", "in stock"),
    "category": ("category", "type"),
    "images": ("images", "image", "attachments", "photos"),
    "available_good": ("available_good", "stock", "stock good", "on hand"),
    "available_defective": ("available_defective", "stock defective"),
}

AFFIRMATIVE = "yes"


def _image_urls(value: Any) -> List[str]:
    """Attachment fields arrive as URL strings, attachment objects, or free-text markup"""
    if value is None:
        return []
    if isinstance(value, str):
        urls = extract_parenthesized_urls(value)
        if urls:
            return urls
        text = value.strip()
        return [text] if text.startswith(("http://", "https://")) else []
    if isinstance(value, dict):
        value = [value]

    urls = []
    for item in value:
        if isinstance(item, str):
            url = item.strip()
        elif isinstance(item, dict):
            url = clean_text(item.get("url"))
        else:
            continue
        if url:
            urls.append(url)
    return urls


class RecordsSourceAdapter(SourceAdapter):
    """Adapter for records API rows"""

    name = "records"
    vocabulary = ENGLISH_AUDIENCE

    @staticmethod
    def _fields(raw: SourceRow) -> Dict[str, Any]:
        return {key.strip().casefold(): value for key, value in raw.items() if isinstance(key, str)}

    @staticmethod
    def _pick(fields: Dict[str, Any], field: str) -> Any:
        for alias in FIELD_ALIASES[field]:
            if alias in fields:
                return fields[alias]
        return None

    def normalize(self, raw: SourceRow, fallback_supplier_id: str) -> Optional[CanonicalProduct]:
        fields = self._fields(raw)
        sku = clean_text(self._pick(fields, "sku"))
        if not sku:
            return None

        return CanonicalProduct(
            sku=sku,
            supplier_id=clean_text(self._pick(fields, "supplier")) or fallback_supplier_id,
            name=clean_text(self._pick(fields, "name")),
            name_en=clean_text(self._pick(fields, "name_en")),
            barcode=optional_text(self._pick(fields, "barcode")),
            brand=clean_text(self._pick(fields, "brand")),
            description=clean_text(self._pick(fields, "description")),
            ingredients=clean_text(self._pick(fields, "ingredients")),
            dimensions=clean_text(self._pick(fields, "dimensions")),
            weight_grams=parse_float(self._pick(fields, "weight")),
            origin=clean_text(self._pick(fields, "origin")),
            msrp=parse_price(self._pick(fields, "msrp")),
            case_pack=clean_text(self._pick(fields, "case_pack")),
            is_active=is_affirmative(self._pick(fields, "active"), AFFIRMATIVE),
            category=optional_text(self._pick(fields, "category")),
            available_good=parse_int(self._pick(fields, "available_good")),
            available_defective=parse_int(self._pick(fields, "available_defective")),
            images=self.build_image_refs(_image_urls(self._pick(fields, "images"))),
        )


class RecordsApiSource(RecordSource):
    """
    Pages through a table of a records API.

    GET {base_url}/{base_id}/{table}?pageSize=N&offset=TOKEN returns
    {"records": [{"id": ..., "fields": {...}}], "offset": "next-token"};
    the offset key is absent on the last page.
    """

    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        base_url: str,
        base_id: str,
        table: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = f"{base_url.rstrip('/')}/{base_id}/{table}"
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = client or httpx.AsyncClient(headers=headers, timeout=timeout)

    async def _get(self, params: Dict[str, Any]) -> httpx.Response:
        try:
            return await self.client.get(self.url, params=params)
        except httpx.TransportError as e:
            raise SourceUnavailableError(f"Records API unreachable: {e}", url=self.url)

    async def list_page(self, page_size: int, cursor: Optional[str] = None) -> RecordPage:
        params: Dict[str, Any] = {"pageSize": min(page_size, self.MAX_PAGE_SIZE)}
        if cursor:
            params["offset"] = cursor

        response = await self._get(params)
        if response.status_code != 200:
            raise SourceUnavailableError(
                f"Records API returned {response.status_code}",
                status=response.status_code,
                body=response.text[:200],
            )

        payload = response.json()
        rows = [
            {"_record_id": record.get("id"), **(record.get("fields") or {})}
            for record in payload.get("records", [])
        ]
        log.debug("Read records page", url=self.url, rows=len(rows), has_more=bool(payload.get("offset")))

        return RecordPage(rows=rows, next_cursor=payload.get("offset") or None)

    async def close(self):
        await self.client.aclose()
