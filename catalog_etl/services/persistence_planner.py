"""
Persistence planning: turn a canonical product into insert-if-absent writes.

Planning is pure; a `WriteOperation` only becomes SQL when the store compiles
it for its dialect at commit time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import SQLModel

from catalog_etl.models import Product, ProductAudience, ProductImage, ProductInventory, ProductTag, Supplier, utc_now
from catalog_etl.schemas.product import CanonicalProduct
from catalog_etl.utils.normalization import normalize_identifier

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass(frozen=True)
class WriteOperation:
    """One row to insert unless its primary key already exists"""

    model: Type[SQLModel]
    values: Dict[str, Any] = field(default_factory=dict)

    def to_statement(self, dialect_name: str):
        try:
            insert = _INSERTS[dialect_name]
        except KeyError:
            raise ValueError(f"Unsupported dialect for insert-if-absent: {dialect_name}")
        return insert(self.model).values(**self.values).on_conflict_do_nothing()


def plan_product_writes(
    product: CanonicalProduct,
    audience_tags: List[str],
    synced_at: Optional[datetime] = None,
) -> List[WriteOperation]:
    """Writes for one product, in order: product, inventory, category tag, audience tags"""
    synced_at = synced_at or utc_now()

    writes = [
        WriteOperation(
            Product,
            {
                "sku": product.sku,
                "supplier_id": product.supplier_id,
                "name": product.name,
                "name_en": product.name_en,
                "barcode": product.barcode,
                "brand_name": product.brand,
                "description": product.description,
                "ingredients": product.ingredients,
                "size_dimensions": product.dimensions,
                "weight_g": product.weight_grams,
                "origin": product.origin,
                "msrp": product.msrp,
                "case_pack": product.case_pack,
                "is_public": True,
                "is_active_product": product.is_active,
                "created_at": synced_at,
            },
        ),
        WriteOperation(
            ProductInventory,
            {
                "sku": product.sku,
                "available_good": product.available_good,
                "available_defective": product.available_defective,
                "last_synced_at": synced_at,
            },
        ),
    ]

    if product.category:
        writes.append(WriteOperation(ProductTag, {"sku": product.sku, "tag": product.category}))

    for tag in audience_tags:
        if tag:
            writes.append(WriteOperation(ProductAudience, {"sku": product.sku, "audience_tag": tag}))

    return writes


def plan_image_write(sku: str, key: str, position: int) -> WriteOperation:
    return WriteOperation(ProductImage, {"sku": sku, "r2_key": key, "is_primary": position == 0})


def supplier_email(supplier_id: str, domain: str) -> str:
    return f"{normalize_identifier(supplier_id)}@{domain}"


def plan_supplier_write(supplier_id: str, domain: str, created_at: Optional[datetime] = None) -> WriteOperation:
    """Placeholder supplier row created the first time an import references the id"""
    return WriteOperation(
        Supplier,
        {
            "supplier_id": supplier_id,
            "name": supplier_id,
            "email": supplier_email(supplier_id, domain),
            "created_at": created_at or utc_now(),
        },
    )
