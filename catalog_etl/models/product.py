"""
Product models
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from .base import utc_now


class ProductBase(SQLModel):
    """Base product attributes"""

    supplier_id: str = Field(index=True)
    name: str = ""
    name_en: str = ""
    barcode: Optional[str] = None
    brand_name: str = ""
    description: str = ""
    ingredients: str = ""
    size_dimensions: str = ""
    weight_g: float = 0
    origin: str = ""
    msrp: int = 0
    case_pack: str = ""
    is_public: bool = True
    is_active_product: bool = False


class Product(ProductBase, table=True):
    """Product database model keyed by SKU"""

    __tablename__ = "products"

    sku: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class ProductInventory(SQLModel, table=True):
    """On-hand stock snapshot taken at import time"""

    __tablename__ = "product_inventory"

    sku: str = Field(primary_key=True)
    available_good: int = 0
    available_defective: int = 0
    last_synced_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class ProductTag(SQLModel, table=True):
    """Source category carried over as a free-form tag"""

    __tablename__ = "product_tags"

    sku: str = Field(primary_key=True)
    tag: str = Field(primary_key=True)


class ProductAudience(SQLModel, table=True):
    """AI-classified audience tag"""

    __tablename__ = "product_audience"

    sku: str = Field(primary_key=True)
    audience_tag: str = Field(primary_key=True)


class ProductImage(SQLModel, table=True):
    """Image mirrored into blob storage"""

    __tablename__ = "product_images"

    sku: str = Field(primary_key=True)
    r2_key: str = Field(primary_key=True)
    is_primary: bool = False
