"""
Canonical product schemas produced by the source adapters
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class ImageRef(BaseModel):
    """One source image; position 0 is the primary image"""
    url: str
    position: int = Field(ge=0)

    @property
    def is_primary(self) -> bool:
        return self.position == 0


class CanonicalProduct(BaseModel):
    """Typed, source-independent view of one catalog row"""
    sku: str = Field(min_length=1)
    supplier_id: str
    name: str = ""
    name_en: str = ""
    barcode: Optional[str] = None
    brand: str = ""
    description: str = ""
    ingredients: str = ""
    dimensions: str = ""
    weight_grams: float = 0
    origin: str = ""
    msrp: int = 0
    case_pack: str = ""
    is_active: bool = False
    category: Optional[str] = None
    available_good: int = 0
    available_defective: int = 0
    images: List[ImageRef] = Field(default_factory=list)
