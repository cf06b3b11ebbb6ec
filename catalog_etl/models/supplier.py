"""
Supplier model
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from .base import utc_now


class Supplier(SQLModel, table=True):
    """Supplier database model; placeholder rows are created on first reference"""

    __tablename__ = "suppliers"

    supplier_id: str = Field(primary_key=True)
    name: str
    email: str
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
