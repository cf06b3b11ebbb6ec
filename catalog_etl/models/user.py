"""
User model
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Column, Field, SQLModel, String

from .base import utc_now


class User(SQLModel, table=True):
    """Admin or supplier account"""

    __tablename__ = "users"

    user_id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(String, unique=True, index=True, nullable=False))
    password_hash: str
    role: str = Field(default="admin")
    supplier_id: Optional[str] = Field(default=None, foreign_key="suppliers.supplier_id")
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
