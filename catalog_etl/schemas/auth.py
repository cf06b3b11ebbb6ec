"""
Authentication schemas
"""
from typing import Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Admin registration; fields are validated by the endpoint to return 400s"""
    email: Optional[str] = None
    password: Optional[str] = None
    key: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserSummary(BaseModel):
    user_id: int
    email: str
    role: str


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    message: str
    user: UserSummary
    access_token: str
    token_type: str = "bearer"
