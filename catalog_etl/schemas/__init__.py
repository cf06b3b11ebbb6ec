"""
Pydantic schemas for request/response validation
"""

from .auth import LoginRequest, LoginResponse, MessageResponse, RegisterRequest, UserSummary
from .batch import BatchImportRequest, BatchReport, StepResult
from .common import HealthCheckResponse, ReadinessResponse
from .product import CanonicalProduct, ImageRef

__all__ = [
    "CanonicalProduct",
    "ImageRef",
    "BatchImportRequest",
    "BatchReport",
    "StepResult",
    "HealthCheckResponse",
    "ReadinessResponse",
    "RegisterRequest",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "UserSummary",
]
