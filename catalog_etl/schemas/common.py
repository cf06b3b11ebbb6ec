"""
Common schemas used across the API
"""
from typing import Dict

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = "ok"
    timestamp: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness probe response"""
    status: str
    timestamp: str
    checks: Dict[str, bool] = Field(default_factory=dict)
