"""
Batch import request/response schemas
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

REASON_MAX_LENGTH = 120


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Outcome of a recoverable pipeline step"""

    ok: bool
    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "StepResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str, value: Optional[T] = None) -> "StepResult[T]":
        reason = str(reason)
        if len(reason) > REASON_MAX_LENGTH:
            reason = reason[: REASON_MAX_LENGTH - 3] + "..."
        return cls(ok=False, value=value, reason=reason)


class BatchImportRequest(BaseModel):
    """Parameters for one batch; all optional so a bare call starts from the top"""

    cursor: Optional[str] = Field(None, description="Opaque cursor returned by the previous batch")
    source: str = Field("csv", description="Source id: csv or records")
    supplier: Optional[str] = Field(None, description="Supplier id for rows whose supplier column is empty")
    batch_size: Optional[int] = Field(None, ge=1, description="Rows per batch; capped by configuration")


class BatchReport(BaseModel):
    """Progress report for one processed batch"""

    model_config = ConfigDict(populate_by_name=True)

    processed: int = 0
    next_cursor: Optional[str] = Field(None, alias="nextCursor")
    remaining: Optional[int] = None
    duration_seconds: float = Field(0.0, alias="durationSeconds")
    logs: List[str] = Field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.next_cursor is None
