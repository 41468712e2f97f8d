"""
Exclusive control response models

Pydantic models used to report lock errors to API clients.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from exclusive_control.base.errors import ConflictError, ExclusiveControlError


class ConflictedRow(BaseModel):
    """One row whose version changed since it was read."""
    table_name: str = Field(..., description="Exclusive-control table")
    version_column_name: str = Field(..., description="Version column")
    version: str = Field(..., description="Version held by the caller")
    primary_key_condition: Dict[str, Any] = Field(..., description="Primary key of the row")


class LockErrorResponse(BaseModel):
    """Response body for any exclusive control error."""
    error: str = Field(..., description="Human-readable message")
    code: str = Field(..., description="Error code name")
    details: Optional[str] = Field(None, description="Additional details")
    rows: List[ConflictedRow] = Field(default_factory=list, description="Contested rows (conflicts only)")

    @classmethod
    def from_error(cls, exc: ExclusiveControlError) -> "LockErrorResponse":
        rows = []
        if isinstance(exc, ConflictError):
            rows = [
                ConflictedRow(
                    table_name=v.table_name,
                    version_column_name=v.version_column_name,
                    version=v.version,
                    primary_key_condition=v.primary_key_condition,
                )
                for v in exc.conflicting_versions
            ]
        return cls(error=exc.message, code=exc.err.name, details=exc.details, rows=rows)
