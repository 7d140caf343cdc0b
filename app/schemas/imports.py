"""
app/schemas/imports.py

Response schemas for tabular import endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

PayloadT = TypeVar("PayloadT")


class ApiEnvelope(BaseModel, Generic[PayloadT]):
    """
    Uniform `{success, data, message}` wrapper returned by import endpoints.
    """

    success: bool
    data: PayloadT | None = None
    message: str | None = None


class ImportRowErrorResponse(BaseModel):
    row: int = Field(..., ge=1)
    errors: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)


class ImportRowWarningResponse(BaseModel):
    row: int = Field(..., ge=1)
    warnings: list[str] = Field(default_factory=list)
    is_duplicate: bool = False
    duplicate_reason: str | None = None


class ImportResultResponse(BaseModel):
    """
    Batch summary; `errors` and `warnings` may be truncated, counts never are.
    """

    success: bool
    total_rows: int = Field(..., ge=0)
    processed: int = Field(..., ge=0)
    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    duplicates: int = Field(default=0, ge=0)
    cancelled: bool = False
    file_id: int | None = None
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)
    warnings: list[ImportRowWarningResponse] = Field(default_factory=list)


class ImportPreviewResponse(BaseModel):
    record_kind: str
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    mapping: dict[str, str] = Field(default_factory=dict)
    match_strategies: dict[str, str] = Field(default_factory=dict)
    unmapped_fields: list[str] = Field(default_factory=list)


class ImportSessionAcceptedResponse(BaseModel):
    session_id: UUID
    record_kind: str
    status: str
    created_at: datetime


class ImportSessionStatusResponse(BaseModel):
    session_id: UUID
    record_kind: str
    status: str
    file_name: str | None = None
    file_size: int | None = None
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result_payload: dict[str, Any] | None = None
    error_message: str | None = None


class ImportSessionListResponse(BaseModel):
    sessions: list[ImportSessionStatusResponse] = Field(default_factory=list)
