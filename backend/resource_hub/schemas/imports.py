"""Pydantic schemas for the bulk resource import pipeline and its API."""
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ─── Pipeline values ───

class ColumnInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    header: str
    sample: str


class RowValidationError(BaseModel):
    field: str
    message: str


class FieldCoercionWarning(BaseModel):
    field: str
    message: str


class ImportResult(BaseModel):
    row: int
    data: dict[str, Any] = {}
    errors: list[RowValidationError] = []
    warnings: list[FieldCoercionWarning] = []
    valid: bool = True

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [w.message for w in self.warnings]


class ValidationSummary(BaseModel):
    total: int
    valid: int
    invalid: int


class ImportProgress(BaseModel):
    percent: float = 0.0
    batch_index: int = 0
    total_batches: int = 0
    committed_rows: int = 0


class ImportOutcome(BaseModel):
    status: str  # completed, failed, cancelled
    resource_type: str
    total_batches: int
    committed_batches: int
    committed_rows: list[int] = []
    unsubmitted_rows: list[int] = []
    progress_history: list[float] = []
    error: str | None = None


# ─── API requests ───

class MappingUpdate(BaseModel):
    # field name → column header; null clears the entry
    mapping: dict[str, str | None]


class ResourceTypeUpdate(BaseModel):
    resource_type: str


class StageChange(BaseModel):
    stage: str


# ─── API responses ───

class FieldOut(BaseModel):
    name: str
    label: str
    type: str
    required: bool
    options: list[dict[str, str]] = []


class CatalogOut(BaseModel):
    resource_type: str
    fields: list[FieldOut]


class SessionOut(BaseModel):
    id: uuid.UUID
    resource_type: str
    stage: str
    file_name: str | None
    row_count: int
    columns: list[ColumnInfo]
    mapping: dict[str, str]
    suggestions: dict[str, str] = {}
    summary: ValidationSummary | None = None
    progress: ImportProgress = Field(default_factory=ImportProgress)
    failure: str | None = None
    created_at: datetime


class ValidationOut(BaseModel):
    session_id: uuid.UUID
    summary: ValidationSummary
    results: list[ImportResult]


class ImportOut(BaseModel):
    session_id: uuid.UUID
    outcome: ImportOutcome
    retry_allowed: bool = False
    notice: str | None = None


class ImportJobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: uuid.UUID
    resource_type: str
    file_name: str | None
    status: str
    total_rows: int
    valid_rows: int
    total_batches: int
    committed_batches: int
    committed_rows: list[int]
    unsubmitted_rows: list[int]
    error: str | None
    created_at: datetime
