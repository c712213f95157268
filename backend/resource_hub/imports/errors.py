"""Exceptions raised by the bulk import pipeline.

Row-level problems are never raised: they are collected as
RowValidationError / FieldCoercionWarning entries on each ImportResult
(resource_hub.schemas.imports). Only conditions that block the whole pipeline live here.
"""


class ImportPipelineError(Exception):
    """Base class for blocking import pipeline failures."""


class FileFormatError(ImportPipelineError):
    """Upload could not be parsed into a header line plus at least one data row."""


class UnknownResourceTypeError(ImportPipelineError):
    def __init__(self, resource_type: str):
        super().__init__(f"Unknown resource type: '{resource_type}'")
        self.resource_type = resource_type


class MappingError(ImportPipelineError):
    """A mapping edit referenced a field or column that does not exist."""


class StageTransitionError(ImportPipelineError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move import from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class ImportTransportError(ImportPipelineError):
    """A create call for one batch failed; later batches were not attempted."""

    def __init__(self, message: str, batch_index: int | None = None, committed_rows: list[int] | None = None):
        super().__init__(message)
        self.batch_index = batch_index
        self.committed_rows = committed_rows or []


class NothingToImportError(ImportPipelineError):
    """Validation left no valid rows, so there is nothing to submit."""
