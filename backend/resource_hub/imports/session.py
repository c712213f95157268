"""Import session: the single owner of one upload's pipeline state.

Stages run upload → mapping → validation → import. Going back is allowed
from mapping to upload and from validation to mapping. Once import starts it
either completes or halts; a halted import can be retried from the first
uncommitted batch or discarded, never rewound.
"""
import asyncio
import enum
import logging
import uuid
from datetime import datetime, timedelta, timezone

from resource_hub.imports.catalog import Catalog
from resource_hub.imports.errors import (
    NothingToImportError,
    StageTransitionError,
)
from resource_hub.imports.importer import BatchImporter
from resource_hub.imports.mapper import auto_map, check_mapping_entry, suggest_columns
from resource_hub.imports.parser import ParsedFile
from resource_hub.imports.validator import summarize, validate_rows
from resource_hub.schemas.imports import (
    ImportOutcome,
    ImportProgress,
    ImportResult,
    SessionOut,
    ValidationSummary,
)

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    upload = "upload"
    mapping = "mapping"
    validation = "validation"
    import_ = "import"


ALLOWED_TRANSITIONS: set[tuple[Stage, Stage]] = {
    (Stage.upload, Stage.mapping),
    (Stage.mapping, Stage.validation),
    (Stage.validation, Stage.validation),
    (Stage.validation, Stage.import_),
    (Stage.mapping, Stage.upload),
    (Stage.validation, Stage.mapping),
}

RESUBMIT_WARNING = (
    "Rows from batches that already succeeded are stored. "
    "Do not resubmit them; retry only continues with the remaining batches."
)


class ImportSession:
    def __init__(self, resource_type: str, catalog: Catalog):
        self.id = uuid.uuid4()
        self.created_at = datetime.now(timezone.utc)
        self.resource_type = resource_type
        self.catalog = catalog
        self.stage = Stage.upload
        self.file_name: str | None = None
        self.parsed: ParsedFile | None = None
        self.mapping: dict[str, str] = {}
        self.results: list[ImportResult] = []
        self.summary: ValidationSummary | None = None
        self.progress = ImportProgress()
        self.outcome: ImportOutcome | None = None
        self.cancel_requested = False
        self.lock = asyncio.Lock()

    # ─── Stage machine ───

    def _transition(self, target: Stage) -> None:
        if (self.stage, target) not in ALLOWED_TRANSITIONS:
            raise StageTransitionError(self.stage.value, target.value)
        logger.debug("Session %s: %s → %s", self.id, self.stage.value, target.value)
        self.stage = target

    def go_back(self, target: Stage) -> None:
        if target == Stage.upload and self.stage == Stage.mapping:
            self._transition(target)
            self.parsed = None
            self.file_name = None
            self.mapping = {}
        elif target == Stage.mapping and self.stage == Stage.validation:
            self._transition(target)
            self.results = []
            self.summary = None
        else:
            raise StageTransitionError(self.stage.value, target.value)

    # ─── Upload & mapping ───

    def load_file(self, parsed: ParsedFile, file_name: str | None = None) -> None:
        self._transition(Stage.mapping)
        self.parsed = parsed
        self.file_name = file_name
        self.mapping = auto_map(self.catalog, parsed.headers)
        logger.info(
            "Session %s: %d/%d %s fields auto-mapped",
            self.id, len(self.mapping), len(self.catalog), self.resource_type,
        )

    @property
    def headers(self) -> tuple[str, ...]:
        return self.parsed.headers if self.parsed else ()

    def suggestions(self) -> dict[str, str]:
        if self.parsed is None:
            return {}
        return suggest_columns(self.catalog, self.parsed.headers, self.mapping)

    def set_mapping(self, field_name: str, header: str | None) -> None:
        if self.stage != Stage.mapping:
            raise StageTransitionError(self.stage.value, Stage.mapping.value)
        check_mapping_entry(self.catalog, self.headers, field_name, header)
        if header is None:
            self.mapping.pop(field_name, None)
        else:
            self.mapping[field_name] = header

    def update_mapping(self, edits: dict[str, str | None]) -> None:
        """Apply several edits at once; nothing changes if any entry is bad."""
        if self.stage != Stage.mapping:
            raise StageTransitionError(self.stage.value, Stage.mapping.value)
        for field_name, header in edits.items():
            check_mapping_entry(self.catalog, self.headers, field_name, header or None)
        for field_name, header in edits.items():
            self.set_mapping(field_name, header or None)

    def change_resource_type(self, resource_type: str, catalog: Catalog) -> None:
        """Switch catalogs. The mapping is cleared and recomputed from scratch."""
        if self.stage == Stage.import_:
            raise StageTransitionError(self.stage.value, self.stage.value)
        if self.stage == Stage.validation:
            self.go_back(Stage.mapping)
        self.resource_type = resource_type
        self.catalog = catalog
        self.mapping = auto_map(catalog, self.headers) if self.parsed else {}
        logger.info("Session %s: resource type changed to %s", self.id, resource_type)

    # ─── Validation ───

    def validate(self) -> list[ImportResult]:
        if self.parsed is None:
            raise StageTransitionError(self.stage.value, Stage.validation.value)
        self._transition(Stage.validation)
        self.results = validate_rows(self.catalog, self.mapping, self.parsed.rows)
        self.summary = summarize(self.results)
        return self.results

    # ─── Import ───

    def _record_progress(self, progress: ImportProgress) -> None:
        # Percent only ever moves forward, including across a retry
        if progress.percent >= self.progress.percent:
            self.progress = progress

    async def run_import(self, importer: BatchImporter) -> ImportOutcome:
        async with self.lock:
            if self.stage != Stage.validation:
                raise StageTransitionError(self.stage.value, Stage.import_.value)
            if not any(r.valid for r in self.results):
                raise NothingToImportError("No valid rows to import")
            self._transition(Stage.import_)
            self.cancel_requested = False
            return await self._run(importer, start_batch=0)

    async def retry(self, importer: BatchImporter) -> ImportOutcome:
        """Resume a halted import from the first batch that was not committed."""
        async with self.lock:
            if self.stage != Stage.import_ or self.outcome is None or self.outcome.status == "completed":
                raise StageTransitionError(self.stage.value, Stage.import_.value)
            self.cancel_requested = False
            return await self._run(importer, start_batch=self.outcome.committed_batches)

    async def _run(self, importer: BatchImporter, start_batch: int) -> ImportOutcome:
        previous = self.outcome.progress_history if self.outcome else []
        outcome = await importer.run(
            self.results,
            self.resource_type,
            self.catalog,
            start_batch=start_batch,
            on_progress=self._record_progress,
            should_cancel=lambda: self.cancel_requested,
        )
        outcome.progress_history = previous + outcome.progress_history
        self.outcome = outcome
        if outcome.status == "completed":
            self.discard()
        return outcome

    @property
    def failure(self) -> str | None:
        if self.outcome is None or self.outcome.status == "completed":
            return None
        if self.outcome.status == "cancelled":
            return "Import cancelled"
        return f"{self.outcome.error} {RESUBMIT_WARNING}"

    def cancel(self) -> None:
        """Request a stop. An in-flight batch still finishes."""
        self.cancel_requested = True

    def discard(self) -> None:
        # Row data goes; the validation counts stay for the job log
        self.parsed = None
        self.results = []
        self.mapping = {}

    # ─── Presentation ───

    def snapshot(self) -> SessionOut:
        return SessionOut(
            id=self.id,
            resource_type=self.resource_type,
            stage=self.stage.value,
            file_name=self.file_name,
            row_count=self.parsed.row_count if self.parsed else 0,
            columns=self.parsed.columns() if self.parsed else [],
            mapping=dict(self.mapping),
            suggestions=self.suggestions() if self.stage == Stage.mapping else {},
            summary=self.summary,
            progress=self.progress,
            failure=self.failure,
            created_at=self.created_at,
        )


class SessionStore:
    """In-process registry of live import sessions, expired by age."""

    def __init__(self, ttl: timedelta):
        self.ttl = ttl
        self._sessions: dict[uuid.UUID, ImportSession] = {}

    def add(self, session: ImportSession) -> ImportSession:
        self.purge_expired()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: uuid.UUID) -> ImportSession | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: uuid.UUID) -> ImportSession | None:
        return self._sessions.pop(session_id, None)

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired = [
            sid for sid, s in self._sessions.items()
            if now - s.created_at > self.ttl and not s.lock.locked()
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Purged %d expired import sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
