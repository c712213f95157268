"""Bulk resource import endpoints: upload → mapping → validation → import."""
import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from resource_hub.core.config import settings
from resource_hub.core.deps import (
    get_catalogs,
    get_import_session,
    get_importer,
    get_session_store,
)
from resource_hub.core.limiter import limiter
from resource_hub.db.session import get_session
from resource_hub.imports.catalog import CatalogRegistry
from resource_hub.imports.errors import (
    FileFormatError,
    ImportPipelineError,
    MappingError,
    NothingToImportError,
    StageTransitionError,
    UnknownResourceTypeError,
)
from resource_hub.imports.importer import BatchImporter
from resource_hub.imports.parser import ParsedFile, parse_upload
from resource_hub.imports.session import RESUBMIT_WARNING, ImportSession, SessionStore, Stage
from resource_hub.imports.template import generate_template, template_filename
from resource_hub.schemas.imports import (
    CatalogOut,
    FieldOut,
    ImportJobOut,
    ImportOut,
    ImportOutcome,
    MappingUpdate,
    ResourceTypeUpdate,
    SessionOut,
    StageChange,
    ValidationOut,
)
from resource_hub.services import import_jobs

logger = logging.getLogger(__name__)

router = APIRouter()

# ─── Constants ───

ALLOWED_EXTENSIONS = {".csv", ".tsv", ".txt"}

_ERROR_STATUS: dict[type[ImportPipelineError], int] = {
    FileFormatError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnknownResourceTypeError: status.HTTP_404_NOT_FOUND,
    MappingError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NothingToImportError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StageTransitionError: status.HTTP_409_CONFLICT,
}


# ─── Helpers ───

def _http_error(exc: ImportPipelineError) -> HTTPException:
    code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=str(exc))


def _catalog_out(resource_type: str, registry: CatalogRegistry) -> CatalogOut:
    fields = [
        FieldOut(
            name=f.name,
            label=f.label,
            type=f.type.value,
            required=f.required,
            options=[{"value": o.value, "label": o.label} for o in f.options],
        )
        for f in registry.get(resource_type)
    ]
    return CatalogOut(resource_type=resource_type, fields=fields)


async def _record_run(db: AsyncSession, session: ImportSession, outcome: ImportOutcome) -> None:
    summary = session.summary
    try:
        await import_jobs.record_outcome(
            db,
            session.id,
            outcome,
            file_name=session.file_name,
            total_rows=summary.total if summary else 0,
            valid_rows=summary.valid if summary else 0,
        )
        await db.commit()
    except SQLAlchemyError:
        # The import already happened; losing the log row must not hide the outcome
        logger.exception("Failed to record import job for session %s", session.id)
        await db.rollback()


async def _read_upload(file: UploadFile) -> ParsedFile:
    """Check extension and size, then parse. Raises HTTPException on any problem."""
    if Path(file.filename or "").suffix.lower() not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )
    content = await file.read()
    if len(content) > settings.IMPORT_MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.IMPORT_MAX_UPLOAD_BYTES} bytes.",
        )
    try:
        return parse_upload(content)
    except FileFormatError as exc:
        raise _http_error(exc)


def _import_response(session: ImportSession, outcome: ImportOutcome) -> ImportOut:
    halted = outcome.status != "completed"
    return ImportOut(
        session_id=session.id,
        outcome=outcome,
        retry_allowed=halted,
        notice=RESUBMIT_WARNING if outcome.status == "failed" else None,
    )


# ─── Catalogs & templates ───

@router.get("/catalogs", response_model=list[str], summary="List importable resource types")
async def list_catalogs(registry: Annotated[CatalogRegistry, Depends(get_catalogs)]):
    return registry.resource_types()


@router.get("/catalogs/{resource_type}", response_model=CatalogOut, summary="Field catalog for one resource type")
async def get_catalog(
    resource_type: str,
    registry: Annotated[CatalogRegistry, Depends(get_catalogs)],
):
    try:
        return _catalog_out(resource_type, registry)
    except UnknownResourceTypeError as exc:
        raise _http_error(exc)


@router.post("/catalogs/reload", response_model=list[str], summary="Reload field catalogs from CATALOG_PATH")
async def reload_catalogs(registry: Annotated[CatalogRegistry, Depends(get_catalogs)]):
    if not settings.CATALOG_PATH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CATALOG_PATH is not configured.")
    try:
        registry.load_file(settings.CATALOG_PATH)
    except (OSError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Invalid catalog file: {exc}")
    return registry.resource_types()


@router.get("/templates/{resource_type}", summary="Download an example import file")
async def download_template(
    resource_type: str,
    registry: Annotated[CatalogRegistry, Depends(get_catalogs)],
):
    try:
        catalog = registry.get(resource_type)
    except UnknownResourceTypeError as exc:
        raise _http_error(exc)
    return Response(
        content=generate_template(catalog),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{template_filename(resource_type)}"'},
    )


# ─── Sessions ───

@router.post(
    "/sessions",
    response_model=SessionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a delimited file and start an import session",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def create_session(
    request: Request,
    registry: Annotated[CatalogRegistry, Depends(get_catalogs)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    resource_type: str = Form(...),
    file: UploadFile = File(...),
):
    try:
        catalog = registry.get(resource_type)
    except UnknownResourceTypeError as exc:
        raise _http_error(exc)
    parsed = await _read_upload(file)

    session = ImportSession(resource_type, catalog)
    session.load_file(parsed, file.filename)
    store.add(session)
    logger.info("Import session %s started for %s (%s)", session.id, resource_type, file.filename)
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=SessionOut, summary="Current state of an import session")
async def get_session_state(session: Annotated[ImportSession, Depends(get_import_session)]):
    return session.snapshot()


@router.put(
    "/sessions/{session_id}/file",
    response_model=SessionOut,
    summary="Upload a replacement file after going back to the upload stage",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def replace_file(
    request: Request,
    session: Annotated[ImportSession, Depends(get_import_session)],
    file: UploadFile = File(...),
):
    if session.stage != Stage.upload:
        raise _http_error(StageTransitionError(session.stage.value, Stage.mapping.value))
    parsed = await _read_upload(file)
    try:
        session.load_file(parsed, file.filename)
    except ImportPipelineError as exc:
        raise _http_error(exc)
    logger.info("Import session %s received new file %s", session.id, file.filename)
    return session.snapshot()


@router.put("/sessions/{session_id}/mapping", response_model=SessionOut, summary="Edit field → column mapping")
async def update_mapping(
    body: MappingUpdate,
    session: Annotated[ImportSession, Depends(get_import_session)],
):
    try:
        session.update_mapping(body.mapping)
    except ImportPipelineError as exc:
        raise _http_error(exc)
    return session.snapshot()


@router.put(
    "/sessions/{session_id}/resource-type",
    response_model=SessionOut,
    summary="Switch resource type (resets the mapping)",
)
async def change_resource_type(
    body: ResourceTypeUpdate,
    session: Annotated[ImportSession, Depends(get_import_session)],
    registry: Annotated[CatalogRegistry, Depends(get_catalogs)],
):
    try:
        session.change_resource_type(body.resource_type, registry.get(body.resource_type))
    except ImportPipelineError as exc:
        raise _http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/validate", response_model=ValidationOut, summary="Validate all rows")
async def validate_session(session: Annotated[ImportSession, Depends(get_import_session)]):
    try:
        results = session.validate()
    except ImportPipelineError as exc:
        raise _http_error(exc)
    return ValidationOut(session_id=session.id, summary=session.summary, results=results)


@router.post("/sessions/{session_id}/back", response_model=SessionOut, summary="Return to an earlier stage")
async def go_back(
    body: StageChange,
    session: Annotated[ImportSession, Depends(get_import_session)],
):
    try:
        target = Stage(body.stage)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown stage: '{body.stage}'")
    try:
        session.go_back(target)
    except ImportPipelineError as exc:
        raise _http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/import", response_model=ImportOut, summary="Commit valid rows in batches")
async def run_import(
    session: Annotated[ImportSession, Depends(get_import_session)],
    importer: Annotated[BatchImporter, Depends(get_importer)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    try:
        outcome = await session.run_import(importer)
    except ImportPipelineError as exc:
        raise _http_error(exc)

    await _record_run(db, session, outcome)
    if outcome.status == "completed":
        store.remove(session.id)
    return _import_response(session, outcome)


@router.post(
    "/sessions/{session_id}/retry",
    response_model=ImportOut,
    summary="Resume a halted import from the first uncommitted batch",
)
async def retry_import(
    session: Annotated[ImportSession, Depends(get_import_session)],
    importer: Annotated[BatchImporter, Depends(get_importer)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    try:
        outcome = await session.retry(importer)
    except ImportPipelineError as exc:
        raise _http_error(exc)

    await _record_run(db, session, outcome)
    if outcome.status == "completed":
        store.remove(session.id)
    return _import_response(session, outcome)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Cancel and discard a session")
async def cancel_session(
    session: Annotated[ImportSession, Depends(get_import_session)],
    store: Annotated[SessionStore, Depends(get_session_store)],
):
    # A running import notices the flag before its next batch
    session.cancel()
    store.remove(session.id)
    if not session.lock.locked():
        session.discard()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Job log ───

@router.get("/jobs", response_model=list[ImportJobOut], summary="Recent import runs")
async def list_import_jobs(
    db: Annotated[AsyncSession, Depends(get_session)],
    resource_type: str | None = Query(default=None),
    job_status: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=500),
):
    return await import_jobs.list_jobs(db, resource_type=resource_type, status=job_status, limit=limit)
