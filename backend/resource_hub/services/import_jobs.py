"""Import job log: append-only rows describing each import run."""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resource_hub.models.import_job import ImportJob
from resource_hub.schemas.imports import ImportOutcome

logger = logging.getLogger(__name__)


async def record_outcome(
    db: AsyncSession,
    session_id: uuid.UUID,
    outcome: ImportOutcome,
    file_name: str | None = None,
    total_rows: int = 0,
    valid_rows: int = 0,
) -> ImportJob:
    """Write one job row for a finished, halted or cancelled run.

    Args:
        db: Async session. The row is flushed, not committed; the caller
            controls the transaction.
        session_id: Import session the run belongs to. Retries of the same
            session produce additional rows.
        outcome: Result returned by the batch importer.
        file_name: Original upload name, if known.
        total_rows: Data rows in the source file.
        valid_rows: Rows that passed validation.
    """
    job = ImportJob(
        session_id=session_id,
        resource_type=outcome.resource_type,
        file_name=file_name,
        status=outcome.status,
        total_rows=total_rows,
        valid_rows=valid_rows,
        total_batches=outcome.total_batches,
        committed_batches=outcome.committed_batches,
        committed_rows=list(outcome.committed_rows),
        unsubmitted_rows=list(outcome.unsubmitted_rows),
        error=outcome.error,
    )
    db.add(job)
    await db.flush()
    logger.debug("Import job: %s %s session=%s", outcome.status, outcome.resource_type, session_id)
    return job


async def list_jobs(
    db: AsyncSession,
    resource_type: str | None = None,
    status: str | None = None,
    limit: int = 50,
) -> list[ImportJob]:
    stmt = select(ImportJob).order_by(ImportJob.created_at.desc()).limit(limit)
    if resource_type:
        stmt = stmt.where(ImportJob.resource_type == resource_type)
    if status:
        stmt = stmt.where(ImportJob.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())
