"""Batch importer: commits validated rows to the resource store in order.

Batches go out one at a time. A failed batch halts the run: earlier batches
stay committed (there is no compensating delete) and later batches are never
attempted. Cancellation is honoured only between batches because an
in-flight create call cannot be aborted.
"""
import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from resource_hub.imports.catalog import Catalog
from resource_hub.imports.errors import ImportTransportError
from resource_hub.schemas.imports import ImportOutcome, ImportProgress, ImportResult

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class ResourceSink(Protocol):
    """External create operation. Must raise if the batch was not accepted."""

    async def create_batch(self, records: list[dict[str, Any]]) -> None: ...


def build_record(result: ImportResult, resource_type: str, catalog: Catalog) -> dict[str, Any]:
    """Shape one valid row as {title, url?, summary?, tags, image_url?, type, data}."""
    base_names = {f.name for f in catalog if f.base}
    record: dict[str, Any] = {
        name: value for name, value in result.data.items() if name in base_names
    }
    record.setdefault("tags", [])
    record["type"] = resource_type
    record["data"] = {
        name: value for name, value in result.data.items() if name not in base_names
    }
    return record


def partition(items: Sequence[ImportResult], size: int) -> list[list[ImportResult]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchImporter:
    def __init__(self, sink: ResourceSink, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.sink = sink
        self.batch_size = batch_size

    async def run(
        self,
        results: Sequence[ImportResult],
        resource_type: str,
        catalog: Catalog,
        *,
        start_batch: int = 0,
        on_progress: Callable[[ImportProgress], None] | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ImportOutcome:
        """Submit valid results in batches, starting at ``start_batch``.

        Batches before ``start_batch`` are treated as already committed by an
        earlier run of the same session and are not resent.
        """
        valid = [r for r in results if r.valid]
        batches = partition(valid, self.batch_size)
        total = len(batches)

        committed_rows = [r.row for batch in batches[:start_batch] for r in batch]
        history: list[float] = []

        for idx in range(start_batch, total):
            if should_cancel is not None and should_cancel():
                logger.info("Import of %s cancelled before batch %d/%d", resource_type, idx + 1, total)
                return self._outcome("cancelled", resource_type, batches, idx, committed_rows, history)

            batch = batches[idx]
            records = [build_record(r, resource_type, catalog) for r in batch]
            try:
                await self.sink.create_batch(records)
            except Exception as exc:
                # Anything the sink raises means the batch was not accepted
                logger.warning(
                    "Import of %s halted at batch %d/%d (%d rows already committed): %s",
                    resource_type, idx + 1, total, len(committed_rows), exc,
                    exc_info=not isinstance(exc, ImportTransportError),
                )
                return self._outcome(
                    "failed", resource_type, batches, idx, committed_rows, history,
                    error=f"Batch {idx + 1} of {total} failed: {exc}",
                )

            committed_rows.extend(r.row for r in batch)
            progress = ImportProgress(
                percent=(idx + 1) / total * 100,
                batch_index=idx + 1,
                total_batches=total,
                committed_rows=len(committed_rows),
            )
            history.append(progress.percent)
            logger.info(
                "Committed batch %d/%d of %s (%d records)",
                idx + 1, total, resource_type, len(records),
            )
            if on_progress is not None:
                on_progress(progress)

        return self._outcome("completed", resource_type, batches, total, committed_rows, history)

    @staticmethod
    def _outcome(
        status: str,
        resource_type: str,
        batches: list[list[ImportResult]],
        next_batch: int,
        committed_rows: list[int],
        history: list[float],
        error: str | None = None,
    ) -> ImportOutcome:
        return ImportOutcome(
            status=status,
            resource_type=resource_type,
            total_batches=len(batches),
            committed_batches=next_batch,
            committed_rows=list(committed_rows),
            unsubmitted_rows=[r.row for batch in batches[next_batch:] for r in batch],
            progress_history=history,
            error=error,
        )
