"""Tests for the import session stage machine and session store."""
from datetime import datetime, timedelta, timezone

import pytest

from resource_hub.imports.catalog import DEFAULT_CATALOGS
from resource_hub.imports.errors import (
    MappingError,
    NothingToImportError,
    StageTransitionError,
)
from resource_hub.imports.importer import BatchImporter
from resource_hub.imports.parser import parse_text
from resource_hub.imports.session import ImportSession, SessionStore, Stage

GRANTS = DEFAULT_CATALOGS["grants"]
LEARNING = DEFAULT_CATALOGS["learning"]


def _grants_file(rows: int = 23):
    lines = ["Title,URL,Granting Agency,Link"]
    lines += [f"Grant {i},https://g.example/{i},USDA,https://alt.example/{i}" for i in range(1, rows + 1)]
    return parse_text("\n".join(lines))


def _loaded_session(rows: int = 23) -> ImportSession:
    session = ImportSession("grants", GRANTS)
    session.load_file(_grants_file(rows), "grants.csv")
    return session


def test_load_file_auto_maps_and_enters_mapping():
    session = _loaded_session()

    assert session.stage == Stage.mapping
    assert session.mapping == {"title": "Title", "url": "URL", "agency": "Granting Agency"}
    snap = session.snapshot()
    assert snap.row_count == 23
    assert snap.file_name == "grants.csv"
    assert [c.header for c in snap.columns] == ["Title", "URL", "Granting Agency", "Link"]


def test_stages_cannot_be_skipped():
    session = ImportSession("grants", GRANTS)
    with pytest.raises(StageTransitionError):
        session.validate()

    session = _loaded_session()
    with pytest.raises(StageTransitionError):
        session.go_back(Stage.validation)


def test_mapping_edits_are_checked_and_all_or_nothing():
    session = _loaded_session()

    session.update_mapping({"url": "Link", "summary": None})
    assert session.mapping["url"] == "Link"

    with pytest.raises(MappingError):
        session.update_mapping({"url": "URL", "agency": "Missing Column"})
    assert session.mapping["url"] == "Link"
    assert session.mapping["agency"] == "Granting Agency"

    session.update_mapping({"url": None})
    assert "url" not in session.mapping


def test_mapping_is_locked_outside_mapping_stage():
    session = _loaded_session()
    session.validate()
    with pytest.raises(StageTransitionError):
        session.set_mapping("url", "Link")


def test_back_from_validation_keeps_mapping_and_clears_results():
    session = _loaded_session()
    session.update_mapping({"url": "Link"})
    session.validate()
    assert session.summary.valid == 23

    session.go_back(Stage.mapping)

    assert session.stage == Stage.mapping
    assert session.results == []
    assert session.mapping["url"] == "Link"


def test_back_to_upload_clears_file():
    session = _loaded_session()
    session.go_back(Stage.upload)

    assert session.stage == Stage.upload
    assert session.parsed is None
    assert session.mapping == {}


def test_validation_can_be_rerun():
    session = _loaded_session()
    session.validate()
    session.validate()
    assert session.stage == Stage.validation


def test_changing_resource_type_resets_mapping():
    session = _loaded_session()
    session.update_mapping({"url": "Link"})
    session.validate()

    session.change_resource_type("learning", LEARNING)

    assert session.stage == Stage.mapping
    assert session.resource_type == "learning"
    assert session.results == []
    assert session.mapping == {"title": "Title", "url": "URL"}


@pytest.mark.asyncio
async def test_import_requires_validation_and_valid_rows(make_sink):
    importer = BatchImporter(make_sink())
    session = _loaded_session()
    with pytest.raises(StageTransitionError):
        await session.run_import(importer)

    session.set_mapping("title", None)
    session.validate()
    assert session.summary.valid == 0
    with pytest.raises(NothingToImportError):
        await session.run_import(importer)


@pytest.mark.asyncio
async def test_completed_import_discards_rows(make_sink):
    sink = make_sink()
    session = _loaded_session()
    session.validate()

    outcome = await session.run_import(BatchImporter(sink, batch_size=10))

    assert outcome.status == "completed"
    assert session.stage == Stage.import_
    assert session.progress.percent == pytest.approx(100.0)
    assert session.failure is None
    assert session.parsed is None
    assert session.results == []


@pytest.mark.asyncio
async def test_retry_resumes_from_first_uncommitted_batch(make_sink):
    sink = make_sink(fail_on_attempts={2})
    importer = BatchImporter(sink, batch_size=10)
    session = _loaded_session()
    session.validate()

    first = await session.run_import(importer)
    assert first.status == "failed"
    assert "Batch 2 of 3 failed" in session.failure
    assert "Do not resubmit" in session.failure
    assert session.progress.percent == pytest.approx(100 / 3)

    second = await session.retry(importer)

    assert second.status == "completed"
    assert [len(c) for c in sink.calls] == [10, 10, 3]
    assert [c[0]["title"] for c in sink.calls] == ["Grant 1", "Grant 11", "Grant 21"]
    assert second.progress_history == pytest.approx([100 / 3, 200 / 3, 100.0])

    with pytest.raises(StageTransitionError):
        await session.retry(importer)


@pytest.mark.asyncio
async def test_cancel_stops_before_next_batch():
    session = _loaded_session()
    session.validate()

    class CancellingSink:
        def __init__(self):
            self.calls = 0

        async def create_batch(self, records):
            self.calls += 1
            session.cancel()

    sink = CancellingSink()
    outcome = await session.run_import(BatchImporter(sink, batch_size=10))

    assert sink.calls == 1
    assert outcome.status == "cancelled"
    assert session.failure == "Import cancelled"


def test_store_expires_old_sessions():
    store = SessionStore(ttl=timedelta(minutes=60))
    old = ImportSession("grants", GRANTS)
    old.created_at = datetime.now(timezone.utc) - timedelta(hours=2)
    fresh = ImportSession("grants", GRANTS)
    store.add(old)
    store.add(fresh)

    assert store.get(old.id) is None
    assert store.get(fresh.id) is fresh
    assert len(store) == 1

    assert store.remove(fresh.id) is fresh
    assert store.remove(fresh.id) is None


def test_validate_without_a_file_is_rejected():
    session = _loaded_session()
    session.validate()
    session.discard()

    with pytest.raises(StageTransitionError):
        session.validate()


def test_new_file_after_going_back_to_upload():
    session = _loaded_session()
    session.go_back(Stage.upload)

    session.load_file(parse_text("Title,Agency\nSeed fund,USDA\n"), "second.csv")

    assert session.stage == Stage.mapping
    assert session.file_name == "second.csv"
    assert session.snapshot().row_count == 1
    assert session.mapping == {"title": "Title", "agency": "Agency"}
