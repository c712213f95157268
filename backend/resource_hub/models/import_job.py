import uuid

from sqlalchemy import Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from resource_hub.db.base import Base, CreatedAtMixin, UUIDMixin


class ImportJob(Base, UUIDMixin, CreatedAtMixin):
    """Append-only record of one import run (initial or retry) of a session."""

    __tablename__ = "import_jobs"

    session_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    resource_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    file_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # completed, failed, cancelled
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    valid_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_batches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    committed_batches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Source-file row numbers, as shown by a spreadsheet (header is row 1)
    committed_rows: Mapped[list[int]] = mapped_column(ARRAY(Integer), nullable=False, default=list)
    unsubmitted_rows: Mapped[list[int]] = mapped_column(ARRAY(Integer), nullable=False, default=list)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
