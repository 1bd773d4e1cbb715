"""
Job record model.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    CheckConstraint,
    Index,
    Integer,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.infra.database import Base


class JobStatus(str, Enum):
    """Job status enumeration."""

    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.DONE.value, JobStatus.FAILED.value)


class Job(Base):
    """
    A unit of background work.

    Lifecycle: queued -> processing -> done, or back to queued with a
    backoff delay, or failed once attempts reach max_attempts. Rows are
    never deleted by the queue itself.
    """

    __tablename__ = "jobs"

    # Core fields
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    type: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Job type identifier"
    )
    payload: Mapped[Any] = mapped_column(
        JSON, nullable=False, comment="Opaque job payload"
    )

    # Job state
    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=JobStatus.QUEUED.value,
        comment="Job status: queued|processing|done|failed",
    )
    run_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Earliest time to claim job",
    )
    attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Number of claims made"
    )
    max_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=10, comment="Attempt ceiling"
    )

    # Lease
    locked_until: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True, comment="Lease expiry"
    )
    locked_by: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Worker ID holding the lease"
    )

    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Last error message"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('queued', 'processing', 'done', 'failed')",
            name="jobs_status_check",
        ),
        CheckConstraint("max_attempts >= 1", name="jobs_max_attempts_check"),
        Index("ix_jobs_status_run_at", "status", "run_at"),
    )
