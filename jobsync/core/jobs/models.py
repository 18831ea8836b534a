from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    """Unified job lifecycle status shown to users and used for action gating."""

    CREATED = "created"
    ENQUEUED = "enqueued"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    IMPORTING = "importing"
    AWAITING_IMPORT = "awaiting_import"
    FULLY_IMPORTED = "fully_imported"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DownloadPhase(str, Enum):
    CREATED = "created"
    ENQUEUED = "enqueued"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ImportPhase(str, Enum):
    AWAITING_IMPORT = "awaiting_import"
    IMPORTING = "importing"
    FULLY_IMPORTED = "fully_imported"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"


class ImportTaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobAction(str, Enum):
    CANCEL = "cancel"
    REIMPORT_FAILED = "reimport_failed"
    REIMPORT_ALL = "reimport_all"


@dataclass(frozen=True, slots=True)
class ImportCounts:
    total_import_tasks: int
    completed_imports: int


@dataclass(frozen=True, slots=True)
class Job:
    """One download/import attempt as last reported by the server.

    updated_at is used for ordering only; it never decides which of two records wins.
    """

    id: str
    updated_at: datetime
    status: JobStatus = JobStatus.CREATED
    title: str = ""
    protocol: str = ""
    progress: float | None = None  # 0..1
    download_status: DownloadPhase | None = None
    import_status: ImportPhase | None = None
    last_error: str | None = None
    dest_path: str | None = None
    counts: ImportCounts | None = None
    sequence: int | None = None


@dataclass(frozen=True, slots=True)
class ImportTask:
    id: str
    download_job_id: str
    status: ImportTaskStatus
    source_path: str | None = None
    dest_path: str | None = None
    last_error: str | None = None
    previous_task_id: str | None = None
    attempt_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ReimportResult:
    created_tasks: tuple[ImportTask, ...] = ()
    skipped_count: int = 0
