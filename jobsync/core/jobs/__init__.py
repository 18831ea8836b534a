"""Job domain: records, lifecycle rules, wire decoding.

JobRegistry (job_registry) and JobDetailSession (detail_session) build on the push
stream and are imported from their modules.
"""

from .lifecycle import (
    TERMINAL_JOB_STATES,
    allowed_actions,
    can_cancel,
    can_reimport,
    derive_status,
    is_job_terminal,
)
from .models import (
    DownloadPhase,
    ImportCounts,
    ImportPhase,
    ImportTask,
    ImportTaskStatus,
    Job,
    JobAction,
    JobStatus,
    ReimportResult,
)

__all__ = [
    "TERMINAL_JOB_STATES",
    "allowed_actions",
    "can_cancel",
    "can_reimport",
    "derive_status",
    "is_job_terminal",
    "DownloadPhase",
    "ImportCounts",
    "ImportPhase",
    "ImportTask",
    "ImportTaskStatus",
    "Job",
    "JobAction",
    "JobStatus",
    "ReimportResult",
]
