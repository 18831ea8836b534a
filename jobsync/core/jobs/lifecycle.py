"""Job lifecycle derivation and action gating.

The client never computes transitions. The server reports a download phase and,
once the download has finished, an import phase; derive_status() folds both into the
single JobStatus the rest of the package works with. Permitted user actions are a pure
function of that status.

Terminal states (cancelled, fully_imported, failed) never permit cancel.
"""

from __future__ import annotations

from .models import DownloadPhase, ImportPhase, JobAction, JobStatus

TERMINAL_JOB_STATES: frozenset[JobStatus] = frozenset(
    {
        JobStatus.CANCELLED,
        JobStatus.FULLY_IMPORTED,
        JobStatus.FAILED,
    }
)

# Active download phase: nothing has been handed to the importer yet.
_CANCELLABLE: frozenset[JobStatus] = frozenset(
    {
        JobStatus.CREATED,
        JobStatus.ENQUEUED,
        JobStatus.DOWNLOADING,
    }
)

_REIMPORT_FAILED: frozenset[JobStatus] = frozenset(
    {
        JobStatus.PARTIAL_FAILURE,
        JobStatus.FAILED,
    }
)

_REIMPORT_ALL: frozenset[JobStatus] = frozenset(
    {
        JobStatus.PARTIAL_FAILURE,
        JobStatus.FAILED,
        JobStatus.FULLY_IMPORTED,
    }
)

_FROM_DOWNLOAD = {
    DownloadPhase.CREATED: JobStatus.CREATED,
    DownloadPhase.ENQUEUED: JobStatus.ENQUEUED,
    DownloadPhase.DOWNLOADING: JobStatus.DOWNLOADING,
    DownloadPhase.COMPLETED: JobStatus.COMPLETED,
    DownloadPhase.FAILED: JobStatus.FAILED,
    DownloadPhase.CANCELLED: JobStatus.CANCELLED,
}

_FROM_IMPORT = {
    ImportPhase.AWAITING_IMPORT: JobStatus.AWAITING_IMPORT,
    ImportPhase.IMPORTING: JobStatus.IMPORTING,
    ImportPhase.FULLY_IMPORTED: JobStatus.FULLY_IMPORTED,
    ImportPhase.PARTIAL_FAILURE: JobStatus.PARTIAL_FAILURE,
    ImportPhase.FAILED: JobStatus.FAILED,
}


def derive_status(download: DownloadPhase | None, import_phase: ImportPhase | None) -> JobStatus:
    """
    Fold the download and import phases into one overall status.

    A failed or cancelled download wins over any import phase; otherwise the import
    phase, once present, describes the job.
    """
    if download in (DownloadPhase.FAILED, DownloadPhase.CANCELLED):
        return _FROM_DOWNLOAD[download]
    if import_phase is not None:
        return _FROM_IMPORT[import_phase]
    if download is not None:
        return _FROM_DOWNLOAD[download]
    return JobStatus.CREATED


def is_job_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_JOB_STATES


def can_cancel(status: JobStatus) -> bool:
    if is_job_terminal(status):
        return False
    return status in _CANCELLABLE


def can_reimport(status: JobStatus, *, all_items: bool = False) -> bool:
    """
    Check whether a reimport is permitted.

    Args:
        status: Current overall job status
        all_items: True to reimport every item, False for failed items only
    """
    allowed = _REIMPORT_ALL if all_items else _REIMPORT_FAILED
    return status in allowed


def allowed_actions(status: JobStatus) -> frozenset[JobAction]:
    actions: set[JobAction] = set()
    if can_cancel(status):
        actions.add(JobAction.CANCEL)
    if can_reimport(status, all_items=False):
        actions.add(JobAction.REIMPORT_FAILED)
    if can_reimport(status, all_items=True):
        actions.add(JobAction.REIMPORT_ALL)
    return frozenset(actions)
