"""Application port for the Job REST API.

All methods raise RequestError on failure.
"""

from __future__ import annotations

from typing import Protocol

from jobsync.core.jobs.models import ImportTask, Job, ReimportResult


class JobApi(Protocol):
    async def list_jobs(self) -> list[Job]:
        """Authoritative snapshot of all jobs."""

    async def cancel_job(self, job_id: str) -> Job:
        """Cancel a job; returns the updated record."""

    async def list_import_tasks(self, job_id: str) -> list[ImportTask]:
        """Import tasks belonging to one job."""

    async def reimport(self, job_id: str, *, all_items: bool = False) -> ReimportResult:
        """Queue new import tasks for failed items (or all items when all_items)."""
