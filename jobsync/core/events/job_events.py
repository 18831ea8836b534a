from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from jobsync.core.jobs.codec import parse_job, parse_jobs
from jobsync.core.jobs.models import Job


@dataclass(frozen=True, slots=True)
class JobsSnapshot:
    """Full, authoritative listing of jobs; replaces the local cache."""

    event_name: ClassVar[str] = "download_jobs_snapshot"

    jobs: tuple[Job, ...] = ()

    @classmethod
    def from_payload(cls, data: Any) -> JobsSnapshot:
        # A null snapshot is an empty one.
        return cls(jobs=tuple(parse_jobs(data)))


@dataclass(frozen=True, slots=True)
class JobUpdated:
    """A single job changed on the server."""

    event_name: ClassVar[str] = "download_job_updated"

    job: Job

    @classmethod
    def from_payload(cls, data: Any) -> JobUpdated | None:
        if not data:
            return None
        return cls(job=parse_job(data))
