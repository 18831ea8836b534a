from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from jobsync.application.ports.job_api import JobApi
from jobsync.core.errors import ActionNotAllowedError, RequestError
from jobsync.core.events import EventChannel, JobsSnapshot, JobUpdated, Ping, Ready

from . import lifecycle
from .models import Job, JobAction, ReimportResult

logger = logging.getLogger(__name__)

LIVE_FRAME_TYPES = (JobsSnapshot, JobUpdated, Ping, Ready)


class JobRegistry:
    """Canonical job state for one session.

    Two write paths feed the same map: replace_all() for authoritative snapshots
    (REST refresh or a snapshot frame) and upsert() for single-job updates (push frames
    or mutation responses). Conflicts resolve by arrival: whatever was applied last
    wins, regardless of updated_at.

    With enforce_sequence=True an upsert carrying a sequence number not greater than
    the stored one is ignored. Snapshots always apply.
    """

    def __init__(
        self,
        api: JobApi,
        channel: EventChannel,
        *,
        enforce_sequence: bool = False,
    ) -> None:
        self._api = api
        self._channel = channel
        self._enforce_sequence = enforce_sequence
        self._jobs: dict[str, Job] = {}
        self._live_unsubscribers: list[Callable[[], None]] = []
        self._refreshes_in_flight = 0
        self.last_error: RequestError | None = None

    # --- Read side ---

    @property
    def is_loading(self) -> bool:
        """True while at least one refresh() is awaiting the server."""
        return self._refreshes_in_flight > 0

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def ids(self) -> set[str]:
        return set(self._jobs)

    def snapshot(self) -> dict[str, Job]:
        return dict(self._jobs)

    def sorted(self) -> list[Job]:
        """Jobs by updated_at, newest first. Stable for a fixed map order."""
        return sorted(self._jobs.values(), key=lambda j: j.updated_at, reverse=True)

    def allowed_actions(self, job_id: str) -> frozenset[JobAction]:
        job = self._jobs.get(job_id)
        if job is None:
            return frozenset()
        return lifecycle.allowed_actions(job.status)

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    # --- Write paths ---

    def replace_all(self, jobs: Iterable[Job]) -> None:
        self._jobs = {job.id: job for job in jobs}
        logger.debug("Job snapshot applied (%d jobs)", len(self._jobs))

    def upsert(self, job: Job) -> None:
        if self._enforce_sequence:
            current = self._jobs.get(job.id)
            if (
                current is not None
                and current.sequence is not None
                and job.sequence is not None
                and job.sequence <= current.sequence
            ):
                logger.debug(
                    "Ignoring stale update for job %s (seq %d <= %d)",
                    job.id,
                    job.sequence,
                    current.sequence,
                )
                return
        self._jobs[job.id] = job

    # --- Sync ---

    async def refresh(self) -> RequestError | None:
        """Replace the map with the server's listing.

        On failure the previous state is kept and the error is stored in last_error
        and returned; refresh() itself does not raise.
        """
        self._refreshes_in_flight += 1
        try:
            jobs = await self._api.list_jobs()
        except RequestError as e:
            logger.warning("Job refresh failed: %s", e)
            self.last_error = e
            return e
        finally:
            self._refreshes_in_flight -= 1
        self.replace_all(jobs)
        self.last_error = None
        return None

    async def connect_live(self) -> None:
        """Feed push frames into the map. Safe to call repeatedly."""
        if not self._live_unsubscribers:
            self._live_unsubscribers = [
                self._channel.on(JobsSnapshot, self._on_snapshot),
                self._channel.on(JobUpdated, self._on_updated),
            ]
        await self._channel.connect(LIVE_FRAME_TYPES)

    def disconnect_live(self) -> None:
        """Stop applying push frames. The channel connection is left alone."""
        for unsubscribe in self._live_unsubscribers:
            unsubscribe()
        self._live_unsubscribers = []

    def _on_snapshot(self, frame: JobsSnapshot) -> None:
        self.replace_all(frame.jobs)

    def _on_updated(self, frame: JobUpdated) -> None:
        self.upsert(frame.job)

    # --- Mutations ---

    async def cancel_job(self, job_id: str) -> Job:
        """
        Cancel a job and apply the returned record right away.

        A push update for the same job may arrive before or after the response;
        whichever is applied last is what the registry shows.

        Raises:
            ActionNotAllowedError: If the job is known and its status forbids cancel
            RequestError: If the API call fails
        """
        self._check_allowed(job_id, JobAction.CANCEL)
        try:
            job = await self._api.cancel_job(job_id)
        except RequestError:
            logger.warning("Cancel failed for job %s", job_id)
            raise
        self.upsert(job)
        logger.info("Job %s cancel requested -> %s", job_id, job.status.value)
        return job

    async def reimport(self, job_id: str, all_items: bool = False) -> ReimportResult:
        """
        Queue a reimport, then refresh so the caller sees post-mutation state even
        when the live channel is down.

        Args:
            job_id: The job to reimport
            all_items: True for every item, False for failed items only

        Raises:
            ActionNotAllowedError: If the job is known and its status forbids it
            RequestError: If the reimport call fails
        """
        action = JobAction.REIMPORT_ALL if all_items else JobAction.REIMPORT_FAILED
        self._check_allowed(job_id, action)
        try:
            result = await self._api.reimport(job_id, all_items=all_items)
        except RequestError:
            logger.warning("Reimport failed for job %s", job_id)
            raise
        logger.info(
            "Job %s reimport queued (%d created, %d skipped)",
            job_id,
            len(result.created_tasks),
            result.skipped_count,
        )
        await self.refresh()
        return result

    def _check_allowed(self, job_id: str, action: JobAction) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            # Unknown locally; the server decides.
            return
        if action is JobAction.CANCEL:
            ok = lifecycle.can_cancel(job.status)
        else:
            ok = lifecycle.can_reimport(job.status, all_items=action is JobAction.REIMPORT_ALL)
        if not ok:
            raise ActionNotAllowedError(
                f"Cannot {action.value.replace('_', ' ')} job {job_id} while {job.status.value}",
                job_id=job_id,
                action=action.value,
                status=job.status.value,
            )
