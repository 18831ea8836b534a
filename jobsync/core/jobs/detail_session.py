from __future__ import annotations

import logging

from jobsync.application.ports.job_api import JobApi
from jobsync.core.errors import DomainError, RequestError

from .job_registry import JobRegistry
from .models import ImportTask, Job, ReimportResult

logger = logging.getLogger(__name__)


class JobDetailSession:
    """Inspection view for one job with lazily loaded import tasks.

    Every load gets a request token. A response is applied only if its token is still
    the latest one and its job is still the active one, so a slow answer for a job the
    user already navigated away from is dropped.
    """

    def __init__(self, api: JobApi, registry: JobRegistry) -> None:
        self._api = api
        self._registry = registry
        self._active_job_id: str | None = None
        self._tasks: list[ImportTask] = []
        self._token = 0
        self.is_open = False
        self.is_loading = False
        self.last_error: RequestError | None = None

    @property
    def active_job_id(self) -> str | None:
        return self._active_job_id

    @property
    def import_tasks(self) -> list[ImportTask]:
        return list(self._tasks)

    @property
    def job(self) -> Job | None:
        if self._active_job_id is None:
            return None
        return self._registry.get(self._active_job_id)

    async def open_detail(self, job_id: str) -> None:
        if job_id != self._active_job_id:
            self._tasks = []
        self._active_job_id = job_id
        self.is_open = True
        await self.load_import_tasks(job_id)

    def close_detail(self) -> None:
        self._token += 1
        self._active_job_id = None
        self.is_open = False
        self._tasks = []
        self.is_loading = False
        self.last_error = None

    async def load_import_tasks(self, job_id: str) -> None:
        self._token += 1
        token = self._token
        self.is_loading = True
        try:
            tasks = await self._api.list_import_tasks(job_id)
        except RequestError as e:
            if self._is_current(token, job_id):
                logger.warning("Loading import tasks failed for job %s: %s", job_id, e)
                self._tasks = []
                self.last_error = e
            return
        finally:
            if token == self._token:
                self.is_loading = False
        if not self._is_current(token, job_id):
            logger.debug("Dropping stale import tasks for job %s", job_id)
            return
        self._tasks = list(tasks)
        self.last_error = None

    async def reimport(self, all_items: bool = False) -> ReimportResult:
        """Reimport the active job, then reload its tasks if it is still active."""
        job_id = self._active_job_id
        if job_id is None:
            raise DomainError("No job is open")
        result = await self._registry.reimport(job_id, all_items=all_items)
        if self.is_open and self._active_job_id == job_id:
            await self.load_import_tasks(job_id)
        return result

    def _is_current(self, token: int, job_id: str) -> bool:
        return token == self._token and job_id == self._active_job_id
