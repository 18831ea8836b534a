"""HTTP client for the download-jobs REST API.

All endpoints live under /v1/download-jobs. Every failure (network, non-2xx status,
unparseable body) is raised as RequestError with a classified error_type so callers
can report "cancel failed for job X" style messages.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from jobsync.core.errors import RequestError, ValidationError
from jobsync.core.jobs.codec import (
    parse_import_tasks,
    parse_job,
    parse_jobs,
    parse_reimport_result,
)
from jobsync.core.jobs.models import ImportTask, Job, ReimportResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

JOBS_PATH = "/v1/download-jobs"


def classify_status(status_code: int | None) -> str:
    if status_code is None:
        return "network"
    if status_code == 429:
        return "rate_limit"
    if 400 <= status_code < 500:
        return "validation"
    if 500 <= status_code < 600:
        return "server"
    return "unknown"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


class HttpJobApi:
    """JobApi over an httpx.AsyncClient configured with the server base URL."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def list_jobs(self) -> list[Job]:
        data = await self._request("GET", JOBS_PATH)
        return self._decode(parse_jobs, data, "job list")

    async def cancel_job(self, job_id: str) -> Job:
        data = await self._request("DELETE", f"{JOBS_PATH}/{job_id}")
        return self._decode(parse_job, data, "cancelled job")

    async def list_import_tasks(self, job_id: str) -> list[ImportTask]:
        data = await self._request("GET", f"{JOBS_PATH}/{job_id}/import-tasks")
        return self._decode(parse_import_tasks, data, "import task list")

    async def reimport(self, job_id: str, *, all_items: bool = False) -> ReimportResult:
        data = await self._request(
            "POST",
            f"{JOBS_PATH}/{job_id}/reimport",
            params={"all": "true" if all_items else "false"},
        )
        return self._decode(parse_reimport_result, data, "reimport result")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_type = classify_status(status_code)
            message = _error_message(e.response)
            logger.error(
                "%s %s failed with status %s (%s): %s", method, path, status_code, error_type, message
            )
            raise RequestError(
                f"{method} {path} failed: {message}",
                cause=e,
                status_code=status_code,
                error_type=error_type,
            ) from e
        except (httpx.TransportError, httpx.TimeoutException) as e:
            logger.error("%s %s network error: %s", method, path, e)
            raise RequestError(
                f"Network error: {e}", cause=e, error_type="network"
            ) from e
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise RequestError(str(e), cause=e) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RequestError(
                f"{method} {path} returned invalid JSON",
                cause=e,
                status_code=response.status_code,
                error_type="decode",
            ) from e

    @staticmethod
    def _decode(parse: Callable[[Any], T], data: Any, what: str) -> T:
        try:
            return parse(data)
        except (ValidationError, TypeError, ValueError) as e:
            raise RequestError(f"Invalid {what}: {e}", cause=e, error_type="decode") from e
