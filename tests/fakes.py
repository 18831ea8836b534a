from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from jobsync.core.errors import RequestError
from jobsync.core.events import RawFrame
from jobsync.core.jobs.codec import parse_import_task, parse_job
from jobsync.core.jobs.models import ImportTask, Job, ReimportResult

_CLOSE = object()


async def settle(rounds: int = 10) -> None:
    """Let queued callbacks and the consume task run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def job_payload(
    job_id: str,
    *,
    status: str = "downloading",
    updated_at: str = "2024-05-01T10:00:00Z",
    **extra: Any,
) -> dict[str, Any]:
    return {
        "id": job_id,
        "status": status,
        "updated_at": updated_at,
        "candidate_title": f"Title {job_id}",
        "protocol": "torrent",
        **extra,
    }


def make_job(job_id: str, **kwargs: Any) -> Job:
    return parse_job(job_payload(job_id, **kwargs))


def make_task(task_id: str, job_id: str, status: str = "completed") -> ImportTask:
    return parse_import_task({"id": task_id, "download_job_id": job_id, "status": status})


class FakeJobApi:
    """In-memory JobApi. Set the attributes to script responses."""

    def __init__(self, jobs: list[Job] | None = None) -> None:
        self.jobs: list[Job] = list(jobs or [])
        self.list_error: RequestError | None = None
        self.cancel_results: dict[str, Job] = {}
        self.cancel_error: RequestError | None = None
        self.import_tasks: dict[str, list[ImportTask]] = {}
        self.import_task_errors: dict[str, RequestError] = {}
        self.reimport_result = ReimportResult()
        self.reimport_error: RequestError | None = None
        # list_import_tasks(job_id) blocks until the gate is set.
        self.gates: dict[str, asyncio.Event] = {}
        self.list_gate: asyncio.Event | None = None
        self.calls: list[tuple[Any, ...]] = []

    async def list_jobs(self) -> list[Job]:
        self.calls.append(("list_jobs",))
        # One-shot: only the next list_jobs() call waits on it.
        gate = self.list_gate
        if gate is not None:
            self.list_gate = None
            await gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return list(self.jobs)

    async def cancel_job(self, job_id: str) -> Job:
        self.calls.append(("cancel_job", job_id))
        if self.cancel_error is not None:
            raise self.cancel_error
        return self.cancel_results[job_id]

    async def list_import_tasks(self, job_id: str) -> list[ImportTask]:
        self.calls.append(("list_import_tasks", job_id))
        gate = self.gates.get(job_id)
        if gate is not None:
            await gate.wait()
        if job_id in self.import_task_errors:
            raise self.import_task_errors[job_id]
        return list(self.import_tasks.get(job_id, []))

    async def reimport(self, job_id: str, *, all_items: bool = False) -> ReimportResult:
        self.calls.append(("reimport", job_id, all_items))
        if self.reimport_error is not None:
            raise self.reimport_error
        return self.reimport_result


class FakePushTransport:
    """PushTransport fed by the test through push()/fail()/close_stream()."""

    def __init__(self) -> None:
        self.subscriptions: list[list[str]] = []
        self.open_error: Exception | None = None
        self.active = 0
        self._queue: asyncio.Queue[object] | None = None

    @asynccontextmanager
    async def subscribe(self, event_types: Sequence[str]) -> AsyncIterator[AsyncIterator[RawFrame]]:
        self.subscriptions.append(list(event_types))
        if self.open_error is not None:
            raise self.open_error
        queue: asyncio.Queue[object] = asyncio.Queue()
        self._queue = queue
        self.active += 1
        try:
            yield self._frames(queue)
        finally:
            self.active -= 1
            if self._queue is queue:
                self._queue = None

    @staticmethod
    async def _frames(queue: asyncio.Queue[object]) -> AsyncIterator[RawFrame]:
        while True:
            item = await queue.get()
            if item is _CLOSE:
                return
            if isinstance(item, Exception):
                raise item
            assert isinstance(item, RawFrame)
            yield item

    def _put(self, item: object) -> None:
        assert self._queue is not None, "no open subscription"
        self._queue.put_nowait(item)

    def push(self, event: str, payload: Any) -> None:
        self._put(RawFrame(event=event, data=json.dumps(payload)))

    def push_raw(self, event: str, data: str) -> None:
        self._put(RawFrame(event=event, data=data))

    def fail(self, error: Exception) -> None:
        self._put(error)

    def close_stream(self) -> None:
        self._put(_CLOSE)
