from __future__ import annotations

import asyncio

import pytest

from fakes import FakeJobApi, FakePushTransport, job_payload, make_job, settle
from jobsync.core.errors import RequestError
from jobsync.core.events import EventChannel
from jobsync.core.jobs.job_registry import JobRegistry
from jobsync.core.jobs.models import JobStatus

T1 = "2024-05-01T10:00:00Z"
T2 = "2024-05-01T11:00:00Z"
T3 = "2024-05-01T12:00:00Z"


def _registry(
    api: FakeJobApi | None = None, **kwargs
) -> tuple[JobRegistry, FakePushTransport, EventChannel]:
    transport = FakePushTransport()
    channel = EventChannel(transport)
    registry = JobRegistry(api or FakeJobApi(), channel, **kwargs)
    return registry, transport, channel


def test_upsert_is_idempotent() -> None:
    registry, _, _ = _registry()
    job = make_job("a", status="downloading")

    registry.upsert(job)
    first = registry.snapshot()
    registry.upsert(job)

    assert registry.snapshot() == first
    assert len(registry) == 1


def test_upsert_leaves_other_jobs_untouched() -> None:
    registry, _, _ = _registry()
    registry.replace_all([make_job("a"), make_job("b")])
    b_before = registry.get("b")

    registry.upsert(make_job("a", status="completed"))

    assert registry.get("b") is b_before
    assert registry.get("a").status is JobStatus.COMPLETED


def test_snapshot_replace_is_total() -> None:
    registry, _, _ = _registry()
    registry.replace_all([make_job("a"), make_job("b")])

    registry.replace_all([make_job("b"), make_job("c")])

    assert registry.ids() == {"b", "c"}
    assert "a" not in registry


def test_sorted_is_newest_first_and_stable() -> None:
    registry, _, _ = _registry()
    registry.replace_all(
        [
            make_job("old", updated_at=T1),
            make_job("tie1", updated_at=T2),
            make_job("new", updated_at=T3),
            make_job("tie2", updated_at=T2),
        ]
    )

    order = [j.id for j in registry.sorted()]

    assert order == ["new", "tie1", "tie2", "old"]
    assert order == [j.id for j in registry.sorted()]


def test_arrival_order_wins_over_timestamps() -> None:
    registry, _, _ = _registry()
    registry.upsert(make_job("a", status="completed", updated_at=T3))

    registry.upsert(make_job("a", status="downloading", updated_at=T1))

    assert registry.get("a").status is JobStatus.DOWNLOADING


@pytest.mark.asyncio
async def test_refresh_then_push_update_reorders() -> None:
    api = FakeJobApi([make_job("a", updated_at=T1), make_job("b", updated_at=T2)])
    registry, transport, channel = _registry(api)

    assert await registry.refresh() is None
    assert [j.id for j in registry.sorted()] == ["b", "a"]

    await registry.connect_live()
    transport.push("download_job_updated", job_payload("a", updated_at=T3))
    await settle()

    assert [j.id for j in registry.sorted()] == ["a", "b"]
    await channel.close()


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_state() -> None:
    api = FakeJobApi([make_job("a")])
    registry, _, _ = _registry(api)
    await registry.refresh()

    api.jobs = []
    api.list_error = RequestError("boom", status_code=500, error_type="server")
    error = await registry.refresh()

    assert error is api.list_error
    assert registry.last_error is api.list_error
    assert registry.ids() == {"a"}
    assert registry.is_loading is False


@pytest.mark.asyncio
async def test_loading_flag_stays_set_until_last_overlapping_refresh_settles() -> None:
    api = FakeJobApi([make_job("a")])
    gate = api.list_gate = asyncio.Event()
    registry, _, _ = _registry(api)

    slow = asyncio.create_task(registry.refresh())
    await settle()
    assert registry.is_loading

    assert await registry.refresh() is None
    assert registry.is_loading

    gate.set()
    await slow
    assert registry.is_loading is False


@pytest.mark.asyncio
async def test_refresh_success_clears_last_error() -> None:
    api = FakeJobApi()
    api.list_error = RequestError("down", error_type="network")
    registry, _, _ = _registry(api)
    await registry.refresh()
    assert registry.last_error is not None

    api.list_error = None
    api.jobs = [make_job("a")]
    await registry.refresh()

    assert registry.last_error is None
    assert registry.ids() == {"a"}


@pytest.mark.asyncio
async def test_snapshot_frame_replaces_map() -> None:
    api = FakeJobApi([make_job("a"), make_job("b")])
    registry, transport, channel = _registry(api)
    await registry.refresh()
    await registry.connect_live()

    transport.push("download_jobs_snapshot", [job_payload("c")])
    await settle()

    assert registry.ids() == {"c"}
    await channel.close()


@pytest.mark.asyncio
async def test_connect_live_is_idempotent() -> None:
    registry, transport, channel = _registry()

    await registry.connect_live()
    await registry.connect_live()

    assert transport.subscriptions == [
        ["download_jobs_snapshot", "download_job_updated", "ping", "ready"]
    ]
    transport.push("download_job_updated", job_payload("a"))
    await settle()
    assert registry.ids() == {"a"}
    await channel.close()


@pytest.mark.asyncio
async def test_disconnect_live_stops_applying_frames() -> None:
    registry, transport, channel = _registry()
    await registry.connect_live()

    registry.disconnect_live()
    transport.push("download_job_updated", job_payload("a"))
    await settle()

    assert len(registry) == 0
    await channel.close()


def test_sequence_guard_is_off_by_default() -> None:
    registry, _, _ = _registry()
    registry.upsert(make_job("a", status="completed", seq=5))

    registry.upsert(make_job("a", status="downloading", seq=3))

    assert registry.get("a").status is JobStatus.DOWNLOADING


def test_sequence_guard_rejects_stale_updates() -> None:
    registry, _, _ = _registry(enforce_sequence=True)
    registry.upsert(make_job("a", status="completed", seq=5))

    registry.upsert(make_job("a", status="downloading", seq=5))
    registry.upsert(make_job("a", status="downloading", seq=3))
    assert registry.get("a").status is JobStatus.COMPLETED

    registry.upsert(make_job("a", status="importing", seq=6))
    assert registry.get("a").status is JobStatus.IMPORTING


def test_sequence_guard_does_not_apply_to_snapshots() -> None:
    registry, _, _ = _registry(enforce_sequence=True)
    registry.upsert(make_job("a", status="completed", seq=5))

    registry.replace_all([make_job("a", status="downloading", seq=1)])

    assert registry.get("a").status is JobStatus.DOWNLOADING
