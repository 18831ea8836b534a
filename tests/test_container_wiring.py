from __future__ import annotations

import httpx
import pytest

from fakes import make_job
from jobsync.application.container import Container
from jobsync.config import Settings
from jobsync.core.events import ChannelStatus


def test_container_builds_each_component_once() -> None:
    container = Container(Settings(base_url="http://jobs.test"))

    assert container.job_registry is container.job_registry
    assert container.event_channel is container.event_channel
    assert container.detail_session is container.detail_session
    assert container.job_api is container.job_api


def test_http_client_carries_base_url_and_token() -> None:
    container = Container(Settings(base_url="http://jobs.test", api_token="t0ken", timeout=7.0))

    client = container.http_client

    assert client.base_url.host == "jobs.test"
    assert client.headers["Authorization"] == "Bearer t0ken"
    assert client.headers["User-Agent"].startswith("jobsync/")
    assert client.timeout.read == 7.0


def test_no_authorization_header_without_token() -> None:
    container = Container(Settings(base_url="http://jobs.test"))

    assert "Authorization" not in container.http_client.headers


def test_enforce_sequence_setting_reaches_registry() -> None:
    container = Container(Settings(enforce_sequence=True))
    registry = container.job_registry
    registry.upsert(make_job("a", status="completed", seq=2))
    registry.upsert(make_job("a", status="downloading", seq=1))

    assert registry.get("a").status.value == "completed"


@pytest.mark.asyncio
async def test_aclose_closes_owned_client_only() -> None:
    owned = Container(Settings(base_url="http://jobs.test"))
    client = owned.http_client
    await owned.aclose()
    assert client.is_closed

    external = httpx.AsyncClient()
    injected = Container(Settings(), http_client=external)
    await injected.aclose()
    assert not external.is_closed
    await external.aclose()


@pytest.mark.asyncio
async def test_registry_refresh_through_container() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/download-jobs"
        return httpx.Response(
            200, json=[{"id": "a", "status": "enqueued", "updated_at": "2024-05-01T10:00:00Z"}]
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://jobs.test")
    container = Container(Settings(base_url="http://jobs.test"), http_client=client)

    assert await container.job_registry.refresh() is None
    assert container.job_registry.ids() == {"a"}
    assert container.event_channel.status is ChannelStatus.DISCONNECTED

    await container.aclose()
    await client.aclose()
