"""Composition root / DI container.

One Container per session. It builds the HTTP client, the adapters and the sync
components once and hands references down explicitly; nothing is a module global.
"""

from __future__ import annotations

import httpx

from jobsync.application.ports import JobApi, PushTransport
from jobsync.config import Settings, load_settings
from jobsync.core.events import EventChannel
from jobsync.core.jobs.detail_session import JobDetailSession
from jobsync.core.jobs.job_registry import JobRegistry
from jobsync.core.version import user_agent
from jobsync.services.adapters import HttpJobApi, SseTransport


class Container:
    """Resolves session services. Single place to swap implementations if needed."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._owns_client = http_client is None
        self._job_api: JobApi | None = None
        self._push_transport: PushTransport | None = None
        self._event_channel: EventChannel | None = None
        self._job_registry: JobRegistry | None = None
        self._detail_session: JobDetailSession | None = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            s = self.settings
            headers = {"User-Agent": user_agent()}
            if s.api_token:
                headers["Authorization"] = f"Bearer {s.api_token}"
            self._http_client = httpx.AsyncClient(
                base_url=s.base_url,
                timeout=httpx.Timeout(s.timeout, connect=s.connect_timeout),
                headers=headers,
            )
        return self._http_client

    @property
    def job_api(self) -> JobApi:
        if self._job_api is None:
            self._job_api = HttpJobApi(self.http_client)
        return self._job_api

    @property
    def push_transport(self) -> PushTransport:
        if self._push_transport is None:
            self._push_transport = SseTransport(
                self.http_client,
                path=self.settings.events_path,
                read_timeout=self.settings.stream_read_timeout,
            )
        return self._push_transport

    @property
    def event_channel(self) -> EventChannel:
        if self._event_channel is None:
            self._event_channel = EventChannel(self.push_transport)
        return self._event_channel

    @property
    def job_registry(self) -> JobRegistry:
        if self._job_registry is None:
            self._job_registry = JobRegistry(
                self.job_api,
                self.event_channel,
                enforce_sequence=self.settings.enforce_sequence,
            )
        return self._job_registry

    @property
    def detail_session(self) -> JobDetailSession:
        if self._detail_session is None:
            self._detail_session = JobDetailSession(self.job_api, self.job_registry)
        return self._detail_session

    async def aclose(self) -> None:
        """Stop the push stream and release the HTTP client if this container made it."""
        if self._event_channel is not None:
            await self._event_channel.close()
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
