"""
Entry point for the jobsync console watcher.

Run: python main.py
Requires: pip install -e .

Loads the job list over REST, then follows the live event stream and logs the
sorted list each time it changes. Ctrl+C to stop.
"""
from __future__ import annotations

import asyncio
import logging
import sys

from jobsync.application.container import Container
from jobsync.core.events import ChannelStatus, ChannelStatusChanged, JobsSnapshot, JobUpdated
from jobsync.core.jobs.job_registry import JobRegistry
from jobsync.core.observability.logging_config import setup_logging
from jobsync.core.version import user_agent

logger = logging.getLogger("jobsync")

# Seconds between reconnect attempts after the stream failed.
RECONNECT_DELAY = 5.0


def _log_jobs(registry: JobRegistry) -> None:
    jobs = registry.sorted()
    logger.info("%d job(s)", len(jobs))
    for job in jobs:
        progress = "" if job.progress is None else f" {job.progress:.0%}"
        logger.info("  %s  %-16s%s  %s", job.id, job.status.value, progress, job.title)


async def run() -> None:
    container = Container()
    registry = container.job_registry
    channel = container.event_channel
    logger.info("%s -> %s", user_agent(), container.settings.base_url)

    def on_status(evt: ChannelStatusChanged) -> None:
        if evt.status is ChannelStatus.ERROR:
            logger.warning("Live updates unavailable: %s", evt.error)
        else:
            logger.info("Live updates: %s", evt.status.value)

    loop = asyncio.get_running_loop()

    def on_jobs_changed(_frame: object) -> None:
        # Registered before the registry's own listeners; log once they have run.
        loop.call_soon(_log_jobs, registry)

    channel.on(ChannelStatusChanged, on_status)
    channel.on(JobsSnapshot, on_jobs_changed)
    channel.on(JobUpdated, on_jobs_changed)

    try:
        error = await registry.refresh()
        if error is None:
            _log_jobs(registry)
        while True:
            if channel.status in (ChannelStatus.DISCONNECTED, ChannelStatus.ERROR):
                await registry.connect_live()
            await asyncio.sleep(RECONNECT_DELAY)
    finally:
        await container.aclose()


def main() -> None:
    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
