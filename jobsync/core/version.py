"""Build/version metadata, injected through environment variables by build scripts.

- JOBSYNC_VERSION: human readable version (defaults to "0.0.0-dev")
- JOBSYNC_GIT_SHA: short git sha (defaults to "dev")
"""

from __future__ import annotations

import os


def client_version() -> str:
    return os.getenv("JOBSYNC_VERSION", "").strip() or "0.0.0-dev"


def user_agent() -> str:
    """User-Agent sent with every API and stream request."""
    sha = os.getenv("JOBSYNC_GIT_SHA", "").strip() or "dev"
    return f"jobsync/{client_version()} ({sha})"
