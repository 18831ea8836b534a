from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from jobsync.config import PROJECT_ROOT

logger = logging.getLogger(__name__)

APP_NAME = "jobsync"
STATE_DIR_ENV = "JOBSYNC_STATE_DIR"


def _is_source_checkout(root: Path) -> bool:
    # Installed, PROJECT_ROOT is site-packages; only a checkout carries pyproject.toml.
    return (root / "pyproject.toml").is_file()


def _user_data_dir() -> Path:
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        xdg = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return (base / APP_NAME).resolve()


def get_app_state_dir(app_folder_name: str = ".jobsync_state") -> Path:
    """Return the directory for client state (rotating logs).

    Preference order:
    1) $JOBSYNC_STATE_DIR if set
    2) <checkout>/.jobsync_state when running from a writable source checkout
    3) the OS user data dir (~/.local/share/jobsync, %APPDATA%\\jobsync, etc)

    The directory is not created here; callers mkdir what they write into.
    """
    explicit = os.environ.get(STATE_DIR_ENV)
    if explicit:
        return Path(explicit).expanduser().resolve()

    if _is_source_checkout(PROJECT_ROOT) and os.access(PROJECT_ROOT, os.W_OK):
        return PROJECT_ROOT / app_folder_name

    state_dir = _user_data_dir()
    logger.debug("Using user data dir for state: %s", state_dir)
    return state_dir
