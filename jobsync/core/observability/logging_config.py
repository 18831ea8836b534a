"""Central logging configuration.

Stdlib logging only. Console output is plain text or JSON lines (LOG_JSON); a rotating
file under the state dir is optional (LOG_FILE, off by default for a CLI client).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from jobsync.core.paths import get_app_state_dir

_TRUE = {"1", "true", "yes"}

# Extras copied into JSON records when present.
_EXTRA_KEYS = ("event", "event_type", "job_id", "status")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _text_formatter(datefmt: str) -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt=datefmt,
    )


def setup_logging(
    *,
    level: str | int | None = None,
    json_logs: bool | None = None,
    log_to_file: bool | None = None,
    state_dir: Path | None = None,
) -> None:
    """Configure root logging.

    - level: "INFO"/"DEBUG" or logging level int. Defaults to env LOG_LEVEL or INFO.
    - json_logs: defaults to env LOG_JSON ("1"/"true").
    - log_to_file: defaults to env LOG_FILE ("1"/"true"); writes <state>/logs/jobsync.log.
    """

    lvl = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    if isinstance(lvl, str):
        lvl = getattr(logging, lvl.upper(), logging.INFO)

    if json_logs is None:
        json_logs = os.getenv("LOG_JSON", "0").lower() in _TRUE
    if log_to_file is None:
        log_to_file = os.getenv("LOG_FILE", "0").lower() in _TRUE

    stream_handler = logging.StreamHandler(stream=sys.stderr)
    stream_handler.setFormatter(_JsonFormatter() if json_logs else _text_formatter("%H:%M:%S"))

    file_handler: logging.Handler | None = None
    if log_to_file:
        try:
            logs_dir = (state_dir or get_app_state_dir()) / "logs"
            logs_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                logs_dir / "jobsync.log",
                maxBytes=2 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            file_handler.setFormatter(_text_formatter("%Y-%m-%d %H:%M:%S"))
        except OSError:
            file_handler = None

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(stream_handler)
    if file_handler is not None:
        root.addHandler(file_handler)
    root.setLevel(int(lvl))

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
