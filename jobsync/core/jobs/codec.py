"""Wire (JSON) -> model conversion for job records.

Two status vocabularies reach the client: the flat download status
("created" ... "imported") and the unified status computed by the server from the
import tasks. Both are normalized here into DownloadPhase/ImportPhase and folded with
derive_status().
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from jobsync.core.errors import ValidationError

from .lifecycle import derive_status
from .models import (
    DownloadPhase,
    ImportCounts,
    ImportPhase,
    ImportTask,
    ImportTaskStatus,
    Job,
    ReimportResult,
)

_DOWNLOAD_VALUES = {p.value for p in DownloadPhase}
_IMPORT_VALUES = {p.value for p in ImportPhase}

# Flat vocabulary values that describe the import phase of a finished download.
_LEGACY_STATUS: dict[str, tuple[DownloadPhase, ImportPhase]] = {
    "importing": (DownloadPhase.COMPLETED, ImportPhase.IMPORTING),
    "imported": (DownloadPhase.COMPLETED, ImportPhase.FULLY_IMPORTED),
}

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or a unix timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(float(value), tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        # Go emits 0-9 fraction digits; datetime wants exactly 6.
        text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f"Invalid timestamp: {value!r}", cause=e) from e
    else:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _opt_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    return parse_timestamp(value)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def _require_id(data: Mapping[str, Any], key: str = "id") -> str:
    raw = data.get(key)
    if raw is None or isinstance(raw, bool) or str(raw).strip() == "":
        raise ValidationError(f"Record is missing '{key}'")
    return str(raw)


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"Expected {what} object, got {type(data).__name__}")
    return data


def _clamp_progress(value: Any) -> float | None:
    if value is None:
        return None
    try:
        p = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid progress: {value!r}", cause=e) from e
    return 0.0 if p < 0 else 1.0 if p > 1 else p


def parse_phases(
    raw_status: Any, raw_import_status: Any = None
) -> tuple[DownloadPhase | None, ImportPhase | None]:
    download: DownloadPhase | None = None
    import_phase: ImportPhase | None = None

    if raw_status is not None:
        status = str(raw_status)
        if status in _LEGACY_STATUS:
            download, import_phase = _LEGACY_STATUS[status]
        elif status in _DOWNLOAD_VALUES:
            download = DownloadPhase(status)
        elif status in _IMPORT_VALUES:
            # A unified value in the plain status field implies a finished download.
            download = DownloadPhase.COMPLETED
            import_phase = ImportPhase(status)
        else:
            raise ValidationError(f"Unknown job status: {status!r}")

    # Values outside the import vocabulary (e.g. "download_pending") mean the
    # importer has not picked the job up yet.
    if raw_import_status is not None and str(raw_import_status) in _IMPORT_VALUES:
        import_phase = ImportPhase(str(raw_import_status))

    return download, import_phase


def _parse_counts(data: Mapping[str, Any]) -> ImportCounts | None:
    total = data.get("total_import_tasks")
    done = data.get("completed_imports")
    if total is None or done is None:
        return None
    try:
        return ImportCounts(total_import_tasks=int(total), completed_imports=int(done))
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid import counts", cause=e) from e


def parse_job(data: Any) -> Job:
    rec = _require_mapping(data, "job")
    download, import_phase = parse_phases(rec.get("status"), rec.get("import_status"))
    seq = rec.get("seq", rec.get("sequence"))
    return Job(
        id=_require_id(rec),
        updated_at=parse_timestamp(rec.get("updated_at")),
        status=derive_status(download, import_phase),
        title=str(rec.get("candidate_title") or rec.get("title") or ""),
        protocol=str(rec.get("protocol") or ""),
        progress=_clamp_progress(rec.get("progress")),
        download_status=download,
        import_status=import_phase,
        last_error=_opt_str(rec.get("last_error")),
        dest_path=_opt_str(rec.get("import_dest_path", rec.get("dest_path"))),
        counts=_parse_counts(rec),
        sequence=None if seq is None else int(seq),
    )


def parse_jobs(data: Any) -> list[Job]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValidationError(f"Expected job list, got {type(data).__name__}")
    return [parse_job(item) for item in data]


def parse_import_task(data: Any) -> ImportTask:
    rec = _require_mapping(data, "import task")
    raw_status = str(rec.get("status") or "")
    try:
        status = ImportTaskStatus(raw_status)
    except ValueError as e:
        raise ValidationError(f"Unknown import task status: {raw_status!r}", cause=e) from e
    attempts = rec.get("attempt_count", rec.get("attempts", 0)) or 0
    return ImportTask(
        id=_require_id(rec),
        download_job_id=str(rec.get("download_job_id") or ""),
        status=status,
        source_path=_opt_str(rec.get("source_path")),
        dest_path=_opt_str(rec.get("dest_path")),
        last_error=_opt_str(rec.get("last_error")),
        previous_task_id=_opt_str(rec.get("previous_task_id")),
        attempt_count=int(attempts),
        created_at=_opt_timestamp(rec.get("created_at")),
        updated_at=_opt_timestamp(rec.get("updated_at")),
    )


def parse_import_tasks(data: Any) -> list[ImportTask]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValidationError(f"Expected import task list, got {type(data).__name__}")
    return [parse_import_task(item) for item in data]


def parse_reimport_result(data: Any) -> ReimportResult:
    rec = _require_mapping(data, "reimport result")
    return ReimportResult(
        created_tasks=tuple(parse_import_tasks(rec.get("created_tasks"))),
        skipped_count=int(rec.get("skipped_count") or 0),
    )
