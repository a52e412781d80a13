"""CSV and JSON export of job records"""
import csv
import io
import json
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from .models import JobRecord
from .logger import get_logger

logger = get_logger()

EXPORT_FORMATS = ("json", "csv")
DEFAULT_PREFIX = "upwork-jobs-export"


class ExportError(Exception):
    """The requested export cannot be produced"""


def _as_dict(record: Union[JobRecord, Mapping[str, Any]]) -> dict:
    if isinstance(record, JobRecord):
        return record.model_dump(mode="json")
    return dict(record)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def to_csv(rows: list[dict]) -> str:
    """Every cell quoted with inner quotes doubled; columns follow the first row"""
    if not rows:
        raise ExportError("No data to export")

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(header)) for header in headers])
    # rows are newline-joined, no trailing terminator
    return buffer.getvalue()[:-1]


def to_json(rows: list[dict], exported_at: Optional[datetime] = None) -> str:
    exported_at = exported_at or datetime.now(timezone.utc)
    payload = {
        "total": len(rows),
        "exported_at": exported_at.isoformat().replace("+00:00", "Z"),
        "data": rows,
    }
    return json.dumps(payload, ensure_ascii=False, default=str)


def export_records(
    records: Iterable[Union[JobRecord, Mapping[str, Any]]],
    fmt: str = "json",
    exported_at: Optional[datetime] = None,
) -> bytes:
    """
    Serialize a full result set.

    An empty set is an error for CSV ("No data to export") but a valid
    `{"total": 0, "data": []}` document for JSON.
    """
    fmt = (fmt or "json").lower()
    if fmt not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {fmt}")

    rows = [_as_dict(record) for record in records]
    logger.info(f"Exporting {len(rows)} jobs as {fmt}")

    if fmt == "csv":
        return to_csv(rows).encode("utf-8")
    return to_json(rows, exported_at).encode("utf-8")


def export_filename(fmt: str, today: Optional[date] = None, prefix: str = DEFAULT_PREFIX) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"{prefix}-{today.isoformat()}.{fmt.lower()}"


def media_type(fmt: str) -> str:
    return "text/csv" if fmt.lower() == "csv" else "application/json"
