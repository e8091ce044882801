import json
import logging
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

logger = logging.getLogger("dev-tool")

# Dates are written with millisecond precision and a literal Z suffix.
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

PRIORITY_COLUMNS = ["id", "name", "userId", "channelId", "content", "type", "time", "date"]


def format_iso_date(value: Union[datetime, date]) -> str:
    """Format a date/datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Naive datetimes are taken to already be in UTC. Plain dates become
    midnight UTC.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso_date(value: str) -> datetime:
    """Parse a ``YYYY-MM-DDTHH:MM:SS.mmmZ`` string into an aware UTC datetime."""
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ").replace(tzinfo=timezone.utc)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that writes dates in the revivable ISO form."""

    def default(self, o):
        if isinstance(o, (datetime, date)):
            return format_iso_date(o)
        return super().default(o)


def revive_dates(value: Any) -> Any:
    """Recursively convert ISO date strings back into datetimes.

    Revived values are always timezone-aware UTC. A naive datetime written
    earlier therefore comes back aware and no longer compares equal to the
    original; store aware datetimes to keep restores change-free.
    """
    if isinstance(value, str):
        return parse_iso_date(value) if ISO_DATE_PATTERN.match(value) else value
    if isinstance(value, dict):
        return {k: revive_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [revive_dates(v) for v in value]
    return value


def dumps_json(data: Any, indent: int = 2) -> str:
    return json.dumps(data, cls=DateTimeEncoder, indent=indent, ensure_ascii=False)


def loads_json(content: str) -> Any:
    return revive_dates(json.loads(content))


def write_json(data: Any, file_path: Union[str, Path]) -> None:
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(dumps_json(data))


def load_json(file_path: Union[str, Path]) -> Any:
    with open(file_path, "r", encoding="utf-8") as f:
        return loads_json(f.read())


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return format_iso_date(value)
    if isinstance(value, (dict, list)):
        return "[object]"
    text = str(value)
    return text[:17] + "..." if len(text) > 20 else text


def format_as_table(rows: List[Dict[str, Any]]) -> str:
    """Render rows as a pipe-separated text table of at most four columns."""
    if not rows:
        return "(no data)"

    keys: List[str] = []
    for row in rows:
        for key in row:
            if key not in keys:
                keys.append(key)

    if len(keys) > 5:
        kept = [k for k in PRIORITY_COLUMNS if k in keys]
        if len(kept) < 4:
            others = [k for k in keys if k not in kept][:4 - len(kept)]
            keys = kept + others
        else:
            keys = kept[:4]

    lines = [" | ".join(keys), " | ".join("---" for _ in keys)]
    for row in rows:
        lines.append(" | ".join(_format_cell(row.get(key)) for key in keys))
    return "\n".join(lines) + "\n"
