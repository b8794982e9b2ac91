"""General utility helpers."""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any


def parse_iso_datetime(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are treated as UTC. Returns ``None`` for anything that does
    not parse.
    """

    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime, reading naive values as UTC."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    """Return ``value`` as a millisecond ISO-8601 string with a ``Z`` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def format_display_time(value: object, offset_hours: int) -> str:
    """Format a timestamp as ``YYYY年MM月DD日 HH:mm:ss`` in a fixed UTC offset."""

    parsed = parse_iso_datetime(value)
    if parsed is None:
        return ""
    local = parsed.astimezone(timezone(timedelta(hours=offset_hours)))
    return local.strftime("%Y年%m月%d日 %H:%M:%S")


def offset_label(offset_hours: int) -> str:
    if offset_hours == 0:
        return "UTC"
    sign = "+" if offset_hours > 0 else "-"
    return f"UTC{sign}{abs(offset_hours)}"


def script_json(data: Any) -> str:
    """Serialize ``data`` for embedding inside an inline ``<script>`` tag."""

    return json.dumps(data, ensure_ascii=False).replace("</", "<\\/")


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
