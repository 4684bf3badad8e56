import re
from datetime import datetime, timedelta, timezone
from typing import Any

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_text(value: Any) -> str:
    """Trim and lower-case a free-text field; ``None`` becomes the empty string."""
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_email(value: Any) -> str | None:
    normalized = normalize_text(value)
    return normalized or None


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def isoformat(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def next_timestamp(previous: Any = None) -> str:
    """Current UTC time as ISO text, forced strictly after ``previous``."""
    now = datetime.now(timezone.utc)
    earlier = parse_timestamp(previous)
    if earlier is not None and now <= earlier:
        now = earlier + timedelta(microseconds=1)
    return isoformat(now)
