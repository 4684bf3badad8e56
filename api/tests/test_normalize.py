from datetime import datetime, timedelta, timezone

from vibe_apply.core.normalize import (
    isoformat,
    next_timestamp,
    normalize_email,
    normalize_text,
    parse_timestamp,
)


def test_normalize_text_trims_and_lowercases() -> None:
    assert normalize_text("  Stake One ") == "stake one"
    assert normalize_text(None) == ""


def test_normalize_email_returns_none_for_blank() -> None:
    assert normalize_email("  A@X.com ") == "a@x.com"
    assert normalize_email("   ") is None


def test_next_timestamp_is_strictly_after_previous_in_the_future() -> None:
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    stamped = parse_timestamp(next_timestamp(isoformat(future)))
    assert stamped == future + timedelta(microseconds=1)


def test_parse_timestamp_accepts_z_suffix_and_rejects_garbage() -> None:
    assert parse_timestamp("2026-01-02T03:04:05Z") == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_timestamp("not a date") is None
