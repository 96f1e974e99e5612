"""Calendar-month helpers (UTC)."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from .models import MonthKey

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def as_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime; naive values are taken as UTC."""

    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def month_key(ts: datetime) -> MonthKey:
    u = as_utc(ts)
    return f"{u.year:04d}-{u.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Parse ``"YYYY-MM"`` (a one-digit month is accepted) into ``(year, month)``."""

    m = _MONTH_RE.match(key.strip())
    if not m:
        raise ValueError(f"invalid month key {key!r}; expected YYYY-MM")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValueError(f"invalid month key {key!r}; month must be 01..12")
    return year, month


def _shift(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def month_bounds(key: MonthKey) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` of the month in UTC; ``end`` is exclusive."""

    year, month = parse_month_key(key)
    ny, nm = _shift(year, month, 1)
    return datetime(year, month, 1, tzinfo=UTC), datetime(ny, nm, 1, tzinfo=UTC)


def last_n_month_keys(n: int, now: datetime | None = None) -> list[MonthKey]:
    """Trailing ``n`` month keys ending at the current UTC month, oldest first."""

    if n < 1:
        raise ValueError("n must be a positive integer")
    ref = as_utc(now) if now is not None else datetime.now(UTC)
    out: list[MonthKey] = []
    for back in range(n - 1, -1, -1):
        y, m = _shift(ref.year, ref.month, -back)
        out.append(f"{y:04d}-{m:02d}")
    return out


__all__ = ["as_utc", "last_n_month_keys", "month_bounds", "month_key", "parse_month_key"]
