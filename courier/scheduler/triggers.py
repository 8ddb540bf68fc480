"""
Cron triggers — compute the next fire time of a cron expression in UTC.

Usage:
    next_run = next_occurrence("0 9 * * 1-5")
    next_run = next_occurrence("*/15 * * * *", after=last_fire)
"""

from __future__ import annotations

from datetime import datetime, timezone

from croniter import croniter


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_occurrence(expression: str, after: datetime | None = None) -> datetime:
    """
    Return the first occurrence of ``expression`` strictly after ``after``.

    Raises:
        ValueError: the expression does not parse.
    """
    base = after or utcnow()
    if base.tzinfo is None:
        base = base.replace(tzinfo=timezone.utc)
    base = base.astimezone(timezone.utc)

    if not expression.strip() or not croniter.is_valid(expression):
        raise ValueError(f"Invalid cron expression: {expression!r}")
    try:
        it = croniter(expression, base)
        return it.get_next(datetime).astimezone(timezone.utc)
    except (ValueError, KeyError) as e:
        raise ValueError(f"Invalid cron expression: {expression!r}") from e
