"""
ScheduledJob — the core data model.

A job pairs a cron expression with a prompt and the conversation that
receives the result. ``next_run`` is always a timezone-aware UTC datetime
and is persisted as an ISO-8601 string.

Stored shape:
    {"id": 3, "cron": "0 9 * * 1-5", "prompt": "...",
     "space_name": "spaces/AAAA", "enabled": true,
     "next_run": "2026-10-19T09:00:00+00:00"}
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass
class ScheduledJob:
    """A recurring prompt."""

    id: int
    cron: str
    prompt: str
    space_name: str
    next_run: datetime
    enabled: bool = True

    def is_due(self, now: datetime) -> bool:
        return self.enabled and self.next_run <= now

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cron": self.cron,
            "prompt": self.prompt,
            "space_name": self.space_name,
            "enabled": self.enabled,
            "next_run": self.next_run.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ScheduledJob":
        next_run = datetime.fromisoformat(d["next_run"])
        if next_run.tzinfo is None:
            next_run = next_run.replace(tzinfo=timezone.utc)
        return cls(
            id=int(d["id"]),
            cron=d["cron"],
            prompt=d["prompt"],
            space_name=d["space_name"],
            enabled=bool(d.get("enabled", True)),
            next_run=next_run.astimezone(timezone.utc),
        )
