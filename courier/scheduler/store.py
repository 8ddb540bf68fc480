"""
SchedulerStore — JSON persistence for scheduled jobs.

File: data/schedules.json, an array of job records (see job.py).

The whole list is rewritten on every mutation. Jobs are held in memory
after load(); the execution loop and the command interpreter share the
same instance and therefore the same list.

The file is read once, at load(). Edits made to it by hand while the
relay is running are not picked up and are overwritten by the next
mutation; stop the relay before editing it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from courier.core.errors import StorageError
from courier.core.files import write_atomic
from courier.scheduler.job import ScheduledJob

logger = logging.getLogger(__name__)


class SchedulerStore:
    """
    Usage:
        store = SchedulerStore(Path("data/schedules.json"))
        store.load()

        job = store.add("0 9 * * *", "say hi", "spaces/AAAA", next_run)
        store.for_space("spaces/AAAA")
        store.remove(job.id, "spaces/AAAA")
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._jobs: list[ScheduledJob] = []

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load jobs from disk, creating an empty file if none exists."""
        if not self._path.exists():
            self._jobs = []
            self.persist()
            logger.info(f"Created empty schedules file at {self._path}")
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError("expected a JSON array")
            self._jobs = [ScheduledJob.from_dict(d) for d in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Cannot read schedules from {self._path}: {e}") from e

        logger.info(f"Loaded {len(self._jobs)} schedule(s)")

    def persist(self) -> None:
        write_atomic(
            self._path,
            json.dumps([job.to_dict() for job in self._jobs], indent=2),
        )

    # ── Queries ──────────────────────────────────────────────────────────────

    @property
    def jobs(self) -> list[ScheduledJob]:
        return list(self._jobs)

    def get(self, job_id: int) -> ScheduledJob | None:
        return next((j for j in self._jobs if j.id == job_id), None)

    def for_space(self, space_name: str, enabled_only: bool = True) -> list[ScheduledJob]:
        return [
            j for j in self._jobs
            if j.space_name == space_name and (j.enabled or not enabled_only)
        ]

    def due(self, now: datetime) -> list[ScheduledJob]:
        return [j for j in self._jobs if j.is_due(now)]

    def next_id(self) -> int:
        return max((j.id for j in self._jobs), default=0) + 1

    # ── Mutations ────────────────────────────────────────────────────────────

    def add(self, cron: str, prompt: str, space_name: str, next_run: datetime) -> ScheduledJob:
        job = ScheduledJob(
            id=self.next_id(),
            cron=cron,
            prompt=prompt,
            space_name=space_name,
            next_run=next_run,
        )
        self._jobs.append(job)
        self.persist()
        return job

    def remove(self, job_id: int, space_name: str) -> bool:
        """Delete a job only if it belongs to ``space_name``."""
        for i, job in enumerate(self._jobs):
            if job.id == job_id and job.space_name == space_name:
                del self._jobs[i]
                self.persist()
                return True
        return False
