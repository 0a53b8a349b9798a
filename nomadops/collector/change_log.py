"""Bounded in-memory record of recent job change notifications."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True)
class JobChange:
    job_name: str
    seen_at: datetime


class JobChangeLog:
    """Keeps the last *maxlen* job names delivered by the watcher.

    ``record`` is a plain function so it can be handed to
    ``JobChangeWatcher.subscribe`` directly.
    """

    def __init__(self, maxlen: int = 500) -> None:
        self._entries: deque[JobChange] = deque(maxlen=maxlen)
        self._total = 0

    def record(self, job_name: str) -> None:
        self._entries.append(JobChange(job_name=job_name, seen_at=datetime.now(tz=UTC)))
        self._total += 1

    def recent(self, limit: int = 50) -> list[JobChange]:
        """Return up to *limit* entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._entries))[:limit]

    @property
    def total(self) -> int:
        """Notifications recorded since start, including evicted ones."""
        return self._total

    def __len__(self) -> int:
        return len(self._entries)
