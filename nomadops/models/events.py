"""Nomad event stream data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EventTopic(StrEnum):
    """Event stream topics nomadops subscribes to."""

    JOB = "Job"
    DEPLOYMENT = "Deployment"


class EventType(StrEnum):
    """Event kinds that trigger a job re-evaluation."""

    JOB_REGISTERED = "JobRegistered"
    JOB_DEREGISTERED = "JobDeregistered"
    DEPLOYMENT_STATUS_UPDATE = "DeploymentStatusUpdate"


@dataclass(frozen=True)
class ClusterEvent:
    """One event as delivered by ``/v1/event/stream``.

    ``payload`` is left undecoded; the watcher extracts what it needs and
    treats a malformed payload as a per-event failure.
    """

    topic: str
    type: str
    key: str = ""
    namespace: str = ""
    index: int = 0
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> ClusterEvent:
        payload = raw.get("Payload")
        return cls(
            topic=str(raw.get("Topic", "")),
            type=str(raw.get("Type", "")),
            key=str(raw.get("Key", "")),
            namespace=str(raw.get("Namespace", "")),
            index=int(raw.get("Index") or 0),
            payload=payload if isinstance(payload, dict) else {},
        )


@dataclass(frozen=True)
class EventBatch:
    """A frame of the event stream.  An empty frame is a heartbeat."""

    index: int = 0
    events: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_heartbeat(self) -> bool:
        return self.index == 0 and not self.events

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> EventBatch:
        events = raw.get("Events") or []
        return cls(
            index=int(raw.get("Index") or 0),
            events=[e for e in events if isinstance(e, dict)],
        )
