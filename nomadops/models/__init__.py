"""Core data structures for nomadops."""

from nomadops.models.config import NomadOpsConfig
from nomadops.models.diff import FieldDiff, JobDiff, ObjectDiff, TaskDiff, TaskGroupDiff
from nomadops.models.events import ClusterEvent, EventBatch, EventTopic, EventType
from nomadops.models.jobs import (
    ClusterState,
    DeploymentStatus,
    GitInfo,
    JobInfo,
    Source,
    UpdateJobInfo,
)

__all__ = [
    "ClusterEvent",
    "ClusterState",
    "DeploymentStatus",
    "EventBatch",
    "EventTopic",
    "EventType",
    "FieldDiff",
    "GitInfo",
    "JobDiff",
    "JobInfo",
    "NomadOpsConfig",
    "ObjectDiff",
    "Source",
    "TaskDiff",
    "TaskGroupDiff",
    "UpdateJobInfo",
]
