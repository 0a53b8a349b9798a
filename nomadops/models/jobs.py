"""Source, job and cluster-state data structures."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Source:
    """A configured origin of desired job definitions.

    Immutable for the duration of one reconciliation pass.  ``paused``
    computes diffs but never submits; ``force`` treats every diff as an
    update, including pure bookkeeping changes.
    """

    id: str
    url: str = ""
    namespace: str = ""
    region: str = ""
    create_namespace: bool = False
    paused: bool = False
    force: bool = False


@dataclass(frozen=True)
class GitInfo:
    """Provenance of a parsed job definition."""

    git_url: str = ""
    git_commit: str = ""


@dataclass
class JobInfo:
    """A Nomad job definition plus where it came from.

    ``job`` is the JSON-shaped job as Nomad's API speaks it (``ID``,
    ``Name``, ``Namespace``, ``Meta``, ``TaskGroups``...).
    """

    job: dict[str, Any]
    git_info: GitInfo = field(default_factory=GitInfo)

    @property
    def id(self) -> str:
        return str(self.job.get("ID") or self.job.get("Name") or "")

    @property
    def name(self) -> str:
        return str(self.job.get("Name") or self.job.get("ID") or "")

    @property
    def namespace(self) -> str | None:
        ns = self.job.get("Namespace")
        return str(ns) if ns else None

    @property
    def meta(self) -> dict[str, str]:
        return dict(self.job.get("Meta") or {})

    def with_meta(self, meta: dict[str, str]) -> JobInfo:
        """Return a copy whose job carries *meta*; the original is untouched."""
        job = copy.deepcopy(self.job)
        job["Meta"] = dict(meta)
        return JobInfo(job=job, git_info=self.git_info)


@dataclass
class ClusterState:
    """Jobs currently running in Nomad that belong to one source.

    Built fresh on every read and keyed by job name.
    """

    current_jobs: dict[str, JobInfo] = field(default_factory=dict)


@dataclass(frozen=True)
class DeploymentStatus:
    """Last known deployment status; empty when no deployment exists yet."""

    status: str = ""


@dataclass(frozen=True)
class UpdateJobInfo:
    """Outcome of one apply attempt.

    ``updated`` does not distinguish creating a job from changing one.
    ``deployment_status`` reflects the state observed before submission.
    """

    updated: bool = False
    deployment_status: DeploymentStatus = field(default_factory=DeploymentStatus)
