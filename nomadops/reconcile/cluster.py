"""Single entry point the reconciliation loop talks to.

``NomadCluster`` binds one explicit :class:`NomadClient` to the core
operations; construct as many as needed, there is no process-wide client.
"""

from __future__ import annotations

import asyncio

from nomadops.collector.job_watcher import JobChangeCallback, JobChangeWatcher
from nomadops.models.jobs import ClusterState, GitInfo, JobInfo, Source, UpdateJobInfo
from nomadops.nomad.client import NomadClient
from nomadops.reconcile.apply import delete_job, update_job
from nomadops.reconcile.cluster_state import get_current_cluster_state


class NomadCluster:
    """Reconciliation operations against one Nomad cluster."""

    def __init__(self, client: NomadClient, reconnect_max_backoff: float = 30.0) -> None:
        self._client = client
        self._watcher = JobChangeWatcher(client, reconnect_max_backoff=reconnect_max_backoff)

    @property
    def client(self) -> NomadClient:
        return self._client

    @property
    def watcher(self) -> JobChangeWatcher:
        return self._watcher

    def get_url(self) -> str:
        return self._client.address

    async def parse_job(self, hcl: str, git_info: GitInfo | None = None) -> JobInfo:
        return await self._client.parse_job(hcl, git_info)

    async def get_current_cluster_state(self, source: Source) -> ClusterState:
        return await get_current_cluster_state(self._client, source)

    async def update_job(self, source: Source, job: JobInfo, restart: bool = False) -> UpdateJobInfo:
        return await update_job(self._client, source, job, restart=restart)

    async def delete_job(self, source: Source, job: JobInfo) -> None:
        await delete_job(self._client, source, job)

    async def subscribe_job_changes(self, callback: JobChangeCallback, stop: asyncio.Event) -> asyncio.Task[None]:
        return await self._watcher.subscribe(callback, stop)
