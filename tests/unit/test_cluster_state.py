"""Tests for reading a source's owned jobs."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from nomadops.errors import ClusterQueryError
from nomadops.models.jobs import Source
from nomadops.nomad.client import RequestOptions
from nomadops.reconcile.cluster_state import get_current_cluster_state

from ..conftest import make_job, owned_meta

_SOURCE = Source(id="s1", url="https://git.example/ops.git", namespace="ns1", region="eu")


def _make_client(jobs: dict[str, dict[str, Any]]) -> MagicMock:
    client = MagicMock()
    client.list_jobs = AsyncMock(return_value=([{"ID": j, "Name": j} for j in jobs], 42))
    client.job_info = AsyncMock(side_effect=lambda job_id, opts: jobs[job_id])
    return client


class TestGetCurrentClusterState:
    async def test_returns_only_owned_jobs(self) -> None:
        client = _make_client(
            {
                "web": make_job("web", meta=owned_meta("s1", commit="abc")),
                "unmanaged": make_job("unmanaged", meta=None),
                "foreign": make_job("foreign", meta=owned_meta("s2")),
                "unmarked": make_job("unmarked", meta={"nomadopssrcid": "s1"}),
            }
        )
        state = await get_current_cluster_state(client, _SOURCE)
        assert list(state.current_jobs) == ["web"]

    async def test_git_info_recovered_from_meta(self) -> None:
        client = _make_client({"web": make_job("web", meta=owned_meta("s1", commit="abc"))})
        state = await get_current_cluster_state(client, _SOURCE)
        assert state.current_jobs["web"].git_info.git_commit == "abc"
        assert state.current_jobs["web"].git_info.git_url == "https://git.example/ops.git"

    async def test_scoped_to_source(self) -> None:
        client = _make_client({"web": make_job("web", meta=owned_meta())})
        await get_current_cluster_state(client, _SOURCE)
        expected = RequestOptions(namespace="ns1", region="eu")
        client.list_jobs.assert_awaited_once_with(expected)
        client.job_info.assert_awaited_once_with("web", expected)

    async def test_empty_cluster(self) -> None:
        state = await get_current_cluster_state(_make_client({}), _SOURCE)
        assert state.current_jobs == {}

    async def test_list_failure_propagates(self) -> None:
        client = MagicMock()
        client.list_jobs = AsyncMock(side_effect=ClusterQueryError("list jobs", "permission denied", 403))
        with pytest.raises(ClusterQueryError, match="permission denied"):
            await get_current_cluster_state(client, _SOURCE)

    async def test_fetch_failure_aborts_whole_read(self) -> None:
        client = _make_client({"web": make_job("web", meta=owned_meta()), "api": make_job("api", meta=owned_meta())})
        client.job_info = AsyncMock(side_effect=[make_job("web", meta=owned_meta()), ClusterQueryError("read job api", "boom", 500)])
        with pytest.raises(ClusterQueryError):
            await get_current_cluster_state(client, _SOURCE)

    async def test_fresh_state_per_call(self) -> None:
        client = _make_client({"web": make_job("web", meta=owned_meta())})
        first = await get_current_cluster_state(client, _SOURCE)
        second = await get_current_cluster_state(client, _SOURCE)
        assert first is not second
        assert first.current_jobs is not second.current_jobs
