"""Reads the jobs a source currently owns in Nomad."""

from __future__ import annotations

from nomadops.models.jobs import ClusterState, GitInfo, JobInfo, Source
from nomadops.nomad.client import NomadClient, RequestOptions
from nomadops.observability.logging import get_logger
from nomadops.reconcile.ownership import META_KEY_SRC_COMMIT, META_KEY_SRC_URL, is_owned_by

_log = get_logger("reconcile.cluster_state")


async def get_current_cluster_state(client: NomadClient, source: Source) -> ClusterState:
    """Return every job under *source*'s scope that *source* owns.

    Each listed job is fetched in full so its meta can be checked.  Any
    list or fetch failure propagates as ClusterQueryError and no partial
    state is returned.
    """
    opts = RequestOptions.for_source(source)
    stubs, _ = await client.list_jobs(opts)

    state = ClusterState()
    skipped = 0
    for stub in stubs:
        job_id = str(stub.get("ID") or stub.get("Name") or "")
        job = await client.job_info(job_id, opts)
        meta = job.get("Meta") or {}
        if not is_owned_by(meta, source.id):
            skipped += 1
            continue
        info = JobInfo(
            job=job,
            git_info=GitInfo(
                git_url=meta.get(META_KEY_SRC_URL, ""),
                git_commit=meta.get(META_KEY_SRC_COMMIT, ""),
            ),
        )
        state.current_jobs[info.name] = info

    _log.debug(
        "cluster_state_read",
        source_id=source.id,
        owned=len(state.current_jobs),
        skipped=skipped,
    )
    return state
