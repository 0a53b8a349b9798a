"""Apply protocol: plan a job, decide, and submit or remove it.

``update_job`` runs strictly in order:

1. ensure the target namespace exists when the source asks for it
2. refuse a live job of the same name that the source does not own
3. stamp the ownership meta (and the restart nonce, if requested)
4. plan the stamped job against the live cluster
5. read the latest deployment status (a missing deployment is not an error)
6. classify the diff; stop here if nothing worth submitting changed
7. register the job unless the source is paused

The deployment status returned is the one read in step 5, before any
submission, because deployments progress asynchronously afterwards.
"""

from __future__ import annotations

from datetime import datetime

from nomadops.errors import ClusterQueryError, ConfigurationError, OwnershipError
from nomadops.models.diff import JobDiff
from nomadops.models.jobs import DeploymentStatus, JobInfo, Source, UpdateJobInfo
from nomadops.nomad.client import NomadClient, RequestOptions
from nomadops.observability.logging import get_logger, to_json_string
from nomadops.reconcile.diff_policy import has_update
from nomadops.reconcile.ownership import is_owned_by, namespace_meta, ownership_meta

_log = get_logger("reconcile.apply")


async def _ensure_namespace(client: NomadClient, source: Source, job: JobInfo, opts: RequestOptions) -> None:
    if job.namespace is None:
        raise ConfigurationError(
            f"job {job.id!r} must set a namespace when source {source.id!r} has create_namespace enabled"
        )
    await client.register_namespace(job.namespace, meta=namespace_meta(), opts=opts)


async def _ensure_owned_or_absent(client: NomadClient, source: Source, job_id: str, opts: RequestOptions) -> None:
    try:
        live = await client.job_info(job_id, opts)
    except ClusterQueryError as exc:
        if not exc.is_not_found:
            raise
        return
    if not is_owned_by(live.get("Meta"), source.id):
        raise OwnershipError(f"job {job_id!r} exists and is not owned by source {source.id!r}")


async def _deployment_status(client: NomadClient, job_id: str, opts: RequestOptions) -> str:
    try:
        deployment = await client.latest_deployment(job_id, opts)
    except ClusterQueryError as exc:
        if not exc.is_not_found:
            raise
        return ""
    if deployment is None:
        return ""
    status = str(deployment.get("Status", ""))
    _log.info("deployment_status", job_id=job_id, status=status)
    return status


async def update_job(
    client: NomadClient,
    source: Source,
    job: JobInfo,
    restart: bool = False,
    now: datetime | None = None,
) -> UpdateJobInfo:
    """Bring *job* into the cluster on behalf of *source* if it changed.

    Raises:
        ConfigurationError: namespace creation requested but the job has none.
        OwnershipError:     a live job of that name is not owned by *source*.
        ClusterQueryError:  live job, plan or deployment lookup failed.
        ClusterWriteError:  namespace registration or job submission failed.
    """
    write_opts = RequestOptions.for_source(source)

    if source.create_namespace:
        await _ensure_namespace(client, source, job, write_opts)

    await _ensure_owned_or_absent(client, source, job.id, write_opts)

    tagged = job.with_meta(ownership_meta(source, job, restart=restart, now=now))

    plan = await client.plan_job(tagged.job, write_opts)
    raw_diff = plan.get("Diff")
    diff = JobDiff.from_api(raw_diff)

    status = await _deployment_status(client, tagged.id, write_opts)

    if not has_update(diff, restart=restart, force=source.force):
        _log.debug("job_up_to_date", job_id=tagged.id, source_id=source.id)
        return UpdateJobInfo(updated=False, deployment_status=DeploymentStatus(status=status))

    _log.info("job_diff", job_id=tagged.id, source_id=source.id, diff=to_json_string(raw_diff))

    if source.paused:
        _log.info("job_submit_skipped_paused", job_id=tagged.id, source_id=source.id)
    else:
        response = await client.register_job(tagged.job, write_opts)
        _log.info("job_registered", job_id=tagged.id, response=to_json_string(response))

    return UpdateJobInfo(updated=True, deployment_status=DeploymentStatus(status=status))


async def delete_job(client: NomadClient, source: Source, job: JobInfo) -> None:
    """Stop *job* without purging it from Nomad's state.

    *job* is expected to come from the source's cluster state; a job whose
    meta does not name *source* as owner is refused before any request.
    """
    if not is_owned_by(job.meta, source.id):
        raise OwnershipError(f"job {job.name!r} is not owned by source {source.id!r}")
    await client.deregister_job(job.name, purge=False, opts=RequestOptions.for_source(source))
    _log.info("job_deregistered", job_name=job.name, source_id=source.id)
