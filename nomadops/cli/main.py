"""``nomadops`` command-line interface.

Runs single reconciliation operations against the Nomad agent configured
through the usual ``NOMAD_*`` environment variables.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable, Coroutine
from typing import Any

import click

from nomadops.config import load_config
from nomadops.errors import NomadOpsError
from nomadops.models.jobs import GitInfo, Source
from nomadops.nomad.client import NomadClient
from nomadops.observability.logging import setup_logging
from nomadops.reconcile.cluster import NomadCluster


def _source_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option("--source-id", required=True, help="Identifier stamped into job meta."),
        click.option("--url", "source_url", default="", help="Origin URL of the source."),
        click.option("--namespace", default="", help="Nomad namespace to scope requests to. Defaults to NOMAD_NAMESPACE."),
        click.option("--region", default="", help="Nomad region to scope requests to. Defaults to NOMAD_REGION."),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _run(coro: Coroutine[Any, Any, None]) -> None:
    try:
        asyncio.run(coro)
    except NomadOpsError as exc:
        raise click.ClickException(str(exc)) from exc


def _with_cluster(fn: Callable[..., Coroutine[Any, Any, None]]) -> Callable[..., None]:
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        async def _main() -> None:
            config = load_config()
            for key in ("namespace", "region"):
                if key in kwargs and not kwargs[key]:
                    kwargs[key] = getattr(config.nomad, key)
            async with NomadClient(config.nomad.address, token=config.nomad.token) as client:
                await fn(NomadCluster(client), *args, **kwargs)

        _run(_main())

    return wrapper


@click.group()
@click.option("--log-level", default="warning", type=click.Choice(["debug", "info", "warning", "error"]))
def cli(log_level: str) -> None:
    """Reconcile Nomad jobs declared in git."""
    setup_logging(log_level, json_output=False)


@cli.command()
@_source_options
@_with_cluster
async def state(cluster: NomadCluster, source_id: str, source_url: str, namespace: str, region: str) -> None:
    """List jobs currently owned by a source."""
    source = Source(id=source_id, url=source_url, namespace=namespace, region=region)
    current = await cluster.get_current_cluster_state(source)
    for name in sorted(current.current_jobs):
        click.echo(f"{name}\t{current.current_jobs[name].git_info.git_commit}")


@cli.command()
@click.argument("job_file", type=click.File("r"))
@_source_options
@click.option("--commit", default="", help="Revision the job file was read at.")
@click.option("--restart", is_flag=True, help="Force a new allocation rollout.")
@click.option("--force", is_flag=True, help="Submit even if only bookkeeping changed.")
@click.option("--paused", is_flag=True, help="Compute the diff without submitting.")
@click.option("--create-namespace", is_flag=True, help="Register the job's namespace first.")
@_with_cluster
async def apply(
    cluster: NomadCluster,
    job_file: Any,
    source_id: str,
    source_url: str,
    namespace: str,
    region: str,
    commit: str,
    restart: bool,
    force: bool,
    paused: bool,
    create_namespace: bool,
) -> None:
    """Plan a job file and submit it when it changed."""
    source = Source(
        id=source_id,
        url=source_url,
        namespace=namespace,
        region=region,
        create_namespace=create_namespace,
        paused=paused,
        force=force,
    )
    job = await cluster.parse_job(job_file.read(), GitInfo(git_url=source_url, git_commit=commit))
    outcome = await cluster.update_job(source, job, restart=restart)
    click.echo(f"{job.name}\tupdated={str(outcome.updated).lower()}\tdeployment={outcome.deployment_status.status or '-'}")


@cli.command()
@click.argument("job_name")
@_source_options
@_with_cluster
async def delete(cluster: NomadCluster, job_name: str, source_id: str, source_url: str, namespace: str, region: str) -> None:
    """Deregister a job owned by a source."""
    source = Source(id=source_id, url=source_url, namespace=namespace, region=region)
    current = await cluster.get_current_cluster_state(source)
    job = current.current_jobs.get(job_name)
    if job is None:
        raise click.ClickException(f"job {job_name!r} is not owned by source {source_id!r}")
    await cluster.delete_job(source, job)
    click.echo(f"{job_name}\tderegistered")


@cli.command()
@_with_cluster
async def watch(cluster: NomadCluster) -> None:
    """Print job names as Nomad reports changes to them."""
    stop = asyncio.Event()
    try:
        async for job_name in cluster.watcher.changes(stop):
            click.echo(job_name)
    finally:
        stop.set()
