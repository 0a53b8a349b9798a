"""Async client for the subset of the Nomad HTTP API nomadops needs.

Every operation opens and completes its HTTP exchange within the call and
maps failures onto the typed errors in :mod:`nomadops.errors`.  The client
holds no reconciliation state; pass one instance explicitly to whatever
needs to talk to Nomad.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from nomadops.errors import (
    ClusterQueryError,
    ClusterWriteError,
    ConfigurationError,
    SchedulerError,
    SubscriptionError,
)
from nomadops.models.events import EventBatch
from nomadops.models.jobs import GitInfo, JobInfo
from nomadops.observability.logging import get_logger

if TYPE_CHECKING:
    from nomadops.models.jobs import Source

_log = get_logger("nomad.client")

_INDEX_HEADER = "X-Nomad-Index"
_TOKEN_HEADER = "X-Nomad-Token"


@dataclass(frozen=True)
class RequestOptions:
    """Namespace/region scoping applied to a single request."""

    namespace: str = ""
    region: str = ""

    @classmethod
    def for_source(cls, source: Source) -> RequestOptions:
        return cls(namespace=source.namespace, region=source.region)

    def params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.namespace:
            params["namespace"] = self.namespace
        if self.region:
            params["region"] = self.region
        return params


def _job_path(job_id: str) -> str:
    return f"/v1/job/{quote(job_id, safe='')}"


class EventStream:
    """An open ``/v1/event/stream`` response.

    Async-iterating yields one :class:`EventBatch` per newline-delimited
    JSON frame.  ``last_index`` tracks the highest index delivered so far
    so a caller can resume from it.
    """

    def __init__(self, response: httpx.Response, start_index: int = 0) -> None:
        self._response = response
        self.last_index = start_index

    def __aiter__(self) -> AsyncIterator[EventBatch]:
        return self._batches()

    async def _batches(self) -> AsyncIterator[EventBatch]:
        async for line in self._response.aiter_lines():
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError:
                _log.debug("event_frame_undecodable", frame=line[:200])
                continue
            if not isinstance(raw, dict):
                continue
            try:
                batch = EventBatch.from_api(raw)
            except (TypeError, ValueError):
                _log.debug("event_frame_malformed", frame=line[:200])
                continue
            self.last_index = max(self.last_index, batch.index)
            yield batch

    async def aclose(self) -> None:
        await self._response.aclose()


class NomadClient:
    """Thin async wrapper over Nomad's HTTP API.

    Args:
        address:   Base URL of the Nomad agent, e.g. ``http://127.0.0.1:4646``.
        token:     ACL token sent as ``X-Nomad-Token``; omitted when empty.
        timeout:   httpx timeout.  ``None`` (default) disables timeouts so
                   that deadlines stay with the caller.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        address: str,
        token: str = "",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {_TOKEN_HEADER: token} if token else {}
        self._address = address.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self._address,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def address(self) -> str:
        return self._address

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> NomadClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        error_cls: type[SchedulerError],
        params: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(method, path, params=params, json=body)
        except httpx.HTTPError as exc:
            raise error_cls(operation, str(exc)) from exc
        if response.is_error:
            raise error_cls(operation, response.text.strip(), status_code=response.status_code)
        return response

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_jobs(self, opts: RequestOptions | None = None) -> tuple[list[dict[str, Any]], int]:
        """Return job stubs visible under *opts* and the index they were read at."""
        opts = opts or RequestOptions()
        response = await self._request("GET", "/v1/jobs", "list jobs", ClusterQueryError, params=opts.params())
        index = int(response.headers.get(_INDEX_HEADER) or 0)
        return list(response.json() or []), index

    async def job_info(self, job_id: str, opts: RequestOptions | None = None) -> dict[str, Any]:
        opts = opts or RequestOptions()
        response = await self._request(
            "GET", _job_path(job_id), f"read job {job_id}", ClusterQueryError, params=opts.params()
        )
        return dict(response.json() or {})

    async def plan_job(self, job: dict[str, Any], opts: RequestOptions | None = None) -> dict[str, Any]:
        """Dry-run *job* against the live cluster and return the plan with its diff."""
        opts = opts or RequestOptions()
        job_id = str(job.get("ID") or job.get("Name") or "")
        response = await self._request(
            "POST",
            f"{_job_path(job_id)}/plan",
            f"plan job {job_id}",
            ClusterQueryError,
            params=opts.params(),
            body={"Job": job, "Diff": True},
        )
        return dict(response.json() or {})

    async def latest_deployment(self, job_id: str, opts: RequestOptions | None = None) -> dict[str, Any] | None:
        """Return the most recent deployment of *job_id*, or None if it has none."""
        opts = opts or RequestOptions()
        response = await self._request(
            "GET",
            f"{_job_path(job_id)}/deployment",
            f"read latest deployment of {job_id}",
            ClusterQueryError,
            params=opts.params(),
        )
        data = response.json() if response.content else None
        return dict(data) if data else None

    async def parse_job(self, hcl: str, git_info: GitInfo | None = None) -> JobInfo:
        """Parse HCL job text into its canonical JSON form via Nomad.

        Raises:
            ConfigurationError: Nomad rejected the job text.
            ClusterQueryError:  the parse request itself failed.
        """
        try:
            response = await self._request(
                "POST",
                "/v1/jobs/parse",
                "parse job",
                ClusterQueryError,
                body={"JobHCL": hcl, "Canonicalize": True},
            )
        except ClusterQueryError as exc:
            if exc.status_code is not None and 400 <= exc.status_code < 500:
                raise ConfigurationError(f"invalid job specification: {exc.detail}") from exc
            raise
        return JobInfo(job=dict(response.json() or {}), git_info=git_info or GitInfo())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def register_job(self, job: dict[str, Any], opts: RequestOptions | None = None) -> dict[str, Any]:
        opts = opts or RequestOptions()
        job_id = str(job.get("ID") or job.get("Name") or "")
        response = await self._request(
            "POST",
            "/v1/jobs",
            f"register job {job_id}",
            ClusterWriteError,
            params=opts.params(),
            body={"Job": job},
        )
        return dict(response.json() or {})

    async def deregister_job(
        self,
        job_id: str,
        purge: bool = False,
        opts: RequestOptions | None = None,
    ) -> dict[str, Any]:
        opts = opts or RequestOptions()
        params = {**opts.params(), "purge": str(purge).lower()}
        response = await self._request(
            "DELETE", _job_path(job_id), f"deregister job {job_id}", ClusterWriteError, params=params
        )
        return dict(response.json() or {})

    async def register_namespace(
        self,
        name: str,
        meta: dict[str, str] | None = None,
        opts: RequestOptions | None = None,
    ) -> None:
        """Create or update namespace *name*; registering twice is harmless."""
        opts = opts or RequestOptions()
        await self._request(
            "POST",
            f"/v1/namespace/{quote(name, safe='')}",
            f"register namespace {name}",
            ClusterWriteError,
            params=opts.params(),
            body={"Name": name, "Meta": dict(meta or {})},
        )

    # ------------------------------------------------------------------
    # Event stream
    # ------------------------------------------------------------------

    async def open_event_stream(
        self,
        topics: Mapping[str, list[str]],
        index: int = 0,
        namespace: str = "*",
    ) -> EventStream:
        """Open the event stream for *topics* starting after *index*.

        Raises:
            SubscriptionError: the stream could not be established.
        """
        params: list[tuple[str, str]] = [
            ("topic", f"{topic}:{key}") for topic, keys in topics.items() for key in keys
        ]
        params.append(("index", str(index)))
        if namespace:
            params.append(("namespace", namespace))

        request = self._http.build_request("GET", "/v1/event/stream", params=params)
        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise SubscriptionError("open event stream", str(exc)) from exc
        if response.is_error:
            body = (await response.aread()).decode(errors="replace").strip()
            await response.aclose()
            raise SubscriptionError("open event stream", body, status_code=response.status_code)
        return EventStream(response, start_index=index)
