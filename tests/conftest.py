"""Shared fixtures for nomadops tests.

``FakeNomad`` is an in-memory stand-in for the Nomad HTTP API served
through ``httpx.MockTransport``, so the real ``NomadClient`` code path is
exercised without a Nomad agent.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from nomadops.models.jobs import GitInfo, JobInfo, Source
from nomadops.nomad.client import NomadClient

# ---------------------------------------------------------------------------
# Job factory helpers
# ---------------------------------------------------------------------------


def make_job(
    job_id: str = "web",
    namespace: str | None = "ns1",
    meta: dict[str, str] | None = None,
    count: int = 1,
    image: str = "nginx:1.25",
) -> dict[str, Any]:
    """Create a JSON-shaped Nomad job with one group and one task."""
    job: dict[str, Any] = {
        "ID": job_id,
        "Name": job_id,
        "Type": "service",
        "Datacenters": ["dc1"],
        "Meta": dict(meta) if meta is not None else None,
        "TaskGroups": [
            {
                "Name": "app",
                "Count": count,
                "Tasks": [{"Name": "server", "Driver": "docker", "Config": {"image": image}}],
            }
        ],
    }
    if namespace is not None:
        job["Namespace"] = namespace
    return job


def make_job_info(commit: str = "def", **kwargs: Any) -> JobInfo:
    return JobInfo(job=make_job(**kwargs), git_info=GitInfo(git_url="https://git.example/ops.git", git_commit=commit))


def owned_meta(source_id: str = "s1", commit: str = "abc", url: str = "https://git.example/ops.git") -> dict[str, str]:
    return {
        "nomadops": "true",
        "nomadopssrcid": source_id,
        "nomadopssrcurl": url,
        "nomadopssrccommit": commit,
    }


# ---------------------------------------------------------------------------
# Fake Nomad HTTP API
# ---------------------------------------------------------------------------


def _flatten(job: dict[str, Any] | None) -> dict[str, str]:
    if not job:
        return {}
    out: dict[str, str] = {}
    for key, value in job.items():
        if key == "Meta":
            for meta_key, meta_value in (value or {}).items():
                out[f"Meta[{meta_key}]"] = str(meta_value)
        elif isinstance(value, (str, int, float, bool)):
            out[key] = str(value)
    return out


def compute_diff(old: dict[str, Any] | None, new: dict[str, Any]) -> dict[str, Any]:
    """Rough imitation of Nomad's plan diff: top-level fields and task groups."""
    before, after = _flatten(old), _flatten(new)
    fields = []
    for name in sorted(set(before) | set(after)):
        if before.get(name) == after.get(name):
            continue
        if name not in before:
            change = "Added"
        elif name not in after:
            change = "Deleted"
        else:
            change = "Edited"
        fields.append({"Type": change, "Name": name, "Old": before.get(name, ""), "New": after.get(name, "")})

    groups = []
    old_groups = (old or {}).get("TaskGroups") or []
    if old_groups != (new.get("TaskGroups") or []):
        groups.append(
            {
                "Type": "Edited" if old_groups else "Added",
                "Name": "app",
                "Fields": [{"Type": "Edited", "Name": "Count", "Old": "", "New": ""}],
                "Objects": None,
                "Tasks": None,
            }
        )

    change_type = "None"
    if old is None:
        change_type = "Added"
    elif fields or groups:
        change_type = "Edited"
    return {
        "Type": change_type,
        "ID": new.get("ID", ""),
        "Fields": fields or None,
        "Objects": None,
        "TaskGroups": groups or None,
    }


class FakeNomad:
    """In-memory Nomad API.  Records every request it serves."""

    def __init__(self) -> None:
        self.jobs: dict[str, dict[str, Any]] = {}
        self.deployments: dict[str, dict[str, Any]] = {}
        self.namespaces: dict[str, dict[str, Any]] = {}
        self.parsed: dict[str, dict[str, Any]] = {}
        self.plan_overrides: dict[str, dict[str, Any]] = {}
        self.failures: dict[tuple[str, str], tuple[int, str]] = {}
        self.event_frames: list[dict[str, Any]] = []
        self.index = 100
        self.requests: list[httpx.Request] = []

    # -- helpers for assertions ------------------------------------------

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def register_calls(self) -> list[httpx.Request]:
        return self.calls("POST", "/v1/jobs")

    def fail(self, method: str, path: str, status: int, body: str) -> None:
        self.failures[(method, path)] = (status, body)

    # -- transport handler -------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path

        if (method, path) in self.failures:
            status, body = self.failures[(method, path)]
            return httpx.Response(status, text=body)

        if path == "/v1/jobs" and method == "GET":
            stubs = [{"ID": j["ID"], "Name": j["Name"], "Namespace": j.get("Namespace", "default")} for j in self.jobs.values()]
            return httpx.Response(200, json=stubs, headers={"X-Nomad-Index": str(self.index)})

        if path == "/v1/jobs" and method == "POST":
            job = json.loads(request.content)["Job"]
            self.jobs[job["ID"]] = job
            self.index += 1
            return httpx.Response(200, json={"EvalID": f"eval-{self.index}", "JobModifyIndex": self.index})

        if path == "/v1/jobs/parse" and method == "POST":
            hcl = json.loads(request.content)["JobHCL"]
            if hcl not in self.parsed:
                return httpx.Response(400, text="1 error occurred:\n\t* invalid HCL")
            return httpx.Response(200, json=self.parsed[hcl])

        if path.startswith("/v1/namespace/") and method == "POST":
            body = json.loads(request.content)
            self.namespaces[body["Name"]] = body
            return httpx.Response(200, json=None)

        if path == "/v1/event/stream" and method == "GET":
            content = "".join(json.dumps(frame) + "\n" for frame in self.event_frames)
            return httpx.Response(200, content=content.encode())

        if path.startswith("/v1/job/"):
            return self._handle_job(request, method, path[len("/v1/job/") :])

        return httpx.Response(404, text="resource not found")

    def _handle_job(self, request: httpx.Request, method: str, rest: str) -> httpx.Response:
        if rest.endswith("/plan") and method == "POST":
            job_id = rest[: -len("/plan")]
            candidate = json.loads(request.content)["Job"]
            diff = self.plan_overrides.get(job_id) or compute_diff(self.jobs.get(job_id), candidate)
            return httpx.Response(200, json={"Diff": diff, "JobModifyIndex": self.index})

        if rest.endswith("/deployment") and method == "GET":
            job_id = rest[: -len("/deployment")]
            if job_id not in self.jobs:
                return httpx.Response(404, text="job not found")
            deployment = self.deployments.get(job_id)
            if deployment is None:
                return httpx.Response(200, content=b"null")
            return httpx.Response(200, json=deployment)

        if method == "GET":
            if rest not in self.jobs:
                return httpx.Response(404, text="job not found")
            return httpx.Response(200, json=self.jobs[rest])

        if method == "DELETE":
            self.jobs.pop(rest, None)
            self.index += 1
            return httpx.Response(200, json={"EvalID": f"eval-{self.index}"})

        return httpx.Response(405, text="method not allowed")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_nomad() -> FakeNomad:
    return FakeNomad()


@pytest.fixture
async def nomad_client(fake_nomad: FakeNomad):
    client = NomadClient("http://nomad.test:4646", transport=httpx.MockTransport(fake_nomad.handle))
    yield client
    await client.aclose()


@pytest.fixture
def source() -> Source:
    return Source(id="s1", url="https://git.example/ops.git", namespace="ns1")
