"""Tests for ownership meta stamping and the ownership test."""

from __future__ import annotations

from datetime import UTC, datetime

from nomadops.models.jobs import GitInfo, JobInfo, Source
from nomadops.reconcile.ownership import (
    BOOKKEEPING_FIELDS,
    META_KEY_FORCE_RESTART,
    META_KEY_OPS,
    META_KEY_SRC_COMMIT,
    META_KEY_SRC_ID,
    META_KEY_SRC_URL,
    is_owned_by,
    meta_field_name,
    namespace_meta,
    ownership_meta,
)

_SOURCE = Source(id="s1", url="https://git.example/ops.git", namespace="ns1")
_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


def _job(meta: dict[str, str] | None = None, commit: str = "def") -> JobInfo:
    return JobInfo(job={"ID": "web", "Name": "web", "Meta": meta}, git_info=GitInfo(git_commit=commit))


class TestOwnershipMeta:
    def test_sets_marker_source_and_commit(self) -> None:
        meta = ownership_meta(_SOURCE, _job(), now=_NOW)
        assert meta == {
            META_KEY_OPS: "true",
            META_KEY_SRC_ID: "s1",
            META_KEY_SRC_URL: "https://git.example/ops.git",
            META_KEY_SRC_COMMIT: "def",
        }

    def test_keeps_existing_user_meta(self) -> None:
        meta = ownership_meta(_SOURCE, _job(meta={"team": "payments"}), now=_NOW)
        assert meta["team"] == "payments"
        assert meta[META_KEY_SRC_ID] == "s1"

    def test_overwrites_foreign_owner(self) -> None:
        meta = ownership_meta(_SOURCE, _job(meta={META_KEY_SRC_ID: "other"}), now=_NOW)
        assert meta[META_KEY_SRC_ID] == "s1"

    def test_no_restart_nonce_without_restart(self) -> None:
        assert META_KEY_FORCE_RESTART not in ownership_meta(_SOURCE, _job(), now=_NOW)

    def test_restart_nonce_is_current_time(self) -> None:
        meta = ownership_meta(_SOURCE, _job(), restart=True, now=_NOW)
        assert meta[META_KEY_FORCE_RESTART] == _NOW.isoformat()

    def test_restart_nonce_defaults_to_wall_clock(self) -> None:
        before = datetime.now(tz=UTC)
        meta = ownership_meta(_SOURCE, _job(), restart=True)
        stamped = datetime.fromisoformat(meta[META_KEY_FORCE_RESTART])
        assert stamped >= before

    def test_does_not_mutate_job(self) -> None:
        job = _job(meta={"team": "payments"})
        ownership_meta(_SOURCE, job, restart=True, now=_NOW)
        assert job.job["Meta"] == {"team": "payments"}


class TestIsOwnedBy:
    def test_owned(self) -> None:
        assert is_owned_by({META_KEY_OPS: "true", META_KEY_SRC_ID: "s1"}, "s1")

    def test_empty_meta_not_owned(self) -> None:
        assert not is_owned_by({}, "s1")
        assert not is_owned_by(None, "s1")

    def test_other_source_not_owned(self) -> None:
        assert not is_owned_by({META_KEY_OPS: "true", META_KEY_SRC_ID: "s2"}, "s1")

    def test_marker_required(self) -> None:
        assert not is_owned_by({META_KEY_SRC_ID: "s1"}, "s1")
        assert not is_owned_by({META_KEY_OPS: "false", META_KEY_SRC_ID: "s1"}, "s1")


def test_bookkeeping_fields_are_commit_and_restart() -> None:
    assert BOOKKEEPING_FIELDS == {"Meta[nomadopssrccommit]", "Meta[nomadopsforcerestart]"}
    assert meta_field_name("x") == "Meta[x]"


def test_namespace_meta_carries_marker() -> None:
    assert namespace_meta() == {"nomadops": "true"}
