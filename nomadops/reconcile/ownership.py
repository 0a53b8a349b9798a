"""Ownership metadata carried on jobs and namespaces nomadops manages.

A job belongs to a source only when its meta carries the ownership
marker and that source's id.  Nothing in nomadops writes to a job that
fails this test.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from nomadops.models.jobs import JobInfo, Source

META_KEY_OPS = "nomadops"
META_KEY_SRC_ID = "nomadopssrcid"
META_KEY_SRC_URL = "nomadopssrcurl"
META_KEY_SRC_COMMIT = "nomadopssrccommit"
META_KEY_FORCE_RESTART = "nomadopsforcerestart"

OWNED_VALUE = "true"


def meta_field_name(key: str) -> str:
    """Name Nomad's plan diff uses for a job meta entry."""
    return f"Meta[{key}]"


# Field diffs on these alone are bookkeeping, not content.
BOOKKEEPING_FIELDS = frozenset(
    {
        meta_field_name(META_KEY_SRC_COMMIT),
        meta_field_name(META_KEY_FORCE_RESTART),
    }
)


def ownership_meta(
    source: Source,
    job: JobInfo,
    restart: bool = False,
    now: datetime | None = None,
) -> dict[str, str]:
    """Return *job*'s meta with the ownership stamp of *source* applied.

    The restart nonce is only set when *restart* is requested; its value is
    the current UTC time so every restart yields a distinct diff.
    """
    meta = job.meta
    meta[META_KEY_OPS] = OWNED_VALUE
    meta[META_KEY_SRC_URL] = source.url
    meta[META_KEY_SRC_ID] = source.id
    meta[META_KEY_SRC_COMMIT] = job.git_info.git_commit
    if restart:
        meta[META_KEY_FORCE_RESTART] = (now or datetime.now(tz=UTC)).isoformat()
    return meta


def is_owned_by(meta: Mapping[str, str] | None, source_id: str) -> bool:
    if not meta:
        return False
    return meta.get(META_KEY_OPS) == OWNED_VALUE and meta.get(META_KEY_SRC_ID) == source_id


def namespace_meta() -> dict[str, str]:
    """Meta stamped on namespaces created on behalf of a source."""
    return {META_KEY_OPS: OWNED_VALUE}
