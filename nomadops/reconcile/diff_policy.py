"""Decides whether a plan diff warrants submitting a job."""

from __future__ import annotations

from nomadops.models.diff import JobDiff
from nomadops.reconcile.ownership import BOOKKEEPING_FIELDS


def has_update(diff: JobDiff, restart: bool = False, force: bool = False) -> bool:
    """Return True when *diff* represents a change worth submitting.

    A lone top-level field change to the source commit or the restart
    nonce is bookkeeping: re-syncing identical job content from a new
    commit must not churn the cluster.  *restart* and *force* override
    that suppression.  Two or more changed fields always count.
    """
    if diff.objects:
        return True

    if diff.fields:
        if len(diff.fields) != 1 or diff.fields[0].name not in BOOKKEEPING_FIELDS or restart or force:
            return True

    for group in diff.task_groups:
        if group.fields or group.objects:
            return True
        for task in group.tasks:
            if task.fields or task.objects:
                return True

    return False
