"""Reconciliation decision engine.

Exposes:
    NomadCluster              -- facade binding a NomadClient to the operations below.
    get_current_cluster_state -- jobs a source currently owns.
    update_job                -- plan, classify and conditionally submit a job.
    delete_job                -- non-purging deregistration of an owned job.
    has_update                -- the change classifier over a plan diff.
    ownership_meta            -- ownership stamp applied before submission.
    is_owned_by               -- ownership test on job meta.
"""

from nomadops.reconcile.apply import delete_job, update_job
from nomadops.reconcile.cluster import NomadCluster
from nomadops.reconcile.cluster_state import get_current_cluster_state
from nomadops.reconcile.diff_policy import has_update
from nomadops.reconcile.ownership import is_owned_by, ownership_meta

__all__ = [
    "NomadCluster",
    "delete_job",
    "get_current_cluster_state",
    "has_update",
    "is_owned_by",
    "ownership_meta",
    "update_job",
]
