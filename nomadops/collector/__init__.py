"""Collector package for nomadops.

Turns Nomad's event stream into job names that need reconciling.

Submodules
----------
job_watcher -- JobChangeWatcher: Job/Deployment topic subscription, heartbeat
               filtering, per-event decode tolerance, resume from last index.
change_log  -- JobChangeLog: bounded history of delivered job names.
"""

from nomadops.collector.change_log import JobChange, JobChangeLog
from nomadops.collector.job_watcher import JobChangeWatcher, job_name_from_event, job_names_from_batch

__all__ = [
    "JobChange",
    "JobChangeLog",
    "JobChangeWatcher",
    "job_name_from_event",
    "job_names_from_batch",
]
