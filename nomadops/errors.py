"""Typed error hierarchy for nomadops.

Scheduler errors are surfaced to the caller without retries; the
reconciliation loop that drives this core owns resilience.
"""

from __future__ import annotations


class NomadOpsError(Exception):
    """Base class for every error raised by nomadops."""


class ConfigurationError(NomadOpsError):
    """A source or job definition is not usable as configured."""


class OwnershipError(ConfigurationError):
    """The live job is not owned by the source acting on it."""


class SchedulerError(NomadOpsError):
    """An interaction with the Nomad API failed.

    Attributes:
        status_code: HTTP status returned by Nomad, or None when the
                     request never produced a response (transport failure).
        detail:      Response body text or transport error message.
    """

    def __init__(self, operation: str, detail: str, status_code: int | None = None) -> None:
        prefix = f"{operation} failed"
        if status_code is not None:
            prefix = f"{prefix} ({status_code})"
        super().__init__(f"{prefix}: {detail}")
        self.operation = operation
        self.detail = detail
        self.status_code = status_code


class ClusterQueryError(SchedulerError):
    """Listing, fetching, planning or status lookup failed."""

    @property
    def is_not_found(self) -> bool:
        """True when the queried object does not exist.

        Nomad answers 404 for missing jobs; the substring test catches the
        same condition when it is reported through another status.
        """
        if self.status_code == 404:
            return True
        return "not found" in str(self).lower()


class ClusterWriteError(SchedulerError):
    """Namespace registration, job submission or deregistration failed."""


class SubscriptionError(SchedulerError):
    """The event stream could not be established."""


class EventDecodeError(NomadOpsError):
    """A single event in the stream carried an unusable payload."""
