"""Errors that abort a work time estimate."""

from __future__ import annotations


class WorkTimeError(Exception):
    """Base class for fatal estimator errors."""


class PermissionDenied(WorkTimeError):
    """The caller lacks the rights to read the event log."""


class IdentityUnavailable(WorkTimeError):
    """The security identity of the current process could not be determined."""


class QueryFailed(WorkTimeError):
    """The event log could not be queried (missing channel, bad query, no API)."""
