"""
Exception hierarchy for the tracker.

Read failures never raise: the DAO logs them and returns an empty result.
Everything below is terminal for the request that triggered it.
"""


class PerfTrackError(Exception):
    """Base class for all tracker errors."""


class InvalidConfigurationError(PerfTrackError, ValueError):
    """Forecast or goal inputs that cannot produce a finite result."""


class StoreWriteError(PerfTrackError):
    """A single-row write was rejected by the store. Prior state is unchanged."""

    def __init__(self, table: str, action: str, message: str):
        self.table = table
        self.action = action
        super().__init__(f"Failed to {action} {table}: {message}")


class ReferentialIntegrityError(PerfTrackError):
    """A delete would orphan rows that still reference the target."""


class MissingTeamError(PerfTrackError):
    """The acting user has no team, so the row cannot be attributed."""


class PermissionDeniedError(PerfTrackError):
    """The acting user lacks the capability for a mutation."""


class NotFoundError(PerfTrackError):
    """No row with the given id exists."""


class UnknownColumnError(PerfTrackError, KeyError):
    """A query referenced a column the collection does not declare."""
