"""
Error taxonomy for the scheduling core.

Validation errors are user-correctable and block a submission. Remote sync
failures are non-fatal: the local commit has already happened.
"""


class SchedulingError(ValueError):
    """Base class for every error raised by the scheduling core."""

    code = 'scheduling_error'


class MissingField(SchedulingError):
    """One or more required fields are empty."""

    code = 'missing_field'

    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__(
            "Required fields are missing: " + ", ".join(self.fields)
        )


class ProviderUnavailable(SchedulingError):
    """The provider does not work on the requested weekday."""

    code = 'provider_unavailable'


class TimeConflict(SchedulingError):
    """The requested slot overlaps another booking of the same provider."""

    code = 'time_conflict'


class InvalidReference(SchedulingError):
    """A service, provider or enumerated value does not resolve."""

    code = 'invalid_reference'


class RemoteSyncFailure(SchedulingError):
    """The remote mirror could not be reached or answered with garbage."""

    code = 'remote_sync_failure'


class InvalidTransition(SchedulingError):
    """A cleanup action was requested in a state that does not allow it."""

    code = 'invalid_transition'


class NotPermitted(SchedulingError):
    """The session role may not perform the requested action."""

    code = 'not_permitted'
