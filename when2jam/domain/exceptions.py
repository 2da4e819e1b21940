"""
Domain-specific exception hierarchy for the when2jam application.
"""


class When2JamError(Exception):
    """Base class for all application-level errors."""


class ConfigurationFault(When2JamError, ValueError):
    """Raised when grid parameters or a date range are invalid."""


class DataShapeMismatch(When2JamError):
    """Raised when a stored availability vector does not fit the current grid."""


class BoundsViolation(When2JamError, IndexError):
    """Raised when a slot index falls outside the grid."""


class InputError(When2JamError):
    """Raised when user-supplied input cannot be accepted."""


class StoreError(When2JamError):
    """Raised when event or response data cannot be fetched or saved."""


class EventNotFoundError(StoreError):
    """Raised when the requested event does not exist in the store."""
