"""Exception classes for expense-insights."""


class TrackerError(Exception):
    """Base exception for expense-insights."""
    pass


class ConfigError(TrackerError):
    """Configuration-related errors."""
    pass


class AuthError(TrackerError):
    """Sign-in and session errors."""
    pass


class ValidationError(TrackerError):
    """Form and record validation errors."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class StoreError(TrackerError):
    """Data store errors."""
    pass


class NotFoundError(StoreError):
    """Row does not exist or is not visible to the user."""
    pass


class PermissionDeniedError(StoreError):
    """Row is visible but read-only to the user."""
    pass


class DuplicateError(StoreError):
    """Unique constraint violated."""
    pass


class FetchError(TrackerError):
    """Loading dashboard data failed."""
    pass
