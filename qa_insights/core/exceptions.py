"""
Core Exceptions
===============

Error types shared by every layer.

Domain code never raises for malformed data; these exceptions mark the
boundaries where something outside the aggregation logic went wrong (the
store, the config file, a lookup) and are mapped to HTTP statuses by
qa_insights.shared.api.middleware.
"""

from typing import Optional


class ApplicationException(Exception):
    """Root of the hierarchy. ``details`` is echoed in API error bodies."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RepositoryException(ApplicationException):
    """Raised by repository implementations."""


class DataAccessException(RepositoryException):
    """
    The interaction store could not be read or written.

    Terminal for the aggregation pass that hit it: no partial results are
    published and the previously computed snapshot stays in place.
    """

    def __init__(self, operation: str, message: str, details: Optional[dict] = None):
        self.operation = operation
        super().__init__(f"Failed to {operation}: {message}", details or {"operation": operation})


class ResourceNotFoundException(ApplicationException):
    """A ticket or employee lookup matched nothing visible."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_id:
            message = f"{resource_type} with id '{resource_id}' not found"
        else:
            message = f"{resource_type} not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """The scoring configuration file exists but cannot be used."""
