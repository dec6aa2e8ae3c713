"""
Domain-specific exception hierarchy for the availability engine.
"""


class BookableError(Exception):
    """Base class for all application-level errors."""


class NotFoundError(BookableError):
    """Raised when a tenant, service or staff member does not exist."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier!r} not found")


class DataSourceError(BookableError):
    """Raised when booking data cannot be loaded or parsed."""
