"""Errors raised by the catalog store.

Each error carries the HTTP status the API answers with, so the exception
handlers in main.py can map them without knowing every subclass.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Missing, invalid or out-of-range field, or a sku collision."""

    status_code = 400


class InvalidKey(CatalogError):
    """The identifier is not well-formed."""

    status_code = 400


class NotFound(CatalogError):
    """No entity matches the key."""

    status_code = 404


class ConcurrentUpdate(CatalogError):
    """The document kept changing underneath a write.

    Answered with 409 so clients can tell a retryable write conflict from a
    server fault.
    """

    status_code = 409


class StoreUnavailable(CatalogError):
    """The underlying database could not be reached."""

    status_code = 500
