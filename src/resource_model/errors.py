"""Exception types raised by the mapping, model and storage layers.

Every error carries the HTTP-ish ``status_code`` a serving layer should use
when it surfaces the error to a client.
"""

from __future__ import annotations


class ResourceModelError(Exception):
    """Base class for all errors raised by this package."""

    status_code = 500


class ConfigurationError(ResourceModelError):
    """Raised when static configuration (types, presets, mappings) is invalid."""


class ValidationError(ResourceModelError, ValueError):
    """Raised when a value cannot be coerced into a field's storage format."""

    status_code = 400

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid value for field '{field}': {message}")
        self.field = field


class RelationshipError(ResourceModelError):
    """Base class for errors related to model relationships."""


class MissingRelationshipError(RelationshipError):
    """Raised when a relationship is expected on a model but not declared."""


class DatabaseError(ResourceModelError):
    """Base class for errors raised while talking to the database."""


class DatabaseConnectionError(DatabaseError):
    """Raised when a connection to the database fails or drops."""


class DatabaseQueryError(DatabaseError):
    """Raised when a query fails to execute or the database rejects it."""


class MissingResourceError(ResourceModelError):
    """Raised when a requested resource does not exist."""

    status_code = 404
