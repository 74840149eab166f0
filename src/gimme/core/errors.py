"""
Error taxonomy.

Every failure a command can hit maps to one of these classes, so the
dispatcher can print a single human readable line and exit non-zero.
"""

from typing import Optional


class GimmeError(Exception):
    """Base class for all gimme exceptions."""
    pass


class ConfigurationError(GimmeError):
    """Raised for bad paths or invalid configuration values."""
    pass


class NotFoundError(GimmeError):
    """Raised when a query target is absent."""
    pass


class NodeNotFound(NotFoundError):
    """Raised when a node identifier is not present in the inventory or cluster."""

    def __init__(self, identifier: str, where: str = "inventory"):
        self.identifier = identifier
        self.where = where
        super().__init__(f"Node '{identifier}' not found in {where}")


class FieldNotFound(NotFoundError):
    """Raised when a node record has no value at the requested field path."""

    def __init__(self, identifier: str, field: str):
        self.identifier = identifier
        self.field = field
        super().__init__(f"Field '{field}' not set for node '{identifier}'")


class AdapterError(GimmeError):
    """Raised when an external command fails or returns unparseable output."""
    pass


class KubectlTimeoutError(AdapterError):
    """Raised when kubectl does not finish within the configured timeout."""
    pass


class ProbeConnectionError(GimmeError):
    """Raised when an SSH session to a node cannot be established."""
    pass


class FeatureDisabledError(GimmeError):
    """Raised when an optional integration is used without being configured."""
    pass


class ApiError(GimmeError):
    """Raised when the DCIM API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        super().__init__(message)
