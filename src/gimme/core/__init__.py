"""
Core module for gimme.

Contains configuration and the error taxonomy shared by all commands.
"""

from gimme.core.config import GimmeSettings, load_settings, parse_duration
from gimme.core.errors import (
    AdapterError,
    ApiError,
    ConfigurationError,
    FeatureDisabledError,
    FieldNotFound,
    GimmeError,
    KubectlTimeoutError,
    NodeNotFound,
    NotFoundError,
    ProbeConnectionError,
)

__all__ = [
    "GimmeSettings",
    "load_settings",
    "parse_duration",
    "AdapterError",
    "ApiError",
    "ConfigurationError",
    "FeatureDisabledError",
    "FieldNotFound",
    "GimmeError",
    "KubectlTimeoutError",
    "NodeNotFound",
    "NotFoundError",
    "ProbeConnectionError",
]
