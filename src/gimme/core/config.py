"""
Configuration management for gimme.

Uses Pydantic Settings for environment variable validation and type safety.

The installer writes a shell-sourced key/value file (``KEY="value"`` and
``export KEY="value"`` lines). That file is read here as a dotenv file, so the
same keys work whether or not the user's shell has sourced it. Real
environment variables take precedence over the file, and explicit overrides
(CLI flags) take precedence over both.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gimme import DEFAULT_CONFIG_PATH
from gimme.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any) -> float:
    """
    Convert a kubectl style duration to seconds.

    Accepts plain numbers (seconds) and strings such as "5", "5s", "2m",
    "500ms" or "1h".

    Raises:
        ValueError: If the value cannot be parsed or is not positive
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError(f"Invalid duration: {value!r} (expected e.g. 5s, 30s, 2m)")
        seconds = float(match.group(1)) * _DURATION_UNITS[match.group(2) or "s"]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


class GimmeSettings(BaseSettings):
    """Settings for one gimme invocation."""

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    matchbox_dir: Path = Field(
        default=Path("~/matchbox/groups"),
        validate_default=True,
        validation_alias=AliasChoices("MATCHBOX_DIR", "GIMME_INVENTORY_DIR"),
        description="Directory holding Matchbox group JSON files",
    )
    inventory_recursive: bool = Field(
        default=False,
        validation_alias="GIMME_RECURSIVE",
        description="Descend into subdirectories of the inventory directory",
    )

    # Nautobot (optional)
    nautobot_url: Optional[str] = Field(
        default=None,
        validation_alias="NAUTOBOT_URL",
        description="Nautobot base URL",
    )
    nautobot_token: Optional[str] = Field(
        default=None,
        validation_alias="NAUTOBOT_TOKEN",
        description="Nautobot API token",
    )
    nautobot_timeout: Optional[float] = Field(
        default=None,
        validation_alias="NAUTOBOT_TIMEOUT",
        description="Nautobot request timeout in seconds (unset = no timeout)",
    )

    # Kubernetes
    kubectl_timeout: float = Field(
        default=5.0,
        validation_alias="GIMME_KUBECTL_TIMEOUT",
        description="Timeout for kubectl calls in seconds (accepts 5s, 2m, ...)",
    )
    kubectl_bin: str = Field(
        default="kubectl",
        validation_alias="GIMME_KUBECTL",
        description="kubectl executable",
    )
    kube_contexts: str = Field(
        default="",
        validation_alias="GIMME_KUBE_CONTEXTS",
        description="Comma separated kube contexts to query (empty = current context)",
    )

    # SSH hardware probe
    ssh_user: Optional[str] = Field(
        default=None,
        validation_alias="GIMME_SSH_USER",
        description="SSH username for hardware probes",
    )
    ssh_timeout: Optional[float] = Field(
        default=None,
        validation_alias="GIMME_SSH_TIMEOUT",
        description="SSH connect timeout in seconds (unset = no timeout)",
    )

    log_level: str = Field(
        default="WARNING",
        validation_alias="GIMME_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("nautobot_url", "nautobot_token", "ssh_user", mode="before")
    @classmethod
    def empty_as_unset(cls, v: Any) -> Any:
        """Treat empty strings from the config file as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("kubectl_timeout", "ssh_timeout", "nautobot_timeout", mode="before")
    @classmethod
    def validate_duration(cls, v: Any, info: ValidationInfo) -> Any:
        """Accept kubectl style durations; a blank value falls back to the default."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        return parse_duration(v)

    @field_validator("matchbox_dir")
    @classmethod
    def expand_matchbox_dir(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("nautobot_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    @property
    def nautobot_enabled(self) -> bool:
        """Nautobot is only active when both URL and token are configured."""
        return bool(self.nautobot_url and self.nautobot_token)

    @property
    def contexts(self) -> List[Optional[str]]:
        """Kube contexts to query; [None] means kubectl's current context."""
        names = [c.strip() for c in self.kube_contexts.split(",") if c.strip()]
        return names or [None]


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    """Return the config file path: explicit argument, then GIMME_CONFIG, then the default."""
    raw = config_path or os.getenv("GIMME_CONFIG") or DEFAULT_CONFIG_PATH
    return Path(raw).expanduser()


def _input_key(name: str) -> str:
    """Map a field name to the key its value is read under (the first env key)."""
    field = GimmeSettings.model_fields.get(name)
    if field is None:
        raise ConfigurationError(f"Unknown setting: {name}")
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        return str(alias.choices[0])
    return alias or name


def load_settings(config_path: Optional[str] = None, **overrides: Any) -> GimmeSettings:
    """
    Build the settings for this invocation.

    Args:
        config_path: Shell style config file (default: ~/.config/gimme/config)
        **overrides: Explicit values (e.g. from CLI flags); None values are ignored

    Returns:
        GimmeSettings: Settings passed to every command handler

    Raises:
        ConfigurationError: If a configured value is invalid
    """
    path = resolve_config_path(config_path)
    if not path.is_file():
        logger.debug(f"Config file {path} not found, using environment and defaults")

    values = {_input_key(k): v for k, v in overrides.items() if v is not None}
    try:
        return GimmeSettings(_env_file=path, **values)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration in {path}: {details}") from e
