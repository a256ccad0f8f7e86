"""NeuroGuide configuration management with validation.

Implements configuration for the hardware listener and the focus meter
experience with Pydantic validation, secure defaults, and YAML
persistence.
"""

from __future__ import annotations

import ipaddress
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


DEFAULT_CONFIG_PATH = Path.home() / ".neuroguide" / "config.yaml"

_HOSTNAME_RE = re.compile(r"^(?=.{1,253}$)[A-Za-z0-9-]{1,63}(\.[A-Za-z0-9-]{1,63})*$")


class ListenerConfig(BaseModel):
    """UDP listener configuration.

    Attributes:
        address: Local address to bind
        port: UDP port the hardware sends to (0 selects an ephemeral port)
        receive_buffer_size: Maximum bytes read per datagram
        poll_interval_seconds: Longest a single receive blocks before the
            stop flag is checked again
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    address: str = Field(
        default="127.0.0.1",
        description="Local address to bind"
    )
    port: int = Field(
        default=50000,
        ge=0,
        le=65535,
        description="UDP port"
    )
    receive_buffer_size: int = Field(
        default=1024,
        ge=1,
        le=65535,
        description="Maximum bytes read per datagram"
    )
    poll_interval_seconds: float = Field(
        default=0.25,
        gt=0,
        le=5.0,
        description="Maximum blocking time of one receive call"
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Accept IP literals and plain hostnames."""
        v = v.strip()
        try:
            ipaddress.ip_address(v)
            return v
        except ValueError:
            pass
        if not _HOSTNAME_RE.match(v):
            raise ValueError(f"'{v}' is not a valid IP address or hostname")
        return v


class ExperienceOptions(BaseModel):
    """Focus meter experience options. Immutable once constructed.

    Attributes:
        total_duration_seconds: Seconds of reward needed to reach a score of 1.0
        threshold_normalized: Score above which the subject is "focused"
        no_data_timeout_seconds: Silence after which the stream is NO_DATA
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    total_duration_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Seconds of reward needed to fill the meter"
    )
    threshold_normalized: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Normalized focus threshold"
    )
    no_data_timeout_seconds: float = Field(
        default=4.0,
        gt=0,
        description="Seconds without samples before NO_DATA"
    )


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        log_samples: Log every consumed sample at INFO level
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    log_samples: bool = Field(
        default=False,
        description="Log every consumed sample"
    )


class NeuroGuideConfig(BaseModel):
    """Main NeuroGuide configuration.

    Attributes:
        version: Configuration schema version
        listener: UDP listener configuration
        experience: Focus meter experience options
        logging: Logging configuration
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    version: int = Field(
        default=1,
        description="Configuration schema version"
    )
    listener: ListenerConfig = Field(default_factory=ListenerConfig)
    experience: ExperienceOptions = Field(default_factory=ExperienceOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _format_errors(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]


class ConfigurationManager:
    """Loads, saves and validates NeuroGuide configuration files.

    Attributes:
        config_path: Path to configuration file
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file (default: ~/.neuroguide/config.yaml)
        """
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Optional[NeuroGuideConfig] = None

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(self) -> NeuroGuideConfig:
        """Load and validate configuration.

        Returns:
            Validated configuration, or defaults when the file is absent

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self._config_path.exists():
            self._config = NeuroGuideConfig()
            return self._config

        try:
            with open(self._config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {self._config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration: expected a mapping in {self._config_path}"
            )

        try:
            self._config = NeuroGuideConfig(**data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(_format_errors(exc))}"
            ) from exc

        return self._config

    def save(self, config: NeuroGuideConfig) -> None:
        """Save configuration to file.

        Args:
            config: Configuration to save
        """
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(mode="json")
        with open(self._config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        self._config = config

    def validate(self, config_path: Optional[Path] = None) -> List[str]:
        """Validate configuration without keeping it.

        Args:
            config_path: Optional path to config file to validate

        Returns:
            List of validation errors (empty if valid)
        """
        path = Path(config_path) if config_path else self._config_path
        errors: List[str] = []

        if not path.exists():
            errors.append(f"Configuration file not found: {path}")
            return errors

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            NeuroGuideConfig(**data)
        except ValidationError as exc:
            errors.extend(_format_errors(exc))
        except Exception as exc:
            errors.append(f"Failed to load configuration: {exc}")

        return errors


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ListenerConfig",
    "ExperienceOptions",
    "LoggingConfig",
    "NeuroGuideConfig",
    "ConfigurationManager",
    "ConfigurationError",
]
