"""Adapter configuration model and YAML loading."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from screenlogic import const

__all__ = [
    "AdapterConfig",
    "ConfigError",
    "load_config",
]

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Configuration file missing, unreadable or invalid."""

    def __init__(self, reason: str) -> None:
        self.reason: str = reason
        super().__init__(reason)


class AdapterConfig(BaseModel):
    """Settings for one controller adapter.

    Example YAML:
        adapter:
          ip_address: 192.168.1.50:80
          timeout: 5
          keep_alive: 60
    """

    ip_address: str
    timeout: float = Field(default=5.0, gt=0)
    keep_alive: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    match_response_ids: bool = True

    @field_validator("ip_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "ip_address must not be empty"
            raise ValueError(msg)
        host, sep, port = value.rpartition(":")
        if sep and host:
            if not port.isdigit() or not 0 < int(port) < 65536:
                msg = f"invalid port in ip_address: {value!r}"
                raise ValueError(msg)
        return value

    @property
    def host(self) -> str:
        host, sep, _port = self.ip_address.rpartition(":")
        return host if sep and host else self.ip_address

    @property
    def port(self) -> int:
        host, sep, port = self.ip_address.rpartition(":")
        return int(port) if sep and host else const.SCREENLOGIC_DEFAULT_PORT

    @classmethod
    def from_env(cls) -> AdapterConfig:
        """Build a config from SCREENLOGIC_* environment settings.

        Raises:
            ConfigError: If SCREENLOGIC_HOST is not set
        """
        if not const.SCREENLOGIC_HOST:
            reason = "SCREENLOGIC_HOST is not set"
            raise ConfigError(reason)
        return cls(
            ip_address=const.SCREENLOGIC_HOST,
            timeout=const.SCREENLOGIC_TIMEOUT,
            keep_alive=const.SCREENLOGIC_KEEP_ALIVE,
            max_retries=const.SCREENLOGIC_MAX_RETRIES,
        )


def load_config(config_file: str | Path) -> AdapterConfig:
    """Parse a YAML configuration file into an AdapterConfig.

    The settings may sit at the top level or under an ``adapter:`` key.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated
    """
    path = Path(config_file).expanduser()
    logger.debug("Parsing config file: %s", path)
    try:
        with path.open() as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.exception("Failed to parse config file: %s", path)
        reason = f"{path}: {e}"
        raise ConfigError(reason) from e

    if isinstance(config_data, dict) and isinstance(config_data.get("adapter"), dict):
        config_data = config_data["adapter"]
    if not isinstance(config_data, dict):
        reason = f"{path}: expected a mapping of adapter settings"
        raise ConfigError(reason)

    try:
        config = AdapterConfig.model_validate(config_data)
    except ValidationError as e:
        reason = f"{path}: {e}"
        raise ConfigError(reason) from e

    logger.info(
        "Configuration loaded",
        extra={"config_path": str(path), "address": f"{config.host}:{config.port}"},
    )
    return config
