"""
Configuration module for auto53.
"""

import os
import re
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from auto53.models.errors import ConfigError
from auto53.models.models import (
    NamingRule,
    Zone,
    normalize_zone_id,
    normalize_zone_name,
)

DEFAULT_PATHS = [
    Path("./auto53.yaml"),
    Path("./auto53.yml"),
    Path("/etc/auto53/auto53.yaml"),
    Path("/etc/auto53/config.yaml"),
]

_DURATION_RE = re.compile(r"(\d+)([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 60 * 60, "d": 60 * 60 * 24}


class ZoneConfig(BaseModel):
    """Hosted zone a rule publishes into. Either the ID or the name is required."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", alias="ID")
    name: str = Field(default="", alias="Name")

    @field_validator("id")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        return normalize_zone_id(value.strip())

    @field_validator("name")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        return normalize_zone_name(value.strip())

    def to_zone(self) -> Zone:
        return Zone(id=self.id, name=self.name)


class RuleConfig(BaseModel):
    """One naming rule as written in the configuration file."""

    model_config = ConfigDict(populate_by_name=True)

    auto_scaling_group: str = Field(alias="AutoScalingGroup", min_length=1)
    zone: ZoneConfig = Field(alias="Zone")
    record: str = Field(alias="Record", min_length=1)
    private: bool = Field(default=False, alias="Private")

    @field_validator("zone")
    @classmethod
    def _zone_identified(cls, value: ZoneConfig) -> ZoneConfig:
        if not value.id and not value.name:
            raise ValueError("zone needs an ID or a name")
        return value

    def to_rule(self) -> NamingRule:
        return NamingRule(
            auto_scaling_group=self.auto_scaling_group,
            zone=self.zone.to_zone(),
            record=self.record,
            private=self.private,
        )


class Config(BaseModel):
    """Configuration for auto53."""

    # AWS configuration
    aws_region: Optional[str] = None

    # Controller configuration
    interval: str = "2m"
    once: bool = False
    dry_run: bool = False

    # Health check configuration
    listen: bool = False
    port: int = 8080

    # Logging configuration
    log_level: str = "info"

    rules: List[RuleConfig] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config: Config instance populated with values from the YAML file

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ConfigError(f"configuration file {path} not found")
            paths = [path]
        else:
            paths = DEFAULT_PATHS

        config_data: Any = {}
        for path in paths:
            if path.exists():
                try:
                    yaml_content = path.read_text()
                except OSError as e:
                    raise ConfigError(f"couldn't read config file {path}: {e}") from e
                # Substitute environment variables
                yaml_content = cls._substitute_env_vars(yaml_content)
                try:
                    config_data = yaml.safe_load(yaml_content) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"couldn't parse yaml config file {path}: {e}") from e
                break

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Any) -> "Config":
        """
        Build a Config from parsed YAML data.

        A top-level list is read as a bare list of rules.

        Raises:
            ConfigError: If the data does not validate
        """
        if isinstance(config_data, list):
            config_data = {"rules": config_data}
        if not isinstance(config_data, dict):
            raise ConfigError("configuration must be a mapping or a list of rules")

        try:
            return cls(**cls._flatten_config(config_data))
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

    @staticmethod
    def _substitute_env_vars(content: str) -> str:
        """
        Substitute environment variables in the configuration content.

        Args:
            content: Configuration content

        Returns:
            str: Configuration content with environment variables substituted
        """
        # Pattern for ${ENV_VAR} or ${ENV_VAR:-default}
        pattern = r"\${([^}]+)}"

        def replace_env_var(match):
            env_var = match.group(1)
            if ":-" in env_var:
                env_var, default = env_var.split(":-", 1)
                return os.environ.get(env_var, default)
            return os.environ.get(env_var, "")

        return re.sub(pattern, replace_env_var, content)

    @staticmethod
    def _flatten_config(config_data: dict) -> dict:
        """
        Flatten nested configuration.

        Args:
            config_data: Nested configuration data

        Returns:
            dict: Flattened configuration data
        """
        flat_config = {}

        aws = config_data.get("aws") or {}
        flat_config["aws_region"] = aws.get("region")

        controller = config_data.get("controller") or {}
        flat_config["interval"] = str(controller.get("interval", "2m"))
        flat_config["once"] = controller.get("once", False)
        flat_config["dry_run"] = controller.get("dry_run", False)

        health = config_data.get("health") or {}
        flat_config["listen"] = health.get("listen", False)
        flat_config["port"] = health.get("port", 8080)

        logging = config_data.get("logging") or {}
        flat_config["log_level"] = logging.get("level", "info")

        flat_config["rules"] = config_data.get("rules") or []

        return flat_config

    def naming_rules(self) -> List[NamingRule]:
        """
        Returns the configured naming rules with their templates compiled.

        Raises:
            ConfigError: If no rule is configured
            TemplateError: If a rule template does not compile
        """
        if not self.rules:
            raise ConfigError("at least one naming rule must be specified")

        rules = [rule.to_rule() for rule in self.rules]
        for rule in rules:
            rule.compile()
        return rules

    @property
    def interval_seconds(self) -> int:
        return parse_duration(self.interval)


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string like '2m' or '1h30m' into seconds.

    A bare number is read as seconds.

    Args:
        duration_str: Duration string

    Returns:
        int: Duration in seconds

    Raises:
        ConfigError: If the string is not a duration
    """
    duration_str = (duration_str or "").strip()
    if duration_str.isdigit():
        return int(duration_str)

    if not duration_str or _DURATION_RE.sub("", duration_str):
        raise ConfigError(f"invalid duration '{duration_str}'")

    return sum(
        int(value) * _UNIT_SECONDS[unit]
        for value, unit in _DURATION_RE.findall(duration_str)
    )
