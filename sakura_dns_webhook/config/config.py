"""
Configuration module for Sakura DNS Webhook.
"""

import os
import re
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sakura_dns_webhook.models.errors import ValidationError
from sakura_dns_webhook.models.models import DEFAULT_API_URL, DEFAULT_TXT_PREFIX

# Environment variables overriding the configuration file
ENV_OVERRIDES: Dict[str, str] = {
    "WEBHOOK_ZONE_NAME": "zone_name",
    "WEBHOOK_SAKURA_API_TOKEN": "sakura_api_token",
    "WEBHOOK_SAKURA_API_SECRET": "sakura_api_secret",
    "WEBHOOK_SAKURA_API_URL": "sakura_api_url",
    "WEBHOOK_PROVIDER_IP": "provider_ip",
    "WEBHOOK_PROVIDER_PORT": "provider_port",
    "WEBHOOK_REQUEST_TIMEOUT": "request_timeout",
    "WEBHOOK_REGISTRY_TXT": "registry_txt",
    "WEBHOOK_TXT_OWNER_ID": "txt_owner_id",
    "WEBHOOK_TXT_PREFIX": "txt_prefix",
    "WEBHOOK_LOG_LEVEL": "log_level",
}


class Config(BaseModel):
    """Configuration for Sakura DNS Webhook."""

    # Zone configuration
    zone_name: str = ""

    # Provider configuration
    sakura_api_token: str = ""
    sakura_api_secret: str = ""
    sakura_api_url: str = DEFAULT_API_URL

    # Server configuration
    provider_ip: str = "0.0.0.0"
    provider_port: int = 8888
    request_timeout: str = "10s"

    # Registry configuration
    registry_txt: bool = False
    txt_owner_id: str = "default"
    txt_prefix: str = DEFAULT_TXT_PREFIX

    # Logging configuration
    log_level: str = "info"

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from a YAML file, then apply environment overrides.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config: Config instance populated with values from the YAML file
        """
        default_paths = [
            Path("./sakura-dns-webhook.yaml"),
            Path("./sakura-dns-webhook.yml"),
            Path("/etc/sakura-dns-webhook/config.yaml"),
        ]

        if config_path:
            paths = [Path(config_path)]
        else:
            paths = default_paths

        config_data = {}
        for path in paths:
            if path.exists():
                with open(path, "r") as f:
                    yaml_content = f.read()
                    # Substitute environment variables
                    yaml_content = cls._substitute_env_vars(yaml_content)
                    config_data = yaml.safe_load(yaml_content) or {}
                break

        flat_config = cls._flatten_config(config_data)

        for env_var, key in ENV_OVERRIDES.items():
            if env_var in os.environ:
                flat_config[key] = os.environ[env_var]

        try:
            return cls(**flat_config)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid configuration: {e}") from e

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
        Flatten nested configuration. Only keys present in the file are set.

        Args:
            config_data: Nested configuration data

        Returns:
            dict: Flattened configuration data
        """
        mapping = {
            ("zone", "name"): "zone_name",
            ("provider", "sakuracloud", "api_token"): "sakura_api_token",
            ("provider", "sakuracloud", "api_secret"): "sakura_api_secret",
            ("provider", "sakuracloud", "api_url"): "sakura_api_url",
            ("server", "host"): "provider_ip",
            ("server", "port"): "provider_port",
            ("server", "request_timeout"): "request_timeout",
            ("registry", "txt"): "registry_txt",
            ("registry", "txt_owner_id"): "txt_owner_id",
            ("registry", "txt_prefix"): "txt_prefix",
            ("logging", "level"): "log_level",
        }

        flat_config = {}
        for path, key in mapping.items():
            section = config_data
            for part in path[:-1]:
                section = section.get(part) or {}
            # Empty keys, including unset ${VAR} placeholders, keep the default
            if section.get(path[-1]) is not None:
                flat_config[key] = section[path[-1]]

        return flat_config

    def validate_required(self) -> None:
        """
        Check that required settings are present.

        Raises:
            ValidationError: If the zone name is missing
        """
        if not self.zone_name:
            raise ValidationError("zone name is required (WEBHOOK_ZONE_NAME or zone.name)")

    def parse_duration(self, duration_str: str) -> int:
        """
        Parse a duration string like '10s' into seconds.

        Args:
            duration_str: Duration string

        Returns:
            int: Duration in seconds
        """
        if not duration_str:
            return 10

        # Pattern for duration string (e.g., 10s, 1m, 1h)
        pattern = r"^(\d+)([smh])$"
        match = re.match(pattern, str(duration_str))

        if not match:
            return 10

        value, unit = match.groups()
        value = int(value)

        if unit == "s":
            return value
        elif unit == "m":
            return value * 60
        elif unit == "h":
            return value * 60 * 60

        return 10
