"""Configuration management for Timecard."""

import copy
import logging
import os
import secrets
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

from timecard.core.mapper import get_timezone

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Environment variables that take precedence over the salesforce section
SALESFORCE_ENV_OVERRIDES = {
    "login_url": "SALESFORCE_LOGIN_URL",
    "username": "SALESFORCE_USERNAME",
    "password": "SALESFORCE_PASSWORD",
    "security_token": "SALESFORCE_TOKEN",
}


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "data_dir": "~/.timecard/data",
            "timezone": "America/New_York",
        },
        "store": {
            "backend": "salesforce",
        },
        "salesforce": {
            "login_url": "https://login.salesforce.com",
            "username": None,
            "password": None,
            "security_token": None,
            "api_version": "59.0",
            "object_name": "Time_Sheet__c",
            "query_limit": 100,
        },
        "idle_detection": {
            "enabled": True,
            "idle_timeout": 180,
            "prompt_timeout": 180,
        },
        "client": {
            "base_url": "http://localhost:8000",
            "token": None,
        },
        "advanced": {
            "log_level": "INFO",
        },
        "api": {
            "host": "localhost",
            "port": 8000,
            "workers": 1,
            "authentication": {
                "enabled": True,
                "token_expiry_hours": 24,
                "secret_key": None,
                "default_user": "anonymous@localhost",
            },
            "cors": {
                "enabled": True,
                "origins": ["http://localhost:3000"],
            },
            "advanced": {
                "log_level": "info",
                "access_log": True,
            },
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "data_dir": {"type": "string"},
                    "timezone": {"type": "string"},
                },
            },
            "store": {
                "type": "object",
                "properties": {
                    "backend": {"type": "string", "enum": ["salesforce", "local"]},
                },
            },
            "salesforce": {
                "type": "object",
                "properties": {
                    "login_url": {"type": "string"},
                    "username": {"type": ["string", "null"]},
                    "password": {"type": ["string", "null"]},
                    "security_token": {"type": ["string", "null"]},
                    "api_version": {"type": "string", "pattern": r"^\d+\.\d$"},
                    "object_name": {"type": "string"},
                    "query_limit": {"type": "integer", "minimum": 1, "maximum": 2000},
                },
            },
            "idle_detection": {
                "type": "object",
                "properties": {
                    "enabled": {"type": "boolean"},
                    "idle_timeout": {"type": "integer", "minimum": 10, "maximum": 86400},
                    "prompt_timeout": {"type": "integer", "minimum": 10, "maximum": 86400},
                },
            },
            "client": {
                "type": "object",
                "properties": {
                    "base_url": {"type": "string"},
                    "token": {"type": ["string", "null"]},
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": LOG_LEVELS + [level.lower() for level in LOG_LEVELS],
                    },
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "host": {"type": "string"},
                    "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                    "workers": {"type": "integer", "minimum": 1, "maximum": 16},
                    "authentication": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "token_expiry_hours": {
                                "type": "integer",
                                "minimum": 1,
                                "maximum": 8760,
                            },
                            "secret_key": {"type": ["string", "null"]},
                            "default_user": {"type": "string"},
                        },
                    },
                    "cors": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "origins": {
                                "type": "array",
                                "items": {"type": "string"},
                            },
                        },
                    },
                    "advanced": {
                        "type": "object",
                        "properties": {
                            "log_level": {"type": "string"},
                            "access_log": {"type": "boolean"},
                        },
                    },
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to ~/.timecard/config.yml
        """
        if config_path is None:
            config_path = Path.home() / ".timecard" / "config.yml"
        self.config_path = config_path
        self._config: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        """Load existing config or create default."""
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f) or {}
            self._config = self._merge_with_defaults(loaded_config)
            try:
                self.validate()
            except ValueError as e:
                backup_path = self.config_path.with_suffix(".yml.backup")
                self.config_path.rename(backup_path)
                self._config = copy.deepcopy(self.DEFAULT_CONFIG)
                self.save()
                raise ValueError(
                    f"Config validation failed, backed up to {backup_path}. "
                    f"Using defaults. Error: {e}"
                )
        else:
            self._config = copy.deepcopy(self.DEFAULT_CONFIG)
            self.save()

    def _merge_with_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Merge config with defaults to ensure all keys exist.

        Args:
            config: User configuration

        Returns:
            Merged configuration with all default keys
        """
        result = copy.deepcopy(self.DEFAULT_CONFIG)
        self._deep_merge(result, config)
        return result

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override into base dictionary (in-place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'general.timezone')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('general.timezone')
            'America/New_York'
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        keys = key.split(".")
        value: Any = self._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Raises:
            ValueError: If configuration is invalid after setting
        """
        previous = copy.deepcopy(self._config)
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value
        try:
            self.validate()
        except ValueError:
            self._config = previous
            raise
        self.save()

    def validate(self) -> bool:
        """Validate configuration against schema.

        Returns:
            True if valid

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            validate(instance=self._config, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}")

        timezone = self._config.get("general", {}).get("timezone")
        if timezone is not None:
            try:
                get_timezone(timezone)
            except ValueError as e:
                raise ValueError(f"Invalid configuration: {e}")
        return True

    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self._config, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Get full configuration as dictionary."""
        return copy.deepcopy(self._config)

    def salesforce_settings(self) -> dict[str, Any]:
        """Get the salesforce section with environment overrides applied.

        Returns:
            Copy of the salesforce section. SALESFORCE_LOGIN_URL,
            SALESFORCE_USERNAME, SALESFORCE_PASSWORD and SALESFORCE_TOKEN
            replace the matching keys when set.
        """
        settings: dict[str, Any] = copy.deepcopy(self._config.get("salesforce", {}))
        for key, env_name in SALESFORCE_ENV_OVERRIDES.items():
            env_value = os.environ.get(env_name)
            if env_value:
                settings[key] = env_value
        return settings

    def ensure_api_secret_key(self) -> str:
        """Ensure API secret key exists, generate if needed.

        Returns:
            The API secret key
        """
        secret_key: Optional[str] = self.get("api.authentication.secret_key")
        if not secret_key:
            # 256 bits
            secret_key = secrets.token_urlsafe(32)
            self.set("api.authentication.secret_key", secret_key)
        return secret_key


def configure_logging(config: ConfigManager) -> None:
    """Configure root logging from ``advanced.log_level``.

    Safe to call more than once; handlers are only attached the first time.
    """
    log_level = getattr(logging, str(config.get("advanced.log_level", "INFO")).upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(log_level)
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
