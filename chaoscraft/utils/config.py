"""Configuration loader and validator."""

from pathlib import Path
from typing import Any, Dict, List, Union
import logging
import os

import yaml

from chaoscraft.brain.templates import DEFAULT_ENDPOINTS

DEFAULT_CONFIG_PATH = "chaoscraft.yaml"

CONFIG_TEMPLATE = '''# ChaosCraft Configuration
# The mock server always listens on port 8080.

# Endpoints offered for chaos tests
endpoints:
  - "/login"
  - "/orders"
  - "/checkout"
  - "/users"
  - "/products"
  - "/payments"

randomization:
  # false: "Random Responses" picks one outcome per test run
  # true:  it picks a new outcome for every request
  per_request: false

reporting:
  output_path: "./reports"

logging:
  level: "WARNING"
  log_file: ""  # e.g. "${CHAOSCRAFT_LOG_FILE}"
'''

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Config:
    """Load and validate chaoscraft.yaml configuration."""

    def __init__(self, config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> None:
        """Initialize config loader.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """Load and validate configuration.

        Returns:
            Validated configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                "Run 'chaoscraft init' to create one."
            )

        with open(self.config_path, encoding="utf-8") as f:
            self._config = yaml.safe_load(f)

        if self._config is None:
            self._config = {}

        if not isinstance(self._config, dict):
            raise ValueError("Configuration root must be a mapping/object")

        self._expand_env_vars(self._config)
        self._validate()

        return self._config

    def _expand_env_vars(self, obj: Any) -> None:
        """Recursively expand ${VAR} environment variables."""
        if isinstance(obj, dict):
            for key, value in obj.items():
                if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
                    obj[key] = os.environ.get(value[2:-1], "")
                elif isinstance(value, (dict, list)):
                    self._expand_env_vars(value)
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                if isinstance(item, str) and item.startswith("${") and item.endswith("}"):
                    obj[i] = os.environ.get(item[2:-1], "")
                else:
                    self._expand_env_vars(item)

    def _validate(self) -> None:
        """Validate configuration."""
        endpoints = self._config.get("endpoints")
        if endpoints is not None:
            if not isinstance(endpoints, list) or not endpoints:
                raise ValueError("endpoints must be a non-empty list")
            for endpoint in endpoints:
                if not isinstance(endpoint, str) or not endpoint:
                    raise ValueError(f"Invalid endpoint entry: {endpoint!r}")

        for section in ("randomization", "reporting", "logging"):
            value = self._config.get(section, {})
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"{section} must be a mapping")

        per_request = self.randomization.get("per_request", False)
        if not isinstance(per_request, bool):
            raise ValueError("randomization.per_request must be true or false")

        level = str(self.logging.get("level", "WARNING")).upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}"
            )

    @property
    def endpoints(self) -> List[str]:
        """Get the endpoints offered for chaos tests."""
        return list(self._config.get("endpoints") or DEFAULT_ENDPOINTS)

    @property
    def randomization(self) -> Dict[str, Any]:
        """Get randomization configuration."""
        return self._config.get("randomization") or {}

    @property
    def per_request_random(self) -> bool:
        return bool(self.randomization.get("per_request", False))

    @property
    def reporting(self) -> Dict[str, Any]:
        """Get reporting configuration."""
        reporting = dict(self._config.get("reporting") or {})
        reporting.setdefault("output_path", "./reports")
        return reporting

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self._config.get("logging") or {}


def setup_logging(level: Union[str, int] = "WARNING", log_file: str = "") -> None:
    """Configure root logging for the CLI."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
