"""Configuration validation for the rebalancer."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {'; '.join(errors)}")


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


# Configuration schema with validation rules
CONFIG_SCHEMA = {
    "storage": {
        "backend": {"type": str, "required": False, "default": "json", "choices": ["json", "sqlite"]},
        "path": {"type": str, "required": False, "default": "data/portfolio.json"},
        "url": {
            "type": str,
            "required": False,
            "default": "sqlite:///data/portfolio.db",
            "env_var": "REBALANCER_DATABASE_URL",
        },
    },
    "display": {
        "currency": {"type": str, "required": False, "default": "USD", "choices": ["USD", "EUR", "GBP"]},
    },
    "export": {
        "path": {"type": str, "required": False, "default": "results/portfolio.csv"},
    },
    "logging": {
        "level": {"type": str, "required": False, "default": "INFO", "choices": ["DEBUG", "INFO", "WARNING", "ERROR"]},
        "file": {"type": str, "required": False, "default": None},
        "json_format": {"type": bool, "required": False, "default": False},
    },
}


class ConfigValidator:
    """Validates rebalancer configuration."""

    def __init__(self, schema: Optional[dict] = None):
        self.schema = schema or CONFIG_SCHEMA

    def validate(self, config: dict) -> ValidationResult:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[str] = []
        warnings: list[str] = []

        if config is not None and not isinstance(config, dict):
            return ValidationResult(
                valid=False,
                errors=[f"Expected a mapping at top level, got {type(config).__name__}"],
            )

        self._validate_section(config or {}, self.schema, "", errors, warnings)
        self._validate_cross_fields(config or {}, errors, warnings)

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    def _validate_section(
        self,
        config: dict,
        schema: dict,
        path: str,
        errors: list,
        warnings: list,
    ) -> None:
        """Recursively validate a configuration section."""
        for key in config:
            if key not in schema:
                full_path = f"{path}.{key}" if path else key
                warnings.append(f"{full_path}: Unknown setting, ignored")

        for key, rules in schema.items():
            full_path = f"{path}.{key}" if path else key
            value = config.get(key)

            # Nested section
            if isinstance(rules, dict) and "type" not in rules:
                section = value if value is not None else {}
                if not isinstance(section, dict):
                    errors.append(f"{full_path}: Expected a mapping, got {type(section).__name__}")
                    continue
                self._validate_section(section, rules, full_path, errors, warnings)
                continue

            self._validate_field(full_path, value, rules, errors, warnings)

    def _validate_field(
        self,
        path: str,
        value: Any,
        rules: dict,
        errors: list,
        warnings: list,
    ) -> None:
        """Validate a single field against its rules."""
        if value is None or value == "":
            env_var = rules.get("env_var")
            if env_var:
                value = os.getenv(env_var)

        if rules.get("required") and (value is None or value == ""):
            errors.append(f"{path}: Required field is missing")
            return

        if value is None:
            return

        expected_type = rules.get("type")
        if expected_type:
            if expected_type == float and isinstance(value, int) and not isinstance(value, bool):
                value = float(value)
            elif not isinstance(value, expected_type):
                errors.append(
                    f"{path}: Expected {expected_type.__name__}, got {type(value).__name__}"
                )
                return

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if "min" in rules and value < rules["min"]:
                errors.append(f"{path}: Value {value} is below minimum {rules['min']}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"{path}: Value {value} exceeds maximum {rules['max']}")

        if "choices" in rules and value not in rules["choices"]:
            errors.append(f"{path}: Value must be one of {rules['choices']}")

    def _validate_cross_fields(
        self,
        config: dict,
        errors: list,
        warnings: list,
    ) -> None:
        """Validate relationships between fields."""
        storage = config.get("storage") or {}
        if not isinstance(storage, dict):
            return

        backend = storage.get("backend", "json")
        if backend == "sqlite":
            # A missing url falls back to the default; an explicitly blank one does not
            blank_url = "url" in storage and not storage["url"]
            if blank_url and not os.getenv("REBALANCER_DATABASE_URL"):
                errors.append("storage.url: Required when storage.backend is 'sqlite'")
        elif backend == "json":
            path = storage.get("path")
            if isinstance(path, str) and not path.endswith(".json"):
                warnings.append(
                    f"storage.path ({path}) does not end in .json, file will still be written as JSON"
                )

    def apply_defaults(self, config: Optional[dict]) -> dict:
        """Apply default values (and env var fallbacks) to missing fields."""
        return self._apply_defaults_section(config, self.schema)

    def _apply_defaults_section(self, config: Optional[dict], schema: dict) -> dict:
        """Recursively apply defaults to a section."""
        result = dict(config) if config else {}

        for key, rules in schema.items():
            if isinstance(rules, dict) and "type" not in rules:
                result[key] = self._apply_defaults_section(result.get(key), rules)
            elif result.get(key) is None:
                env_value = os.getenv(rules["env_var"]) if "env_var" in rules else None
                if env_value:
                    result[key] = env_value
                elif "default" in rules:
                    result[key] = rules["default"]

        return result


def _read_config(config_path: str) -> Any:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path) as f:
        return yaml.safe_load(f) or {}


def validate_config(config_path: str = DEFAULT_CONFIG_PATH) -> ValidationResult:
    """
    Validate configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    try:
        config = _read_config(config_path)
    except yaml.YAMLError as e:
        return ValidationResult(valid=False, errors=[f"Invalid YAML: {e}"])

    return ConfigValidator().validate(config)


def load_and_validate_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """
    Load and validate configuration, raising on errors.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated configuration dict with defaults applied

    Raises:
        ConfigValidationError: If validation fails
        FileNotFoundError: If config file doesn't exist
    """
    try:
        config = _read_config(config_path)
    except yaml.YAMLError as e:
        raise ConfigValidationError([f"Invalid YAML: {e}"]) from e

    validator = ConfigValidator()
    result = validator.validate(config)

    if not result.valid:
        raise ConfigValidationError(result.errors)

    for warning in result.warnings:
        logger.warning(f"Config warning: {warning}")

    return validator.apply_defaults(config)


def load_settings(config_path: Optional[str] = None) -> dict:
    """
    Load settings, falling back to defaults when no file exists.

    An explicitly given path must exist; the default path is optional.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if config_path is None and not Path(path).exists():
        logger.debug(f"No settings file at {path}, using defaults")
        return ConfigValidator().apply_defaults({})

    return load_and_validate_config(path)
