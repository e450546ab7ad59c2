"""Configuration management and validation."""

from .validator import (
    ConfigValidationError,
    ConfigValidator,
    ValidationResult,
    load_and_validate_config,
    load_settings,
    validate_config,
)

__all__ = [
    "ConfigValidationError",
    "ConfigValidator",
    "ValidationResult",
    "load_and_validate_config",
    "load_settings",
    "validate_config",
]
