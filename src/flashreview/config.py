"""Configuration management for flashreview.

Loads config from YAML file with environment variable overrides.
Priority: env vars > YAML > defaults.

The YAML file is organised in sections:

    store:
      path: ~/.flashreview/cards.json
    user:
      id: "me"
      email: "me@example.com"
    list:
      preview_chars: 60
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_STORE_PATH = ".flashreview/cards.json"

# (section, key) in the YAML file -> AppConfig field
_YAML_KEYS: dict[tuple[str, str], str] = {
    ("store", "path"): "store_path",
    ("user", "id"): "user_id",
    ("user", "email"): "user_email",
    ("list", "preview_chars"): "list_preview_chars",
}

# Mapping of env var names to (config field, type converter)
_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "FLASHREVIEW_STORE_PATH": ("store_path", str),
    "FLASHREVIEW_USER_ID": ("user_id", str),
    "FLASHREVIEW_USER_EMAIL": ("user_email", str),
    "FLASHREVIEW_LIST_PREVIEW_CHARS": ("list_preview_chars", int),
}


class AppConfig(BaseModel, frozen=True):
    """Application configuration. Immutable."""

    # Store
    store_path: str = Field(default=DEFAULT_STORE_PATH, min_length=1)

    # Session user
    user_id: str | None = None
    user_email: str | None = None

    # Side list
    list_preview_chars: int = Field(default=60, gt=0)

    @field_validator("user_id", "user_email", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def _fields_from_yaml(data: dict[str, Any], source: str) -> dict[str, Any]:
    """Map sectioned YAML onto AppConfig field names.

    Example: {"user": {"id": "u-1"}, "list": {"preview_chars": 40}}
    becomes: {"user_id": "u-1", "list_preview_chars": 40}

    Raises:
        ValueError: On a non-mapping section or a key flashreview does not know,
            so a typo is reported instead of silently falling back to a default.
    """
    fields: dict[str, Any] = {}
    for section, values in data.items():
        if not isinstance(values, dict):
            raise ValueError(
                f"Config section '{section}' in {source} must be a mapping"
            )
        for key, value in values.items():
            field_name = _YAML_KEYS.get((section, key))
            if field_name is None:
                raise ValueError(f"Unknown config key '{section}.{key}' in {source}")
            fields[field_name] = value
    return fields


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides to config dict.

    Raises:
        ValueError: If a value cannot be converted to the field's type.
    """
    result = dict(config_dict)
    for env_var, (field_name, converter) in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_var)
        if env_value is None:
            continue
        try:
            result[field_name] = converter(env_value)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {env_value!r}") from e
    return result


def load_config(config_path: str | None = None) -> AppConfig:
    """Load configuration from YAML file with env var overrides.

    Args:
        config_path: Path to YAML config file, or None for defaults.

    Returns:
        Frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is specified but doesn't exist.
        ValueError: If the YAML is invalid, has unknown keys, or a value
            fails validation.
    """
    config_dict: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        raw = path.read_text(encoding="utf-8")
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if isinstance(parsed, dict):
            config_dict = _fields_from_yaml(parsed, config_path)
        elif parsed is not None:
            raise ValueError(f"Config file {config_path} must contain a mapping")

    config_dict = _apply_env_overrides(config_dict)

    return AppConfig(**config_dict)
