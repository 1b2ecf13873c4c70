"""Configuration loader that parses and validates the panel's TOML settings."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

from .datatypes import AppConfig, ColorDepth, PanelConfig

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the configuration file is malformed or fails validation."""


def _coerce_bool(value: Any, dotted_key: str) -> bool:
    """Return a bool, coercing simple 0/1 representations when necessary."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"0", "1"}:
            return normalized == "1"
        if normalized in {"true", "false"}:
            return normalized == "true"
    raise ConfigError(f"{dotted_key} must be a boolean (use true/false).")


def _coerce_enum(value: Any, dotted_key: str, enum_type: type[Enum]) -> Enum:
    """Return an enum member, coercing string values case-insensitively."""

    if isinstance(value, enum_type):
        return value
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        normalized = str(value).strip().lower()
        for member in enum_type:
            if normalized == str(member.value).lower():
                return member
    raise ConfigError(
        f"{dotted_key} must be one of: {', '.join(str(member.value) for member in enum_type)}"
    )


def _coerce_int(value: Any, dotted_key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{dotted_key} must be an integer")
    return value


def _sanitize_section(raw: Any, name: str, cls):
    """
    Coerce a raw TOML table into an instance of ``cls``.

    Booleans, enums and integers are validated against the dataclass field types; unknown
    keys are rejected.

    Raises:
        ConfigError: If the section is not a table or contains invalid keys or values.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    cls_fields = {field.name: field for field in fields(cls)}
    unknown = sorted(set(raw) - set(cls_fields))
    if unknown:
        raise ConfigError(f"Invalid keys in [{name}]: {', '.join(unknown)}")
    cleaned: Dict[str, Any] = {}
    for key, value in raw.items():
        field_type = cls_fields[key].type
        dotted = f"{name}.{key}"
        if field_type in (bool, "bool"):
            cleaned[key] = _coerce_bool(value, dotted)
        elif field_type in (int, "int"):
            cleaned[key] = _coerce_int(value, dotted)
        elif field_type in (str, "str"):
            if not isinstance(value, str):
                raise ConfigError(f"{dotted} must be a string")
            cleaned[key] = value
        elif isinstance(field_type, type) and issubclass(field_type, Enum):
            cleaned[key] = _coerce_enum(value, dotted, field_type)
        elif is_dataclass(field_type):
            cleaned[key] = _sanitize_section(value, dotted, field_type)
        else:
            cleaned[key] = value
    return cls(**cleaned)


def parse_config(text: str) -> AppConfig:
    """
    Validate TOML source text into an :class:`AppConfig`.

    Raises:
        ConfigError: If the TOML is malformed or any section fails validation.
    """
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML: {exc}") from exc

    unknown = sorted(set(raw) - {"panel", "metadata"})
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {', '.join(unknown)}")

    metadata = raw.get("metadata", {})
    if not isinstance(metadata, dict):
        raise ConfigError("[metadata] must be a table")

    app = AppConfig(
        panel=_sanitize_section(raw.get("panel", {}), "panel", PanelConfig),
        metadata=dict(metadata),
    )
    if app.panel.width < 0:
        raise ConfigError("panel.width must be >= 0")
    if app.panel.height < 0:
        raise ConfigError("panel.height must be >= 0")
    if not isinstance(app.panel.color_depth, ColorDepth):
        raise ConfigError("panel.color_depth is invalid")
    return app


def load_config(path: Union[str, Path]) -> AppConfig:
    """
    Load and validate the panel configuration from a TOML file.

    Reads the file at ``path`` as UTF-8 (a BOM is accepted) and delegates to
    :func:`parse_config`.

    Raises:
        ConfigError: If the file cannot be read, is not UTF-8, or fails validation.
    """
    try:
        raw_bytes = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration: {exc}") from exc
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        raw_bytes = raw_bytes[3:]
    try:
        text = raw_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError("Configuration file must be UTF-8 encoded") from exc
    app = parse_config(text)
    logger.debug("Loaded configuration from %s", path)
    return app
