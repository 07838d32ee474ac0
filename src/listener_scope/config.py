"""Configuration models for listener scopes."""
from __future__ import annotations

import os
import re
from functools import cached_property
from typing import Any, Dict, Mapping, Pattern

from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import ConfigurationError

ENV_SPLIT_NAMES = "LISTENER_SCOPE_SPLIT_NAMES"
ENV_NAME_DELIMITER = "LISTENER_SCOPE_NAME_DELIMITER"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ScopeSettings(BaseModel):
    """Settings that control how a scope interprets event names."""

    split_delimited_names: bool = Field(
        default=True,
        description="Treat a single string argument to remove() containing the delimiter as several names.",
    )
    name_delimiter: str = Field(
        default=r"\s*,\s*",
        description="Regular expression separating event names in a delimited string.",
    )

    @model_validator(mode="after")
    def validate_name_delimiter(self) -> "ScopeSettings":
        if not self.name_delimiter:
            raise ValueError("name_delimiter must not be empty")
        try:
            pattern = re.compile(self.name_delimiter)
        except re.error as exc:
            raise ValueError(f"name_delimiter is not a valid pattern: {exc}") from exc
        if pattern.fullmatch(""):
            raise ValueError("name_delimiter must not match an empty string")
        return self

    @cached_property
    def delimiter_pattern(self) -> Pattern[str]:
        """Compiled form of :attr:`name_delimiter`."""

        return re.compile(self.name_delimiter)

    def split_names(self, name: str) -> list[str]:
        """Split ``name`` on the delimiter, dropping empty fragments."""

        return [part for part in self.delimiter_pattern.split(name.strip()) if part]


def build_settings_from_dict(raw: Mapping[str, Any]) -> ScopeSettings:
    """Utility helper to build :class:`ScopeSettings` from a plain mapping."""

    try:
        return ScopeSettings.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid scope settings: {exc}") from exc


def _parse_flag(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {value!r}")


def load_settings(env: Mapping[str, str] | None = None) -> ScopeSettings:
    """Build settings from ``env`` (defaults to ``os.environ``)."""

    env = os.environ if env is None else env
    raw: Dict[str, Any] = {}
    if env.get(ENV_SPLIT_NAMES):
        raw["split_delimited_names"] = _parse_flag(ENV_SPLIT_NAMES, env[ENV_SPLIT_NAMES])
    if env.get(ENV_NAME_DELIMITER):
        raw["name_delimiter"] = env[ENV_NAME_DELIMITER]
    return build_settings_from_dict(raw)


__all__ = [
    "ENV_NAME_DELIMITER",
    "ENV_SPLIT_NAMES",
    "ScopeSettings",
    "build_settings_from_dict",
    "load_settings",
]
