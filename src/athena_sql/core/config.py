"""Configuration management for athena-sql.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--region, --workgroup, etc.)
2. Environment variables (AWS_REGION, ATHENA_WORKGROUP, ...)
3. Named profile (--profile or ATHENA_SQL_PROFILE env var)
4. Config file defaults
5. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, field_validator

from athena_sql.core.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "athena-sql" / "config.toml"

# Field -> environment variables checked in order; the first one set wins.
ENV_VARS: dict[str, tuple[str, ...]] = {
    "region": ("AWS_REGION", "AWS_DEFAULT_REGION"),
    "workgroup": ("ATHENA_WORKGROUP",),
    "catalog": ("ATHENA_CATALOG",),
    "database": ("ATHENA_DATABASE",),
    "output_location": ("ATHENA_OUTPUT_LOCATION",),
}
PROFILE_ENV_VARS = ("ATHENA_SQL_PROFILE",)
SENTRY_DSN_ENV_VARS = ("ATHENA_SQL_SENTRY_DSN",)
LOG_LEVEL_ENV_VARS = ("ATHENA_SQL_LOG_LEVEL",)

_PROFILE_DEFAULTS: dict[str, Any] = {
    "region": None,
    "workgroup": "primary",
    "catalog": "AwsDataCatalog",
    "database": "default",
    "output_location": None,
}


def lookup_first_set(
    names: Sequence[str], environ: Mapping[str, str] | None = None
) -> str:
    """Return the value of the first name set in environ, or "" if none is."""
    if environ is None:
        environ = os.environ
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return ""


def _check_output_location(v: str | None) -> str | None:
    if v is not None and not v.startswith("s3://"):
        msg = f"Invalid output_location: '{v}'. Must be an s3:// URI"
        raise ValueError(msg)
    return v


class AthenaProfile(BaseModel):
    region: str | None = None
    workgroup: str = "primary"
    catalog: str = "AwsDataCatalog"
    database: str = "default"
    output_location: str | None = None

    @field_validator("output_location")
    @classmethod
    def validate_output_location(cls, v: str | None) -> str | None:
        return _check_output_location(v)


class AppConfig(BaseModel):
    poll_interval: float = 1.0
    default_format: str = "csv"
    default_profile: str | None = None
    sentry_dsn: str | None = None
    profiles: dict[str, AthenaProfile] = {}

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v < 0:
            msg = f"Invalid poll_interval: {v}. Must be >= 0"
            raise ValueError(msg)
        return v


class ResolvedConfig(BaseModel):
    region: str | None = None
    workgroup: str = "primary"
    catalog: str = "AwsDataCatalog"
    database: str = "default"
    output_location: str | None = None
    poll_interval: float = 1.0
    default_format: str = "csv"
    sentry_dsn: str | None = None
    active_profile: str | None = None
    sources: dict[str, str] = {}

    @field_validator("output_location")
    @classmethod
    def validate_output_location(cls, v: str | None) -> str | None:
        return _check_output_location(v)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    environ: Mapping[str, str] | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > env > profile > config defaults > built-in defaults.
    """
    env = os.environ if environ is None else environ
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {}

    # Layer 1: Built-in defaults
    resolved.update(_PROFILE_DEFAULTS)
    resolved["poll_interval"] = 1.0
    resolved["default_format"] = "csv"
    resolved["sentry_dsn"] = None
    for key in resolved:
        sources[key] = "default"

    # Layer 2: Config file global defaults
    for key in config.model_fields_set & {"poll_interval", "default_format", "sentry_dsn"}:
        resolved[key] = getattr(config, key)
        sources[key] = "config"

    # Layer 3: Named profile
    effective_profile = profile_name
    if not effective_profile:
        effective_profile = lookup_first_set(PROFILE_ENV_VARS, env) or None
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        for key in profile.model_fields_set:
            resolved[key] = getattr(profile, key)
            sources[key] = f"profile: {effective_profile}"

    # Layer 4: Environment variables
    for field_name, names in ENV_VARS.items():
        value = lookup_first_set(names, env)
        if value:
            resolved[field_name] = value
            env_name = next(n for n in names if env.get(n))
            sources[field_name] = f"env: {env_name}"
    sentry_dsn = lookup_first_set(SENTRY_DSN_ENV_VARS, env)
    if sentry_dsn:
        resolved["sentry_dsn"] = sentry_dsn
        sources["sentry_dsn"] = f"env: {SENTRY_DSN_ENV_VARS[0]}"

    # Layer 5: CLI flags (highest priority)
    for cli_name in (*_PROFILE_DEFAULTS, "poll_interval"):
        value = cli_overrides.get(cli_name)
        if value is not None:
            resolved[cli_name] = value
            sources[cli_name] = f"cli: --{cli_name.replace('_', '-')}"

    resolved["active_profile"] = effective_profile
    resolved["sources"] = sources
    try:
        return ResolvedConfig(**resolved)
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
