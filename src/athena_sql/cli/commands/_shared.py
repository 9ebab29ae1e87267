"""Shared CLI plumbing for command modules.

Config resolution from the global options and client creation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from athena_sql.core.client import AthenaClient
from athena_sql.core.config import load_config, resolve_config

if TYPE_CHECKING:
    import typer

    from athena_sql.core.config import ResolvedConfig

_CONNECTION_OPTIONS = ("region", "workgroup", "catalog", "database", "output_location")


def get_resolved_config(ctx: typer.Context) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in (*_CONNECTION_OPTIONS, "poll_interval"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val

    return resolve_config(config, profile_name=obj.get("profile"), **cli_overrides)


def get_client(ctx: typer.Context, timeout: float | None = None) -> AthenaClient:
    resolved = get_resolved_config(ctx)
    return AthenaClient.from_config(resolved, timeout=timeout)


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_name": obj.get("format") or get_resolved_config(ctx).default_format,
        "compact": obj.get("compact", False),
        "no_header": obj.get("no_header", False),
    }
