"""Load MCP server configuration from agents/<agent>/mcp.json files."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from agentorch.models import MCPConfig, MCPServerConfig


class MCPConfigError(Exception):
    """An mcp.json file could not be read, parsed or validated."""


def _string(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    return value


def _string_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{name} must be an array")
    return [_string(item, name) for item in value]


def _string_map(value: Any, name: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be an object")
    return {key: _string(item, name) for key, item in value.items()}


def _decode_servers(data: Any) -> list[MCPServerConfig]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    raw = data.get("servers")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("servers must be an array")
    servers = []
    for entry in raw:
        entry = {} if entry is None else entry
        if not isinstance(entry, dict):
            raise ValueError("server entry must be an object")
        servers.append(
            MCPServerConfig(
                name=_string(entry.get("name"), "name"),
                command=_string(entry.get("command"), "command"),
                args=_string_list(entry.get("args"), "args"),
                env=_string_map(entry.get("env"), "env"),
            )
        )
    return servers


def load(base_dir: str | os.PathLike[str], agent_dir: str) -> MCPConfig | None:
    """Load base_dir/agents/<agent_dir>/mcp.json; return None if it is absent."""
    path = Path(base_dir) / "agents" / agent_dir / "mcp.json"
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise MCPConfigError(f"mcpconfig: reading {str(path)!r}: {exc}") from exc

    try:
        servers = _decode_servers(json.loads(text))
    except ValueError as exc:
        raise MCPConfigError(f"mcpconfig: parse {str(path)!r}: {exc}") from exc

    for server in servers:
        if not server.command:
            raise MCPConfigError(
                f'mcpconfig: server "{server.name}": command must not be empty'
            )
    return MCPConfig(servers=servers)