"""Core data types for loaded agents and MCP server configuration."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AgentDefinition:
    """A loaded agent: its name, system instruction and optional model ID."""

    name: str
    instruction: str = ""
    model_id: str = ""


@dataclass
class MCPServerConfig:
    """One MCP server subprocess: command, arguments and extra environment."""

    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class MCPConfig:
    """An MCP configuration file: an ordered list of servers."""

    servers: list[MCPServerConfig] = field(default_factory=list)