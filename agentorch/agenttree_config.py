"""Declarative agent tree configuration: Root -> Workflow -> Agent hierarchy."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AgentType(str, Enum):
    """Supported agent node types in the tree config."""

    LLM = "llm"
    SEQUENTIAL = "sequential"
    LOOP = "loop"
    PARALLEL = "parallel"


class ValidationError(ValueError):
    """A structural problem in an agent tree or plan configuration."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"agenttree: invalid {field}: {reason}")


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_str_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list, got {type(value).__name__}")
    return [_as_str(item) for item in value]


def _as_mapping(data: Any, name: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"{name} must be a mapping, got {type(data).__name__}")
    return data


def _agent_type(value: Any) -> AgentType | str:
    text = _as_str(value)
    try:
        return AgentType(text)
    except ValueError:
        return text


@dataclass
class AgentDefaults:
    """Default values shared across the agent tree."""

    model: str = ""

    @classmethod
    def _from_dict(cls, data: Any) -> AgentDefaults:
        mapping = _as_mapping(data, "defaults")
        return cls(model=_as_str(mapping.get("model")))


@dataclass
class AgentNodeConfig:
    """A single, possibly nested, node in the agent tree."""

    name: str = ""
    type: AgentType | str = ""
    description: str = ""
    model: str = ""
    prompt_file: str = ""
    instruction: str = ""
    output_key: str = ""
    max_iterations: int = 0
    tools: list[str] = field(default_factory=list)
    mcp_servers: list[str] = field(default_factory=list)
    sub_agents: list[AgentNodeConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> AgentNodeConfig:
        """Build a node (and its children) from a parsed YAML mapping."""
        mapping = _as_mapping(data, "agent node")
        raw_iterations = mapping.get("max_iterations") or 0
        if isinstance(raw_iterations, bool) or not isinstance(raw_iterations, int):
            raise TypeError("max_iterations must be an integer")
        if raw_iterations < 0:
            raise ValueError("max_iterations must not be negative")
        raw_subs = mapping.get("sub_agents")
        if raw_subs is None:
            raw_subs = []
        if not isinstance(raw_subs, list):
            raise TypeError("sub_agents must be a list")
        return cls(
            name=_as_str(mapping.get("name")),
            type=_agent_type(mapping.get("type")),
            description=_as_str(mapping.get("description")),
            model=_as_str(mapping.get("model")),
            prompt_file=_as_str(mapping.get("prompt_file")),
            instruction=_as_str(mapping.get("instruction")),
            output_key=_as_str(mapping.get("output_key")),
            max_iterations=raw_iterations,
            tools=_as_str_list(mapping.get("tools"), "tools"),
            mcp_servers=_as_str_list(mapping.get("mcp_servers"), "mcp_servers"),
            sub_agents=[cls.from_dict(sub) for sub in raw_subs],
        )


@dataclass
class AgentTreeConfig:
    """Top-level declarative configuration for the entire agent tree."""

    version: str = ""
    defaults: AgentDefaults = field(default_factory=AgentDefaults)
    root: AgentNodeConfig = field(default_factory=AgentNodeConfig)

    @classmethod
    def from_dict(cls, data: Any) -> AgentTreeConfig:
        """Build a tree config from a parsed YAML mapping."""
        mapping = _as_mapping(data, "agent tree config")
        return cls(
            version=_as_str(mapping.get("version")),
            defaults=AgentDefaults._from_dict(mapping.get("defaults")),
            root=AgentNodeConfig.from_dict(mapping.get("root")),
        )

    def validate(self) -> None:
        """Raise ValidationError describing the first structural problem found."""
        if not self.version:
            raise ValidationError("version", "must not be empty")
        if not self.root.name:
            raise ValidationError("root.name", "must not be empty")
        _validate_node(self.root, "root", set())


_VALID_AGENT_TYPES = frozenset(t.value for t in AgentType)


def _validate_node(node: AgentNodeConfig, path: str, names: set[str]) -> None:
    if not node.name:
        raise ValidationError(f"{path}.name", "must not be empty")
    if node.name in names:
        raise ValidationError(f"{path}.name", f"duplicate agent name: {node.name}")
    names.add(node.name)

    node_type = _as_str(node.type.value if isinstance(node.type, AgentType) else node.type)
    if node_type == "":
        raise ValidationError(f"{path}.type", "must not be empty")
    if node_type not in _VALID_AGENT_TYPES:
        raise ValidationError(f"{path}.type", f"unsupported agent type: {node_type}")

    if node_type == AgentType.LOOP and node.max_iterations == 0 and not node.sub_agents:
        raise ValidationError(path, "loop agent must have sub_agents")
    if node_type in (AgentType.SEQUENTIAL, AgentType.PARALLEL) and not node.sub_agents:
        raise ValidationError(path, f"{node_type} agent must have sub_agents")

    for index, sub in enumerate(node.sub_agents):
        _validate_node(sub, f"{path}.sub_agents[{index}]", names)


@dataclass(frozen=True)
class StateKeyConfig:
    """Well-known session state keys used for agent-to-agent communication."""

    user_intent: str = "user_intent"
    plan: str = "plan"
    artifacts: str = "artifacts"
    draft: str = "draft"
    evaluation: str = "evaluation"
    summary: str = "summary"


def default_state_keys() -> StateKeyConfig:
    """Return the canonical state key names."""
    return StateKeyConfig()