"""Recursively build an agent tree from a declarative tree configuration."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from agentorch.agenttree_config import (
    AgentDefaults,
    AgentNodeConfig,
    AgentTreeConfig,
    AgentType,
)

ModelFactory = Callable[[str], Any]
"""Creates a model instance from a model ID."""

PromptLoader = Callable[[str, str], str]
"""Called as loader(base_dir, agent_name); returns the instruction text."""


class BuildError(RuntimeError):
    """The agent tree could not be built; the cause is chained where there is one."""


@dataclass
class BuilderDeps:
    """External dependencies injected into the builder."""

    model_factory: ModelFactory | None = None
    prompt_loader: PromptLoader | None = None
    tool_registry: Mapping[str, Any] = field(default_factory=dict)
    toolset_registry: Mapping[str, Any] = field(default_factory=dict)
    base_dir: str = ""


@dataclass
class Agent:
    """A built agent node, ready to be handed to a runner."""

    name: str
    type: AgentType
    description: str = ""
    model: Any = None
    instruction: str = ""
    output_key: str = ""
    max_iterations: int = 0
    tools: list[Any] = field(default_factory=list)
    toolsets: list[Any] = field(default_factory=list)
    sub_agents: list[Agent] = field(default_factory=list)


def build(cfg: AgentTreeConfig | None, deps: BuilderDeps) -> Agent:
    """Build the whole agent tree described by cfg and return its root."""
    if cfg is None:
        raise BuildError("agenttree.build: config is nil")
    return _build_node(cfg.root, cfg.defaults, deps)


def _type_text(value: AgentType | str) -> str:
    return value.value if isinstance(value, AgentType) else str(value)


def _build_node(node: AgentNodeConfig, defaults: AgentDefaults, deps: BuilderDeps) -> Agent:
    children: list[Agent] = []
    for sub in node.sub_agents:
        try:
            children.append(_build_node(sub, defaults, deps))
        except BuildError as exc:
            raise BuildError(f'building sub-agent "{sub.name}": {exc}') from exc

    node_type = _type_text(node.type)
    if node_type == AgentType.LLM:
        return _build_llm_agent(node, defaults, deps, children)
    if node_type in (AgentType.SEQUENTIAL, AgentType.PARALLEL, AgentType.LOOP):
        return Agent(
            name=node.name,
            type=AgentType(node_type),
            description=node.description,
            max_iterations=node.max_iterations if node_type == AgentType.LOOP else 0,
            sub_agents=children,
        )
    raise BuildError(f'agenttree: unsupported agent type "{node_type}" for "{node.name}"')


def _resolve_instruction(node: AgentNodeConfig, deps: BuilderDeps) -> str:
    instruction = node.instruction
    if not (node.prompt_file or not instruction):
        return instruction
    if deps.prompt_loader is None:
        return instruction

    agent_name = node.prompt_file or node.name
    try:
        return deps.prompt_loader(deps.base_dir, agent_name)
    except Exception as exc:
        if node.prompt_file:
            raise BuildError(
                f'agenttree: agent "{node.name}": loading prompt "{node.prompt_file}": {exc}'
            ) from exc
        if not instruction:
            raise BuildError(
                f'agenttree: agent "{node.name}": no instruction found '
                "(no prompt file and no inline instruction)"
            ) from exc
        return instruction


def _build_llm_agent(
    node: AgentNodeConfig,
    defaults: AgentDefaults,
    deps: BuilderDeps,
    children: list[Agent],
) -> Agent:
    model_id = node.model or defaults.model
    if not model_id:
        raise BuildError(
            f'agenttree: agent "{node.name}": no model specified and no default model set'
        )
    if deps.model_factory is None:
        raise BuildError(f'agenttree: agent "{node.name}": no model factory configured')
    try:
        model = deps.model_factory(model_id)
    except Exception as exc:
        raise BuildError(
            f'agenttree: agent "{node.name}": creating model "{model_id}": {exc}'
        ) from exc

    instruction = _resolve_instruction(node, deps)

    tools = []
    for tool_name in node.tools:
        if tool_name not in deps.tool_registry:
            raise BuildError(
                f'agenttree: agent "{node.name}": tool "{tool_name}" not found in registry'
            )
        tools.append(deps.tool_registry[tool_name])

    toolsets = []
    for server_name in node.mcp_servers:
        if server_name not in deps.toolset_registry:
            raise BuildError(
                f'agenttree: agent "{node.name}": MCP server "{server_name}" '
                "not found in registry"
            )
        toolsets.append(deps.toolset_registry[server_name])

    return Agent(
        name=node.name,
        type=AgentType.LLM,
        description=node.description,
        model=model,
        instruction=instruction,
        output_key=node.output_key,
        tools=tools,
        toolsets=toolsets,
        sub_agents=children,
    )