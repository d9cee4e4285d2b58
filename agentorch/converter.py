"""Turn an execution plan tree into an agent tree configuration."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator

from agentorch.agenttree_config import AgentNodeConfig, AgentType
from agentorch.plan import PlanNode, PlanNodeType

TemplateLoader = Callable[[str, str], "str | None"]
"""Called as loader(base_dir, role); returns the role's template or None."""

EXIT_CHECKER_INSTRUCTION = "__EXIT_CHECKER__"


class ConversionError(ValueError):
    """A plan node could not be converted into an agent node."""


def _type_text(value: PlanNodeType | str) -> str:
    return value.value if isinstance(value, PlanNodeType) else str(value)


def convert(node: PlanNode | None, loader: TemplateLoader | None) -> AgentNodeConfig:
    """Convert a plan tree into an agent tree with globally unique names.

    Names are numbered depth-first from a single counter, so that the whole
    converted tree carries no duplicate agent names.
    """
    if node is None:
        raise ConversionError("orchestrator.convert: node is nil")
    return _Converter(loader).convert(node)


class _Converter:
    def __init__(self, loader: TemplateLoader | None, base_dir: str = "") -> None:
        self._loader = loader
        self._base_dir = base_dir
        self._counter: Iterator[int] = itertools.count()

    def _next(self) -> int:
        return next(self._counter)

    def convert(self, node: PlanNode) -> AgentNodeConfig:
        node_type = _type_text(node.type)
        if node_type == PlanNodeType.STEP:
            return self._step(node)
        if node_type == PlanNodeType.SEQUENTIAL:
            return self._sequential(node)
        if node_type == PlanNodeType.LOOP:
            return self._loop(node)
        if node_type == PlanNodeType.PARALLEL:
            return self._parallel(node)
        raise ConversionError(
            f"orchestrator.convert: unsupported plan node type {node_type!r}"
        )

    def _steps(self, steps: list[PlanNode]) -> list[AgentNodeConfig]:
        return [self.convert(step) for step in steps]

    def _step(self, node: PlanNode) -> AgentNodeConfig:
        name = f"{node.role}_{self._next()}"
        instruction = node.instruction
        if self._loader is not None:
            template = self._loader(self._base_dir, node.role)
            if template is not None:
                instruction = f"{template}\n\n{node.instruction}"
        return AgentNodeConfig(
            name=name,
            type=AgentType.LLM,
            instruction=instruction,
            output_key=node.output_key,
            tools=list(node.tools),
        )

    def _sequential(self, node: PlanNode) -> AgentNodeConfig:
        name = f"seq_{self._next()}"
        return AgentNodeConfig(
            name=name, type=AgentType.SEQUENTIAL, sub_agents=self._steps(node.steps)
        )

    def _parallel(self, node: PlanNode) -> AgentNodeConfig:
        name = f"par_{self._next()}"
        return AgentNodeConfig(
            name=name, type=AgentType.PARALLEL, sub_agents=self._steps(node.steps)
        )

    def _loop(self, node: PlanNode) -> AgentNodeConfig:
        loop_name = f"loop_{self._next()}"
        body = self._steps(node.steps)

        if node.exit_condition is not None:
            condition = node.exit_condition
            body.append(
                AgentNodeConfig(
                    name=f"exit_checker_{self._next()}",
                    type=AgentType.LLM,
                    instruction=EXIT_CHECKER_INSTRUCTION,
                    output_key=f"{condition.output_key}|{condition.pattern}",
                )
            )

        # One loop iteration runs the whole body in order.
        wrapper = AgentNodeConfig(
            name=f"seq_{self._next()}", type=AgentType.SEQUENTIAL, sub_agents=body
        )
        return AgentNodeConfig(
            name=loop_name,
            type=AgentType.LOOP,
            max_iterations=node.max_iterations,
            sub_agents=[wrapper],
        )