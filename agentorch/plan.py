"""Structured plan types produced by the planning phase, with validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from agentorch.agenttree_config import ValidationError


class PlanNodeType(str, Enum):
    """Plan node types."""

    DIRECT = "direct"
    SEQUENTIAL = "sequential"
    LOOP = "loop"
    PARALLEL = "parallel"
    STEP = "step"


def _mapping(data: Any, name: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"{name} must be a mapping, got {type(data).__name__}")
    return data


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _node_type(value: Any) -> PlanNodeType | str:
    text = _text(value)
    try:
        return PlanNodeType(text)
    except ValueError:
        return text


def _int(value: Any, name: str, *, non_negative: bool = False) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be an integer")
    number = int(value)
    if non_negative and number < 0:
        raise ValueError(f"{name} must not be negative")
    return number


@dataclass
class ExitCondition:
    """Early termination rule for a loop node."""

    output_key: str = ""
    pattern: str = ""


@dataclass
class PlanNode:
    """A recursive node in the execution plan tree."""

    type: PlanNodeType | str = ""
    response: str = ""
    steps: list[PlanNode] = field(default_factory=list)
    max_iterations: int = 0
    exit_condition: ExitCondition | None = None
    role: str = ""
    instruction: str = ""
    tools: list[str] = field(default_factory=list)
    output_key: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> PlanNode:
        """Build a plan node (and its steps) from a decoded JSON object."""
        mapping = _mapping(data, "plan node")
        raw_steps = mapping.get("steps") or []
        if not isinstance(raw_steps, list):
            raise TypeError("steps must be a list")
        raw_tools = mapping.get("tools") or []
        if not isinstance(raw_tools, list):
            raise TypeError("tools must be a list")
        raw_exit = mapping.get("exit_condition")
        exit_condition = None
        if raw_exit is not None:
            exit_map = _mapping(raw_exit, "exit_condition")
            exit_condition = ExitCondition(
                output_key=_text(exit_map.get("output_key")),
                pattern=_text(exit_map.get("pattern")),
            )
        return cls(
            type=_node_type(mapping.get("type")),
            response=_text(mapping.get("response")),
            steps=[cls.from_dict(step) for step in raw_steps],
            max_iterations=_int(mapping.get("max_iterations"), "max_iterations", non_negative=True),
            exit_condition=exit_condition,
            role=_text(mapping.get("role")),
            instruction=_text(mapping.get("instruction")),
            tools=[_text(t) for t in raw_tools],
            output_key=_text(mapping.get("output_key")),
        )


@dataclass
class PlanOutput:
    """Top-level structured output of the planning phase."""

    intent: str = ""
    max_retries: int = 0
    plan: PlanNode = field(default_factory=PlanNode)

    @classmethod
    def from_dict(cls, data: Any) -> PlanOutput:
        """Build a plan output from a decoded JSON object."""
        mapping = _mapping(data, "plan output")
        return cls(
            intent=_text(mapping.get("intent")),
            max_retries=_int(mapping.get("max_retries"), "max_retries"),
            plan=PlanNode.from_dict(mapping.get("plan")),
        )

    def validate(self) -> None:
        """Raise ValidationError describing the first structural problem found."""
        if not self.intent:
            raise ValidationError("intent", "must not be empty")
        _validate_plan_node(self.plan, "plan", at_root=True)


@dataclass
class EvalOutput:
    """Structured output of the evaluation phase."""

    satisfied: bool = False
    feedback: str = ""


def _type_text(value: PlanNodeType | str) -> str:
    return value.value if isinstance(value, PlanNodeType) else _text(value)


def _validate_steps(node: PlanNode, path: str) -> None:
    for index, step in enumerate(node.steps):
        _validate_plan_node(step, f"{path}.steps[{index}]", at_root=False)


def _validate_plan_node(node: PlanNode, path: str, at_root: bool) -> None:
    node_type = _type_text(node.type)

    if node_type == PlanNodeType.DIRECT:
        if not at_root:
            raise ValidationError(f"{path}.type", "direct node is only valid at the root level")
        if not node.response:
            raise ValidationError(f"{path}.response", "must not be empty for direct node")
    elif node_type in (PlanNodeType.SEQUENTIAL, PlanNodeType.PARALLEL):
        if not node.steps:
            raise ValidationError(f"{path}.steps", f"must not be empty for {node_type} node")
        _validate_steps(node, path)
    elif node_type == PlanNodeType.LOOP:
        if node.max_iterations == 0:
            raise ValidationError(f"{path}.max_iterations", "must be greater than 0 for loop node")
        if not node.steps:
            raise ValidationError(f"{path}.steps", "must not be empty for loop node")
        _validate_steps(node, path)
    elif node_type == PlanNodeType.STEP:
        if not node.role:
            raise ValidationError(f"{path}.role", "must not be empty for step node")
        if not node.output_key:
            raise ValidationError(f"{path}.output_key", "must not be empty for step node")
    else:
        raise ValidationError(f"{path}.type", f"unsupported plan node type: {node_type}")