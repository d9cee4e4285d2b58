"""The Plan -> Execute -> Evaluate -> Respond orchestration loop."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from agentorch.agenttree_config import AgentNodeConfig
from agentorch.converter import TemplateLoader, convert
from agentorch.plan import EvalOutput, PlanNodeType, PlanOutput


@runtime_checkable
class Planner(Protocol):
    """Produces an execution plan for a user prompt."""

    def plan(
        self,
        user_prompt: str,
        feedback: str,
        available_tools: list[str],
        available_roles: list[str],
    ) -> PlanOutput: ...


@runtime_checkable
class Evaluator(Protocol):
    """Judges execution results against the original request."""

    def evaluate(self, user_prompt: str, results: Mapping[str, Any]) -> EvalOutput: ...


@runtime_checkable
class Responder(Protocol):
    """Turns execution results into a user-facing response."""

    def respond(self, user_prompt: str, results: Mapping[str, Any]) -> str: ...


@runtime_checkable
class Executor(Protocol):
    """Builds and runs an agent tree, returning the resulting state."""

    def execute(self, cfg: AgentNodeConfig) -> dict[str, Any]: ...


class OrchestratorError(RuntimeError):
    """A phase of the orchestration loop failed; the cause is chained."""


@dataclass
class OrchestratorConfig:
    """Dependencies and limits for the orchestrator."""

    planner: Planner
    evaluator: Evaluator
    responder: Responder
    executor: Executor
    template_loader: TemplateLoader | None = None
    available_tools: list[str] = field(default_factory=list)
    available_roles: list[str] = field(default_factory=list)
    system_max_retry: int = 0


@dataclass
class Result:
    """Outcome of a completed orchestration run."""

    response: str
    is_direct: bool = False
    intent: str = ""
    retries: int = 0


class Orchestrator:
    """Drives the plan/execute/evaluate/respond loop with bounded retries.

    Phases 1-3 are repeated while evaluation is unsatisfied, up to
    min(plan.max_retries, config.system_max_retry) retries.
    """

    def __init__(self, config: OrchestratorConfig) -> None:
        self.config = config

    def run(self, user_prompt: str) -> Result:
        """Run the loop for one user prompt and return its result."""
        cfg = self.config
        feedback = ""
        retries = 0

        while True:
            try:
                plan = cfg.planner.plan(
                    user_prompt, feedback, cfg.available_tools, cfg.available_roles
                )
            except Exception as exc:
                raise OrchestratorError(f"orchestrator: Plan phase failed: {exc}") from exc
            try:
                plan.validate()
            except Exception as exc:
                raise OrchestratorError(f"orchestrator: invalid plan: {exc}") from exc

            if plan.plan.type == PlanNodeType.DIRECT:
                return Result(
                    response=plan.plan.response,
                    is_direct=True,
                    intent=plan.intent,
                    retries=retries,
                )

            try:
                agent_cfg = convert(plan.plan, cfg.template_loader)
            except Exception as exc:
                raise OrchestratorError(f"orchestrator: Convert phase failed: {exc}") from exc

            try:
                results = cfg.executor.execute(agent_cfg)
            except Exception as exc:
                raise OrchestratorError(f"orchestrator: Execute phase failed: {exc}") from exc

            max_retry = min(cfg.system_max_retry, plan.max_retries)

            try:
                evaluation = cfg.evaluator.evaluate(user_prompt, results)
            except Exception as exc:
                raise OrchestratorError(f"orchestrator: Evaluate phase failed: {exc}") from exc

            if evaluation.satisfied or retries >= max_retry:
                try:
                    response = cfg.responder.respond(user_prompt, results)
                except Exception as exc:
                    raise OrchestratorError(
                        f"orchestrator: Respond phase failed: {exc}"
                    ) from exc
                return Result(
                    response=response,
                    is_direct=False,
                    intent=plan.intent,
                    retries=retries,
                )

            feedback = evaluation.feedback
            retries += 1