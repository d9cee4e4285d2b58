"""Loop exit checking: decide whether a loop should stop early."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExitCheckConfig:
    """When a loop should terminate early: state key and pattern to look for."""

    output_key: str = ""
    pattern: str = ""


def exit_check_should_escalate(val: str, pattern: str) -> bool:
    """Return True if val contains pattern; both must be non-empty."""
    if not val or not pattern:
        return False
    return pattern in val


class ExitChecker:
    """Agent placed last in a loop body that signals the loop to stop."""

    description = "Checks loop exit condition and escalates if met."

    def __init__(self, name: str, config: ExitCheckConfig) -> None:
        self.name = name
        self.config = config

    def check(self, state: Mapping[str, Any]) -> bool:
        """Return True (escalate) when the state value matches the pattern."""
        value = state.get(self.config.output_key)
        text = value if isinstance(value, str) else ""
        return exit_check_should_escalate(text, self.config.pattern)

    def __repr__(self) -> str:
        return f"ExitChecker(name={self.name!r}, config={self.config!r})"