"""Helpers used when assembling the application core."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path


def load_prompt(base_dir: str | os.PathLike[str], name: str) -> str:
    """Return the text of <base_dir>/prompts/<name>."""
    path = Path(base_dir) / "prompts" / name
    try:
        return path.read_bytes().decode("utf-8")
    except OSError as exc:
        # Passing errno keeps the specific subclass (e.g. FileNotFoundError).
        raise OSError(
            exc.errno, f"loading prompt {name}: {exc.strerror or exc}", str(path)
        ) from exc


def scan_available_roles(base_dir: str | os.PathLike[str]) -> list[str]:
    """Return the sorted names of agents/ subdirectories holding an agent.prompt."""
    agents_dir = Path(base_dir) / "agents"
    try:
        entries = sorted(agents_dir.iterdir(), key=lambda entry: entry.name)
    except OSError:
        return []
    return [
        entry.name
        for entry in entries
        if entry.is_dir() and (entry / "agent.prompt").exists()
    ]


def env_map_to_slice(env: Mapping[str, str] | None) -> list[str]:
    """Turn a mapping into "KEY=value" strings, skipping entries with an empty key."""
    if not env:
        return []
    return [f"{key}={value}" for key, value in env.items() if key]