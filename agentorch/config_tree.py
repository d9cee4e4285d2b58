"""Load the declarative agent tree configuration from YAML."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from agentorch.agenttree_config import AgentTreeConfig, ValidationError

DEFAULT_CONFIG_FILE = "agenttree.yaml"


class ConfigTreeError(Exception):
    """The agent tree configuration could not be read, parsed or validated."""


def load(base_dir: str | os.PathLike[str]) -> AgentTreeConfig | None:
    """Load base_dir/agenttree.yaml; return None if the file does not exist."""
    return load_file(Path(base_dir) / DEFAULT_CONFIG_FILE)


def load_file(path: str | os.PathLike[str]) -> AgentTreeConfig | None:
    """Load and validate a tree config file; return None if it does not exist."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigTreeError(f"agenttree: reading {str(path)!r}: {exc}") from exc

    try:
        cfg = AgentTreeConfig.from_dict(yaml.safe_load(text))
    except (yaml.YAMLError, TypeError, ValueError) as exc:
        raise ConfigTreeError(f"agenttree: parsing {str(path)!r}: {exc}") from exc

    try:
        cfg.validate()
    except ValidationError as exc:
        raise ConfigTreeError(f"agenttree: validating {str(path)!r}: {exc}") from exc
    return cfg