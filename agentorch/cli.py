"""Command-line support: environment checks, flags and the metrics report."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, NoReturn, TextIO

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """The environment or command line is not usable."""


@dataclass
class CliConfig:
    """Parsed command-line flags."""

    turns: int = 0
    metrics_out: str = ""


@dataclass
class MemoryMetrics:
    """A snapshot of context-memory counters."""

    count_tokens_api_call_count: int = 0
    compress_trigger_count: int = 0
    oom_event_count: int = 0
    usage_ratio: float = 0.0


@dataclass
class ModelProfile:
    """Limits and identity of a model."""

    model_id: str = ""
    provider: str = ""
    context_window_tokens: int = 0
    max_output_tokens: int = 0
    compress_model_id: str = ""


def _require_env(name: str) -> None:
    if not os.environ.get(name):
        raise ConfigError(f"{name} is not set")


def check_api_key() -> None:
    """Raise ConfigError if GOOGLE_API_KEY is not set."""
    _require_env("GOOGLE_API_KEY")


def check_bot_token() -> None:
    """Raise ConfigError if TELEGRAM_BOT_TOKEN is not set."""
    _require_env("TELEGRAM_BOT_TOKEN")


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ConfigError(f"parseFlags: {message}")


def parse_flags(args: list[str]) -> CliConfig:
    """Parse --turns and --metrics-out into a CliConfig."""
    parser = _Parser(prog="demo-agent", add_help=False)
    parser.add_argument(
        "-turns",
        "--turns",
        type=int,
        default=0,
        help="Number of turns to process before exiting (0 = unlimited, read until EOF)",
    )
    parser.add_argument(
        "-metrics-out",
        "--metrics-out",
        dest="metrics_out",
        default="",
        help="File path to write machine-readable metrics report",
    )
    namespace = parser.parse_args(list(args))
    return CliConfig(turns=namespace.turns, metrics_out=namespace.metrics_out)


def build_oom_test_profile() -> ModelProfile:
    """Return a profile with a tiny context window for out-of-memory testing."""
    return ModelProfile(
        model_id="gemini-2.0-flash",
        provider="google",
        context_window_tokens=2000,
        max_output_tokens=512,
    )


def format_metrics(
    snapshot: MemoryMetrics,
    usage_ratio_curve: Iterable[float] | None,
    compress_cost_usd: float,
) -> str:
    """Format the metrics report as "key: value" lines."""
    curve = ",".join(f"{value:f}" for value in usage_ratio_curve or ())
    return (
        f"usage_ratio_curve: {curve}\n"
        f"compress_trigger_count: {snapshot.compress_trigger_count}\n"
        f"countTokens_api_call_count: {snapshot.count_tokens_api_call_count}\n"
        f"compress_cost_usd: {compress_cost_usd:f}\n"
        f"oom_event_count: {snapshot.oom_event_count}\n"
    )


def write_metrics_to_file(path: str | os.PathLike[str], content: str) -> None:
    """Write the metrics report to path."""
    try:
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        raise OSError(exc.errno, f"writeMetricsToFile: {exc.strerror or exc}", str(path)) from exc


def _run_conversation(
    orchestrator: Any,
    cfg: CliConfig,
    lines: Iterable[str],
    output: TextIO,
    err_output: TextIO,
    snapshot: Callable[[], MemoryMetrics],
) -> list[float]:
    """Feed each non-blank line to the orchestrator, then print the metrics report."""
    curve: list[float] = []
    turns = 0
    if cfg.turns <= 0 or turns < cfg.turns:
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            turns += 1
            try:
                response = orchestrator.run(line).response
            except Exception as exc:
                err_output.write(f"AGENT_ERROR: {exc}\n")
                response = ""
            output.write(response + "\n")
            curve.append(snapshot().usage_ratio)
            if cfg.turns > 0 and turns >= cfg.turns:
                break

    content = format_metrics(snapshot(), curve, 0.0)
    output.write("\n--- Metrics Report ---\n")
    output.write(content)

    if cfg.metrics_out:
        try:
            write_metrics_to_file(cfg.metrics_out, content)
        except OSError as exc:
            err_output.write(f"failed to write metrics file: {exc}\n")
        else:
            logger.info("demo-agent: metrics written to file path=%s", cfg.metrics_out)
    return curve