"""Load agent definitions from agents/<name>/agent.prompt files.

An agent.prompt file holds optional YAML frontmatter between ``---`` lines and
a Handlebars-style template body. The body is rendered with the frontmatter's
``input.default`` values; the text of its system-role messages becomes the
agent's instruction.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from agentorch.models import AgentDefinition


class AgentDefError(Exception):
    """An agent definition could not be read or rendered."""


class AgentLoader:
    """Loads agent definitions from the agents/ directory of a base directory."""

    def load(self, base_dir: str | os.PathLike[str], name: str) -> AgentDefinition:
        """Load agents/<name>/agent.prompt relative to base_dir."""
        return load(base_dir, name)


def truncate(s: str, n: int) -> str:
    """Shorten s to n characters, marking a cut with an ellipsis."""
    if len(s) <= n:
        return s
    return s[:n] + "..."


def load(base_dir: str | os.PathLike[str], name: str) -> AgentDefinition:
    """Read agents/<name>/agent.prompt relative to base_dir into a definition."""
    path = Path(base_dir) / "agents" / name / "agent.prompt"
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AgentDefError(f"agentdef.load: reading {str(path)!r}: {exc}") from exc

    try:
        frontmatter, messages = _render(source)
    except (_TemplateError, yaml.YAMLError) as exc:
        raise AgentDefError(f"agentdef.load: rendering {str(path)!r}: {exc}") from exc

    system_parts = [
        text.strip() for role, text in messages if role == "system" and text.strip()
    ]
    definition = AgentDefinition(name=name, instruction="\n".join(system_parts))

    model = frontmatter.get("model")
    if model:
        model_id = str(model)
        _, sep, after = model_id.partition("/")
        definition.model_id = after if sep else model_id
    return definition


# ---------------------------------------------------------------------------
# Prompt rendering
# ---------------------------------------------------------------------------


class _TemplateError(ValueError):
    pass


_FRONTMATTER = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)(.*)\Z", re.DOTALL
)
_TAG = re.compile(r"\{\{(~?)(!--.*?--|!.*?|\{.*?\}|.*?)(~?)\}\}", re.DOTALL)
_ARG = re.compile(r"\"[^\"]*\"|'[^']*'|\S+")
_MARKER = re.compile(r"<<<dotprompt:(role:[A-Za-z]+|history|media|section)>>>")


def _render(source: str) -> tuple[dict[str, Any], list[tuple[str, str]]]:
    frontmatter: dict[str, Any] = {}
    body = source
    match = _FRONTMATTER.match(source)
    if match:
        parsed = yaml.safe_load(match.group(1) or "")
        if parsed is None:
            parsed = {}
        if not isinstance(parsed, dict):
            raise _TemplateError("frontmatter must be a mapping")
        frontmatter = parsed
        body = match.group(2)

    context: Any = {}
    input_spec = frontmatter.get("input")
    if isinstance(input_spec, Mapping) and isinstance(input_spec.get("default"), Mapping):
        context = dict(input_spec["default"])

    rendered = _Renderer(context).render(_parse(body).body, _Scope(context))
    return frontmatter, _split_messages(rendered)


def _split_messages(rendered: str) -> list[tuple[str, str]]:
    parts: list[tuple[str, str]] = []
    role = "user"
    pos = 0
    for match in _MARKER.finditer(rendered):
        parts.append((role, rendered[pos : match.start()]))
        pos = match.end()
        marker = match.group(1)
        if marker.startswith("role:"):
            role = marker[len("role:") :]
        elif marker == "history":
            role = "model"
    parts.append((role, rendered[pos:]))
    return parts


@dataclass
class _Block:
    name: str
    params: list[str]
    body: list[Any] = field(default_factory=list)
    inverse: list[Any] = field(default_factory=list)
    in_inverse: bool = False

    @property
    def current(self) -> list[Any]:
        return self.inverse if self.in_inverse else self.body


@dataclass
class _Expr:
    parts: list[str]


def _split_args(content: str) -> list[str]:
    return _ARG.findall(content)


def _parse(source: str) -> _Block:
    root = _Block("", [])
    stack = [root]
    pos = 0
    strip_next = False
    for match in _TAG.finditer(source):
        text = source[pos : match.start()]
        if strip_next:
            text = text.lstrip()
        if match.group(1):
            text = text.rstrip()
        if text:
            stack[-1].current.append(text)
        strip_next = bool(match.group(3))
        pos = match.end()

        content = match.group(2).strip()
        if not content or content.startswith("!"):
            continue
        if content.startswith("{"):
            stack[-1].current.append(_Expr(_split_args(content[1:-1].strip())))
        elif content.startswith("#"):
            args = _split_args(content[1:])
            if not args:
                raise _TemplateError("block without a helper name")
            block = _Block(args[0], args[1:])
            stack[-1].current.append(block)
            stack.append(block)
        elif content.startswith("/"):
            name = content[1:].strip()
            if len(stack) == 1 or stack[-1].name != name:
                raise _TemplateError(f"unexpected closing block {name!r}")
            stack.pop()
        elif content == "else":
            if len(stack) == 1:
                raise _TemplateError("else outside of a block")
            stack[-1].in_inverse = True
        else:
            stack[-1].current.append(_Expr(_split_args(content)))

    tail = source[pos:]
    if strip_next:
        tail = tail.lstrip()
    if tail:
        stack[-1].current.append(tail)
    if len(stack) > 1:
        raise _TemplateError(f"unclosed block {stack[-1].name!r}")
    return root


@dataclass
class _Scope:
    value: Any
    parent: _Scope | None = None
    data: dict[str, Any] = field(default_factory=dict)


def _truthy(value: Any) -> bool:
    if value is None or value is False or value == "" or value == 0:
        return False
    if isinstance(value, (list, tuple)) and not value:
        return False
    return True


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_format(item) for item in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


class _Renderer:
    def __init__(self, root: Any) -> None:
        self._root = root

    def render(self, items: list[Any], scope: _Scope) -> str:
        out = []
        for item in items:
            if isinstance(item, str):
                out.append(item)
            elif isinstance(item, _Expr):
                out.append(self._expr(item, scope))
            else:
                out.append(self._block(item, scope))
        return "".join(out)

    def _value(self, token: str, scope: _Scope) -> Any:
        if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
            return token[1:-1]
        if token == "true":
            return True
        if token == "false":
            return False
        if token in ("null", "undefined"):
            return None
        if re.fullmatch(r"-?\d+", token):
            return int(token)
        if re.fullmatch(r"-?\d+\.\d+", token):
            return float(token)
        return self._lookup(token, scope)

    def _lookup(self, path: str, scope: _Scope) -> Any:
        value: Any
        if path == "@root" or path.startswith("@root."):
            value = self._root
            path = path[len("@root.") :] if path.startswith("@root.") else ""
        else:
            while path.startswith("../"):
                scope = scope.parent or scope
                path = path[3:]
            if path.startswith("@"):
                return scope.data.get(path[1:])
            if path in ("this", "."):
                return scope.value
            if path.startswith("this.") or path.startswith("./"):
                path = path.split(".", 1)[1] if path.startswith("this.") else path[2:]
            value = scope.value
        for part in filter(None, path.split(".")):
            if isinstance(value, Mapping):
                value = value.get(part)
            elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
                value = value[int(part)]
            else:
                return None
        return value

    def _expr(self, expr: _Expr, scope: _Scope) -> str:
        if not expr.parts:
            return ""
        head, args = expr.parts[0], expr.parts[1:]
        positional = [a for a in args if "=" not in a or a[0] in "\"'"]
        if head == "role":
            if not positional:
                raise _TemplateError("role helper needs a role name")
            return f"<<<dotprompt:role:{_format(self._value(positional[0], scope))}>>>"
        if head == "history":
            return "<<<dotprompt:history>>>"
        if head == "media":
            return "<<<dotprompt:media>>>"
        if head == "section":
            return "<<<dotprompt:section>>>"
        if head == "json":
            value = self._value(positional[0], scope) if positional else None
            return json.dumps(value)
        if args:
            raise _TemplateError(f"missing helper {head!r}")
        return _format(self._value(head, scope))

    def _block(self, block: _Block, scope: _Scope) -> str:
        args = [self._value(p, scope) for p in block.params if "=" not in p]
        name = block.name
        if name in ("if", "unless", "ifEquals", "unlessEquals"):
            if name in ("if", "unless"):
                condition = _truthy(args[0]) if args else False
            else:
                if len(args) < 2:
                    raise _TemplateError(f"{name} needs two arguments")
                condition = args[0] == args[1]
            if name.startswith("unless"):
                condition = not condition
            return self.render(block.body if condition else block.inverse, scope)
        if name == "with":
            target = args[0] if args else None
            if not _truthy(target):
                return self.render(block.inverse, scope)
            return self.render(block.body, _Scope(target, scope))
        if name == "each":
            return self._each(block, scope, args[0] if args else None)
        raise _TemplateError(f"missing block helper {name!r}")

    def _each(self, block: _Block, scope: _Scope, target: Any) -> str:
        if isinstance(target, Mapping):
            entries = list(target.items())
        elif isinstance(target, (list, tuple)):
            entries = list(enumerate(target))
        else:
            entries = []
        if not entries:
            return self.render(block.inverse, scope)
        out = []
        last = len(entries) - 1
        for position, (key, item) in enumerate(entries):
            data = {"index": position, "first": position == 0, "last": position == last}
            if isinstance(target, Mapping):
                data["key"] = key
            out.append(self.render(block.body, _Scope(item, scope, data)))
        return "".join(out)