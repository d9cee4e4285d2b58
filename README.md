# agentorch

`agentorch` is the core of a dynamic agent orchestrator. A user request goes
through four phases:

1. **Plan**: a planner produces a structured plan (`PlanOutput`), either a
   direct answer or a tree of `sequential`, `parallel`, `loop` and `step`
   nodes.
2. **Execute**: the plan tree is converted into an agent tree
   (`AgentNodeConfig`) and handed to an executor.
3. **Evaluate**: an evaluator decides whether the results satisfy the
   request. If not, the planner is asked again with the evaluator's feedback,
   up to the lesser of the plan's own `max_retries` and the system-wide limit.
4. **Respond**: a responder turns the results into the final answer.

The planner, evaluator, responder and executor are protocols (`Planner`,
`Evaluator`, `Responder`, `Executor` in `agentorch.orchestrator`), so any
model backend can be plugged in.

Install with `pip install .`; the only runtime dependency is PyYAML.

## Plans

Plans arrive as JSON-like dictionaries and are checked before use:

```python
from agentorch.plan import PlanOutput
from agentorch.converter import convert

plan = PlanOutput.from_dict({
    "intent": "research and write a report",
    "max_retries": 1,
    "plan": {
        "type": "sequential",
        "steps": [
            {"type": "step", "role": "researcher",
             "instruction": "gather information", "output_key": "research_output"},
            {"type": "step", "role": "writer",
             "instruction": "write the report", "output_key": "report_output"},
        ],
    },
})
plan.validate()  # raises ValidationError on the first structural problem

agent_tree = convert(plan.plan, loader=None)
# agent_tree.name == "seq_0"; its sub-agents are "researcher_1" and "writer_2"
```

`PlanOutput.validate` raises `agentorch.agenttree_config.ValidationError`,
whose `field` names the offending path (for example `plan.steps[0].role`) and
whose `reason` says what is wrong. A `direct` node is only allowed at the
root and needs a `response`; `sequential` and `parallel` nodes need steps; a
`loop` node needs `max_iterations` greater than 0 and steps; a `step` node
needs a `role` and an `output_key`.

`convert` numbers nodes from one depth-first counter, so every name in the
converted tree is unique (`<role>_N` for steps, `seq_N`, `par_N`, `loop_N`).
A loop body is wrapped in a sequential node, and when the loop has an
`exit_condition` a node named `exit_checker_N` is appended to the body, with
instruction `__EXIT_CHECKER__` and output key `<output_key>|<pattern>`.
An optional template loader is called as `loader(base_dir, role)` for each
step; if it returns a string, that template is placed before the step's own
instruction, separated by a blank line. Unknown node types raise
`ConversionError`.

Loop exit conditions are plain, case-sensitive substring matches:

```python
from agentorch.exitchecker import ExitCheckConfig, ExitChecker, exit_check_should_escalate

exit_check_should_escalate("The result is APPROVED", "APPROVED")  # True
exit_check_should_escalate("", "APPROVED")                        # False

checker = ExitChecker("exit_checker_0", ExitCheckConfig("review", "APPROVED"))
checker.check({"review": "APPROVED"})  # True
```

## Running the orchestrator

```python
from agentorch.orchestrator import Orchestrator, OrchestratorConfig

orch = Orchestrator(OrchestratorConfig(
    planner=my_planner,
    evaluator=my_evaluator,
    responder=my_responder,
    executor=my_executor,
    template_loader=None,
    available_tools=["shell_exec"],
    available_roles=["researcher", "writer"],
    system_max_retry=3,
))
result = orch.run("research and write a report")
print(result.response, result.is_direct, result.intent, result.retries)
```

A direct plan is returned at once without calling the executor, evaluator or
responder. Once retries are used up the responder is called anyway, with the
last results. Any failing phase, including an invalid plan, is raised as
`OrchestratorError` with the original exception chained.

## Agent trees

`agentorch.agenttree_config` holds the declarative tree types
(`AgentTreeConfig`, `AgentNodeConfig`, `AgentDefaults`, `AgentType`) and
`default_state_keys()`. `AgentTreeConfig.validate` checks the version, that
names are present and unique across the tree, that types are known, and
that workflow nodes have sub-agents.

`agentorch.builder.build(cfg, deps)` turns a tree config into a tree of
`Agent` objects. `BuilderDeps` supplies a `model_factory` (model ID to model
object), an optional `prompt_loader(base_dir, agent_name)`, and registries of
tools and MCP toolsets by name. An LLM node uses its own `model` or else the
tree default; its instruction comes from `prompt_file` (an error if loading
fails), or from the loader by node name when it has no inline instruction.
Missing models, tools or toolsets raise `BuildError`.

## Configuration files

```python
from agentorch import config_tree, mcpconfig, agentdef

tree = config_tree.load(".")        # agenttree.yaml, validated; None if absent
mcp = mcpconfig.load(".", "root")   # agents/root/mcp.json; None if absent
definition = agentdef.load(".", "researcher")  # agents/researcher/agent.prompt
```

`config_tree` raises `ConfigTreeError` for unreadable, malformed or invalid
files; `mcpconfig` raises `MCPConfigError`, including for a server whose
`command` is empty.

An `agent.prompt` file has optional YAML frontmatter between `---` lines and
a Handlebars-style body rendered with the frontmatter's `input.default`
values. Only text after a `{{role "system"}}` marker becomes the
instruction; text before any role marker counts as a user message. A
frontmatter `model` such as `googleai/gemini-2.0-flash` becomes the model ID
`gemini-2.0-flash`. The renderer supports `if`, `unless`, `ifEquals`,
`unlessEquals`, `with` and `each` blocks and the `role`, `history`, `media`,
`section` and `json` helpers; anything else raises `AgentDefError`.
`AgentLoader().load(base_dir, name)` does the same as `agentdef.load`.

`agentorch.wiring` has `load_prompt(base_dir, name)` (reads
`prompts/<name>`), `scan_available_roles(base_dir)` (sorted names of
`agents/` subdirectories that hold an `agent.prompt`) and
`env_map_to_slice(env)` (`KEY=value` strings, empty keys skipped).

## Command-line and HTTP helpers

`agentorch.cli` provides building blocks for a front end:
`check_api_key()` and `check_bot_token()` raise `ConfigError` when
`GOOGLE_API_KEY` or `TELEGRAM_BOT_TOKEN` is unset; `parse_flags(args)` reads
`--turns` and `--metrics-out` into a `CliConfig`; `format_metrics(snapshot,
curve, cost)` renders a `MemoryMetrics` snapshot as `key: value` lines with
six-decimal floats; `write_metrics_to_file(path, content)` saves it; and
`build_oom_test_profile()` returns a `ModelProfile` with a 2000-token window.

`agentorch.web.create_app(orchestrator)` returns a WSGI application. `POST
/run` sends the plain-text body to `orchestrator.run` and answers with the
response text; an empty body gives 400, an orchestrator error 500, another
method 405 and another path 404. Serve it with any WSGI server, for example
`wsgiref.simple_server.make_server`.

## What is not included

The package installs no commands. It contains no model backend, no planner,
evaluator, responder or executor implementations, and no session storage:
these are supplied by the caller through the protocols above. There is no
interactive chat loop, no Telegram bot and no MCP client; `mcpconfig` only
reads the server configuration.