import pytest

from agentorch.agenttree_config import AgentType
from agentorch.converter import ConversionError, convert
from agentorch.plan import ExitCondition, PlanNode, PlanNodeType


def noop_loader(_base_dir, _role):
    return None


def role_loader(role, template):
    def loader(_base_dir, requested):
        return template if requested == role else None

    return loader


def step(role, instruction, output_key, tools=None):
    return PlanNode(
        type=PlanNodeType.STEP,
        role=role,
        instruction=instruction,
        output_key=output_key,
        tools=tools or [],
    )


def test_step_produces_llm_agent_with_correct_fields():
    node = step("coder", "write the code", "code_output", ["bash", "read_file"])
    got = convert(node, noop_loader)
    assert got.type == AgentType.LLM
    assert got.name.startswith("coder_")
    assert got.name == "coder_0"
    assert got.instruction == "write the code"
    assert got.output_key == "code_output"
    assert got.tools == ["bash", "read_file"]


def test_sequential_produces_sequential_agent_with_sub_agents():
    node = PlanNode(
        type=PlanNodeType.SEQUENTIAL,
        steps=[step("coder", "write", "code"), step("reviewer", "review", "review")],
    )
    got = convert(node, noop_loader)
    assert got.type == AgentType.SEQUENTIAL
    assert got.name.startswith("seq_")
    assert len(got.sub_agents) == 2
    assert [s.type for s in got.sub_agents] == [AgentType.LLM, AgentType.LLM]
    assert [s.name for s in got.sub_agents] == ["coder_1", "reviewer_2"]


def test_loop_with_exit_condition_injects_exit_checker_at_end_of_body():
    node = PlanNode(
        type=PlanNodeType.LOOP,
        max_iterations=5,
        steps=[step("worker", "do work", "work_output")],
        exit_condition=ExitCondition(output_key="work_output", pattern="DONE"),
    )
    got = convert(node, noop_loader)
    assert got.type == AgentType.LOOP
    assert got.name.startswith("loop_")
    assert got.max_iterations == 5
    assert len(got.sub_agents) == 1
    body = got.sub_agents[0]
    assert body.type == AgentType.SEQUENTIAL
    assert len(body.sub_agents) == 2
    checker = body.sub_agents[-1]
    assert checker.name.startswith("exit_checker_")
    assert checker.type == AgentType.LLM
    assert checker.instruction == "__EXIT_CHECKER__"
    assert checker.output_key == "work_output|DONE"


def test_loop_naming_order_is_depth_first():
    node = PlanNode(
        type=PlanNodeType.LOOP,
        max_iterations=2,
        steps=[step("worker", "do work", "work_output")],
        exit_condition=ExitCondition(output_key="work_output", pattern="DONE"),
    )
    got = convert(node, noop_loader)
    body = got.sub_agents[0]
    assert got.name == "loop_0"
    assert [s.name for s in body.sub_agents] == ["worker_1", "exit_checker_2"]
    assert body.name == "seq_3"


def test_loop_without_exit_condition_does_not_inject_exit_checker():
    node = PlanNode(
        type=PlanNodeType.LOOP,
        max_iterations=3,
        steps=[step("worker", "do work", "work_output")],
    )
    got = convert(node, noop_loader)
    assert got.type == AgentType.LOOP
    assert len(got.sub_agents) == 1
    body = got.sub_agents[0]
    assert body.type == AgentType.SEQUENTIAL
    assert len(body.sub_agents) == 1
    assert not any(s.name.startswith("exit_checker_") for s in body.sub_agents)


def test_parallel_produces_parallel_agent_with_sub_agents():
    node = PlanNode(
        type=PlanNodeType.PARALLEL,
        steps=[step("fetcher", "fetch data", "data_a"), step("parser", "parse data", "data_b")],
    )
    got = convert(node, noop_loader)
    assert got.type == AgentType.PARALLEL
    assert got.name.startswith("par_")
    assert len(got.sub_agents) == 2


def test_names_are_unique_for_same_role():
    node = PlanNode(
        type=PlanNodeType.SEQUENTIAL,
        steps=[step("coder", "first pass", "out1"), step("coder", "second pass", "out2")],
    )
    got = convert(node, noop_loader)
    name0, name1 = (s.name for s in got.sub_agents)
    assert name0 != name1
    assert name0.startswith("coder_")
    assert name1.startswith("coder_")


def test_instruction_from_template_is_prefixed():
    template = "You are an expert coder."
    instruction = "Focus on performance."
    got = convert(step("coder", instruction, "code_output"), role_loader("coder", template))
    assert got.instruction == template + "\n\n" + instruction


def test_template_only_applies_to_matching_role():
    got = convert(step("writer", "draft", "out"), role_loader("coder", "T"))
    assert got.instruction == "draft"


def test_instruction_without_template_is_used_directly():
    instruction = "Do exactly what the user says."
    got = convert(step("assistant", instruction, "result"), noop_loader)
    assert got.instruction == instruction


def test_none_loader_uses_instruction_directly():
    got = convert(step("assistant", "plain", "result"), None)
    assert got.instruction == "plain"


def test_unknown_type_raises():
    with pytest.raises(ConversionError):
        convert(PlanNode(type="unknown"), noop_loader)


def test_direct_type_is_not_convertible():
    with pytest.raises(ConversionError):
        convert(PlanNode(type=PlanNodeType.DIRECT, response="hi"), noop_loader)


def test_none_node_raises():
    with pytest.raises(ConversionError):
        convert(None, noop_loader)