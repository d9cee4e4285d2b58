import pytest

from agentorch.agenttree_config import AgentType, ValidationError
from agentorch.config_tree import ConfigTreeError, load, load_file


def write_tree(directory, text):
    (directory / "agenttree.yaml").write_text(text, encoding="utf-8")


def test_load_should_return_none_when_file_missing(tmp_path):
    assert load(tmp_path) is None


def test_load_file_should_return_none_for_missing_path(tmp_path):
    assert load_file(tmp_path / "nope.yaml") is None


def test_load_should_parse_valid_yaml(tmp_path):
    write_tree(
        tmp_path,
        """
version: "1"
defaults:
  model: "test-model"
root:
  name: root
  type: llm
  description: "Root agent"
  sub_agents:
    - name: worker
      type: llm
      description: "Worker"
      output_key: draft
""",
    )
    cfg = load(tmp_path)
    assert cfg.version == "1"
    assert cfg.defaults.model == "test-model"
    assert cfg.root.name == "root"
    assert cfg.root.type == AgentType.LLM
    assert len(cfg.root.sub_agents) == 1
    assert cfg.root.sub_agents[0].output_key == "draft"


def test_load_should_reject_invalid_yaml(tmp_path):
    write_tree(tmp_path, "{{invalid")
    with pytest.raises(ConfigTreeError, match="parsing"):
        load(tmp_path)


def test_load_should_reject_invalid_config(tmp_path):
    write_tree(
        tmp_path,
        """
version: ""
root:
  name: root
  type: llm
""",
    )
    with pytest.raises(ConfigTreeError, match="validating") as excinfo:
        load(tmp_path)
    cause = excinfo.value.__cause__
    assert isinstance(cause, ValidationError)
    assert cause.field == "version"


def test_load_should_parse_complex_nested_tree(tmp_path):
    write_tree(
        tmp_path,
        """
version: "1"
defaults:
  model: "gemini-3-flash"
root:
  name: root
  type: llm
  description: "Root"
  sub_agents:
    - name: per_workflow
      type: sequential
      description: "Plan-Execute-Report"
      sub_agents:
        - name: planner
          type: llm
          output_key: plan
        - name: loop
          type: loop
          max_iterations: 3
          sub_agents:
            - name: worker
              type: llm
              output_key: draft
            - name: evaluator
              type: llm
              output_key: evaluation
        - name: reporter
          type: llm
          output_key: summary
""",
    )
    cfg = load(tmp_path)
    assert len(cfg.root.sub_agents) == 1
    per = cfg.root.sub_agents[0]
    assert per.type == AgentType.SEQUENTIAL
    assert len(per.sub_agents) == 3
    loop = per.sub_agents[1]
    assert loop.type == AgentType.LOOP
    assert loop.max_iterations == 3


def test_load_should_reject_empty_file(tmp_path):
    write_tree(tmp_path, "")
    with pytest.raises(ConfigTreeError, match="validating"):
        load(tmp_path)