import pytest

from agentorch.agentdef import AgentDefError, AgentLoader, load, truncate


def write_prompt(base, name, content):
    directory = base / "agents" / name
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "agent.prompt").write_text(content, encoding="utf-8")
    return base


def test_load_collects_system_text_as_instruction(tmp_path):
    write_prompt(tmp_path, "demo_agent", '{{role "system"}}\nYou are helpful.\n')
    definition = load(tmp_path, "demo_agent")
    assert definition.name == "demo_agent"
    assert definition.instruction == "You are helpful."


def test_load_strips_provider_prefix_from_model(tmp_path):
    write_prompt(
        tmp_path,
        "demo_agent",
        '---\nmodel: googleai/gemini-2.0-flash\n---\n{{role "system"}}\nHi\n',
    )
    assert load(tmp_path, "demo_agent").model_id == "gemini-2.0-flash"


def test_load_keeps_model_without_prefix(tmp_path):
    write_prompt(tmp_path, "demo_agent", "---\nmodel: gemini-2.5-flash\n---\nbody\n")
    assert load(tmp_path, "demo_agent").model_id == "gemini-2.5-flash"


def test_load_ignores_user_role_text(tmp_path):
    write_prompt(tmp_path, "demo_agent", "Plain user text without role markers.\n")
    definition = load(tmp_path, "demo_agent")
    assert definition.instruction == ""
    assert definition.model_id == ""


def test_load_joins_multiple_system_blocks(tmp_path):
    write_prompt(
        tmp_path,
        "demo_agent",
        '{{role "system"}}first\n{{role "user"}}ignored\n{{role "system"}}second\n',
    )
    assert load(tmp_path, "demo_agent").instruction == "first\nsecond"


def test_load_renders_input_defaults(tmp_path):
    write_prompt(
        tmp_path,
        "demo_agent",
        '---\ninput:\n  default:\n    name: World\n---\n{{role "system"}}Hello {{name}}\n',
    )
    assert load(tmp_path, "demo_agent").instruction == "Hello World"


def test_load_uses_else_branch_without_data_and_drops_comments(tmp_path):
    write_prompt(
        tmp_path,
        "demo_agent",
        '{{role "system"}}{{! a note }}{{#if topic}}About topic{{else}}General{{/if}}\n',
    )
    definition = load(tmp_path, "demo_agent")
    assert "General" in definition.instruction
    assert "About topic" not in definition.instruction
    assert "note" not in definition.instruction


def test_load_raises_for_missing_file(tmp_path):
    with pytest.raises(AgentDefError, match="reading"):
        load(tmp_path, "absent")


def test_load_raises_for_unclosed_block(tmp_path):
    write_prompt(tmp_path, "demo_agent", '{{role "system"}}{{#if x}}never closed\n')
    with pytest.raises(AgentDefError, match="rendering"):
        load(tmp_path, "demo_agent")


def test_agent_loader_matches_module_load(tmp_path):
    write_prompt(tmp_path, "demo_agent", '{{role "system"}}Same text\n')
    assert AgentLoader().load(tmp_path, "demo_agent") == load(tmp_path, "demo_agent")


def test_truncate_leaves_short_strings_unchanged():
    assert truncate("short", 10) == "short"
    assert truncate("exact", 5) == "exact"


def test_truncate_cuts_long_strings_with_ellipsis():
    result = truncate("abcdef", 3)
    assert result == "abc..."
    assert len(truncate("x" * 300, 200)) == 203
    assert truncate("x" * 300, 200).endswith("...")