from agentorch.models import AgentDefinition, MCPConfig, MCPServerConfig


def test_agent_definition_defaults_are_empty():
    definition = AgentDefinition(name="demo_agent")
    assert definition.name == "demo_agent"
    assert definition.instruction == ""
    assert definition.model_id == ""


def test_agent_definition_equality():
    a = AgentDefinition("demo_agent", "be helpful", "gemini-2.0-flash")
    b = AgentDefinition("demo_agent", "be helpful", "gemini-2.0-flash")
    assert a == b


def test_mcp_server_config_mutable_defaults_are_independent():
    first = MCPServerConfig(name="first", command="cmd1")
    second = MCPServerConfig(name="second", command="cmd2")
    first.args.append("server.js")
    first.env["DEBUG"] = "1"
    assert second.args == []
    assert second.env == {}
    assert first.args == ["server.js"]


def test_mcp_config_preserves_server_order():
    servers = [MCPServerConfig("first", "cmd1"), MCPServerConfig("second", "cmd2")]
    cfg = MCPConfig(servers=servers)
    assert [s.name for s in cfg.servers] == ["first", "second"]


def test_mcp_config_default_is_empty_and_independent():
    a = MCPConfig()
    b = MCPConfig()
    a.servers.append(MCPServerConfig("srv", "bin"))
    assert b.servers == []
    assert len(a.servers) == 1