"""Plan, execute, evaluate and respond: an orchestration core for LLM agent trees."""

__version__ = "0.1.0"