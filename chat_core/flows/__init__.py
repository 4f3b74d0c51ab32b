from chat_core.flows.runner import AgentRunResult, bind_tools, run_tool_agent

__all__ = ["AgentRunResult", "bind_tools", "run_tool_agent"]
