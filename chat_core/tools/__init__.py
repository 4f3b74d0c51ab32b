"""工具系统：定义、内置工具与带错误拦截的执行器。"""

from chat_core.tools.builtin import default_tools
from chat_core.tools.definitions import Tool, ToolCall, ToolDef, ToolParam, ToolResult, param, tool
from chat_core.tools.executor import ToolExecutor, handle_tool_errors

__all__ = [
    "Tool",
    "ToolCall",
    "ToolDef",
    "ToolParam",
    "ToolResult",
    "ToolExecutor",
    "default_tools",
    "handle_tool_errors",
    "param",
    "tool",
]
