"""Chat Core 顶层包。

该包提供基于通义千问的聊天服务核心实现，包括配置加载、领域模型、
Provider 适配、带错误拦截的工具系统、LangGraph 工具调用循环
以及 FastAPI HTTP 端点。
"""

from chat_core.api.service import run_chat, run_tool_chat

__all__ = ["run_chat", "run_tool_chat"]
