"""High-level entry points for the tool-calling agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from chat_core.domain.exceptions import CapabilityError
from chat_core.domain.models import ChatMessage
from chat_core.flows.graph import build_graph
from chat_core.flows.state import AgentState
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import ProviderClient, ToolBoundModel
from chat_core.tools.definitions import Tool, ToolResult
from chat_core.tools.executor import ToolExecutor, ToolMiddleware

DEFAULT_MAX_ROUNDS = 8


@dataclass
class AgentRunResult:
    """一次 Agent 调用产生的完整消息轨迹。"""

    messages: List[ChatMessage]
    rounds: int = 0
    forced_final: bool = False

    @property
    def content(self) -> str:
        """最后一条助手消息的文本，即展示给用户的回答。"""

        for msg in reversed(self.messages):
            if msg.role == "assistant":
                return msg.content or ""
        return ""

    @property
    def tool_results(self) -> List[ToolResult]:
        return [
            ToolResult(call_id=m.tool_call_id or "", content=m.content)
            for m in self.messages
            if m.role == "tool"
        ]


def bind_tools(model: ProviderClient, tools: Iterable[Tool], model_name: str) -> ToolBoundModel:
    """把工具绑定到模型上。

    Raises:
        CapabilityError: 模型句柄没有 bind_tools 能力，或绑定时抛出异常。
            两种情况都不会调用模型。
    """

    binder = getattr(model, "bind_tools", None)
    if not callable(binder):
        raise CapabilityError(
            code="TOOLS_UNSUPPORTED",
            message="当前模型客户端不支持工具调用功能（缺少 bind_tools）。",
            details=f"Provider {getattr(model, 'name', type(model).__name__)!r} 没有实现 bind_tools",
            suggestion="或者暂时使用 /chat 端点（不支持工具调用）",
        )
    try:
        return binder([t.definition for t in tools], model_name)
    except Exception as exc:
        logger.error("bind_tools.failed", extra={"extra": {"model": model_name, "error": str(exc)}})
        raise CapabilityError(
            code="TOOL_BIND_FAILED",
            message=f"工具绑定失败: {exc}",
            details="请确认所选模型支持 function calling（如 qwen-plus、qwen-max）",
        ) from exc


def run_tool_agent(
    model: ToolBoundModel,
    tools: Iterable[Tool],
    messages: List[ChatMessage],
    *,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
    middleware: Optional[List[ToolMiddleware]] = None,
) -> AgentRunResult:
    """执行 模型 → 工具 → 模型 … 循环直到模型不再请求工具。

    Args:
        model: 已绑定工具的模型句柄
        tools: 可执行的工具（名称需与绑定时一致）
        messages: 对话历史，按时间顺序
        max_rounds: 最多执行的工具轮数，达到后强制模型直接回答
        middleware: 工具调用中间件，默认只有 handle_tool_errors
    """

    executor = ToolExecutor(tools, middleware)
    graph = build_graph(model, executor)
    state: AgentState = {
        "messages": list(messages),
        "rounds": 0,
        "max_rounds": max_rounds,
        "forced_final": False,
    }
    # 每轮占用 model + tools 两步，再加上强制回答与余量
    result = graph.invoke(state, config={"recursion_limit": 2 * max_rounds + 5})
    return AgentRunResult(
        messages=result.get("messages", []),
        rounds=result.get("rounds", 0),
        forced_final=result.get("forced_final", False),
    )
