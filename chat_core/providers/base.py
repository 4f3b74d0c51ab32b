"""Provider 抽象接口。

上层 Agent 不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 TongyiClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。
- 支持工具调用的 Provider 额外实现 bind_tools，返回 ToolBoundModel。
"""

from dataclasses import dataclass, replace
from typing import List, Protocol

from chat_core.domain.models import ChatRequest, ChatResult
from chat_core.tools.definitions import ToolDef


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - chat(req): 执行一次非流式对话调用，返回统一的 ChatResult。
    """

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...


@dataclass
class ToolBoundModel:
    """绑定了工具定义的模型句柄。

    每次 chat 都会把绑定的工具写入请求；tool_choice 由调用方决定，
    "none" 表示本轮禁止工具调用。
    """

    provider: ProviderClient
    model: str
    tools: List[ToolDef]

    @property
    def name(self) -> str:
        return self.provider.name

    def chat(self, req: ChatRequest) -> ChatResult:
        return self.provider.chat(replace(req, model=self.model, tools=list(self.tools)))
