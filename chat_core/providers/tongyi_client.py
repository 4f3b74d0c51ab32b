"""通义千问 Provider 适配器（DashScope OpenAI 兼容模式）。

本模块负责：

1. 接收统一的 ChatRequest。
2. 将其转换为 DashScope 兼容模式的 chat/completions 请求格式。
3. 调用 HTTP 接口并把网络/API 异常包装为 ProviderError。
4. 将响应 JSON 解析为统一的 ChatResult / ChatMessage 结构（含工具调用）。

- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>
"""

import json
from typing import Any, Dict, List
from uuid import uuid4

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from chat_core.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage
from chat_core.providers.base import ToolBoundModel
from chat_core.providers.registry import TONGYI_CONFIG, ModelConfig, get_model_config
from chat_core.tools.definitions import ToolCall, ToolDef


MISSING_API_KEY = "API Key 未配置，请设置 ALIBABA_API_KEY"
INVALID_API_KEY = "API Key 格式无效（长度过短），请检查 ALIBABA_API_KEY"


class TongyiClient:
    """通义千问客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - chat: 对外统一调用入口，返回 ChatResult。
    - bind_tools: 返回携带工具定义的 ToolBoundModel。
    """

    name = "tongyi"

    def __init__(self, cfg=settings):
        # Settings 里包含 base_url、api_key、超时等配置
        self._settings = cfg

    def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        步骤：
        1. 读取模型配置（logical model -> provider model）。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并捕获网络错误/限流/服务端错误。
        4. 使用统一的解析函数构造 ChatResult。
        """

        api_key = getattr(self._settings, "alibaba_api_key", None)
        if not api_key:
            raise ConfigurationError(code="MISSING_API_KEY", message=MISSING_API_KEY)
        model_cfg = get_model_config(TONGYI_CONFIG, req.model)
        payload = self._build_payload(req, model_cfg)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                base = getattr(self._settings, "tongyi_base_url", None) or TONGYI_CONFIG.base_url
                resp = client.post(
                    f"{base.rstrip('/')}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=self._error_message(resp) or "Tongyi rate limit")
        if resp.status_code >= 400:
            raise ApiError(
                code="API_ERROR",
                message=self._error_message(resp),
                upstream_status=resp.status_code,
            )
        return self._parse_response(resp.json(), req)

    def bind_tools(self, tools: List[ToolDef], model: str) -> ToolBoundModel:
        """绑定工具；逻辑模型声明不支持工具调用时抛出 ValueError。"""

        model_cfg = get_model_config(TONGYI_CONFIG, model)
        if not model_cfg.supports_tools:
            raise ValueError(f"model {model_cfg.provider_model} does not support tool calling")
        return ToolBoundModel(provider=self, model=model, tools=list(tools))

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig) -> dict:
        """将 ChatRequest 转成 DashScope 所需的请求 JSON。"""

        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": [self._message_to_payload(m) for m in req.messages],
            "temperature": (
                req.temperature if req.temperature is not None else model_cfg.default_temperature
            ),
            "top_p": req.top_p,
        }
        max_tokens = req.max_tokens or model_cfg.max_tokens
        if max_tokens:
            payload["max_tokens"] = max_tokens
        # 工具调用：如果请求中携带了工具定义，则按 OpenAI function 规范转换
        if req.tools:
            payload["tools"] = [self._serialize_tool(t) for t in req.tools]
            payload["tool_choice"] = req.tool_choice
        return payload

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        """将原始响应 JSON 解析为统一的 ChatResult。"""

        choices: list[ChatChoice] = []
        for i, ch in enumerate(data.get("choices", [])):
            msg = ch.get("message") or {}
            cm = self._build_chat_message(msg)
            choices.append(ChatChoice(index=i, message=cm, finish_reason=ch.get("finish_reason")))
        usage_raw = data.get("usage") or {}
        usage = ChatUsage(
            prompt_tokens=usage_raw.get("prompt_tokens", 0),
            completion_tokens=usage_raw.get("completion_tokens", 0),
            total_tokens=usage_raw.get("total_tokens", 0),
        )
        return ChatResult(provider=self.name, model=req.model, choices=choices, usage=usage, raw=data)

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        """把内部的 ToolDef 转成 OpenAI 兼容的 function tool 描述。"""

        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, p in tool.params.items():
            properties[name] = dict(p.schema or {"type": "string"})
            if p.description:
                properties[name]["description"] = p.description
            if p.required:
                required.append(name)
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }

    def _build_chat_message(self, payload: Dict[str, Any]) -> ChatMessage:
        """将单条厂商 message 转换为 ChatMessage，同时解析 tool_calls。"""

        tool_calls: List[ToolCall] = []
        for call in payload.get("tool_calls") or []:
            func = call.get("function") or {}
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"call_{uuid4().hex}",
                    name=func.get("name") or call.get("name") or "",
                    arguments=self._parse_arguments(func.get("arguments")),
                )
            )
        return ChatMessage(
            role=payload.get("role") or "assistant",
            content=payload.get("content") or "",
            tool_calls=tool_calls or None,
            tool_call_id=payload.get("tool_call_id"),
        )

    @staticmethod
    def _parse_arguments(raw: Any) -> Dict[str, Any]:
        """解析工具调用的 arguments 字段。

        兼容模式把 arguments 作为 JSON 字符串返回，这里做一层 json.loads，
        失败时保留原始字符串到 `_raw`，由工具执行器报告参数错误。
        """

        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str):
            if not raw.strip():
                return {}
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                return {"_raw": raw}
            return parsed if isinstance(parsed, dict) else {"_raw": raw}
        return {}

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role, "content": message.content or ""}
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments, ensure_ascii=False),
                    },
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """优先取 {"error": {"message": ...}} 或 {"message": ...}，否则返回原始文本。"""

        try:
            body = resp.json()
        except ValueError:
            return resp.text
        if isinstance(body, dict):
            err = body.get("error")
            if isinstance(err, dict) and err.get("message"):
                return str(err["message"])
            if body.get("message"):
                return str(body["message"])
        return resp.text
