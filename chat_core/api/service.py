"""对外 API 服务模块。

提供与 HTTP 框架无关的函数接口：校验消息、检查凭证、调用模型，
并返回 {"content": ...} 形式的结果。异常统一使用 domain.exceptions
中的类型，由 HTTP 层映射为状态码。
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional
from uuid import uuid4

from chat_core.config.settings import MIN_API_KEY_LENGTH, Settings, settings
from chat_core.domain.exceptions import ConfigurationError
from chat_core.domain.messages import to_chat_messages
from chat_core.domain.models import ChatRequest
from chat_core.flows.runner import bind_tools, run_tool_agent
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_provider
from chat_core.providers.base import ProviderClient
from chat_core.providers.tongyi_client import INVALID_API_KEY, MISSING_API_KEY
from chat_core.tools.builtin import default_tools
from chat_core.tools.definitions import Tool


def _require_credentials(cfg: Settings) -> None:
    api_key = getattr(cfg, "alibaba_api_key", None)
    if not api_key:
        raise ConfigurationError(code="MISSING_API_KEY", message=MISSING_API_KEY)
    if len(api_key.strip()) < MIN_API_KEY_LENGTH:
        raise ConfigurationError(code="INVALID_API_KEY", message=INVALID_API_KEY)


def _resolve_provider(
    cfg: Settings,
    provider: Optional[ProviderClient],
    provider_factory: Optional[Callable[[], ProviderClient]],
) -> ProviderClient:
    if provider is not None:
        return provider
    if provider_factory is not None:
        return provider_factory()
    return create_provider(cfg=cfg)


def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
    payload = dict(log_ctx)
    payload.update(fields)
    logger.log(level, message, extra={"extra": payload})


def run_chat(
    records: Any,
    cfg: Optional[Settings] = None,
    provider: Optional[ProviderClient] = None,
    provider_factory: Optional[Callable[[], ProviderClient]] = None,
) -> Dict[str, str]:
    """普通聊天：不绑定工具，单次调用模型。

    Args:
        records: 浏览器传来的 [{role, content}] 列表
        cfg: 配置（缺省使用全局 settings）
        provider: Provider 实例（缺省按配置创建）
        provider_factory: 延迟创建 Provider 的函数，在校验通过后才调用

    Returns:
        {"content": 模型回答}

    Raises:
        InvalidRequestError: 消息为空或格式错误
        ConfigurationError: 未配置 ALIBABA_API_KEY 或 Key 明显无效
        ProviderError: 远端模型服务失败
    """
    cfg = cfg or settings
    log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "endpoint": "chat"}
    messages = to_chat_messages(records)
    _require_credentials(cfg)
    provider = _resolve_provider(cfg, provider, provider_factory)

    start_time = time.time()
    _log(logging.INFO, "Calling provider", log_ctx, provider=provider.name, message_count=len(messages))
    result = provider.chat(ChatRequest(provider=provider.name, model=cfg.chat_model, messages=messages))
    _log(
        logging.INFO,
        "Completed chat",
        log_ctx,
        elapsed_seconds=round(time.time() - start_time, 2),
        total_tokens=result.usage.total_tokens if result.usage else None,
    )
    return {"content": result.message.content or ""}


def run_tool_chat(
    records: Any,
    cfg: Optional[Settings] = None,
    provider: Optional[ProviderClient] = None,
    provider_factory: Optional[Callable[[], ProviderClient]] = None,
    tools: Optional[Iterable[Tool]] = None,
) -> Dict[str, str]:
    """工具聊天：绑定工具后运行 Agent 循环，返回最后一条助手消息。

    Raises:
        InvalidRequestError: 消息为空或格式错误
        ConfigurationError: 未配置 ALIBABA_API_KEY 或 Key 明显无效
        CapabilityError: 模型不支持或无法绑定工具（此时不会调用模型）
        ProviderError: 远端模型服务失败
    """
    cfg = cfg or settings
    log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "endpoint": "tools"}
    messages = to_chat_messages(records)
    _require_credentials(cfg)
    provider = _resolve_provider(cfg, provider, provider_factory)
    tool_list = list(tools) if tools is not None else default_tools()

    bound = bind_tools(provider, tool_list, cfg.agent_model)
    start_time = time.time()
    _log(
        logging.INFO,
        "Running tool agent",
        log_ctx,
        provider=provider.name,
        tools=[t.name for t in tool_list],
        message_count=len(messages),
        max_rounds=cfg.max_tool_rounds,
    )
    run = run_tool_agent(bound, tool_list, messages, max_rounds=cfg.max_tool_rounds)
    _log(
        logging.INFO,
        "Completed tool agent",
        log_ctx,
        elapsed_seconds=round(time.time() - start_time, 2),
        rounds=run.rounds,
        forced_final=run.forced_final,
    )
    return {"content": run.content}
