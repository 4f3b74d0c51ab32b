"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口与工具绑定句柄 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供厂商的具体实现 (tongyi_client)。
"""

from typing import Optional

from chat_core.config.settings import Settings, settings
from chat_core.providers.base import ProviderClient, ToolBoundModel
from chat_core.providers.registry import get_provider_config
from chat_core.providers.tongyi_client import TongyiClient


def create_provider(name: Optional[str] = None, cfg: Optional[Settings] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    cfg = cfg or settings
    provider_cfg = get_provider_config(name or getattr(cfg, "default_provider", "tongyi"))
    if provider_cfg.name == "tongyi":
        return TongyiClient(cfg)
    raise KeyError(f"Provider {provider_cfg.name!r} has no client")


__all__ = [
    "ProviderClient",
    "ToolBoundModel",
    "TongyiClient",
    "create_provider",
]
