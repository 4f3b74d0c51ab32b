"""Provider 与模型配置。

本模块将"逻辑模型名"与"具体厂商模型名"解耦：

- 逻辑名（logical_name）：在代码里使用的统一名称，例如 "chat"、"agent"。
- provider_model：厂商实际提供的模型 ID，例如 "qwen-max"。

上层只关心逻辑名，具体用哪个底层模型由这里集中配置。"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: Optional[int]
    default_temperature: float
    supports_tools: bool = True


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


# 通义千问配置：普通聊天用 qwen-max，工具调用用 qwen-plus
TONGYI_CONFIG = ProviderConfig(
    name="tongyi",
    base_url="https://dashscope.aliyuncs.com/compatible-mode/v1",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="qwen-max",
            max_tokens=None,
            default_temperature=0.7,
        ),
        "agent": ModelConfig(
            logical_name="agent",
            provider_model="qwen-plus",
            max_tokens=1000,
            default_temperature=0.1,
        ),
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "tongyi": TONGYI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def get_model_config(provider: ProviderConfig, logical_name: str) -> ModelConfig:
    """查找逻辑模型；未登记的名字视为厂商模型 ID 直接透传。"""

    cfg = provider.models.get(logical_name)
    if cfg is not None:
        return cfg
    return ModelConfig(
        logical_name=logical_name,
        provider_model=logical_name,
        max_tokens=None,
        default_temperature=0.7,
    )
