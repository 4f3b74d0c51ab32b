import pytest

from chat_core.providers import create_provider
from chat_core.providers.registry import get_model_config, get_provider_config, TONGYI_CONFIG
from chat_core.providers.tongyi_client import TongyiClient


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "tongyi"
        alibaba_api_key = "sk-test-0123456789"
        http_timeout = 1.0
        tongyi_base_url = "https://dashscope.aliyuncs.com/compatible-mode/v1"

    monkeypatch.setattr("chat_core.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, TongyiClient)
    assert provider.name == "tongyi"


def test_create_provider_explicit_is_case_insensitive():
    assert isinstance(create_provider("Tongyi"), TongyiClient)


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("kimi")


def test_model_registry():
    assert get_provider_config("TONGYI") is TONGYI_CONFIG
    assert get_model_config(TONGYI_CONFIG, "chat").provider_model == "qwen-max"
    assert get_model_config(TONGYI_CONFIG, "agent").provider_model == "qwen-plus"
    raw = get_model_config(TONGYI_CONFIG, "qwen-turbo")
    assert raw.provider_model == "qwen-turbo"
    assert raw.supports_tools
