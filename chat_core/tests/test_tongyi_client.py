import httpx
import pytest

from chat_core.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from chat_core.domain.models import ChatMessage, ChatRequest
from chat_core.flows import bind_tools, run_tool_agent
from chat_core.providers.base import ToolBoundModel
from chat_core.providers.registry import TONGYI_CONFIG, ModelConfig
from chat_core.providers.tongyi_client import TongyiClient
from chat_core.tools import default_tools


class SettingsStub:
    alibaba_api_key = "sk-test-0123456789"
    http_timeout = 1.0
    tongyi_base_url = "https://dashscope.example.com/compatible-mode/v1"


class Resp:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


def fake_client(monkeypatch, resp=None, captured=None, error=None):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None, **_):
            if captured is not None:
                captured["url"] = url
                captured["payload"] = json
                captured["headers"] = headers
            if error is not None:
                raise error
            return resp

    monkeypatch.setattr("httpx.Client", Client)


def _req(model="chat", **kw):
    return ChatRequest(provider="tongyi", model=model, messages=[ChatMessage(role="user", content="hi")], **kw)


def test_tongyi_client_parse_basic(monkeypatch):
    captured = {}
    data = {
        "choices": [{"message": {"role": "assistant", "content": "ok"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }
    fake_client(monkeypatch, Resp(data=data), captured)
    res = TongyiClient(SettingsStub()).chat(_req())
    assert res.message.content == "ok"
    assert res.usage.total_tokens == 2
    assert captured["url"] == "https://dashscope.example.com/compatible-mode/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test-0123456789"
    payload = captured["payload"]
    assert payload["model"] == "qwen-max"
    assert payload["temperature"] == 0.7
    assert "tools" not in payload and "max_tokens" not in payload


def test_tongyi_client_tools_payload(monkeypatch):
    captured = {}
    fake_client(monkeypatch, Resp(data={"choices": [], "usage": {}}), captured)
    client = TongyiClient(SettingsStub())
    bound = client.bind_tools([t.definition for t in default_tools()], "agent")
    assert isinstance(bound, ToolBoundModel)
    res = bound.chat(_req(model="ignored", tool_choice="none"))
    assert res.message.content == ""
    payload = captured["payload"]
    assert payload["model"] == "qwen-plus"
    assert payload["max_tokens"] == 1000
    assert payload["temperature"] == 0.1
    assert payload["tool_choice"] == "none"
    names = [t["function"]["name"] for t in payload["tools"]]
    assert names == ["search", "get_weather", "search_database"]
    db = payload["tools"][2]["function"]["parameters"]
    assert db["required"] == ["query", "limit"]
    assert db["properties"]["limit"] == {"type": "number", "description": "Maximum number of results to return"}


def test_tongyi_client_parse_tool_calls(monkeypatch):
    data = {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {"id": "call_1", "function": {"name": "search", "arguments": '{"query": "天气"}'}},
                        {"function": {"name": "get_weather", "arguments": "{bad"}},
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ],
    }
    fake_client(monkeypatch, Resp(data=data))
    msg = TongyiClient(SettingsStub()).chat(_req()).message
    assert msg.content == ""
    first, second = msg.tool_calls
    assert (first.id, first.name, first.arguments) == ("call_1", "search", {"query": "天气"})
    assert second.id.startswith("call_")
    assert second.id != first.id
    assert second.arguments == {"_raw": "{bad"}


def test_tool_trace_serialized_back(monkeypatch):
    captured = {}
    fake_client(monkeypatch, Resp(data={"choices": []}), captured)
    from chat_core.tools import ToolCall

    req = ChatRequest(
        provider="tongyi",
        model="agent",
        messages=[
            ChatMessage(role="user", content="查一下"),
            ChatMessage(role="assistant", content="", tool_calls=[ToolCall(id="c1", name="search", arguments={"query": "猫"})]),
            ChatMessage(role="tool", content="Results for: 猫", tool_call_id="c1"),
        ],
    )
    TongyiClient(SettingsStub()).chat(req)
    msgs = captured["payload"]["messages"]
    assert msgs[1]["tool_calls"][0]["function"] == {"name": "search", "arguments": '{"query": "猫"}'}
    assert msgs[2] == {"role": "tool", "content": "Results for: 猫", "tool_call_id": "c1"}


def test_missing_api_key(monkeypatch):
    class NoKey(SettingsStub):
        alibaba_api_key = None

    fake_client(monkeypatch, error=AssertionError("should not send"))
    with pytest.raises(ConfigurationError) as exc:
        TongyiClient(NoKey()).chat(_req())
    assert "ALIBABA_API_KEY" in exc.value.message
    assert exc.value.http_status == 500


def test_rate_limit(monkeypatch):
    fake_client(monkeypatch, Resp(status_code=429, data={"error": {"message": "Requests rate limit exceeded"}}))
    with pytest.raises(RateLimitError) as exc:
        TongyiClient(SettingsStub()).chat(_req())
    assert exc.value.message == "Requests rate limit exceeded"


def test_api_error_passes_message_through(monkeypatch):
    fake_client(monkeypatch, Resp(status_code=401, data={"error": {"message": "Incorrect API key provided."}}))
    with pytest.raises(ApiError) as exc:
        TongyiClient(SettingsStub()).chat(_req())
    assert exc.value.message == "Incorrect API key provided."
    assert exc.value.http_status == 500
    assert exc.value.extra["upstream_status"] == 401


def test_api_error_plain_text(monkeypatch):
    fake_client(monkeypatch, Resp(status_code=502, text="Bad Gateway"))
    with pytest.raises(ApiError) as exc:
        TongyiClient(SettingsStub()).chat(_req())
    assert exc.value.message == "Bad Gateway"


def test_network_error(monkeypatch):
    fake_client(monkeypatch, error=httpx.ConnectError("connection refused"))
    with pytest.raises(NetworkError) as exc:
        TongyiClient(SettingsStub()).chat(_req())
    assert "connection refused" in exc.value.message


def test_bind_tools_rejects_models_without_function_calling(monkeypatch):
    monkeypatch.setitem(
        TONGYI_CONFIG.models,
        "vision",
        ModelConfig(
            logical_name="vision",
            provider_model="qwen-vl-max",
            max_tokens=None,
            default_temperature=0.7,
            supports_tools=False,
        ),
    )
    with pytest.raises(ValueError):
        TongyiClient(SettingsStub()).bind_tools([], "vision")


def test_tool_calls_without_ids_get_unique_ids_across_rounds(monkeypatch):
    def call_without_id(query):
        return {"function": {"name": "search", "arguments": f'{{"query": "{query}"}}'}}

    replies = [
        Resp(data={"choices": [{"message": {"role": "assistant", "content": None, "tool_calls": [call_without_id("杭州")]}}]}),
        Resp(data={"choices": [{"message": {"role": "assistant", "content": None, "tool_calls": [call_without_id("北京")]}}]}),
        Resp(data={"choices": [{"message": {"role": "assistant", "content": "两地都查到了"}}]}),
    ]

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None, **_):
            return replies.pop(0)

    monkeypatch.setattr("httpx.Client", Client)
    tools = default_tools()
    bound = bind_tools(TongyiClient(SettingsStub()), tools, "agent")
    result = run_tool_agent(bound, tools, [ChatMessage(role="user", content="查一下杭州和北京")])

    assert result.content == "两地都查到了"
    assert result.rounds == 2
    call_ids = [c.id for m in result.messages if m.tool_calls for c in m.tool_calls]
    result_ids = [m.tool_call_id for m in result.messages if m.role == "tool"]
    assert len(call_ids) == 2
    assert len(set(call_ids)) == 2
    assert result_ids == call_ids
