import pytest

from leena_core.agents.relay import ChatRelay, Deadline, RelayConfig, ToolAugmentedRelay
from leena_core.domain.exceptions import ApiError, InvalidRequest, NetworkError, ProviderFailure
from leena_core.domain.models import ChatResult, Message, TextSegment, ToolResultSegment, ToolUseSegment
from leena_core.tests.fakes import FakeSearch, ScriptedProvider, search_request_result, text_result


def chat_config(**kw):
    return RelayConfig(model="leena-chat", max_tokens=1000, **kw)


def tool_config(**kw):
    kw.setdefault("max_duration", 60.0)
    return RelayConfig(model="leena-chat", max_tokens=4000, search_model="web-search", **kw)


def conversation():
    return [
        Message.text("user", "hey leena"),
        Message.text("assistant", "heyy, what's up?"),
        Message.text("user", "i keep getting panic attacks before exams"),
    ]


def test_chat_relay_returns_first_text():
    provider = ScriptedProvider(text_result("that sounds rough 😔"))
    relay = ChatRelay(provider, chat_config())
    reply = relay.reply(conversation())
    assert reply.text == "that sounds rough 😔"
    assert reply.trace_id.startswith("tr-")
    assert len(provider.requests) == 1
    req = provider.requests[0]
    assert req.tools is None
    assert req.max_tokens == 1000
    assert req.temperature == 1.0
    assert req.messages == conversation()
    assert req.system.startswith("You're Leena")
    assert "web_search" not in req.system


def test_chat_relay_skips_leading_non_text_segment():
    result = ChatResult(
        provider="fake",
        model="leena-chat",
        content=[ToolUseSegment(id="x", name="other", input={}), TextSegment(text="hi")],
    )
    relay = ChatRelay(ScriptedProvider(result), chat_config())
    assert relay.reply(conversation()).text == "hi"


def test_chat_relay_never_returns_empty_text():
    empty = ChatResult(provider="fake", model="leena-chat", content=[])
    relay = ChatRelay(ScriptedProvider(empty), chat_config())
    with pytest.raises(ProviderFailure) as exc:
        relay.reply(conversation())
    assert exc.value.code == "EMPTY_RESPONSE"

    blank = ChatRelay(ScriptedProvider(text_result("   ")), chat_config())
    with pytest.raises(ProviderFailure):
        blank.reply(conversation())


def test_chat_relay_rejects_empty_conversation():
    provider = ScriptedProvider()
    relay = ChatRelay(provider, chat_config())
    with pytest.raises(InvalidRequest):
        relay.reply([])
    assert provider.requests == []


def test_chat_relay_propagates_provider_error_without_retry():
    provider = ScriptedProvider(NetworkError(code="NETWORK_ERROR", message="boom"), text_result("never"))
    relay = ChatRelay(provider, chat_config())
    with pytest.raises(NetworkError):
        relay.reply(conversation())
    assert len(provider.requests) == 1


def test_tool_relay_direct_answer_makes_one_call():
    provider = ScriptedProvider(text_result("you got this 💪"))
    search = FakeSearch("unused")
    relay = ToolAugmentedRelay(provider, search, tool_config())
    reply = relay.reply(conversation())
    assert reply.text == "you got this 💪"
    assert reply.tool_calls == []
    assert len(provider.requests) == 1
    assert search.requests == []
    req = provider.requests[0]
    assert [t.name for t in req.tools] == ["web_search"]
    assert req.max_tokens == 4000
    assert "web_search tool" in req.system


def test_tool_relay_runs_search_then_requeries_model():
    first = search_request_result("panic attack coping techniques", call_id="toolu_42")
    provider = ScriptedProvider(first, text_result("try box breathing, 4 counts each"))
    search = FakeSearch("Box breathing and grounding (5-4-3-2-1) help.")
    relay = ToolAugmentedRelay(provider, search, tool_config())

    reply = relay.reply(conversation())

    assert reply.text == "try box breathing, 4 counts each"
    assert [c.arguments for c in reply.tool_calls] == [{"query": "panic attack coping techniques"}]
    assert len(search.requests) == 1
    assert search.requests[0].query == "panic attack coping techniques"
    assert search.requests[0].system == "Be precise and concise."
    assert search.requests[0].model == "web-search"

    assert len(provider.requests) == 2
    second = provider.requests[1]
    original = conversation()
    assert second.messages[: len(original)] == original
    assert len(second.messages) == len(original) + 2
    assistant_turn, result_turn = second.messages[-2:]
    assert assistant_turn.role == "assistant"
    assert list(assistant_turn.content) == first.content
    assert result_turn.role == "user"
    assert result_turn.content == (
        ToolResultSegment(tool_use_id="toolu_42", content="Box breathing and grounding (5-4-3-2-1) help."),
    )
    assert second.system == provider.requests[0].system
    assert [t.name for t in second.tools] == ["web_search"]
    assert reply.usage.input_tokens == 22


def test_tool_relay_search_failure_stops_orchestration():
    provider = ScriptedProvider(search_request_result("therapists near me"), text_result("never"))
    search = FakeSearch(error=ApiError(code="API_ERROR", message="search down"))
    relay = ToolAugmentedRelay(provider, search, tool_config())
    with pytest.raises(ApiError):
        relay.reply(conversation())
    assert len(provider.requests) == 1


def test_tool_relay_rejects_second_tool_request():
    provider = ScriptedProvider(
        search_request_result("panic attack coping techniques"),
        search_request_result("more", call_id="toolu_02"),
    )
    relay = ToolAugmentedRelay(provider, FakeSearch("results"), tool_config())
    with pytest.raises(ProviderFailure) as exc:
        relay.reply(conversation())
    assert exc.value.code == "TOOL_ROUND_LIMIT"
    assert len(provider.requests) == 2


def test_tool_relay_rejects_missing_query():
    bad = ChatResult(
        provider="fake",
        model="leena-chat",
        content=[ToolUseSegment(id="toolu_1", name="web_search", input={})],
    )
    provider = ScriptedProvider(bad)
    search = FakeSearch("x")
    relay = ToolAugmentedRelay(provider, search, tool_config())
    with pytest.raises(ProviderFailure) as exc:
        relay.reply(conversation())
    assert exc.value.code == "BAD_TOOL_INPUT"
    assert search.requests == []


def test_tool_relay_ignores_other_tool_names():
    result = ChatResult(
        provider="fake",
        model="leena-chat",
        content=[TextSegment(text="sure"), ToolUseSegment(id="t", name="calendar", input={})],
    )
    search = FakeSearch("x")
    relay = ToolAugmentedRelay(ScriptedProvider(result), search, tool_config())
    assert relay.reply(conversation()).text == "sure"
    assert search.requests == []


class StepClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now


def test_deadline_caps_timeouts_and_expires():
    clock = StepClock()
    deadline = Deadline(60.0, clock)
    assert deadline.timeout_for(30.0) == 30.0
    clock.now = 45.0
    assert deadline.timeout_for(30.0) == pytest.approx(15.0)
    clock.now = 61.0
    with pytest.raises(ProviderFailure) as exc:
        deadline.timeout_for(30.0, "web_search")
    assert exc.value.code == "DEADLINE_EXCEEDED"


def test_unbounded_deadline_uses_default():
    assert Deadline(None).timeout_for(12.0) == 12.0


def test_tool_relay_deadline_blocks_second_model_call():
    clock = StepClock()

    class SlowSearch(FakeSearch):
        def complete(self, req):
            clock.now = 100.0
            return super().complete(req)

    provider = ScriptedProvider(search_request_result("q"), text_result("late"))
    search = SlowSearch("results")
    relay = ToolAugmentedRelay(provider, search, tool_config(max_duration=60.0), clock=clock)
    with pytest.raises(ProviderFailure) as exc:
        relay.reply(conversation())
    assert exc.value.code == "DEADLINE_EXCEEDED"
    assert len(provider.requests) == 1
    assert search.requests[0].timeout == 30.0


def test_each_relay_defaults_to_its_own_persona():
    chat = ChatRelay(ScriptedProvider(), chat_config())
    tools = ToolAugmentedRelay(ScriptedProvider(), FakeSearch(), tool_config())
    assert "web_search" not in chat.system_prompt
    assert "over 100 characters" in chat.system_prompt
    assert "web_search tool" in tools.system_prompt
    assert "over 150 characters" in tools.system_prompt
    assert "🤔" not in tools.system_prompt


def test_explicit_persona_overrides_relay_default():
    from leena_core.prompts import PersonaOptions

    relay = ToolAugmentedRelay(
        ScriptedProvider(),
        FakeSearch(),
        tool_config(persona=PersonaOptions(max_reply_chars=200, enable_search=True)),
    )
    assert "over 200 characters" in relay.system_prompt


def test_tool_relay_tolerates_null_token_counts(monkeypatch):
    from leena_core.providers.anthropic_client import AnthropicClient

    bodies = [
        {
            "content": [{"type": "tool_use", "id": "toolu_1", "name": "web_search", "input": {"query": "q"}}],
            "stop_reason": "tool_use",
            "usage": {"input_tokens": None, "output_tokens": 3},
        },
        {
            "content": [{"type": "text", "text": "breathe with me"}],
            "usage": {"input_tokens": 10, "output_tokens": 5},
        },
    ]

    class Resp:
        status_code = 200
        text = ""

        def __init__(self, data):
            self._data = data

        def json(self):
            return self._data

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, *a, **kw):
            return Resp(bodies.pop(0))

    class SettingsStub:
        anthropic_api_key = "sk-ant-test-key"
        anthropic_base_url = "https://api.anthropic.com/v1"
        anthropic_version = "2023-06-01"
        http_timeout = 1.0

    monkeypatch.setattr("httpx.Client", Client)
    relay = ToolAugmentedRelay(AnthropicClient(SettingsStub()), FakeSearch("results"), tool_config())
    reply = relay.reply(conversation())
    assert reply.text == "breathe with me"
    assert reply.usage.input_tokens == 10
    assert reply.usage.output_tokens == 8
