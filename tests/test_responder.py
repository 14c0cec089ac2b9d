import json

import httpx
import pytest

from napcat_ai_chat.config import Config, DEFAULT_SYSTEM_PROMPT
from napcat_ai_chat.history import HistoryStore
from napcat_ai_chat.responder import CONFIG_INCOMPLETE_REPLY, EMPTY_REPLY, AIResponder

API_URL = "https://ai.example.com/v1/chat/completions"


class RecordingHandler:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last_body(self):
        return json.loads(self.requests[-1].content)


def make_responder(handler, history=None):
    return AIResponder(history or HistoryStore(), transport=httpx.MockTransport(handler))


def make_config(**overrides):
    values = {"api_url": API_URL, "api_key": "sk-test", "chat_model": "test-model"}
    values.update(overrides)
    return Config(**values)


def completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.mark.asyncio
async def test_missing_key_returns_config_message_without_request():
    handler = RecordingHandler(completion("unused"))
    responder = make_responder(handler)
    assert await responder.respond(make_config(api_key=""), "123", "hi") == CONFIG_INCOMPLETE_REPLY
    assert await responder.respond(make_config(api_url=""), "123", "hi") == CONFIG_INCOMPLETE_REPLY
    assert handler.requests == []


@pytest.mark.asyncio
async def test_successful_reply_and_request_shape():
    handler = RecordingHandler(completion("  回答内容  "))
    responder = make_responder(handler)

    reply = await responder.respond(make_config(system_prompt="你是猫娘"), "123", "你好")

    assert reply == "  回答内容  "
    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == API_URL
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"] == "application/json"
    assert handler.last_body == {
        "model": "test-model",
        "messages": [
            {"role": "system", "content": "你是猫娘"},
            {"role": "user", "content": "你好"},
        ],
        "temperature": 0.7,
    }


@pytest.mark.asyncio
async def test_history_is_truncated_to_context_length():
    history = HistoryStore()
    for i in range(6):
        history.append("123", "user" if i % 2 == 0 else "assistant", f"turn {i}")
    handler = RecordingHandler(completion("ok"))
    responder = make_responder(handler, history)

    await responder.respond(make_config(context_length=2, system_prompt=""), "123", "new")

    messages = handler.last_body["messages"]
    assert messages == [
        {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
        {"role": "user", "content": "turn 4"},
        {"role": "assistant", "content": "turn 5"},
        {"role": "user", "content": "new"},
    ]
    # the responder never writes history itself
    assert len(history.read_recent("123", 100)) == 6


@pytest.mark.asyncio
async def test_http_error_status():
    responder = make_responder(RecordingHandler(httpx.Response(500, text="boom")))
    reply = await responder.respond(make_config(), "123", "hi")
    assert reply == "AI API请求失败 (500): Internal Server Error"


@pytest.mark.asyncio
async def test_error_payload_with_and_without_message():
    responder = make_responder(RecordingHandler(httpx.Response(200, json={"error": {"message": "quota exceeded"}})))
    assert await responder.respond(make_config(), "123", "hi") == "AI API错误: quota exceeded"

    responder = make_responder(RecordingHandler(httpx.Response(200, json={"error": {"code": 42}})))
    assert await responder.respond(make_config(), "123", "hi") == 'AI API错误: {"code": 42}'


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        [1, 2],
        {"choices": {"0": 1}},
        {"choices": [{}]},
        {"choices": [None]},
        {"choices": [{"message": None}]},
        {"choices": [{"message": {"role": "assistant"}}]},
        {"choices": [{"message": {"content": None}}]},
    ],
)
async def test_empty_or_malformed_choices(body):
    responder = make_responder(RecordingHandler(httpx.Response(200, json=body)))
    assert await responder.respond(make_config(), "123", "hi") == EMPTY_REPLY


@pytest.mark.asyncio
async def test_network_and_parse_failures_become_text():
    request = httpx.Request("POST", API_URL)
    responder = make_responder(RecordingHandler(error=httpx.ConnectError("connection refused", request=request)))
    assert await responder.respond(make_config(), "123", "hi") == "AI回复失败: connection refused"

    responder = make_responder(RecordingHandler(httpx.Response(200, text="<html>not json</html>")))
    reply = await responder.respond(make_config(), "123", "hi")
    assert reply.startswith("AI回复失败: ")
