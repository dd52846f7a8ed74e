"""
nexus-wire — unit tests for the OpenAI adapter

File: tests/unit/providers/test_openai_adapter.py
Last updated: 2026-10-17

Purpose
- Verify Chat Completions request shape, authentication placement and decoding.

What this test file should cover
- Target host/port/path, header order and endpoint overrides.
- Message mapping for system, assistant tool calls and tool results.
- Optional body fields and credential checks before serialization.
- Decoding text, finish reason, usage and tool calls.
"""

from __future__ import annotations

import json
import logging

import pytest

from nexus_wire.providers import (
    Conversation,
    InvalidEnvelopeError,
    MissingFieldError,
    OpenAIAdapter,
    ProviderAdapter,
    ToolCall,
    ToolResult,
    Turn,
    build_openai_request,
    decode_openai_response,
    extract_openai_tool_calls,
)

from . import (
    OPENAI_TEST_KEY,
    WEATHER_TOOL,
    body_json,
    encode,
    make_config,
    simple_conversation,
    tool_round_trip_conversation,
)


@pytest.mark.unit
def test_adapter_satisfies_protocol() -> None:
    adapter = OpenAIAdapter()
    assert isinstance(adapter, ProviderAdapter)
    assert adapter.provider_name == "openai"


@pytest.mark.unit
def test_request_targets_chat_completions_with_bearer_auth() -> None:
    descriptor = build_openai_request(simple_conversation(), (), make_config(OPENAI_TEST_KEY))

    assert (descriptor.scheme, descriptor.host, descriptor.port) == ("https", "api.openai.com", 443)
    assert descriptor.method == "POST"
    assert descriptor.path == "/v1/chat/completions"
    assert descriptor.headers == (
        ("Authorization", f"Bearer {OPENAI_TEST_KEY}"),
        ("Content-Type", "application/json"),
        ("Accept", "*/*"),
    )
    assert descriptor.auth_header == "Authorization"
    assert descriptor.auth_query_param is None
    assert descriptor.credential() == f"Bearer {OPENAI_TEST_KEY}"


@pytest.mark.unit
def test_body_field_order_and_user_message() -> None:
    descriptor = build_openai_request(
        simple_conversation("ping"), (), make_config(OPENAI_TEST_KEY, model="gpt-4o")
    )

    body = body_json(descriptor.body)
    assert list(body) == ["model", "messages", "stream"]
    assert body["model"] == "gpt-4o"
    assert body["stream"] is False
    assert body["messages"] == [{"role": "user", "content": "ping"}]


@pytest.mark.unit
def test_optional_fields_are_emitted_when_configured() -> None:
    descriptor = build_openai_request(
        simple_conversation(),
        (WEATHER_TOOL,),
        make_config(
            OPENAI_TEST_KEY,
            streaming=True,
            max_tokens=256,
            reasoning_effort="HIGH",
        ),
    )

    body = body_json(descriptor.body)
    assert body["stream"] is True
    assert body["reasoning_effort"] == "high"
    assert body["max_completion_tokens"] == 256
    assert body["tools"] == [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Look up current weather for a city.",
                "parameters": dict(WEATHER_TOOL.parameter_schema),
            },
        }
    ]
    assert descriptor.streaming is True


@pytest.mark.unit
def test_system_instruction_leads_and_tool_turns_map_one_to_one() -> None:
    conversation = tool_round_trip_conversation(result_turns=2)
    conversation = Conversation(turns=conversation.turns, system_instruction="Be terse.")

    body = body_json(
        build_openai_request(conversation, (), make_config(OPENAI_TEST_KEY)).body
    )
    messages = body["messages"]
    assert isinstance(messages, list)

    assert [message["role"] for message in messages] == [
        "system",
        "user",
        "assistant",
        "tool",
        "tool",
        "user",
    ]
    assert messages[0] == {"role": "system", "content": "Be terse."}

    assistant = messages[2]
    assert assistant["content"] is None
    assert assistant["tool_calls"][0] == {
        "id": "call_0",
        "type": "function",
        "function": {"name": "get_weather", "arguments": '{"city":"city-0"}'},
    }
    assert messages[3] == {"role": "tool", "tool_call_id": "call_0", "content": "sunny in city-0"}
    assert messages[4]["tool_call_id"] == "call_1"


@pytest.mark.unit
def test_multi_result_tool_turn_emits_one_message_per_result() -> None:
    calls = (ToolCall(call_id="a", name="f"), ToolCall(call_id="b", name="g"))
    conversation = Conversation(
        turns=(
            Turn.user("go"),
            Turn.assistant("calling", tool_calls=calls),
            Turn.tool_output(ToolResult("a", "1"), ToolResult("b", "2")),
        )
    )

    messages = body_json(
        build_openai_request(conversation, (), make_config(OPENAI_TEST_KEY)).body
    )["messages"]

    assert isinstance(messages, list)
    assert [message.get("tool_call_id") for message in messages[2:]] == ["a", "b"]
    assert messages[1]["content"] == "calling"


@pytest.mark.unit
def test_endpoint_override_replaces_target_and_prefixes_path() -> None:
    descriptor = build_openai_request(
        simple_conversation(),
        (),
        make_config(OPENAI_TEST_KEY, endpoint_override="http://localhost:8080/proxy/"),
    )

    assert descriptor.scheme == "http"
    assert descriptor.host == "localhost"
    assert descriptor.port == 8080
    assert descriptor.host_header == "localhost:8080"
    assert descriptor.path == "/proxy/v1/chat/completions"


@pytest.mark.unit
def test_debug_log_line_never_contains_the_key(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("nexus_wire")
    previous_propagate = logger.propagate
    logger.propagate = True
    try:
        with caplog.at_level(logging.DEBUG, logger="nexus_wire"):
            build_openai_request(simple_conversation(), (), make_config(OPENAI_TEST_KEY))
    finally:
        logger.propagate = previous_propagate

    records = [record for record in caplog.records if record.name.startswith("nexus_wire")]
    assert len(records) == 1
    record = records[0]
    assert record.getMessage() == "built openai request"
    assert getattr(record, "host") == "api.openai.com"
    assert OPENAI_TEST_KEY not in caplog.text
    assert OPENAI_TEST_KEY not in repr(record.__dict__)


@pytest.mark.unit
def test_repr_hides_credentials() -> None:
    config = make_config(OPENAI_TEST_KEY)
    descriptor = build_openai_request(simple_conversation(), (), config)

    assert OPENAI_TEST_KEY not in repr(config)
    assert OPENAI_TEST_KEY not in repr(descriptor)
    assert OPENAI_TEST_KEY not in json.dumps(descriptor.redacted())


@pytest.mark.unit
def test_decode_returns_text_finish_reason_and_usage() -> None:
    body = encode(
        {
            "choices": [
                {"message": {"role": "assistant", "content": "Hi!"}, "finish_reason": "stop"}
            ],
            "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
        }
    )

    decoded = decode_openai_response(body)

    assert decoded.ok
    assert decoded.unwrap() == "Hi!"
    assert decoded.finish_reason == "stop"
    assert decoded.usage is not None
    assert decoded.usage.to_dict() == {"input_tokens": 5, "output_tokens": 2, "total_tokens": 7}


@pytest.mark.unit
def test_decode_null_content_is_missing_field() -> None:
    body = encode({"choices": [{"message": {"role": "assistant", "content": None}}]})

    decoded = decode_openai_response(body)

    assert not decoded.ok
    assert isinstance(decoded.error, MissingFieldError)
    assert decoded.error.field_path == "choices[0].message.content"
    with pytest.raises(MissingFieldError):
        decoded.unwrap()


@pytest.mark.unit
def test_decode_reports_deepest_present_prefix_and_provider_error() -> None:
    decoded = decode_openai_response(
        encode({"error": {"message": "Incorrect API key provided", "type": "auth"}})
    )

    assert isinstance(decoded.error, MissingFieldError)
    assert decoded.error.field_path == "choices"
    assert "provider error: Incorrect API key provided" in decoded.error.detail


@pytest.mark.unit
def test_decode_non_json_is_invalid_envelope() -> None:
    decoded = decode_openai_response(b"<html>bad gateway</html>")

    assert isinstance(decoded.error, InvalidEnvelopeError)
    assert decoded.to_dict()["ok"] is False


@pytest.mark.unit
def test_extract_tool_calls_parses_json_string_arguments() -> None:
    body = encode(
        {
            "choices": [
                {
                    "message": {
                        "content": None,
                        "tool_calls": [
                            {
                                "id": "call_abc",
                                "type": "function",
                                "function": {
                                    "name": "get_weather",
                                    "arguments": '{"city": "Oslo"}',
                                },
                            }
                        ],
                    }
                }
            ]
        }
    )

    calls = extract_openai_tool_calls(body)

    assert len(calls) == 1
    assert calls[0].call_id == "call_abc"
    assert calls[0].name == "get_weather"
    assert calls[0].arguments == {"city": "Oslo"}


@pytest.mark.unit
def test_extract_tool_calls_rejects_non_object_arguments() -> None:
    body = encode(
        {
            "choices": [
                {
                    "message": {
                        "tool_calls": [
                            {"id": "c", "function": {"name": "f", "arguments": "[1, 2]"}}
                        ]
                    }
                }
            ]
        }
    )

    with pytest.raises(InvalidEnvelopeError, match="expected JSON object"):
        extract_openai_tool_calls(body)


@pytest.mark.unit
def test_extract_tool_calls_without_calls_is_empty() -> None:
    body = encode({"choices": [{"message": {"content": "plain"}}]})
    assert extract_openai_tool_calls(body) == ()
