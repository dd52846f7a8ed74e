"""
nexus-wire — unit tests for the Gemini adapter

File: tests/unit/providers/test_gemini_adapter.py
Last updated: 2026-10-17

Purpose
- Verify generateContent request shape, query-parameter authentication and decoding.

What this test file should cover
- Path selection by streaming flag and model-id normalization.
- Role mapping, functionCall/functionResponse parts and system_instruction placement.
- Text-part joining, thought-part skipping and synthesized tool-call ids.
"""

from __future__ import annotations

import pytest

from nexus_wire.providers import (
    Conversation,
    MissingFieldError,
    ToolCall,
    ToolResult,
    Turn,
    build_gemini_request,
    decode_gemini_response,
    extract_gemini_tool_calls,
)
from nexus_wire.providers.gemini_adapter import gemini_request_path

from . import (
    GEMINI_TEST_KEY,
    WEATHER_TOOL,
    body_json,
    encode,
    make_config,
    simple_conversation,
    tool_round_trip_conversation,
)


@pytest.mark.unit
def test_key_travels_in_query_and_never_in_headers() -> None:
    descriptor = build_gemini_request(
        simple_conversation(), (), make_config(GEMINI_TEST_KEY, model="gemini-2.0-flash")
    )

    assert descriptor.host == "generativelanguage.googleapis.com"
    assert descriptor.port == 443
    assert descriptor.query == (("key", GEMINI_TEST_KEY),)
    assert descriptor.auth_query_param == "key"
    assert descriptor.auth_header is None
    assert descriptor.headers == (("Content-Type", "application/json"), ("Accept", "*/*"))
    assert all(GEMINI_TEST_KEY not in value for _, value in descriptor.headers)
    assert descriptor.target == (
        f"/v1beta/models/gemini-2.0-flash:generateContent?key={GEMINI_TEST_KEY}"
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    ("streaming", "method"),
    [(False, "generateContent"), (True, "streamGenerateContent")],
)
def test_path_method_follows_streaming_flag(streaming: bool, method: str) -> None:
    descriptor = build_gemini_request(
        simple_conversation(),
        (),
        make_config(GEMINI_TEST_KEY, model="gemini-2.5-pro", streaming=streaming),
    )

    assert descriptor.path == f"/v1beta/models/gemini-2.5-pro:{method}"
    assert descriptor.streaming is streaming


@pytest.mark.unit
def test_request_path_strips_models_prefix() -> None:
    assert (
        gemini_request_path("models/gemini-1.5-pro", streaming=False)
        == "/v1beta/models/gemini-1.5-pro:generateContent"
    )


@pytest.mark.unit
def test_user_assistant_user_maps_to_user_model_user() -> None:
    conversation = Conversation(
        turns=(Turn.user("a"), Turn.assistant("b"), Turn.user("c")),
    )

    body = body_json(build_gemini_request(conversation, (), make_config(GEMINI_TEST_KEY)).body)

    assert body["contents"] == [
        {"parts": [{"text": "a"}], "role": "user"},
        {"parts": [{"text": "b"}], "role": "model"},
        {"parts": [{"text": "c"}], "role": "user"},
    ]
    assert "system_instruction" not in body


@pytest.mark.unit
def test_system_instruction_is_top_level_and_not_a_turn() -> None:
    conversation = Conversation(turns=(Turn.user("hi"),), system_instruction="Answer in French.")

    body = body_json(build_gemini_request(conversation, (), make_config(GEMINI_TEST_KEY)).body)

    assert body["system_instruction"] == {"parts": [{"text": "Answer in French."}]}
    contents = body["contents"]
    assert isinstance(contents, list)
    assert len(contents) == 1


@pytest.mark.unit
def test_tool_round_trip_uses_function_call_and_response_parts() -> None:
    conversation = tool_round_trip_conversation(result_turns=1)

    body = body_json(
        build_gemini_request(conversation, (WEATHER_TOOL,), make_config(GEMINI_TEST_KEY)).body
    )

    contents = body["contents"]
    assert isinstance(contents, list)
    assert [content["role"] for content in contents] == ["user", "model", "user", "user"]
    assert contents[1]["parts"] == [
        {"functionCall": {"name": "get_weather", "args": {"city": "city-0"}}}
    ]
    assert contents[2]["parts"] == [
        {
            "functionResponse": {
                "name": "get_weather",
                "response": {"content": "sunny in city-0"},
            }
        }
    ]
    assert body["tools"] == [
        {
            "function_declarations": [
                {
                    "name": "get_weather",
                    "description": "Look up current weather for a city.",
                    "parameters": dict(WEATHER_TOOL.parameter_schema),
                }
            ]
        }
    ]


@pytest.mark.unit
def test_multi_result_turn_keeps_one_content_with_many_parts() -> None:
    calls = (ToolCall(call_id="a", name="first"), ToolCall(call_id="b", name="second"))
    conversation = Conversation(
        turns=(
            Turn.user("go"),
            Turn.assistant(tool_calls=calls),
            Turn.tool_output(ToolResult("b", "2"), ToolResult("a", "1")),
        )
    )

    contents = body_json(
        build_gemini_request(conversation, (), make_config(GEMINI_TEST_KEY)).body
    )["contents"]

    assert isinstance(contents, list)
    assert len(contents) == 3
    names = [part["functionResponse"]["name"] for part in contents[2]["parts"]]
    assert names == ["second", "first"]


@pytest.mark.unit
def test_generation_config_only_when_max_tokens_set() -> None:
    without = body_json(
        build_gemini_request(simple_conversation(), (), make_config(GEMINI_TEST_KEY)).body
    )
    with_limit = body_json(
        build_gemini_request(
            simple_conversation(), (), make_config(GEMINI_TEST_KEY, max_tokens=64)
        ).body
    )

    assert "generationConfig" not in without
    assert with_limit["generationConfig"] == {"maxOutputTokens": 64}


@pytest.mark.unit
def test_redacted_view_hides_query_key() -> None:
    descriptor = build_gemini_request(simple_conversation(), (), make_config(GEMINI_TEST_KEY))

    redacted = descriptor.redacted()

    assert GEMINI_TEST_KEY not in str(redacted["url"])
    assert str(redacted["url"]).startswith(
        "https://generativelanguage.googleapis.com/v1beta/models/test-model:generateContent?key="
    )


@pytest.mark.unit
def test_decode_joins_text_parts_and_skips_thoughts() -> None:
    body = encode(
        {
            "candidates": [
                {
                    "content": {
                        "role": "model",
                        "parts": [
                            {"text": "thinking...", "thought": True},
                            {"text": "Bonjour"},
                            {"text": " le monde"},
                        ],
                    },
                    "finishReason": "STOP",
                }
            ],
            "usageMetadata": {
                "promptTokenCount": 3,
                "candidatesTokenCount": 4,
                "totalTokenCount": 9,
            },
        }
    )

    decoded = decode_gemini_response(body)

    assert decoded.unwrap() == "Bonjour le monde"
    assert decoded.finish_reason == "STOP"
    assert decoded.usage is not None
    assert decoded.usage.total_tokens == 9


@pytest.mark.unit
def test_decode_without_text_part_is_missing_field() -> None:
    body = encode(
        {"candidates": [{"content": {"parts": [{"functionCall": {"name": "f", "args": {}}}]}}]}
    )

    decoded = decode_gemini_response(body)

    assert isinstance(decoded.error, MissingFieldError)
    assert decoded.error.field_path == "candidates[0].content.parts[*].text"


@pytest.mark.unit
def test_decode_blocked_prompt_reports_candidates_path() -> None:
    decoded = decode_gemini_response(encode({"promptFeedback": {"blockReason": "SAFETY"}}))

    assert isinstance(decoded.error, MissingFieldError)
    assert decoded.error.field_path == "candidates"


@pytest.mark.unit
def test_extract_synthesizes_missing_call_ids() -> None:
    body = encode(
        {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": "Calling tools."},
                            {"functionCall": {"name": "get_weather", "args": {"city": "Rome"}}},
                            {"functionCall": {"id": "explicit", "name": "noop"}},
                            {"functionCall": {"name": "get_time", "args": {}}},
                        ]
                    }
                }
            ]
        }
    )

    calls = extract_gemini_tool_calls(body)

    assert [call.call_id for call in calls] == [
        "gemini-tool-call-1",
        "explicit",
        "gemini-tool-call-3",
    ]
    assert calls[0].arguments == {"city": "Rome"}
    assert calls[1].arguments == {}
