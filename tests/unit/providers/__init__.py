"""Shared deterministic builders for provider adapter tests."""

from __future__ import annotations

import json
from typing import Final

from nexus_wire.providers import (
    Conversation,
    ProviderConfig,
    ToolCall,
    ToolDefinition,
    ToolResult,
    Turn,
)

OPENAI_TEST_KEY: Final[str] = "sk-test-openai-0123456789abcdef"
ANTHROPIC_TEST_KEY: Final[str] = "sk-ant-REDACTED"
GEMINI_TEST_KEY: Final[str] = "AIzaTestKey0123456789abcdefghijklmnop"

WEATHER_TOOL: Final[ToolDefinition] = ToolDefinition(
    name="get_weather",
    description="Look up current weather for a city.",
    parameter_schema={
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
    },
)


def make_config(
    api_key: str | None,
    *,
    model: str = "test-model",
    streaming: bool = False,
    endpoint_override: str | None = None,
    max_tokens: int | None = None,
    reasoning_effort: str | None = None,
) -> ProviderConfig:
    return ProviderConfig(
        api_key=api_key,
        model=model,
        streaming=streaming,
        endpoint_override=endpoint_override,
        max_tokens=max_tokens,
        reasoning_effort=reasoning_effort,
    )


def simple_conversation(text: str = "Hello there") -> Conversation:
    return Conversation(turns=(Turn.user(text),))


def tool_round_trip_conversation(*, result_turns: int = 1) -> Conversation:
    """user -> assistant(calls) -> tool-output x ``result_turns`` -> user."""

    calls = tuple(
        ToolCall(call_id=f"call_{index}", name="get_weather", arguments={"city": f"city-{index}"})
        for index in range(result_turns)
    )
    turns: list[Turn] = [
        Turn.user("What is the weather?"),
        Turn.assistant(tool_calls=calls),
    ]
    for call in calls:
        output = f"sunny in {call.arguments['city']}"
        turns.append(Turn.tool_output(ToolResult(call_id=call.call_id, output=output)))
    turns.append(Turn.user("Thanks"))
    return Conversation(turns=tuple(turns))


def body_json(descriptor_body: bytes) -> dict[str, object]:
    parsed = json.loads(descriptor_body.decode("utf-8"))
    assert isinstance(parsed, dict)
    return parsed


def encode(payload: object) -> bytes:
    return json.dumps(payload).encode("utf-8")
