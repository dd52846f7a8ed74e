"""
nexus-wire — OpenAI provider adapter

File: src/nexus_wire/providers/openai_adapter.py
Last updated: 2026-10-17

Purpose
- Translate canonical conversations into Chat Completions requests and decode
  Chat Completions responses.

What should be included in this file
- Message/tool payload mapping, bearer authentication, response decoding and
  tool-call extraction.

Functional requirements
- Messages mirror turn order exactly; a system instruction becomes one leading
  system message.

Non-functional requirements
- Must be configurable and safe; no secrets in logs.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from nexus_wire.constants import (
    DEFAULT_ACCEPT,
    JSON_CONTENT_TYPE,
    OPENAI_CHAT_COMPLETIONS_PATH,
    OPENAI_HOST,
)
from nexus_wire.providers.base import (
    DecodedResponse,
    DecodeError,
    InvalidEnvelopeError,
    Provider,
    ProviderConfig,
    RequestDescriptor,
    _encode_json_body,
    _read_str,
    _read_value,
    missing_field,
    parse_response_body,
    parse_tool_arguments,
    read_usage,
    select_field,
    select_str,
)
from nexus_wire.providers.conversation import (
    Conversation,
    Role,
    ToolCall,
    ToolDefinition,
    Turn,
    validate_turn_sequence,
)

logger = logging.getLogger(__name__)

_PROVIDER = Provider.OPENAI.value
_CONTENT_PATH = ("choices", 0, "message", "content")
_MESSAGE_PATH = ("choices", 0, "message")


class OpenAIAdapter:
    """Chat Completions adapter."""

    provider_name = _PROVIDER

    def build_request(
        self,
        conversation: Conversation,
        tools: Sequence[ToolDefinition],
        config: ProviderConfig,
    ) -> RequestDescriptor:
        return build_openai_request(conversation, tools, config)

    def decode_response(self, body: bytes | str) -> DecodedResponse:
        return decode_openai_response(body)

    def extract_tool_calls(self, body: bytes | str) -> tuple[ToolCall, ...]:
        return extract_openai_tool_calls(body)


def build_openai_request(
    conversation: Conversation,
    tools: Sequence[ToolDefinition],
    config: ProviderConfig,
) -> RequestDescriptor:
    """Build a Chat Completions request descriptor."""

    api_key = config.require_api_key(provider=_PROVIDER)
    validate_turn_sequence(conversation, provider=_PROVIDER)

    payload: dict[str, object] = {
        "model": config.model,
        "messages": _build_messages(conversation),
        "stream": config.streaming,
    }
    if config.reasoning_effort is not None:
        payload["reasoning_effort"] = config.reasoning_effort
    if config.max_tokens is not None:
        payload["max_completion_tokens"] = config.max_tokens
    if tools:
        payload["tools"] = [_tool_definition_payload(tool) for tool in tools]

    endpoint = config.endpoint(OPENAI_HOST)
    descriptor = RequestDescriptor(
        provider=_PROVIDER,
        scheme=endpoint.scheme,
        host=endpoint.host,
        port=endpoint.port,
        path=endpoint.path(OPENAI_CHAT_COMPLETIONS_PATH),
        headers=(
            ("Authorization", f"Bearer {api_key}"),
            ("Content-Type", JSON_CONTENT_TYPE),
            ("Accept", DEFAULT_ACCEPT),
        ),
        body=_encode_json_body(payload),
        auth_header="Authorization",
        streaming=config.streaming,
    )
    logger.debug(
        "built openai request",
        extra={
            "host": descriptor.host_header,
            "path": descriptor.path,
            "body_bytes": len(descriptor.body),
            "turns": len(conversation.turns),
        },
    )
    return descriptor


def _build_messages(conversation: Conversation) -> list[dict[str, object]]:
    messages: list[dict[str, object]] = []
    if conversation.system_instruction is not None:
        messages.append({"role": "system", "content": conversation.system_instruction})
    for turn in conversation.turns:
        messages.extend(_turn_messages(turn))
    return messages


def _turn_messages(turn: Turn) -> list[dict[str, object]]:
    if turn.role is Role.USER:
        return [{"role": "user", "content": turn.text}]
    if turn.role is Role.ASSISTANT:
        message: dict[str, object] = {"role": "assistant", "content": turn.text}
        if turn.tool_calls:
            message["tool_calls"] = [_tool_call_payload(call) for call in turn.tool_calls]
        return [message]
    return [
        {"role": "tool", "tool_call_id": result.call_id, "content": result.output}
        for result in turn.tool_results
    ]


def _tool_call_payload(call: ToolCall) -> dict[str, object]:
    return {
        "id": call.call_id,
        "type": "function",
        "function": {
            "name": call.name,
            "arguments": json.dumps(
                dict(call.arguments), ensure_ascii=False, separators=(",", ":")
            ),
        },
    }


def _tool_definition_payload(tool: ToolDefinition) -> dict[str, object]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": dict(tool.parameter_schema),
        },
    }


def decode_openai_response(body: bytes | str) -> DecodedResponse:
    """Decode ``choices[0].message.content``; absence is a ``MissingFieldError``."""

    try:
        payload = parse_response_body(body, provider=_PROVIDER)
        text = select_str(payload, _CONTENT_PATH, provider=_PROVIDER)
    except DecodeError as exc:
        return DecodedResponse.failure(exc)

    choices = _read_value(payload, "choices")
    first_choice = choices[0] if isinstance(choices, list) and choices else None
    return DecodedResponse.success(
        text,
        provider=_PROVIDER,
        finish_reason=_read_str(first_choice, "finish_reason"),
        usage=read_usage(
            payload,
            container="usage",
            input_key="prompt_tokens",
            output_key="completion_tokens",
            total_key="total_tokens",
        ),
    )


def extract_openai_tool_calls(body: bytes | str) -> tuple[ToolCall, ...]:
    """Return tool calls requested in ``choices[0].message.tool_calls``."""

    payload = parse_response_body(body, provider=_PROVIDER)
    message = select_field(payload, _MESSAGE_PATH, provider=_PROVIDER)
    raw_calls = _read_value(message, "tool_calls")
    if raw_calls is None:
        return ()
    if not isinstance(raw_calls, list):
        raise InvalidEnvelopeError("tool_calls must be an array", provider=_PROVIDER)
    return tuple(
        _normalize_openai_tool_call(payload, raw_call, index)
        for index, raw_call in enumerate(raw_calls)
    )


def _normalize_openai_tool_call(payload: object, raw_call: object, index: int) -> ToolCall:
    base_path = ("choices", 0, "message", "tool_calls", index)
    function_payload = _read_value(raw_call, "function")
    name = _read_str(function_payload, "name")
    if name is None:
        raise missing_field(payload, (*base_path, "function", "name"), provider=_PROVIDER)
    call_id = _read_str(raw_call, "id")
    if call_id is None:
        raise missing_field(payload, (*base_path, "id"), provider=_PROVIDER)
    arguments = parse_tool_arguments(
        _read_value(function_payload, "arguments"), provider=_PROVIDER, tool_name=name
    )
    return ToolCall(call_id=call_id, name=name, arguments=arguments)


__all__ = [
    "OpenAIAdapter",
    "build_openai_request",
    "decode_openai_response",
    "extract_openai_tool_calls",
]
