"""
nexus-wire — Anthropic provider adapter

File: src/nexus_wire/providers/anthropic_adapter.py
Last updated: 2026-10-17

Purpose
- Translate canonical conversations into Messages API requests and decode
  Messages API responses.

What should be included in this file
- Message formatting with consecutive tool-result compression, x-api-key and
  anthropic-version headers, response decoding and tool-use extraction.

Functional requirements
- Every maximal run of consecutive tool-output turns becomes exactly one user
  message holding one tool_result block per result, in original order.

Non-functional requirements
- Must be configurable and safe; no secrets in logs.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence

from nexus_wire.constants import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_DEFAULT_MAX_TOKENS,
    ANTHROPIC_HOST,
    ANTHROPIC_MESSAGES_PATH,
    DEFAULT_ACCEPT,
    JSON_CONTENT_TYPE,
)
from nexus_wire.providers.base import (
    DecodedResponse,
    DecodeError,
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
    select_list,
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

_PROVIDER = Provider.ANTHROPIC.value


class _ScanState(enum.Enum):
    IDLE = "idle"
    COLLECTING_TOOL_RESULTS = "collecting_tool_results"


class AnthropicAdapter:
    """Messages API adapter."""

    provider_name = _PROVIDER

    def build_request(
        self,
        conversation: Conversation,
        tools: Sequence[ToolDefinition],
        config: ProviderConfig,
    ) -> RequestDescriptor:
        return build_anthropic_request(conversation, tools, config)

    def decode_response(self, body: bytes | str) -> DecodedResponse:
        return decode_anthropic_response(body)

    def extract_tool_calls(self, body: bytes | str) -> tuple[ToolCall, ...]:
        return extract_anthropic_tool_calls(body)


def build_anthropic_request(
    conversation: Conversation,
    tools: Sequence[ToolDefinition],
    config: ProviderConfig,
) -> RequestDescriptor:
    """Build a Messages API request descriptor."""

    api_key = config.require_api_key(provider=_PROVIDER)
    validate_turn_sequence(conversation, provider=_PROVIDER)

    payload: dict[str, object] = {
        "model": config.model,
        "max_tokens": (
            config.max_tokens if config.max_tokens is not None else ANTHROPIC_DEFAULT_MAX_TOKENS
        ),
        "messages": format_anthropic_messages(conversation.turns),
        "stream": config.streaming,
    }
    if conversation.system_instruction is not None:
        payload["system"] = conversation.system_instruction
    if tools:
        payload["tools"] = [_tool_definition_payload(tool) for tool in tools]

    endpoint = config.endpoint(ANTHROPIC_HOST)
    descriptor = RequestDescriptor(
        provider=_PROVIDER,
        scheme=endpoint.scheme,
        host=endpoint.host,
        port=endpoint.port,
        path=endpoint.path(ANTHROPIC_MESSAGES_PATH),
        headers=(
            ("x-api-key", api_key),
            ("anthropic-version", ANTHROPIC_API_VERSION),
            ("Content-Type", JSON_CONTENT_TYPE),
            ("Accept", DEFAULT_ACCEPT),
        ),
        body=_encode_json_body(payload),
        auth_header="x-api-key",
        streaming=config.streaming,
    )
    logger.debug(
        "built anthropic request",
        extra={
            "host": descriptor.host_header,
            "path": descriptor.path,
            "body_bytes": len(descriptor.body),
            "turns": len(conversation.turns),
        },
    )
    return descriptor


def format_anthropic_messages(turns: Sequence[Turn]) -> list[dict[str, object]]:
    """Map turns to messages, merging each run of tool-output turns into one message."""

    messages: list[dict[str, object]] = []
    pending_results: list[dict[str, object]] = []
    state = _ScanState.IDLE

    for turn in turns:
        if turn.role is Role.TOOL_OUTPUT:
            pending_results.extend(
                {"type": "tool_result", "tool_use_id": result.call_id, "content": result.output}
                for result in turn.tool_results
            )
            state = _ScanState.COLLECTING_TOOL_RESULTS
            continue

        if state is _ScanState.COLLECTING_TOOL_RESULTS:
            messages.append({"role": "user", "content": pending_results})
            pending_results = []
            state = _ScanState.IDLE
        messages.append(_turn_message(turn))

    if state is _ScanState.COLLECTING_TOOL_RESULTS:
        messages.append({"role": "user", "content": pending_results})
    return messages


def _turn_message(turn: Turn) -> dict[str, object]:
    if turn.role is Role.USER:
        return {"role": "user", "content": turn.text}
    if not turn.tool_calls:
        return {"role": "assistant", "content": turn.text}

    blocks: list[dict[str, object]] = []
    if turn.text:
        blocks.append({"type": "text", "text": turn.text})
    blocks.extend(
        {"type": "tool_use", "id": call.call_id, "name": call.name, "input": dict(call.arguments)}
        for call in turn.tool_calls
    )
    return {"role": "assistant", "content": blocks}


def _tool_definition_payload(tool: ToolDefinition) -> dict[str, object]:
    return {
        "name": tool.name,
        "description": tool.description,
        "input_schema": dict(tool.parameter_schema),
    }


def decode_anthropic_response(body: bytes | str) -> DecodedResponse:
    """Join every text block of ``content`` in order; no text block is a failure."""

    try:
        payload = parse_response_body(body, provider=_PROVIDER)
        blocks = select_list(payload, ("content",), provider=_PROVIDER)
        fragments: list[str] = []
        for index, block in enumerate(blocks):
            if _read_value(block, "type") != "text":
                continue
            text = _read_value(block, "text")
            if not isinstance(text, str):
                raise missing_field(payload, ("content", index, "text"), provider=_PROVIDER)
            fragments.append(text)
        if not fragments:
            raise missing_field(payload, ("content", "*", "text"), provider=_PROVIDER)
    except DecodeError as exc:
        return DecodedResponse.failure(exc)

    return DecodedResponse.success(
        "".join(fragments),
        provider=_PROVIDER,
        finish_reason=_read_str(payload, "stop_reason"),
        usage=read_usage(
            payload,
            container="usage",
            input_key="input_tokens",
            output_key="output_tokens",
        ),
    )


def extract_anthropic_tool_calls(body: bytes | str) -> tuple[ToolCall, ...]:
    """Return ``tool_use`` blocks of ``content`` as tool calls, in block order."""

    payload = parse_response_body(body, provider=_PROVIDER)
    blocks = select_list(payload, ("content",), provider=_PROVIDER)
    calls: list[ToolCall] = []
    for index, block in enumerate(blocks):
        if _read_value(block, "type") != "tool_use":
            continue
        name = _read_str(block, "name")
        if name is None:
            raise missing_field(payload, ("content", index, "name"), provider=_PROVIDER)
        call_id = _read_str(block, "id")
        if call_id is None:
            raise missing_field(payload, ("content", index, "id"), provider=_PROVIDER)
        arguments = parse_tool_arguments(
            _read_value(block, "input"), provider=_PROVIDER, tool_name=name
        )
        calls.append(ToolCall(call_id=call_id, name=name, arguments=arguments))
    return tuple(calls)


__all__ = [
    "AnthropicAdapter",
    "build_anthropic_request",
    "decode_anthropic_response",
    "extract_anthropic_tool_calls",
    "format_anthropic_messages",
]
