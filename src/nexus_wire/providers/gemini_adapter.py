"""
nexus-wire — Gemini provider adapter

File: src/nexus_wire/providers/gemini_adapter.py
Last updated: 2026-10-17

Purpose
- Translate canonical conversations into generateContent requests and decode
  generateContent responses.

What should be included in this file
- contents/system_instruction mapping, query-parameter authentication,
  streaming path selection, response decoding and functionCall extraction.

Functional requirements
- Assistant turns map to role "model"; the system instruction is a dedicated
  field and never an inlined turn.

Non-functional requirements
- Must be configurable and safe; the key lives only in the query, which is never
  logged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from urllib.parse import quote

from nexus_wire.constants import (
    DEFAULT_ACCEPT,
    GEMINI_GENERATE_METHOD,
    GEMINI_HOST,
    GEMINI_MODELS_PATH,
    GEMINI_STREAM_GENERATE_METHOD,
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
    select_field,
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

_PROVIDER = Provider.GEMINI.value
_AUTH_QUERY_PARAM = "key"
_PARTS_PATH = ("candidates", 0, "content", "parts")


class GeminiAdapter:
    """generateContent adapter."""

    provider_name = _PROVIDER

    def build_request(
        self,
        conversation: Conversation,
        tools: Sequence[ToolDefinition],
        config: ProviderConfig,
    ) -> RequestDescriptor:
        return build_gemini_request(conversation, tools, config)

    def decode_response(self, body: bytes | str) -> DecodedResponse:
        return decode_gemini_response(body)

    def extract_tool_calls(self, body: bytes | str) -> tuple[ToolCall, ...]:
        return extract_gemini_tool_calls(body)


def gemini_request_path(model: str, *, streaming: bool) -> str:
    """Return ``/v1beta/models/{model}:{method}`` for the streaming flag."""

    method = GEMINI_STREAM_GENERATE_METHOD if streaming else GEMINI_GENERATE_METHOD
    model_id = model.removeprefix("models/")
    return f"{GEMINI_MODELS_PATH}/{quote(model_id, safe='-._~')}:{method}"


def build_gemini_request(
    conversation: Conversation,
    tools: Sequence[ToolDefinition],
    config: ProviderConfig,
) -> RequestDescriptor:
    """Build a generateContent request descriptor."""

    api_key = config.require_api_key(provider=_PROVIDER)
    issued_calls = validate_turn_sequence(conversation, provider=_PROVIDER)

    payload: dict[str, object] = {
        "contents": [_turn_content(turn, issued_calls) for turn in conversation.turns],
    }
    if conversation.system_instruction is not None:
        payload["system_instruction"] = {"parts": [{"text": conversation.system_instruction}]}
    if tools:
        payload["tools"] = [
            {"function_declarations": [_tool_definition_payload(tool) for tool in tools]}
        ]
    if config.max_tokens is not None:
        payload["generationConfig"] = {"maxOutputTokens": config.max_tokens}

    endpoint = config.endpoint(GEMINI_HOST)
    descriptor = RequestDescriptor(
        provider=_PROVIDER,
        scheme=endpoint.scheme,
        host=endpoint.host,
        port=endpoint.port,
        path=endpoint.path(gemini_request_path(config.model, streaming=config.streaming)),
        query=((_AUTH_QUERY_PARAM, api_key),),
        headers=(
            ("Content-Type", JSON_CONTENT_TYPE),
            ("Accept", DEFAULT_ACCEPT),
        ),
        body=_encode_json_body(payload),
        auth_query_param=_AUTH_QUERY_PARAM,
        streaming=config.streaming,
    )
    logger.debug(
        "built gemini request",
        extra={
            "host": descriptor.host_header,
            "path": descriptor.path,
            "body_bytes": len(descriptor.body),
            "turns": len(conversation.turns),
        },
    )
    return descriptor


def _turn_content(turn: Turn, issued_calls: Mapping[str, ToolCall]) -> dict[str, object]:
    if turn.role is Role.USER:
        return {"parts": [{"text": turn.text}], "role": "user"}
    if turn.role is Role.ASSISTANT:
        parts: list[dict[str, object]] = []
        if turn.text is not None and (turn.text or not turn.tool_calls):
            parts.append({"text": turn.text})
        parts.extend(
            {"functionCall": {"name": call.name, "args": dict(call.arguments)}}
            for call in turn.tool_calls
        )
        return {"parts": parts, "role": "model"}
    return {
        "parts": [
            {
                "functionResponse": {
                    "name": issued_calls[result.call_id].name,
                    "response": {"content": result.output},
                }
            }
            for result in turn.tool_results
        ],
        "role": "user",
    }


def _tool_definition_payload(tool: ToolDefinition) -> dict[str, object]:
    declaration: dict[str, object] = {"name": tool.name, "description": tool.description}
    if tool.parameter_schema:
        declaration["parameters"] = dict(tool.parameter_schema)
    return declaration


def decode_gemini_response(body: bytes | str) -> DecodedResponse:
    """Join ``candidates[0].content.parts[*].text``; no text part is a failure."""

    try:
        payload = parse_response_body(body, provider=_PROVIDER)
        parts = select_list(payload, _PARTS_PATH, provider=_PROVIDER)
        fragments: list[str] = []
        for index, part in enumerate(parts):
            if not isinstance(part, Mapping) or "text" not in part:
                continue
            if part.get("thought") is True:
                continue
            text = part["text"]
            if not isinstance(text, str):
                raise missing_field(payload, (*_PARTS_PATH, index, "text"), provider=_PROVIDER)
            fragments.append(text)
        if not fragments:
            raise missing_field(payload, (*_PARTS_PATH, "*", "text"), provider=_PROVIDER)
    except DecodeError as exc:
        return DecodedResponse.failure(exc)

    candidate = select_field(payload, ("candidates", 0), provider=_PROVIDER)
    return DecodedResponse.success(
        "".join(fragments),
        provider=_PROVIDER,
        finish_reason=_read_str(candidate, "finishReason"),
        usage=read_usage(
            payload,
            container="usageMetadata",
            input_key="promptTokenCount",
            output_key="candidatesTokenCount",
            total_key="totalTokenCount",
        ),
    )


def extract_gemini_tool_calls(body: bytes | str) -> tuple[ToolCall, ...]:
    """Return ``functionCall`` parts as tool calls; missing ids are synthesized by position."""

    payload = parse_response_body(body, provider=_PROVIDER)
    parts = select_list(payload, _PARTS_PATH, provider=_PROVIDER)
    calls: list[ToolCall] = []
    for index, part in enumerate(parts):
        function_call = _read_value(part, "functionCall")
        if function_call is None:
            continue
        name = _read_str(function_call, "name")
        if name is None:
            raise missing_field(
                payload, (*_PARTS_PATH, index, "functionCall", "name"), provider=_PROVIDER
            )
        call_id = _read_str(function_call, "id") or f"gemini-tool-call-{len(calls) + 1}"
        arguments = parse_tool_arguments(
            _read_value(function_call, "args"), provider=_PROVIDER, tool_name=name
        )
        calls.append(ToolCall(call_id=call_id, name=name, arguments=arguments))
    return tuple(calls)


__all__ = [
    "GeminiAdapter",
    "build_gemini_request",
    "decode_gemini_response",
    "extract_gemini_tool_calls",
    "gemini_request_path",
]
