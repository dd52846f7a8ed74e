"""
nexus-wire — canonical conversation model

File: src/nexus_wire/providers/conversation.py
Last updated: 2026-10-17

Purpose
- Provider-independent representation of a conversation: ordered turns with text,
  tool-call requests and tool results, plus an optional system instruction.

What should be included in this file
- Immutable turn/conversation types and the tool descriptor.
- Turn-sequence validation shared by every adapter.
- Mapping round-trip helpers for file-based callers.

Functional requirements
- Turn order is the only ordering; append returns a new conversation.

Non-functional requirements
- Construction-time validation; invalid shapes never reach an adapter.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from nexus_wire.providers.base import (
    InvalidTurnSequenceError,
    JSONValue,
    _coerce_json_mapping,
    _validate_non_empty_str,
    _validate_optional_str,
)


class Role(str, Enum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL_OUTPUT = "tool-output"


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A model-requested function invocation."""

    call_id: str
    name: str
    arguments: Mapping[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "call_id", _validate_non_empty_str(self.call_id, "ToolCall.call_id")
        )
        object.__setattr__(self, "name", _validate_non_empty_str(self.name, "ToolCall.name"))
        if not isinstance(self.arguments, Mapping):
            raise TypeError("ToolCall.arguments must be a JSON object")
        object.__setattr__(
            self,
            "arguments",
            _coerce_json_mapping(dict(self.arguments), path="ToolCall.arguments"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "call_id": self.call_id,
            "name": self.name,
            "arguments": dict(self.arguments),
        }


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Output of an executed tool call, keyed by the originating call id."""

    call_id: str
    output: str

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "call_id", _validate_non_empty_str(self.call_id, "ToolResult.call_id")
        )
        if not isinstance(self.output, str):
            raise TypeError("ToolResult.output must be a string")

    def to_dict(self) -> dict[str, JSONValue]:
        return {"call_id": self.call_id, "output": self.output}


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Tool contract translated verbatim into each provider's tool schema."""

    name: str
    description: str = ""
    parameter_schema: Mapping[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _validate_non_empty_str(self.name, "ToolDefinition.name"))
        if not isinstance(self.description, str):
            raise TypeError("ToolDefinition.description must be a string")
        if not isinstance(self.parameter_schema, Mapping):
            raise TypeError("ToolDefinition.parameter_schema must be a JSON object")
        object.__setattr__(
            self,
            "parameter_schema",
            _coerce_json_mapping(
                dict(self.parameter_schema), path="ToolDefinition.parameter_schema"
            ),
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> ToolDefinition:
        schema = payload.get("parameter_schema", payload.get("parameters", {}))
        if not isinstance(schema, Mapping):
            raise TypeError("tool parameter_schema must be a mapping")
        description = payload.get("description", "")
        return cls(
            name=str(payload.get("name", "")),
            description=description if isinstance(description, str) else "",
            parameter_schema=schema,
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "name": self.name,
            "description": self.description,
            "parameter_schema": dict(self.parameter_schema),
        }


@dataclass(frozen=True, slots=True)
class Turn:
    """One message-equivalent unit in a canonical conversation."""

    role: Role
    text: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResult, ...] = ()

    def __post_init__(self) -> None:
        try:
            role = Role(self.role)
        except ValueError as exc:
            raise ValueError(f"Turn.role must be one of: {_role_names()}") from exc
        object.__setattr__(self, "role", role)
        if self.text is not None and not isinstance(self.text, str):
            raise TypeError("Turn.text must be a string or None")

        calls = tuple(self.tool_calls)
        results = tuple(self.tool_results)
        for index, call in enumerate(calls):
            if not isinstance(call, ToolCall):
                raise TypeError(f"Turn.tool_calls[{index}] must be a ToolCall")
        for index, result in enumerate(results):
            if not isinstance(result, ToolResult):
                raise TypeError(f"Turn.tool_results[{index}] must be a ToolResult")
        object.__setattr__(self, "tool_calls", calls)
        object.__setattr__(self, "tool_results", results)

        if role is Role.USER:
            if self.text is None:
                raise ValueError("user turns require text")
            if calls or results:
                raise ValueError("user turns cannot carry tool calls or tool results")
        elif role is Role.ASSISTANT:
            if self.text is None and not calls:
                raise ValueError("assistant turns require text or at least one tool call")
            if results:
                raise ValueError("assistant turns cannot carry tool results")
        else:
            if not results:
                raise ValueError("tool-output turns require at least one tool result")
            if self.text is not None or calls:
                raise ValueError("tool-output turns carry only tool results")

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role=Role.USER, text=text)

    @classmethod
    def assistant(cls, text: str | None = None, tool_calls: Sequence[ToolCall] = ()) -> Turn:
        return cls(role=Role.ASSISTANT, text=text, tool_calls=tuple(tool_calls))

    @classmethod
    def tool_output(cls, *results: ToolResult) -> Turn:
        return cls(role=Role.TOOL_OUTPUT, tool_results=tuple(results))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> Turn:
        raw_text = payload.get("text")
        text = raw_text if isinstance(raw_text, str) else None
        if raw_text is not None and text is None:
            raise TypeError("turn text must be a string")
        return cls(
            role=Role(str(payload.get("role", ""))),
            text=text,
            tool_calls=tuple(
                ToolCall(
                    call_id=str(item.get("call_id", "")),
                    name=str(item.get("name", "")),
                    arguments=_as_mapping(item.get("arguments", {}), "tool call arguments"),
                )
                for item in _mapping_items(payload.get("tool_calls", ()), "tool_calls")
            ),
            tool_results=tuple(
                ToolResult(call_id=str(item.get("call_id", "")), output=_as_output(item))
                for item in _mapping_items(payload.get("tool_results", ()), "tool_results")
            ),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"role": self.role.value}
        if self.text is not None:
            payload["text"] = self.text
        if self.tool_calls:
            payload["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_results:
            payload["tool_results"] = [result.to_dict() for result in self.tool_results]
        return payload


@dataclass(frozen=True, slots=True)
class Conversation:
    """Append-only ordered sequence of turns plus an optional system instruction."""

    turns: tuple[Turn, ...] = ()
    system_instruction: str | None = None

    def __post_init__(self) -> None:
        turns = tuple(self.turns)
        for index, turn in enumerate(turns):
            if not isinstance(turn, Turn):
                raise TypeError(f"Conversation.turns[{index}] must be a Turn")
        object.__setattr__(self, "turns", turns)
        object.__setattr__(
            self,
            "system_instruction",
            _validate_optional_str(
                self.system_instruction, "Conversation.system_instruction", strip=False
            ),
        )

    def __len__(self) -> int:
        return len(self.turns)

    def append(self, turn: Turn) -> Conversation:
        return Conversation(turns=(*self.turns, turn), system_instruction=self.system_instruction)

    def extend(self, turns: Sequence[Turn]) -> Conversation:
        return Conversation(
            turns=(*self.turns, *turns), system_instruction=self.system_instruction
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> Conversation:
        system = payload.get("system_instruction")
        if system is not None and not isinstance(system, str):
            raise TypeError("system_instruction must be a string")
        return cls(
            turns=tuple(
                Turn.from_mapping(item)
                for item in _mapping_items(payload.get("turns", ()), "turns")
            ),
            system_instruction=system,
        )

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"turns": [turn.to_dict() for turn in self.turns]}
        if self.system_instruction is not None:
            payload["system_instruction"] = self.system_instruction
        return payload


def validate_turn_sequence(conversation: Conversation, *, provider: str) -> dict[str, ToolCall]:
    """Check cross-turn invariants and return issued tool calls keyed by call id.

    Raises ``InvalidTurnSequenceError`` when the conversation is empty, when a
    call id is issued twice, or when a tool result answers a call that was never
    issued by an earlier assistant turn or was already answered.
    """

    if not isinstance(conversation, Conversation):
        raise TypeError("conversation must be a Conversation")
    if not conversation.turns:
        raise InvalidTurnSequenceError("conversation has no turns", provider=provider)

    issued: dict[str, ToolCall] = {}
    answered: set[str] = set()
    for index, turn in enumerate(conversation.turns):
        for call in turn.tool_calls:
            if call.call_id in issued:
                raise InvalidTurnSequenceError(
                    f"tool call id {call.call_id!r} issued more than once",
                    provider=provider,
                    turn_index=index,
                )
            issued[call.call_id] = call
        for result in turn.tool_results:
            if result.call_id not in issued:
                raise InvalidTurnSequenceError(
                    f"tool result {result.call_id!r} has no preceding tool call",
                    provider=provider,
                    turn_index=index,
                )
            if result.call_id in answered:
                raise InvalidTurnSequenceError(
                    f"tool call {result.call_id!r} answered more than once",
                    provider=provider,
                    turn_index=index,
                )
            answered.add(result.call_id)
    return issued


def _role_names() -> str:
    return ", ".join(role.value for role in Role)


def _mapping_items(value: object, field_name: str) -> tuple[Mapping[str, object], ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise TypeError(f"{field_name} must be a list")
    items: list[Mapping[str, object]] = []
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise TypeError(f"{field_name}[{index}] must be a mapping")
        items.append(item)
    return tuple(items)


def _as_mapping(value: object, field_name: str) -> Mapping[str, JSONValue]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{field_name} must be a mapping")
    return _coerce_json_mapping(value, path=field_name)


def _as_output(item: Mapping[str, object]) -> str:
    output = item.get("output", "")
    if not isinstance(output, str):
        raise TypeError("tool result output must be a string")
    return output


__all__ = [
    "Conversation",
    "Role",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "Turn",
    "validate_turn_sequence",
]
