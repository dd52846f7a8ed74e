"""
nexus-wire — provider base models and shared utilities

File: src/nexus_wire/providers/base.py
Last updated: 2026-10-17

Purpose
- Shared request/response models for the provider adapter layer.

What should be included in this file
- Provider configuration and endpoint override parsing.
- Request Descriptor: a structured HTTP request prior to byte rendering.
- Decoded Response: normalized text or a structured decode failure.
- Error taxonomy for adapter and decode failures.
- Adapter protocol and a registry keyed by provider tag.

Functional requirements
- Every descriptor carries its credential in exactly one location.
- Decoders never report success for an absent text node.

Non-functional requirements
- Must make it easy to add new providers without touching core logic.
- No I/O and no shared mutable state; credentials never appear in ``repr``.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Protocol, TypeAlias, cast, runtime_checkable
from urllib.parse import quote, urlencode, urlsplit

from nexus_wire.constants import (
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTPS_PORT,
    REASONING_EFFORT_LEVELS,
)
from nexus_wire.security.redaction import REDACTED_VALUE, redact_text

if TYPE_CHECKING:
    from nexus_wire.providers.conversation import Conversation, ToolCall, ToolDefinition

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
FieldPath: TypeAlias = tuple[str | int, ...]

_RESERVED_HEADERS = frozenset({"host", "content-length"})


def _validate_non_empty_str(value: str, field_name: str, *, strip: bool = True) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    normalized = value.strip() if strip else value
    if not normalized.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return normalized


def _validate_optional_str(value: str | None, field_name: str, *, strip: bool = True) -> str | None:
    if value is None:
        return None
    return _validate_non_empty_str(value, field_name, strip=strip)


def _coerce_json_value(value: object, *, path: str) -> JSONValue:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        return _coerce_json_mapping(value, path=path)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [_coerce_json_value(item, path=f"{path}[]") for item in value]
    raise TypeError(f"{path} must be JSON-serializable")


def _coerce_json_mapping(mapping: Mapping[str, object], *, path: str) -> dict[str, JSONValue]:
    out: dict[str, JSONValue] = {}
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise TypeError(f"{path} keys must be strings")
        out[key] = _coerce_json_value(value, path=f"{path}.{key}")
    return out


def _encode_json_body(payload: Mapping[str, object]) -> bytes:
    # Insertion order is preserved so equal inputs serialize to equal bytes.
    return json.dumps(
        payload,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    ).encode("utf-8")


def _normalize_detail(value: object) -> str:
    text = str(value).strip()
    if not text:
        return "unknown error"
    return " ".join(text.split())


class Provider(str, Enum):
    """Provider tags understood by the dispatch layer."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: str | Provider) -> Provider:
        if isinstance(value, Provider):
            return value
        normalized = _validate_non_empty_str(value, "provider").lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise UnsupportedProviderError(
            f"unknown provider tag {normalized!r}", provider=normalized
        )


class WireError(RuntimeError):
    """Base error with deterministic machine-readable fields."""

    code: ClassVar[str] = "wire"

    def __init__(self, detail: str, *, provider: str = "wire") -> None:
        self.provider = _validate_non_empty_str(provider, "provider")
        self.detail = _normalize_detail(detail)
        super().__init__(f"provider={self.provider} code={self.code} detail={self.detail}")


class UnsupportedProviderError(WireError):
    """Raised when a provider tag has no registered adapter."""

    code = "unsupported_provider"


class AdapterError(WireError):
    """Raised when a canonical conversation cannot be translated into a request."""

    code = "adapter"


class MissingCredentialError(AdapterError):
    """The API key is absent or blank."""

    code = "missing_credential"

    def __init__(self, detail: str = "api key is missing or empty", *, provider: str) -> None:
        super().__init__(detail, provider=provider)


class InvalidTurnSequenceError(AdapterError):
    """The turn sequence is structurally invalid for request building."""

    code = "invalid_turn_sequence"

    def __init__(self, detail: str, *, provider: str, turn_index: int | None = None) -> None:
        self.turn_index = turn_index
        if turn_index is not None:
            detail = f"turn {turn_index}: {detail}"
        super().__init__(detail, provider=provider)


class DecodeError(WireError):
    """Raised when a provider response body cannot be normalized."""

    code = "decode"


class InvalidEnvelopeError(DecodeError):
    """The body is not a UTF-8 JSON object."""

    code = "invalid_envelope"


class MissingFieldError(DecodeError):
    """The response lacks the expected field."""

    code = "missing_field"

    def __init__(self, field_path: str, *, provider: str, detail: str | None = None) -> None:
        self.field_path = _validate_non_empty_str(field_path, "field_path")
        super().__init__(detail or f"missing field {self.field_path}", provider=provider)


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Network location an adapter targets."""

    scheme: str
    host: str
    port: int
    base_path: str = ""

    def __post_init__(self) -> None:
        scheme = _validate_non_empty_str(self.scheme, "Endpoint.scheme").lower()
        if scheme not in {"http", "https"}:
            raise ValueError(f"Endpoint.scheme must be http or https, got {scheme!r}")
        object.__setattr__(self, "scheme", scheme)
        object.__setattr__(self, "host", _validate_non_empty_str(self.host, "Endpoint.host"))
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise TypeError("Endpoint.port must be an integer")
        if not 0 < self.port < 65536:
            raise ValueError("Endpoint.port must be between 1 and 65535")
        base_path = self.base_path.rstrip("/")
        if base_path and not base_path.startswith("/"):
            base_path = f"/{base_path}"
        object.__setattr__(self, "base_path", base_path)

    @classmethod
    def https(cls, host: str) -> Endpoint:
        return cls(scheme="https", host=host, port=DEFAULT_HTTPS_PORT)

    @classmethod
    def from_base_url(cls, base_url: str) -> Endpoint:
        """Parse ``scheme://host[:port][/prefix]`` into an endpoint."""

        normalized = _validate_non_empty_str(base_url, "base_url")
        parts = urlsplit(normalized)
        if parts.scheme.lower() not in {"http", "https"}:
            raise ValueError(f"base_url must use http or https: {normalized!r}")
        if not parts.hostname:
            raise ValueError(f"base_url is missing a host: {normalized!r}")
        if parts.query or parts.fragment:
            raise ValueError("base_url must not carry a query or fragment")
        if parts.username or parts.password:
            raise ValueError("base_url must not embed credentials")
        try:
            explicit_port = parts.port
        except ValueError as exc:
            raise ValueError(f"base_url has an invalid port: {normalized!r}") from exc
        scheme = parts.scheme.lower()
        port = explicit_port if explicit_port is not None else _default_port(scheme)
        base_path = quote(parts.path, safe="/%:@!$&'()*+,;=~")
        return cls(scheme=scheme, host=parts.hostname, port=port, base_path=base_path)

    @property
    def is_default_port(self) -> bool:
        return self.port == _default_port(self.scheme)

    @property
    def host_header(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.is_default_port:
            return host
        return f"{host}:{self.port}"

    def path(self, suffix: str) -> str:
        return f"{self.base_path}{suffix}"


def _default_port(scheme: str) -> int:
    return DEFAULT_HTTPS_PORT if scheme == "https" else DEFAULT_HTTP_PORT


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Per-request provider configuration supplied by the caller."""

    api_key: str | None = field(repr=False)
    model: str
    streaming: bool = False
    endpoint_override: str | None = None
    max_tokens: int | None = None
    reasoning_effort: str | None = None

    def __post_init__(self) -> None:
        if self.api_key is not None and not isinstance(self.api_key, str):
            raise TypeError("ProviderConfig.api_key must be a string or None")
        object.__setattr__(
            self, "model", _validate_non_empty_str(self.model, "ProviderConfig.model")
        )
        if not isinstance(self.streaming, bool):
            raise TypeError("ProviderConfig.streaming must be a boolean")
        override = _validate_optional_str(
            self.endpoint_override, "ProviderConfig.endpoint_override"
        )
        if override is not None:
            Endpoint.from_base_url(override)
        object.__setattr__(self, "endpoint_override", override)
        if self.max_tokens is not None:
            if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int):
                raise TypeError("ProviderConfig.max_tokens must be an integer")
            if self.max_tokens <= 0:
                raise ValueError("ProviderConfig.max_tokens must be > 0")
        effort = _validate_optional_str(self.reasoning_effort, "ProviderConfig.reasoning_effort")
        if effort is not None:
            effort = effort.lower()
            if effort not in REASONING_EFFORT_LEVELS:
                allowed = ", ".join(REASONING_EFFORT_LEVELS)
                raise ValueError(f"ProviderConfig.reasoning_effort must be one of: {allowed}")
        object.__setattr__(self, "reasoning_effort", effort)

    def endpoint(self, default_host: str) -> Endpoint:
        """Return the override endpoint, or HTTPS on ``default_host``."""

        if self.endpoint_override is None:
            return Endpoint.https(default_host)
        return Endpoint.from_base_url(self.endpoint_override)

    def require_api_key(self, *, provider: str) -> str:
        """Return the stripped API key or raise ``MissingCredentialError``."""

        if self.api_key is None or not self.api_key.strip():
            raise MissingCredentialError(provider=provider)
        return self.api_key.strip()


@dataclass(frozen=True, slots=True, repr=False)
class RequestDescriptor:
    """Structured HTTP request emitted by an adapter."""

    provider: str
    scheme: str
    host: str
    port: int
    path: str
    headers: tuple[tuple[str, str], ...]
    body: bytes
    query: tuple[tuple[str, str], ...] = ()
    method: str = "POST"
    auth_header: str | None = None
    auth_query_param: str | None = None
    streaming: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "provider", _validate_non_empty_str(self.provider, "RequestDescriptor.provider")
        )
        object.__setattr__(
            self, "method", _validate_non_empty_str(self.method, "RequestDescriptor.method").upper()
        )
        if not isinstance(self.path, str) or not self.path.startswith("/"):
            raise ValueError("RequestDescriptor.path must start with '/'")
        if not isinstance(self.body, bytes):
            raise TypeError("RequestDescriptor.body must be bytes")
        object.__setattr__(self, "headers", _normalize_pairs(self.headers, "headers"))
        object.__setattr__(self, "query", _normalize_pairs(self.query, "query"))

        for name, _ in self.headers:
            if name.lower() in _RESERVED_HEADERS:
                raise ValueError(f"RequestDescriptor.headers must not set {name}")

        if (self.auth_header is None) == (self.auth_query_param is None):
            raise ValueError(
                "RequestDescriptor requires exactly one of auth_header or auth_query_param"
            )
        if self.auth_header is not None:
            matches = [name for name, _ in self.headers if name.lower() == self.auth_header.lower()]
            if len(matches) != 1:
                raise ValueError(
                    f"RequestDescriptor.auth_header {self.auth_header!r} must appear exactly once"
                )
        if self.auth_query_param is not None:
            matches = [name for name, _ in self.query if name == self.auth_query_param]
            if len(matches) != 1:
                raise ValueError(
                    "RequestDescriptor.auth_query_param "
                    f"{self.auth_query_param!r} must appear exactly once"
                )

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(scheme=self.scheme, host=self.host, port=self.port)

    @property
    def host_header(self) -> str:
        return self.endpoint.host_header

    @property
    def target(self) -> str:
        """Request target: path plus the encoded query string."""

        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host_header}{self.target}"

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def credential_header(self) -> tuple[str, str] | None:
        if self.auth_header is None:
            return None
        lowered = self.auth_header.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return key, value
        return None

    def credential(self) -> str:
        """Return the raw credential value; callers must never log it."""

        if self.auth_query_param is not None:
            return dict(self.query)[self.auth_query_param]
        pair = self.credential_header()
        assert pair is not None
        return pair[1]

    def json_body(self) -> JSONValue:
        return cast("JSONValue", json.loads(self.body.decode("utf-8")))

    def redacted(self) -> dict[str, JSONValue]:
        """Return a JSON-safe view with the credential replaced."""

        query = [
            (name, REDACTED_VALUE if name == self.auth_query_param else value)
            for name, value in self.query
        ]
        redacted_target = self.path if not query else f"{self.path}?{urlencode(query)}"
        auth = self.auth_header.lower() if self.auth_header is not None else None
        headers: list[JSONValue] = [
            [name, REDACTED_VALUE if name.lower() == auth else redact_text(value)]
            for name, value in self.headers
        ]
        return {
            "provider": self.provider,
            "method": self.method,
            "url": f"{self.scheme}://{self.host_header}{redacted_target}",
            "headers": headers,
            "streaming": self.streaming,
            "body": self.json_body(),
        }

    def __repr__(self) -> str:
        return (
            f"RequestDescriptor(provider={self.provider!r}, method={self.method!r}, "
            f"host={self.host_header!r}, path={self.path!r}, body_bytes={len(self.body)})"
        )


def _normalize_pairs(
    pairs: Sequence[tuple[str, str]] | Mapping[str, str],
    field_name: str,
) -> tuple[tuple[str, str], ...]:
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    out: list[tuple[str, str]] = []
    for index, pair in enumerate(items):
        name, value = pair
        name = _validate_non_empty_str(name, f"RequestDescriptor.{field_name}[{index}] name")
        if not isinstance(value, str):
            raise TypeError(f"RequestDescriptor.{field_name}[{index}] value must be a string")
        out.append((name, value))
    return tuple(out)


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token accounting reported by a provider response."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self) -> None:
        if self.input_tokens < 0:
            raise ValueError("input_tokens must be >= 0")
        if self.output_tokens < 0:
            raise ValueError("output_tokens must be >= 0")
        if self.total_tokens < 0:
            raise ValueError("total_tokens must be >= 0")

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True, slots=True)
class DecodedResponse:
    """Normalized decode outcome: text on success, a ``DecodeError`` otherwise."""

    provider: str
    text: str | None = None
    error: DecodeError | None = None
    finish_reason: str | None = None
    usage: TokenUsage | None = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.error is None):
            raise ValueError("DecodedResponse requires exactly one of text or error")
        if self.text is not None and not isinstance(self.text, str):
            raise TypeError("DecodedResponse.text must be a string")

    @classmethod
    def success(
        cls,
        text: str,
        *,
        provider: str,
        finish_reason: str | None = None,
        usage: TokenUsage | None = None,
    ) -> DecodedResponse:
        return cls(provider=provider, text=text, finish_reason=finish_reason, usage=usage)

    @classmethod
    def failure(cls, error: DecodeError) -> DecodedResponse:
        return cls(provider=error.provider, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        assert self.text is not None
        return self.text

    def to_dict(self) -> dict[str, JSONValue]:
        if self.error is not None:
            payload: dict[str, JSONValue] = {
                "provider": self.provider,
                "ok": False,
                "error": {"code": self.error.code, "detail": self.error.detail},
            }
            if isinstance(self.error, MissingFieldError):
                payload["error"] = {
                    "code": self.error.code,
                    "detail": self.error.detail,
                    "field_path": self.error.field_path,
                }
            return payload
        payload = {"provider": self.provider, "ok": True, "text": self.text}
        if self.finish_reason is not None:
            payload["finish_reason"] = self.finish_reason
        if self.usage is not None:
            payload["usage"] = self.usage.to_dict()
        return payload


@runtime_checkable
class ProviderAdapter(Protocol):
    """Capability pair implemented by every provider adapter."""

    provider_name: str

    def build_request(
        self,
        conversation: Conversation,
        tools: Sequence[ToolDefinition],
        config: ProviderConfig,
    ) -> RequestDescriptor:
        """Translate a canonical conversation into a request descriptor."""

    def decode_response(self, body: bytes | str) -> DecodedResponse:
        """Extract generated text from a raw response body."""

    def extract_tool_calls(self, body: bytes | str) -> tuple[ToolCall, ...]:
        """Extract tool-call requests from a raw response body."""


ProviderFactory: TypeAlias = Callable[[], ProviderAdapter]


class ProviderRegistry:
    """Registry for provider adapter factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory, *, overwrite: bool = False) -> None:
        normalized = _validate_non_empty_str(name, "name").lower()
        if normalized in self._factories and not overwrite:
            raise ValueError(f"provider already registered: {normalized}")
        self._factories[normalized] = factory

    def unregister(self, name: str) -> None:
        normalized = _validate_non_empty_str(name, "name").lower()
        self._factories.pop(normalized, None)

    def is_registered(self, name: str) -> bool:
        normalized = _validate_non_empty_str(name, "name").lower()
        return normalized in self._factories

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories.keys()))

    def get(self, name: str | Provider) -> ProviderAdapter:
        raw = name.value if isinstance(name, Provider) else name
        normalized = _validate_non_empty_str(raw, "name").lower()
        factory = self._factories.get(normalized)
        if factory is None:
            raise UnsupportedProviderError("provider is not registered", provider=normalized)
        adapter = factory()
        if not isinstance(adapter, ProviderAdapter):
            raise TypeError(f"provider factory returned invalid adapter for {normalized}")
        return adapter


def parse_tool_arguments(
    arguments: object,
    *,
    provider: str,
    tool_name: str,
) -> dict[str, JSONValue]:
    """Normalize provider tool-argument payload to a JSON object."""

    if arguments is None:
        return {}
    if isinstance(arguments, Mapping):
        return _coerce_json_mapping(arguments, path="arguments")
    if isinstance(arguments, str):
        candidate = arguments.strip()
        if not candidate:
            return {}
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise InvalidEnvelopeError(
                f"invalid tool arguments for {tool_name}: non-JSON string",
                provider=provider,
            ) from exc
        if not isinstance(parsed, dict):
            raise InvalidEnvelopeError(
                f"invalid tool arguments for {tool_name}: expected JSON object",
                provider=provider,
            )
        return _coerce_json_mapping(parsed, path="arguments")

    raise InvalidEnvelopeError(
        f"invalid tool arguments for {tool_name}: unsupported type {type(arguments).__name__}",
        provider=provider,
    )


def parse_response_body(body: bytes | bytearray | str, *, provider: str) -> dict[str, object]:
    """Parse a raw body into a JSON object or raise ``InvalidEnvelopeError``."""

    if isinstance(body, (bytes, bytearray)):
        try:
            text = bytes(body).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidEnvelopeError(
                "response body is not valid UTF-8", provider=provider
            ) from exc
    elif isinstance(body, str):
        text = body
    else:
        raise TypeError(f"body must be bytes or str, got {type(body).__name__}")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidEnvelopeError(
            f"response body is not valid JSON: {exc.msg} at position {exc.pos}",
            provider=provider,
        ) from exc
    except RecursionError as exc:
        raise InvalidEnvelopeError(
            "response body is not valid JSON: nesting exceeds the parser depth limit",
            provider=provider,
        ) from exc
    if not isinstance(payload, dict):
        raise InvalidEnvelopeError(
            f"response root must be a JSON object, got {type(payload).__name__}",
            provider=provider,
        )
    return cast("dict[str, object]", payload)


def format_field_path(path: FieldPath) -> str:
    """Render ``("choices", 0, "message")`` as ``choices[0].message``."""

    rendered = ""
    for element in path:
        if isinstance(element, int):
            rendered += f"[{element}]"
        elif element == "*":
            rendered += "[*]"
        else:
            rendered += f".{element}" if rendered else element
    return rendered


def select_field(payload: object, path: FieldPath, *, provider: str) -> object:
    """Walk ``path`` through ``payload``; null or absent nodes raise ``MissingFieldError``."""

    node = payload
    for depth, element in enumerate(path):
        prefix = path[: depth + 1]
        if isinstance(element, int):
            if not isinstance(node, list) or len(node) <= element:
                raise _missing_field(payload, prefix, provider=provider)
            node = node[element]
        else:
            if not isinstance(node, Mapping) or element not in node:
                raise _missing_field(payload, prefix, provider=provider)
            node = node[element]
        if node is None:
            raise _missing_field(payload, prefix, provider=provider)
    return node


def select_str(payload: object, path: FieldPath, *, provider: str) -> str:
    value = select_field(payload, path, provider=provider)
    if not isinstance(value, str):
        raise _missing_field(
            payload,
            path,
            provider=provider,
            reason=f"expected string, got {type(value).__name__}",
        )
    return value


def select_list(payload: object, path: FieldPath, *, provider: str) -> list[object]:
    value = select_field(payload, path, provider=provider)
    if not isinstance(value, list):
        raise _missing_field(
            payload,
            path,
            provider=provider,
            reason=f"expected array, got {type(value).__name__}",
        )
    return cast("list[object]", value)


def missing_field(payload: object, path: FieldPath, *, provider: str) -> MissingFieldError:
    """Build a ``MissingFieldError`` for ``path`` enriched with any provider error message."""

    return _missing_field(payload, path, provider=provider)


def _missing_field(
    payload: object,
    path: FieldPath,
    *,
    provider: str,
    reason: str | None = None,
) -> MissingFieldError:
    rendered = format_field_path(path)
    detail = f"missing field {rendered}"
    if reason is not None:
        detail = f"{detail} ({reason})"
    provider_message = provider_error_message(payload)
    if provider_message is not None:
        detail = f"{detail}; provider error: {provider_message}"
    return MissingFieldError(rendered, provider=provider, detail=detail)


def provider_error_message(payload: object) -> str | None:
    """Return a redacted message from a top-level ``error`` object, when present."""

    error = _read_value(payload, "error")
    if error is None:
        return None
    if isinstance(error, str):
        message: str | None = error
    else:
        message = _read_str(error, "message") or _read_str(error, "type")
    if message is None:
        return None
    return redact_text(_normalize_detail(message))


def read_usage(
    payload: object,
    *,
    container: str,
    input_key: str,
    output_key: str,
    total_key: str | None = None,
) -> TokenUsage | None:
    usage_payload = _read_value(payload, container)
    if not isinstance(usage_payload, Mapping):
        return None
    input_tokens = _read_count(usage_payload, input_key) or 0
    output_tokens = _read_count(usage_payload, output_key) or 0
    total_tokens = _read_count(usage_payload, total_key) if total_key is not None else None
    if total_tokens is None:
        total_tokens = input_tokens + output_tokens
    return TokenUsage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=total_tokens,
    )


def _read_value(value: object, key: str, *, default: object | None = None) -> object | None:
    if isinstance(value, Mapping):
        return cast("object | None", value.get(key, default))
    return default


def _read_sequence(value: object, key: str) -> tuple[object, ...]:
    candidate = _read_value(value, key)
    if isinstance(candidate, list):
        return tuple(candidate)
    return ()


def _read_str(value: object, key: str) -> str | None:
    candidate = _read_value(value, key)
    if isinstance(candidate, str) and candidate.strip():
        return candidate
    return None


def _read_int(value: object, key: str) -> int | None:
    candidate = _read_value(value, key)
    if isinstance(candidate, int) and not isinstance(candidate, bool):
        return candidate
    return None


def _read_count(value: object, key: str) -> int | None:
    # Negative counts are treated as absent.
    candidate = _read_int(value, key)
    if candidate is None or candidate < 0:
        return None
    return candidate


__all__ = [
    "AdapterError",
    "DecodeError",
    "DecodedResponse",
    "Endpoint",
    "FieldPath",
    "InvalidEnvelopeError",
    "InvalidTurnSequenceError",
    "JSONValue",
    "MissingCredentialError",
    "MissingFieldError",
    "Provider",
    "ProviderAdapter",
    "ProviderConfig",
    "ProviderFactory",
    "ProviderRegistry",
    "RequestDescriptor",
    "TokenUsage",
    "UnsupportedProviderError",
    "WireError",
    "format_field_path",
    "missing_field",
    "parse_response_body",
    "parse_tool_arguments",
    "provider_error_message",
    "read_usage",
    "select_field",
    "select_list",
    "select_str",
]
