"""
nexus-wire — secret redaction utilities

File: src/nexus_wire/security/redaction.py
Last updated: 2026-10-17

Purpose
- Redaction rules for log records, rendered request envelopes and config dumps.

What should be included in this file
- Secret-shaped text patterns for the credentials the adapters handle
  (bearer tokens, x-api-key headers, key= query parameters, provider key shapes).
- Sensitive-key detection for nested mappings.

Functional requirements
- Must ensure no API key reaches a log sink or CLI output by default.

Non-functional requirements
- Deterministic and idempotent: redacting redacted text is a no-op.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

REDACTED_VALUE: Final[str] = "***REDACTED***"

SENSITIVE_KEYS: Final[frozenset[str]] = frozenset(
    {
        "api_key",
        "apikey",
        "authorization",
        "x_api_key",
        "key",
        "secret",
        "token",
        "access_token",
        "password",
        "auth",
        "credential",
        "credentials",
    }
)

_SENSITIVE_KEY_SUFFIXES: Final[tuple[str, ...]] = (
    "_api_key",
    "_secret",
    "_token",
    "_password",
)

_CAMEL_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True, slots=True)
class _TextRule:
    name: str
    pattern: re.Pattern[str]
    sensitive_group: int | None = None


_TEXT_RULES: Final[tuple[_TextRule, ...]] = (
    _TextRule(
        name="authorization_bearer",
        pattern=re.compile(r"(?i)(\bauthorization\s*:\s*bearer\s+)([^\s\"',]+)"),
        sensitive_group=2,
    ),
    _TextRule(
        name="x_api_key_header",
        pattern=re.compile(r"(?i)(\bx-api-key\s*:\s*)([^\s\"',]+)"),
        sensitive_group=2,
    ),
    _TextRule(
        name="key_query_param",
        pattern=re.compile(r"([?&]key=)([^&\s\"'#]+)"),
        sensitive_group=2,
    ),
    _TextRule(
        name="explicit_secret_assignment",
        pattern=re.compile(
            r"(?i)(\b(?:api[_-]?key|secret|access[_-]?token|password)\b\s*[:=]\s*[\"']?)"
            r"([A-Za-z0-9._~+/=-]{6,})"
        ),
        sensitive_group=2,
    ),
    _TextRule(name="anthropic_api_key", pattern=re.compile(r"\bsk-ant-[A-Za-z0-9_-]{16,255}")),
    _TextRule(name="openai_api_key", pattern=re.compile(r"\bsk-[A-Za-z0-9_-]{16,255}")),
    _TextRule(name="google_api_key", pattern=re.compile(r"\bAIza[0-9A-Za-z_-]{30,}")),
)


def is_sensitive_key(key: str) -> bool:
    """Return whether a mapping key names a credential-bearing value."""

    normalized = _normalize_key(key)
    if not normalized:
        return False
    if normalized in SENSITIVE_KEYS:
        return True
    if is_env_reference_key(normalized):
        return False
    return normalized.endswith(_SENSITIVE_KEY_SUFFIXES)


def is_env_reference_key(key: str) -> bool:
    """Return whether a key names an environment variable rather than holding a value."""

    return _normalize_key(key).endswith("_env")


def redact_text(text: str) -> str:
    """Redact secret-like text. Deterministic and idempotent for stable inputs."""

    if not isinstance(text, str):
        raise TypeError(f"text must be a string, got {type(text).__name__}")

    redacted = text
    for rule in _TEXT_RULES:
        redacted = _apply_text_rule(redacted, rule)
    return redacted


def redact_secret_value(text: str, secret: str | None) -> str:
    """Replace every literal occurrence of ``secret`` and then apply pattern rules."""

    if secret:
        text = text.replace(secret, REDACTED_VALUE)
    return redact_text(text)


def redact_structure(value: object) -> object:
    """Return a deep-redacted copy of nested mappings and sequences."""

    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, Mapping):
        out: dict[str, object] = {}
        for key in sorted(value, key=str):
            item = value[key]
            if isinstance(key, str) and is_sensitive_key(key) and item is not None:
                out[str(key)] = REDACTED_VALUE
            else:
                out[str(key)] = redact_structure(item)
        return out
    if isinstance(value, (list, tuple)):
        return [redact_structure(item) for item in value]
    return redact_text(repr(value))


def _apply_text_rule(text: str, rule: _TextRule) -> str:
    def repl(match: re.Match[str]) -> str:
        if rule.sensitive_group is None:
            return REDACTED_VALUE
        candidate = match.group(rule.sensitive_group)
        if candidate == REDACTED_VALUE:
            return match.group(0)
        start, end = match.span(rule.sensitive_group)
        full = match.group(0)
        offset_start = start - match.start(0)
        offset_end = end - match.start(0)
        return f"{full[:offset_start]}{REDACTED_VALUE}{full[offset_end:]}"

    return rule.pattern.sub(repl, text)


def _normalize_key(key: str) -> str:
    with_boundaries = _CAMEL_CASE_BOUNDARY.sub(r"\1_\2", key.strip())
    return _NON_ALNUM.sub("_", with_boundaries.lower()).strip("_")


__all__ = [
    "REDACTED_VALUE",
    "SENSITIVE_KEYS",
    "is_env_reference_key",
    "is_sensitive_key",
    "redact_secret_value",
    "redact_structure",
    "redact_text",
]
