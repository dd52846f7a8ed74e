"""
nexus-wire — public security utilities

File: src/nexus_wire/security/__init__.py
Last updated: 2026-10-17

Purpose
- Secret redaction helpers shared by logging, request descriptors and the CLI.

Functional requirements
- Must provide consistent redaction for every surface that can echo a credential.
"""

from nexus_wire.security.redaction import (
    REDACTED_VALUE,
    SENSITIVE_KEYS,
    is_env_reference_key,
    is_sensitive_key,
    redact_secret_value,
    redact_structure,
    redact_text,
)

__all__ = [
    "REDACTED_VALUE",
    "SENSITIVE_KEYS",
    "is_env_reference_key",
    "is_sensitive_key",
    "redact_secret_value",
    "redact_structure",
    "redact_text",
]
