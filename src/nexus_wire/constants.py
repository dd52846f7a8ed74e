"""Stable wire-level constants shared by the provider adapters."""

from __future__ import annotations

from typing import Final

# Schema version for wire.toml.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Default provider endpoints.
OPENAI_HOST: Final[str] = "api.openai.com"
ANTHROPIC_HOST: Final[str] = "api.anthropic.com"
GEMINI_HOST: Final[str] = "generativelanguage.googleapis.com"
DEFAULT_HTTPS_PORT: Final[int] = 443
DEFAULT_HTTP_PORT: Final[int] = 80

# Request paths.
OPENAI_CHAT_COMPLETIONS_PATH: Final[str] = "/v1/chat/completions"
ANTHROPIC_MESSAGES_PATH: Final[str] = "/v1/messages"
GEMINI_MODELS_PATH: Final[str] = "/v1beta/models"
GEMINI_GENERATE_METHOD: Final[str] = "generateContent"
GEMINI_STREAM_GENERATE_METHOD: Final[str] = "streamGenerateContent"

# Protocol details.
ANTHROPIC_API_VERSION: Final[str] = "2023-06-01"
ANTHROPIC_DEFAULT_MAX_TOKENS: Final[int] = 4096
HTTP_VERSION: Final[str] = "HTTP/1.1"
JSON_CONTENT_TYPE: Final[str] = "application/json"
DEFAULT_ACCEPT: Final[str] = "*/*"

# Reasoning effort levels accepted by providers that support them.
REASONING_EFFORT_LEVELS: Final[tuple[str, ...]] = ("minimal", "low", "medium", "high")

__all__ = [
    "ANTHROPIC_API_VERSION",
    "ANTHROPIC_DEFAULT_MAX_TOKENS",
    "ANTHROPIC_HOST",
    "ANTHROPIC_MESSAGES_PATH",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_ACCEPT",
    "DEFAULT_HTTPS_PORT",
    "DEFAULT_HTTP_PORT",
    "GEMINI_GENERATE_METHOD",
    "GEMINI_HOST",
    "GEMINI_MODELS_PATH",
    "GEMINI_STREAM_GENERATE_METHOD",
    "HTTP_VERSION",
    "JSON_CONTENT_TYPE",
    "OPENAI_CHAT_COMPLETIONS_PATH",
    "OPENAI_HOST",
    "REASONING_EFFORT_LEVELS",
]
