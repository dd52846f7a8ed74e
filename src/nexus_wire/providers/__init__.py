"""
nexus-wire — provider adapters and shared provider API

File: src/nexus_wire/providers/__init__.py
Last updated: 2026-10-17

Purpose
- Canonical conversation model, provider adapters (OpenAI, Anthropic, Gemini),
  response decoders and provider-tag dispatch.

Functional requirements
- Must normalize responses (text, tool calls, usage) into a common format.

Non-functional requirements
- Must never log secrets or raw API keys.
"""

from nexus_wire.providers.anthropic_adapter import (
    AnthropicAdapter,
    build_anthropic_request,
    decode_anthropic_response,
    extract_anthropic_tool_calls,
)
from nexus_wire.providers.base import (
    AdapterError,
    DecodedResponse,
    DecodeError,
    Endpoint,
    InvalidEnvelopeError,
    InvalidTurnSequenceError,
    JSONValue,
    MissingCredentialError,
    MissingFieldError,
    Provider,
    ProviderAdapter,
    ProviderConfig,
    ProviderFactory,
    ProviderRegistry,
    RequestDescriptor,
    TokenUsage,
    UnsupportedProviderError,
    WireError,
)
from nexus_wire.providers.conversation import (
    Conversation,
    Role,
    ToolCall,
    ToolDefinition,
    ToolResult,
    Turn,
    validate_turn_sequence,
)
from nexus_wire.providers.dispatch import (
    build_request,
    decode_response,
    default_registry,
    extract_tool_calls,
)
from nexus_wire.providers.gemini_adapter import (
    GeminiAdapter,
    build_gemini_request,
    decode_gemini_response,
    extract_gemini_tool_calls,
)
from nexus_wire.providers.model_catalog import ModelCatalog, ModelEntry, load_model_catalog
from nexus_wire.providers.openai_adapter import (
    OpenAIAdapter,
    build_openai_request,
    decode_openai_response,
    extract_openai_tool_calls,
)

__all__ = [
    "AdapterError",
    "AnthropicAdapter",
    "Conversation",
    "DecodeError",
    "DecodedResponse",
    "Endpoint",
    "GeminiAdapter",
    "InvalidEnvelopeError",
    "InvalidTurnSequenceError",
    "JSONValue",
    "MissingCredentialError",
    "MissingFieldError",
    "ModelCatalog",
    "ModelEntry",
    "OpenAIAdapter",
    "Provider",
    "ProviderAdapter",
    "ProviderConfig",
    "ProviderFactory",
    "ProviderRegistry",
    "RequestDescriptor",
    "Role",
    "TokenUsage",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "Turn",
    "UnsupportedProviderError",
    "WireError",
    "build_anthropic_request",
    "build_gemini_request",
    "build_openai_request",
    "build_request",
    "decode_anthropic_response",
    "decode_gemini_response",
    "decode_openai_response",
    "decode_response",
    "default_registry",
    "extract_anthropic_tool_calls",
    "extract_gemini_tool_calls",
    "extract_openai_tool_calls",
    "extract_tool_calls",
    "load_model_catalog",
    "validate_turn_sequence",
]
