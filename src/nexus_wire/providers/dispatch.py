"""Provider-tag dispatch over the built-in adapters."""

from __future__ import annotations

from collections.abc import Sequence

from nexus_wire.providers.anthropic_adapter import AnthropicAdapter
from nexus_wire.providers.base import (
    DecodedResponse,
    Provider,
    ProviderConfig,
    ProviderRegistry,
    RequestDescriptor,
)
from nexus_wire.providers.conversation import Conversation, ToolCall, ToolDefinition
from nexus_wire.providers.gemini_adapter import GeminiAdapter
from nexus_wire.providers.openai_adapter import OpenAIAdapter


def default_registry() -> ProviderRegistry:
    """Return a fresh registry holding the OpenAI, Anthropic and Gemini adapters."""

    registry = ProviderRegistry()
    registry.register(Provider.OPENAI.value, OpenAIAdapter)
    registry.register(Provider.ANTHROPIC.value, AnthropicAdapter)
    registry.register(Provider.GEMINI.value, GeminiAdapter)
    return registry


_DEFAULT_REGISTRY = default_registry()


def build_request(
    provider: str | Provider,
    conversation: Conversation,
    tools: Sequence[ToolDefinition],
    config: ProviderConfig,
    *,
    registry: ProviderRegistry | None = None,
) -> RequestDescriptor:
    adapter = (registry or _DEFAULT_REGISTRY).get(provider)
    return adapter.build_request(conversation, tools, config)


def decode_response(
    provider: str | Provider,
    body: bytes | str,
    *,
    registry: ProviderRegistry | None = None,
) -> DecodedResponse:
    adapter = (registry or _DEFAULT_REGISTRY).get(provider)
    return adapter.decode_response(body)


def extract_tool_calls(
    provider: str | Provider,
    body: bytes | str,
    *,
    registry: ProviderRegistry | None = None,
) -> tuple[ToolCall, ...]:
    adapter = (registry or _DEFAULT_REGISTRY).get(provider)
    return adapter.extract_tool_calls(body)


__all__ = [
    "build_request",
    "decode_response",
    "default_registry",
    "extract_tool_calls",
]
