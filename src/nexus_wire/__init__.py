"""
nexus-wire — package root

File: src/nexus_wire/__init__.py
Last updated: 2026-10-17

Purpose
- Package root for the LLM provider wire layer: a canonical conversation model,
  per-provider request adapters (OpenAI, Anthropic, Gemini), a raw HTTP/1.1 envelope
  builder and strict response decoders.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).

Key interfaces / contracts to define here
- ``__version__`` and a deliberately small ``__all__``; everything else is imported
  from ``nexus_wire.providers``.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
