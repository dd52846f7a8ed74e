"""Command-line interface router for nexus-wire."""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import yaml

from nexus_wire.config import (
    ConfigLoadError,
    ConfigValidationError,
    effective_config,
    load_config,
    resolve_provider_config,
)
from nexus_wire.envelope import render_envelope
from nexus_wire.observability import correlation_scope, setup_logging, shutdown_logging
from nexus_wire.providers import (
    Conversation,
    Provider,
    ProviderConfig,
    ToolDefinition,
    build_request,
    decode_response,
    extract_tool_calls,
    load_model_catalog,
)
from nexus_wire.security import redact_secret_value

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_STDIN_MARKER: Final[str] = "-"


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 2

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="nexus-wire",
        description=(
            "nexus-wire — LLM provider wire layer.\n\n"
            "Common workflows:\n"
            "  nexus-wire render chat.yaml --provider anthropic   Show the outgoing request\n"
            "  nexus-wire render chat.json --raw                  Show the raw HTTP/1.1 bytes\n"
            "  nexus-wire decode openai response.json             Extract the response text\n"
            "  nexus-wire models                                  List known models\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to wire TOML config (default: ./wire.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Emit DEBUG log lines to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # render --------------------------------------------------------------
    render_parser = subparsers.add_parser(
        "render",
        parents=[common],
        help="Build a provider request from a conversation file",
        description=(
            "Translate a JSON/YAML conversation into a provider request.\n"
            "Credentials are read from the env var named by api_key_env and are\n"
            "always redacted in the output.\n\n"
            "Examples:\n"
            "  nexus-wire render chat.yaml\n"
            "  nexus-wire render chat.yaml --model gemini-2.5-pro --stream\n"
            "  nexus-wire render chat.json --provider openai --raw\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    render_parser.add_argument("conversation_path", help="Conversation file (.json/.yaml)")
    render_parser.add_argument(
        "--provider",
        choices=tuple(provider.value for provider in Provider),
        default=None,
        help="Provider tag (default: inferred from --model, else providers.default)",
    )
    render_parser.add_argument("--model", default=None, help="Model override")
    render_parser.add_argument(
        "--tools",
        dest="tools_path",
        default=None,
        help="Tool definitions file (.json/.yaml); overrides tools in the conversation file",
    )
    render_parser.add_argument(
        "--stream",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Request a streaming response",
    )
    render_parser.add_argument(
        "--raw", action="store_true", help="Print the redacted HTTP/1.1 envelope"
    )
    render_parser.set_defaults(handler=_cmd_render)

    # decode --------------------------------------------------------------
    decode_parser = subparsers.add_parser(
        "decode",
        parents=[common],
        help="Decode a saved provider response body",
        description=(
            "Decode a provider response body and print the assistant text.\n"
            "Exits with status 1 when the text node is absent.\n\n"
            "Examples:\n"
            "  nexus-wire decode openai response.json\n"
            "  cat response.json | nexus-wire decode gemini -\n"
            "  nexus-wire decode anthropic response.json --tool-calls\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    decode_parser.add_argument(
        "provider", choices=tuple(provider.value for provider in Provider), help="Provider tag"
    )
    decode_parser.add_argument("body_path", help="Response body file, or '-' for stdin")
    decode_parser.add_argument(
        "--tool-calls", action="store_true", help="Print requested tool calls instead of text"
    )
    decode_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    decode_parser.set_defaults(handler=_cmd_decode)

    # models --------------------------------------------------------------
    models_parser = subparsers.add_parser(
        "models",
        help="List models in the bundled catalog",
        description=(
            "List known models per provider.\n\n"
            "Examples:\n"
            "  nexus-wire models\n"
            "  nexus-wire models --provider gemini --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    models_parser.add_argument(
        "--provider",
        choices=tuple(provider.value for provider in Provider),
        default=None,
        help="Only list models for this provider",
    )
    models_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    models_parser.set_defaults(handler=_cmd_models)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration (redacted)",
        description=(
            "Display the effective config after merging defaults, file and env.\n"
            "Sensitive values are redacted.\n\n"
            "Examples:\n"
            "  nexus-wire config\n"
            "  nexus-wire config --config ./wire.toml\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.add_argument("--json", action="store_true", help="Emit compact JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        shutdown_logging()
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_render(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    document = _load_document(Path(args.conversation_path))
    if not isinstance(document, Mapping):
        raise CLIError("conversation file must contain an object with a 'turns' list")
    conversation = Conversation.from_mapping(document)
    tools = _load_tools(document, args.tools_path)

    provider = _select_provider(config, provider=args.provider, model=args.model)
    provider_config = resolve_provider_config(
        config,
        provider,
        environ=os.environ,
        model=args.model,
        streaming=args.stream,
    )

    with correlation_scope(command="render", provider=provider.value, model=provider_config.model):
        descriptor = build_request(provider, conversation, tools, provider_config)

    if args.raw:
        raw = render_envelope(descriptor).decode("utf-8", errors="replace")
        sys.stdout.write(_scrub(raw, provider_config))
        sys.stdout.write("\n")
        return 0

    _emit_json(descriptor.redacted(), indent=2)
    return 0


def _cmd_decode(args: argparse.Namespace) -> int:
    _load_effective_config(args)
    body = _read_body(args.body_path)

    with correlation_scope(command="decode", provider=args.provider):
        if args.tool_calls:
            calls = extract_tool_calls(args.provider, body)
            _emit_json({"tool_calls": [call.to_dict() for call in calls]}, indent=2)
            return 0

        decoded = decode_response(args.provider, body)

    if args.json:
        _emit_json(decoded.to_dict())
        return 0 if decoded.ok else 1
    if decoded.error is not None:
        print(f"decode failed: {decoded.error}", file=sys.stderr)
        return 1
    print(decoded.text)
    return 0


def _cmd_models(args: argparse.Namespace) -> int:
    catalog = load_model_catalog()
    entries = catalog.models if args.provider is None else catalog.models_for(args.provider)

    if args.json:
        _emit_json(
            {
                "version": catalog.version,
                "last_updated": catalog.last_updated,
                "models": [
                    {
                        "provider": entry.provider.value,
                        "model": entry.model,
                        "aliases": list(entry.aliases),
                        "default": catalog.default_models.get(entry.provider) == entry.model,
                        "supports_tool_calling": entry.supports_tool_calling,
                    }
                    for entry in entries
                ],
            }
        )
        return 0

    for entry in entries:
        marker = "*" if catalog.default_models.get(entry.provider) == entry.model else " "
        aliases = f" (aliases: {', '.join(entry.aliases)})" if entry.aliases else ""
        print(f"{marker} {entry.provider.value:<10} {entry.model}{aliases}")
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    redacted = effective_config(config)
    if args.json:
        _emit_json(redacted)
    else:
        _emit_json(redacted, indent=2)
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object], *, indent: int | None = None) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    separators = (",", ":") if indent is None else (",", ": ")
    print(
        json.dumps(
            payload, sort_keys=True, indent=indent, separators=separators, ensure_ascii=False
        )
    )


def _load_effective_config(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if getattr(args, "verbose", False):
        overrides["observability.log_level"] = "DEBUG"
        overrides["observability.log_to_stdout"] = True

    try:
        loaded = load_config(args.config_path, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    observability = loaded.get("observability")
    setup_logging(observability if isinstance(observability, Mapping) else None)
    return loaded


def _select_provider(
    config: Mapping[str, object], *, provider: str | None, model: str | None
) -> Provider:
    if provider is not None:
        return Provider.parse(provider)
    if model is not None:
        try:
            return load_model_catalog().provider_for(model)
        except KeyError as exc:
            raise CLIError(f"unknown model {model!r}; pass --provider explicitly") from exc
    providers = config.get("providers")
    default = providers.get("default") if isinstance(providers, Mapping) else None
    if not isinstance(default, str):
        raise CLIError("providers.default is not configured")
    return Provider.parse(default)


def _load_document(path: Path) -> object:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"unable to read {path}: {exc}") from exc
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise CLIError(f"unable to parse {path}: {exc}") from exc


def _load_tools(
    document: Mapping[str, object], tools_path: str | None
) -> tuple[ToolDefinition, ...]:
    raw: object = document.get("tools", ())
    if tools_path is not None:
        raw = _load_document(Path(tools_path))
        if isinstance(raw, Mapping):
            raw = raw.get("tools", ())
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise CLIError("tools must be a list of tool definitions")
    tools: list[ToolDefinition] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise CLIError(f"tools[{index}] must be an object")
        tools.append(ToolDefinition.from_mapping(item))
    return tuple(tools)


def _read_body(body_path: str) -> bytes:
    if body_path == _STDIN_MARKER:
        return sys.stdin.buffer.read()
    path = Path(body_path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise CLIError(f"unable to read {path}: {exc}") from exc


def _scrub(text: str, provider_config: ProviderConfig) -> str:
    secret = provider_config.api_key.strip() if provider_config.api_key else None
    return redact_secret_value(text, secret)


__all__ = ["CLIError", "build_parser", "run_cli"]
