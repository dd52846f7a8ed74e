"""
nexus-wire config package public API.

File: src/nexus_wire/config/__init__.py
Last updated: 2026-10-17

Purpose
- Export config loading/validation entrypoints and public error types.

What should be included in this file
- Public schema constants and validation/report types.
- Loader APIs for effective config, provider resolution and redacted dumps.

Functional requirements
- Support loading from ``wire.toml`` + ``NEXUS_WIRE_`` env overrides.
- Fail fast with clear structured validation/load errors.

Non-functional requirements
- Keep import-time surface small and deterministic.
"""

from nexus_wire.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    effective_config,
    load_config,
    normalize_paths,
    resolve_provider_config,
)
from nexus_wire.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    PROVIDER_NAMES,
    REDACTED_CONFIG_VALUE,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    WireConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    redact_config,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "PROVIDER_NAMES",
    "REDACTED_CONFIG_VALUE",
    "WireConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "effective_config",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "redact_config",
    "resolve_provider_config",
    "validate_config",
]
