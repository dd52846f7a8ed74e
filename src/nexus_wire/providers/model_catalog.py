"""
nexus-wire — model catalog

File: src/nexus_wire/providers/model_catalog.py
Last updated: 2026-10-17

Purpose
- Load and expose the package-shipped list of known models per provider.

What should be included in this file
- File-backed loader and deterministic lookups by model id or alias.
- Provider inference from a model identifier.

Functional requirements
- Unknown models are reported, never guessed.

Non-functional requirements
- Deterministic and offline-safe; adapters never consult the catalog.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

from nexus_wire.providers.base import Provider


def _validate_non_empty_str(value: object, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    parsed = value.strip()
    if not parsed:
        raise ValueError(f"{field_name} cannot be empty")
    return parsed


def _normalize_key(value: str) -> str:
    return _validate_non_empty_str(value, "value").lower()


def _as_mapping(value: object, field_name: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{field_name} must be an object")
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise TypeError(f"{field_name} keys must be strings")
        out[key] = item
    return out


def _as_sequence(value: object, field_name: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise TypeError(f"{field_name} must be an array")


@dataclass(frozen=True, slots=True)
class ModelEntry:
    """Catalog record for one provider model."""

    provider: Provider
    model: str
    aliases: tuple[str, ...] = ()
    supports_tool_calling: bool = True
    reasoning_effort_allowed: tuple[str, ...] = ()
    max_output_tokens: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "provider", Provider.parse(self.provider))
        object.__setattr__(self, "model", _validate_non_empty_str(self.model, "ModelEntry.model"))
        aliases = tuple(
            _validate_non_empty_str(alias, f"ModelEntry.aliases[{index}]")
            for index, alias in enumerate(self.aliases)
        )
        if len({_normalize_key(alias) for alias in aliases}) != len(aliases):
            raise ValueError("ModelEntry.aliases must not contain duplicates")
        object.__setattr__(self, "aliases", aliases)
        object.__setattr__(self, "supports_tool_calling", bool(self.supports_tool_calling))
        object.__setattr__(
            self,
            "reasoning_effort_allowed",
            tuple(
                _validate_non_empty_str(entry, "ModelEntry.reasoning_effort_allowed").lower()
                for entry in self.reasoning_effort_allowed
            ),
        )
        if self.max_output_tokens is not None:
            if isinstance(self.max_output_tokens, bool) or not isinstance(
                self.max_output_tokens, int
            ):
                raise TypeError("ModelEntry.max_output_tokens must be an integer")
            if self.max_output_tokens <= 0:
                raise ValueError("ModelEntry.max_output_tokens must be > 0")

    @property
    def names(self) -> tuple[str, ...]:
        """Canonical model id plus aliases."""

        return (self.model, *self.aliases)


@dataclass(frozen=True, slots=True)
class ModelCatalog:
    """File-backed catalog of known provider models."""

    version: str
    last_updated: str
    models: tuple[ModelEntry, ...]
    default_models: Mapping[Provider, str] = field(default_factory=dict)
    _by_name: Mapping[str, ModelEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "version", _validate_non_empty_str(self.version, "ModelCatalog.version")
        )
        object.__setattr__(
            self,
            "last_updated",
            _validate_non_empty_str(self.last_updated, "ModelCatalog.last_updated"),
        )
        if not self.models:
            raise ValueError("ModelCatalog.models cannot be empty")

        by_name: dict[str, ModelEntry] = {}
        for entry in self.models:
            if not isinstance(entry, ModelEntry):
                raise TypeError("ModelCatalog.models entries must be ModelEntry")
            for name in entry.names:
                key = _normalize_key(name)
                if key in by_name:
                    raise ValueError(f"duplicate model catalog key {name!r}")
                by_name[key] = entry

        defaults: dict[Provider, str] = {}
        for provider_raw, model_raw in self.default_models.items():
            provider = Provider.parse(provider_raw)
            model = _validate_non_empty_str(model_raw, f"default_models.{provider.value}")
            entry = by_name.get(_normalize_key(model))
            if entry is None or entry.provider is not provider:
                raise ValueError(
                    f"default_models.{provider.value} references unknown model {model!r}"
                )
            defaults[provider] = entry.model

        object.__setattr__(self, "default_models", MappingProxyType(defaults))
        object.__setattr__(self, "_by_name", MappingProxyType(by_name))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> ModelCatalog:
        if "version" not in payload:
            raise ValueError("version is required")
        if "last_updated" not in payload:
            raise ValueError("last_updated is required")

        entries: list[ModelEntry] = []
        for index, raw_entry in enumerate(_as_sequence(payload.get("models", ()), "models")):
            entry = _as_mapping(raw_entry, f"models[{index}]")
            max_output = entry.get("max_output_tokens")
            entries.append(
                ModelEntry(
                    provider=Provider.parse(
                        _validate_non_empty_str(entry.get("provider"), f"models[{index}].provider")
                    ),
                    model=_validate_non_empty_str(entry.get("model"), f"models[{index}].model"),
                    aliases=tuple(
                        str(alias)
                        for alias in _as_sequence(
                            entry.get("aliases", ()), f"models[{index}].aliases"
                        )
                    ),
                    supports_tool_calling=bool(entry.get("supports_tool_calling", True)),
                    reasoning_effort_allowed=tuple(
                        str(level)
                        for level in _as_sequence(
                            entry.get("reasoning_effort_allowed", ()),
                            f"models[{index}].reasoning_effort_allowed",
                        )
                    ),
                    max_output_tokens=max_output if isinstance(max_output, int) else None,
                )
            )

        defaults_raw = _as_mapping(payload.get("default_models", {}), "default_models")
        return cls(
            version=str(payload["version"]),
            last_updated=str(payload["last_updated"]),
            models=tuple(entries),
            default_models={
                Provider.parse(key): _validate_non_empty_str(value, f"default_models.{key}")
                for key, value in defaults_raw.items()
            },
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ModelCatalog:
        candidate = Path(path).expanduser().resolve()
        try:
            payload = json.loads(candidate.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid model catalog JSON in {candidate}: {exc}") from exc
        except OSError as exc:
            raise ValueError(f"unable to read model catalog file {candidate}: {exc}") from exc
        return cls.from_mapping(_as_mapping(payload, "catalog"))

    def get(self, model: str, *, provider: str | Provider | None = None) -> ModelEntry | None:
        entry = self._by_name.get(_normalize_key(model))
        if entry is None:
            return None
        if provider is not None and entry.provider is not Provider.parse(provider):
            return None
        return entry

    def require(self, model: str, *, provider: str | Provider | None = None) -> ModelEntry:
        found = self.get(model, provider=provider)
        if found is None:
            if provider is None:
                raise KeyError(f"unknown model {model!r}")
            resolved = Provider.parse(provider).value
            raise KeyError(f"unknown model {model!r} for provider {resolved!r}")
        return found

    def provider_for(self, model: str) -> Provider:
        """Infer the provider serving ``model``; raises ``KeyError`` when unknown."""

        return self.require(model).provider

    def models_for(self, provider: str | Provider) -> tuple[ModelEntry, ...]:
        resolved = Provider.parse(provider)
        return tuple(entry for entry in self.models if entry.provider is resolved)

    def default_model(self, provider: str | Provider) -> str:
        resolved = Provider.parse(provider)
        model = self.default_models.get(resolved)
        if model is None:
            raise KeyError(f"no default model for provider {resolved.value!r}")
        return model


def _bundled_catalog_path() -> Path:
    return Path(__file__).resolve().with_name("model_catalog.json")


@lru_cache(maxsize=8)
def load_model_catalog(path: str | Path | None = None) -> ModelCatalog:
    """Load model catalog from disk with deterministic caching."""

    resolved = _bundled_catalog_path() if path is None else Path(path).expanduser().resolve()
    return ModelCatalog.from_file(resolved)


__all__ = [
    "ModelCatalog",
    "ModelEntry",
    "load_model_catalog",
]
