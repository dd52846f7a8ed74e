"""Unit tests for the file-backed model catalog."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from nexus_wire.providers import (
    ModelCatalog,
    ModelEntry,
    Provider,
    UnsupportedProviderError,
    load_model_catalog,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_catalog(path: Path, payload: dict[str, object]) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.mark.unit
def test_bundled_catalog_exposes_metadata_and_defaults() -> None:
    catalog = load_model_catalog()

    assert catalog.version
    assert catalog.last_updated
    assert catalog.default_model("openai") == "gpt-4o-mini"
    assert catalog.default_model(Provider.ANTHROPIC) == "claude-sonnet-4-20250514"
    assert catalog.default_model("gemini") == "gemini-2.0-flash"


@pytest.mark.unit
def test_bundled_catalog_is_cached() -> None:
    assert load_model_catalog() is load_model_catalog()


@pytest.mark.unit
def test_lookup_resolves_aliases_case_insensitively() -> None:
    catalog = load_model_catalog()

    entry = catalog.require("Claude-Sonnet-4-0")

    assert entry.model == "claude-sonnet-4-20250514"
    assert entry.provider is Provider.ANTHROPIC
    assert entry.names == ("claude-sonnet-4-20250514", "claude-sonnet-4-0")


@pytest.mark.unit
@pytest.mark.parametrize(
    ("model", "provider"),
    [
        ("gpt-4o", Provider.OPENAI),
        ("claude-3-5-haiku-latest", Provider.ANTHROPIC),
        ("gemini-2.0-flash-001", Provider.GEMINI),
    ],
)
def test_provider_for_infers_serving_provider(model: str, provider: Provider) -> None:
    assert load_model_catalog().provider_for(model) is provider


@pytest.mark.unit
def test_unknown_models_are_reported_not_guessed() -> None:
    catalog = load_model_catalog()

    assert catalog.get("gpt-99") is None
    assert catalog.get("gpt-4o", provider="anthropic") is None
    with pytest.raises(KeyError, match="unknown model 'gpt-99'"):
        catalog.provider_for("gpt-99")
    with pytest.raises(KeyError, match="for provider 'gemini'"):
        catalog.require("gpt-4o", provider="gemini")


@pytest.mark.unit
def test_models_for_filters_by_provider_in_file_order() -> None:
    entries = load_model_catalog().models_for("gemini")

    assert [entry.model for entry in entries] == [
        "gemini-2.5-flash-preview-04-17",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
    ]
    assert all(entry.provider is Provider.GEMINI for entry in entries)


@pytest.mark.unit
def test_reasoning_models_advertise_allowed_levels() -> None:
    entry = load_model_catalog().require("o1-mini")

    assert entry.supports_tool_calling is False
    assert entry.reasoning_effort_allowed == ("low", "medium", "high")


@pytest.mark.unit
def test_catalog_rejects_default_pointing_to_unknown_model(tmp_path: Path) -> None:
    path = _write_catalog(
        tmp_path / "model_catalog.json",
        {
            "version": "test",
            "last_updated": "2026-10-17",
            "default_models": {"openai": "missing-model"},
            "models": [{"provider": "openai", "model": "gpt-4o"}],
        },
    )

    with pytest.raises(ValueError, match="default_models.openai references unknown model"):
        ModelCatalog.from_file(path)


@pytest.mark.unit
def test_catalog_rejects_default_served_by_other_provider(tmp_path: Path) -> None:
    path = _write_catalog(
        tmp_path / "model_catalog.json",
        {
            "version": "test",
            "last_updated": "2026-10-17",
            "default_models": {"gemini": "gpt-4o"},
            "models": [{"provider": "openai", "model": "gpt-4o"}],
        },
    )

    with pytest.raises(ValueError, match="default_models.gemini"):
        ModelCatalog.from_file(path)


@pytest.mark.unit
def test_catalog_rejects_duplicate_keys_and_unknown_providers(tmp_path: Path) -> None:
    duplicate = _write_catalog(
        tmp_path / "duplicate.json",
        {
            "version": "test",
            "last_updated": "2026-10-17",
            "models": [
                {"provider": "openai", "model": "gpt-4o"},
                {"provider": "openai", "model": "other", "aliases": ["GPT-4O"]},
            ],
        },
    )
    unknown = _write_catalog(
        tmp_path / "unknown.json",
        {
            "version": "test",
            "last_updated": "2026-10-17",
            "models": [{"provider": "mistral", "model": "large"}],
        },
    )

    with pytest.raises(ValueError, match="duplicate model catalog key"):
        ModelCatalog.from_file(duplicate)
    with pytest.raises(UnsupportedProviderError):
        ModelCatalog.from_file(unknown)


@pytest.mark.unit
def test_catalog_file_errors_are_value_errors(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="invalid model catalog JSON"):
        ModelCatalog.from_file(broken)
    with pytest.raises(ValueError, match="unable to read model catalog file"):
        ModelCatalog.from_file(tmp_path / "absent.json")


@pytest.mark.unit
def test_model_entry_validates_limits() -> None:
    with pytest.raises(ValueError, match="max_output_tokens must be > 0"):
        ModelEntry(provider=Provider.OPENAI, model="m", max_output_tokens=0)
    with pytest.raises(ValueError, match="aliases must not contain duplicates"):
        ModelEntry(provider=Provider.OPENAI, model="m", aliases=("a", "A"))
