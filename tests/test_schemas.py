"""Tests for monitor configuration loading."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pulsewatch.schemas.monitor import MonitorConfig, ValidationRules, load_monitors

EXAMPLE = Path(__file__).parent.parent / "monitors.example.json"


def test_load_example_file() -> None:
    monitors = load_monitors(EXAMPLE)
    assert [m.id for m in monitors] == ["website", "api-health", "postgres"]
    assert monitors[0].validation.accepted_statuses == [200, 301]
    assert monitors[1].validation.accepted_statuses == [200]
    assert monitors[2].type == "tcp"


def test_defaults() -> None:
    config = MonitorConfig(id="m", url="https://example.com")
    assert config.type == "http"
    assert config.method == "GET"
    assert config.headers == {}
    assert config.validation.accepted_statuses == [200]
    assert config.enabled


def test_config_is_frozen() -> None:
    config = MonitorConfig(id="m", url="https://example.com")
    with pytest.raises(ValidationError):
        config.url = "https://other.example.com"


def test_unknown_type_is_loaded() -> None:
    # Resolved to a DOWN result when checked, not rejected here
    assert MonitorConfig(id="m", type="icmp", url="10.0.0.1").type == "icmp"


def test_invalid_header_pattern(tmp_path) -> None:
    path = tmp_path / "monitors.json"
    path.write_text(json.dumps([
        {"id": "m", "url": "https://example.com", "validation": {"headers_match": {"X": "(["}}},
    ]))
    with pytest.raises(ValidationError):
        load_monitors(path)


def test_duplicate_ids(tmp_path) -> None:
    path = tmp_path / "monitors.json"
    path.write_text(json.dumps([
        {"id": "m", "url": "https://a.example.com"},
        {"id": "m", "url": "https://b.example.com"},
    ]))
    with pytest.raises(ValueError, match="Duplicate monitor id"):
        load_monitors(path)


def test_empty_status_list_accepts_nothing() -> None:
    assert ValidationRules(status=[]).accepted_statuses == []
