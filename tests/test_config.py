"""Tests for PersistSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from statepersist.config import PersistSettings


def test_defaults():
    settings = PersistSettings()

    assert settings.version == -1
    assert settings.debug is False
    assert settings.storage_path == "data/state.json"
    assert settings.encoding == "utf-8"
    assert settings.atomic_writes is True
    assert settings.indent is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("STATEPERSIST_VERSION", "3")
    monkeypatch.setenv("STATEPERSIST_DEBUG", "true")
    monkeypatch.setenv("STATEPERSIST_STORAGE_PATH", "/tmp/app.json")

    settings = PersistSettings()

    assert settings.version == 3
    assert settings.debug is True
    assert settings.storage_path == "/tmp/app.json"


def test_invalid_values_rejected(monkeypatch):
    monkeypatch.setenv("STATEPERSIST_VERSION", "latest")

    with pytest.raises(ValidationError):
        PersistSettings()


def test_negative_indent_rejected():
    with pytest.raises(ValidationError):
        PersistSettings(indent=-1)
