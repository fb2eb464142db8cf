"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import pytest

from dayflow.observability import client as client_module


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs


@pytest.fixture(autouse=True)
def fresh_client():
    client_module.reset_opik_client()
    yield
    client_module.reset_opik_client()


def test_opik_disabled_by_default(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", False)

    assert client_module.init_opik() is None
    assert client_module.get_opik_client() is None


def test_opik_enabled_without_key_stays_off(monkeypatch, caplog) -> None:
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", None)

    assert client_module.init_opik() is None
    assert "OPIK_API_KEY is missing" in caplog.text


def test_opik_client_created_once(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", "test-key")
    monkeypatch.setattr(client_module.settings, "opik_project", "dayflow-test")

    first = client_module.get_opik_client()
    second = client_module.get_opik_client()

    assert isinstance(first, _DummyOpik)
    assert first is second
    assert first.kwargs == {"project_name": "dayflow-test", "api_key": "test-key"}
