"""Tests for settings and the uvicorn entry point."""
import pytest

from socialsphere import __main__ as entry
from socialsphere.core.config import Settings, settings


def test_reload_defaults_off(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("RELOAD", raising=False)
    assert Settings(_env_file=None).RELOAD is False


def test_reload_read_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RELOAD", "true")
    assert Settings(_env_file=None).RELOAD is True


def test_main_passes_settings_to_uvicorn(monkeypatch: pytest.MonkeyPatch):
    calls = {}
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.update(app=app, **kwargs))
    monkeypatch.setattr(settings, "RELOAD", True)
    entry.main()
    assert calls["app"] == "socialsphere.main:app"
    assert calls["reload"] is True
    assert calls["port"] == settings.PORT
