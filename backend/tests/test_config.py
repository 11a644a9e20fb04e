from __future__ import annotations

from typing import List

import pytest

from conftest import make_settings
from hrproxy import cli
from hrproxy.config import PACKAGE_STATIC_DIR, get_settings


def test_settings_defaults() -> None:
    settings = make_settings()
    assert settings.default_locale == "en-US"
    assert settings.external_code_source == "userId"
    assert settings.score_streak_enabled is True
    assert settings.static_dir == PACKAGE_STATIC_DIR
    assert settings.service_root == "https://hr.example.test/odata/v2"
    assert "/trivia" in settings.static_aliases


def test_missing_base_url_is_a_configuration_error(monkeypatch) -> None:
    monkeypatch.delenv("BASE_URL", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(RuntimeError, match="Invalid backend configuration"):
            get_settings()
    finally:
        get_settings.cache_clear()


def test_cli_exits_before_binding_without_base_url(monkeypatch) -> None:
    served: List[str] = []
    monkeypatch.delenv("BASE_URL", raising=False)
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: served.append(args[0]))
    get_settings.cache_clear()
    try:
        with pytest.raises(SystemExit) as excinfo:
            cli.run()
    finally:
        get_settings.cache_clear()
    assert excinfo.value.code == 1
    assert served == []


def test_cli_serves_configured_port(monkeypatch) -> None:
    served: List[tuple] = []
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: served.append((app, kwargs["port"])))
    get_settings.cache_clear()
    try:
        cli.run()
    finally:
        get_settings.cache_clear()
    assert served == [("hrproxy.main:app", 8123)]
