from __future__ import annotations

import pytest

from puregolf.config import coerce_boolish, get_settings, reset_settings_cache


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CADDY_STORE_TIMEOUT_S", "1.5")
    monkeypatch.setenv("CADDY_FREE_ADVICE_LIMIT", "10")
    monkeypatch.setenv("PUREGOLF_CADDY_DIR", "/tmp/caddy-data")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example,")
    reset_settings_cache()

    settings = get_settings()

    assert settings.store_timeout_s == 1.5
    assert settings.free_advice_limit == 10
    assert settings.caddy_dir == "/tmp/caddy-data"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_settings_are_cached(monkeypatch) -> None:
    first = get_settings()
    monkeypatch.setenv("CADDY_FREE_ADVICE_LIMIT", "9")

    assert get_settings() is first

    reset_settings_cache()
    assert get_settings().free_advice_limit == 9


def test_invalid_timeout_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("CADDY_STORE_TIMEOUT_S", "0")
    reset_settings_cache()

    with pytest.raises(ValueError):
        get_settings()


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (True, True),
        (0, False),
        ("yes", True),
        (" Off ", False),
        ("maybe", None),
    ],
)
def test_coerce_boolish(value, expected) -> None:
    assert coerce_boolish(value) is expected
