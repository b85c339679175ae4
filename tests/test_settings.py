import pytest

from config.settings import _env_flag, _env_list


def test_env_list_trims_and_drops_blanks(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", " https://a.example , ,https://b.example ,")

    assert _env_list("ALLOWED_ORIGINS") == ["https://a.example", "https://b.example"]


def test_env_list_default(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)

    assert _env_list("ALLOWED_ORIGINS") == []
    assert _env_list("ALLOWED_ORIGINS", "localhost,127.0.0.1") == ["localhost", "127.0.0.1"]


@pytest.mark.parametrize("raw, expected", [("1", True), ("TRUE", True), ("on", True), ("0", False), ("", False)])
def test_env_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("DEBUG_CORS", raw)

    assert _env_flag("DEBUG_CORS") is expected
