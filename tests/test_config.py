"""Tests for settings lookup."""

import json

from fic2epub import config


def test_defaults(monkeypatch, temp_test_dir):
    monkeypatch.setenv("FIC2EPUB_CONFIG", str(temp_test_dir / "missing.json"))
    for name in ("FIC2EPUB_TIMEOUT", "FIC2EPUB_MAX_ATTEMPTS", "FIC2EPUB_RETRY_DELAY", "FIC2EPUB_USER_AGENT"):
        monkeypatch.delenv(name, raising=False)

    assert config.load_fetch_config() == {
        "user_agent": config.DEFAULT_USER_AGENT,
        "timeout": config.DEFAULT_TIMEOUT,
        "max_attempts": 0,
        "retry_delay": 0.0,
    }


def test_config_file_then_environment(monkeypatch, temp_test_dir):
    path = temp_test_dir / "config.json"
    path.write_text(json.dumps({"max_attempts": 4, "retry_delay": 2, "output_dir": "out"}), encoding="utf-8")
    monkeypatch.setenv("FIC2EPUB_CONFIG", str(path))
    monkeypatch.delenv("FIC2EPUB_OUTPUT_DIR", raising=False)
    monkeypatch.delenv("FIC2EPUB_RETRY_DELAY", raising=False)
    monkeypatch.setenv("FIC2EPUB_MAX_ATTEMPTS", "9")

    settings = config.load_fetch_config()
    assert settings["max_attempts"] == 9
    assert settings["retry_delay"] == 2.0
    assert config.get_output_dir() == "out"


def test_invalid_value_falls_back_to_default(monkeypatch, caplog):
    monkeypatch.setenv("FIC2EPUB_TIMEOUT", "soon")
    with caplog.at_level("WARNING", logger="fic2epub"):
        assert config.get_setting("FIC2EPUB_TIMEOUT", "request_timeout", 30, float) == 30
    assert "Ignoring invalid request_timeout" in caplog.text


def test_unreadable_config_file(monkeypatch, temp_test_dir):
    path = temp_test_dir / "config.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("FIC2EPUB_CONFIG", str(path))
    assert config.get_config_value("max_attempts", 1) == 1


def test_debug_dir_from_environment(debug_dir):
    assert config.get_debug_dir() == str(debug_dir)
