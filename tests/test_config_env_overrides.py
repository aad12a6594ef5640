"""Tests for SETRACK_<SECTION>_<KEY> environment overrides."""
from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os

    for name in list(os.environ):
        if name.startswith("SETRACK_"):
            monkeypatch.delenv(name)


class TestTryParseEnvValue:
    """_try_parse_env_value correctly parses typed values."""

    def test_json_list_parsed(self):
        from setrack.config import _try_parse_env_value

        assert _try_parse_env_value('["a", "b"]') == ["a", "b"]

    def test_json_object_parsed(self):
        from setrack.config import _try_parse_env_value

        assert _try_parse_env_value('{"key": "value"}') == {"key": "value"}

    def test_booleans_parsed(self):
        from setrack.config import _try_parse_env_value

        assert _try_parse_env_value("TRUE") is True
        assert _try_parse_env_value("false") is False

    def test_integers_parsed(self):
        from setrack.config import _try_parse_env_value

        assert _try_parse_env_value("9000") == 9000
        assert _try_parse_env_value("-1") == -1

    def test_plain_string_passthrough(self):
        from setrack.config import _try_parse_env_value

        assert _try_parse_env_value("0.0.0.0") == "0.0.0.0"
        assert _try_parse_env_value("data/reviews") == "data/reviews"

    def test_malformed_json_returns_string(self):
        from setrack.config import _try_parse_env_value

        assert _try_parse_env_value("[not valid json") == "[not valid json"


class TestApplyEnvOverrides:
    """Environment variables win over file and defaults."""

    def test_storage_dir(self, monkeypatch, tmp_path):
        from setrack.config import load_config

        monkeypatch.setenv("SETRACK_STORAGE_DIR", "/srv/reviews")
        assert load_config(start=tmp_path)["storage"]["dir"] == "/srv/reviews"

    def test_multi_word_key(self, monkeypatch, tmp_path):
        from setrack.config import load_config

        monkeypatch.setenv("SETRACK_SERVER_FRONTEND_DIST", "web/build")
        assert load_config(start=tmp_path)["server"]["frontend_dist"] == "web/build"

    def test_typed_port(self, monkeypatch, tmp_path):
        from setrack.config import load_config

        monkeypatch.setenv("SETRACK_SERVER_PORT", "9100")
        assert load_config(start=tmp_path)["server"]["port"] == 9100

    def test_env_beats_file(self, monkeypatch, tmp_path):
        from setrack.config import CONFIG_FILENAME, load_config

        (tmp_path / CONFIG_FILENAME).write_text("[server]\nport = 9000\n", encoding="utf-8")
        monkeypatch.setenv("SETRACK_SERVER_PORT", "9200")
        assert load_config(start=tmp_path)["server"]["port"] == 9200

    def test_variable_without_key_ignored(self, monkeypatch, tmp_path):
        from setrack.config import DEFAULT_CONFIG, load_config

        monkeypatch.setenv("SETRACK_STORAGE", "oops")
        config = load_config(start=tmp_path)
        assert config["storage"] == DEFAULT_CONFIG["storage"]
