"""Tests for settings loading."""

import pytest

from dictionary_editor import ConfigError, MemoryGateway, RestGateway, Settings, load_settings
from dictionary_editor.config import PLACEHOLDER_URL, build_gateway


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings(environ={})
        assert settings == Settings()
        assert settings.cache_path == "~/.dictionary_editor.db"
        assert settings.generative_model == "gemini-2.5-flash"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "cache_path: /tmp/dict.db\n"
            "remote_url: https://abc.supabase.co\n"
            "remote_key: anon\n"
            "request_timeout: 5\n",
            encoding="utf-8",
        )
        settings = load_settings(path, environ={})
        assert settings.cache_path == "/tmp/dict.db"
        assert settings.request_timeout == 5.0
        assert settings.remote_configured

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("generative_model: file-model\n", encoding="utf-8")
        settings = load_settings(path, environ={
            "DICTIONARY_EDITOR_MODEL": "env-model",
            "GEMINI_API_KEY": "g-key",
            "API_KEY": "fallback",
        })
        assert settings.generative_model == "env-model"
        assert settings.generative_api_key == "g-key"

    def test_api_key_fallback(self):
        settings = load_settings(environ={"API_KEY": "fallback"})
        assert settings.generative_api_key == "fallback"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path, environ={}) == Settings()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("colour: blue\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="colour"):
            load_settings(path, environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("cache_path: [oops\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path, environ={})

    def test_bad_timeout(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("request_timeout: soon\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="request_timeout"):
            load_settings(path, environ={})

    def test_bad_log_level(self):
        with pytest.raises(ConfigError, match="log_level"):
            load_settings(environ={"DICTIONARY_EDITOR_LOG_LEVEL": "chatty"})


class TestBuildGateway:

    def test_rest_when_configured(self):
        settings = Settings(remote_url="https://abc.supabase.co", remote_key="anon")
        assert isinstance(build_gateway(settings), RestGateway)

    def test_memory_without_credentials(self):
        assert isinstance(build_gateway(Settings()), MemoryGateway)

    def test_placeholder_url_counts_as_unset(self):
        settings = load_settings(environ={
            "SUPABASE_URL": PLACEHOLDER_URL,
            "SUPABASE_ANON_KEY": "anon",
        })
        assert not settings.remote_configured
        assert isinstance(build_gateway(settings), MemoryGateway)

    def test_memory_cache_path_kept(self):
        assert Settings(cache_path=":memory:").resolved_cache_path == ":memory:"
