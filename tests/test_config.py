"""Tests for settings loading."""

import json
from pathlib import Path

import pytest

from svar_vocab.config import (
    SETTINGS_FILE_ENV,
    VOCAB_FILE_ENV,
    EngineSettings,
    get_config_root,
    get_settings_path,
    load_settings,
    save_settings,
)
from svar_vocab.errors import ConfigurationError


class TestEngineSettings:
    """Tests for EngineSettings."""

    def test_defaults(self):
        """Test the default thresholds and switches."""
        settings = EngineSettings()

        assert settings.enabled
        assert settings.enable_ngram and settings.enable_exact and settings.enable_phonetic
        assert settings.min_phonetic_token_length == 3
        assert settings.min_ngram_phonetic_length == 4
        assert settings.ngram_max_distance == 3
        assert settings.min_threshold == 2
        assert settings.threshold_divisor == 3
        assert settings.vocabulary_path is None

    def test_rejects_zero_divisor(self):
        """Test that the divisor must be positive."""
        with pytest.raises(Exception):
            EngineSettings(threshold_divisor=0)

    def test_vocabulary_path_from_settings(self, monkeypatch, tmp_path):
        """Test an explicit path wins over the environment."""
        monkeypatch.setenv(VOCAB_FILE_ENV, str(tmp_path / "env.json"))
        settings = EngineSettings(vocabulary_path=tmp_path / "explicit.json")

        assert settings.resolve_vocabulary_path() == tmp_path / "explicit.json"

    def test_vocabulary_path_from_env(self, monkeypatch, tmp_path):
        """Test the environment variable is used when no path is set."""
        monkeypatch.setenv(VOCAB_FILE_ENV, str(tmp_path / "env.json"))

        assert EngineSettings().resolve_vocabulary_path() == tmp_path / "env.json"

    def test_vocabulary_path_default(self, monkeypatch):
        """Test the default location under the config root."""
        monkeypatch.delenv(VOCAB_FILE_ENV, raising=False)

        path = EngineSettings().resolve_vocabulary_path()

        assert path == get_config_root() / "vocabulary.json"
        assert get_config_root() == Path.home() / ".svar"


class TestLoadSettings:
    """Tests for load_settings and save_settings."""

    def test_missing_file(self, tmp_path):
        """Test a missing file gives the defaults."""
        assert load_settings(tmp_path / "settings.json") == EngineSettings()

    def test_partial_file(self, tmp_path):
        """Test a file only needs the keys it changes."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"enable_phonetic": False}), encoding="utf-8")

        settings = load_settings(path)

        assert settings.enable_phonetic is False
        assert settings.enable_exact is True

    def test_invalid_json(self, tmp_path):
        """Test a file that is not JSON."""
        path = tmp_path / "settings.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_invalid_value(self, tmp_path):
        """Test a value outside its range."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"threshold_divisor": 0}), encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path)

        assert exc_info.value.context["path"] == str(path)

    def test_round_trip(self, tmp_path):
        """Test saving and reloading settings."""
        settings = EngineSettings(
            min_threshold=1,
            vocabulary_path=tmp_path / "vocabulary.json",
        )
        path = save_settings(settings, tmp_path / "settings.json")

        assert load_settings(path) == settings

    def test_settings_path_from_env(self, monkeypatch, tmp_path):
        """Test the settings file can be chosen by environment."""
        monkeypatch.setenv(SETTINGS_FILE_ENV, str(tmp_path / "custom.json"))

        assert get_settings_path() == tmp_path / "custom.json"
