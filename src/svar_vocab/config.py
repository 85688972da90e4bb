"""Configuration loading and management for svar-vocab.

Settings live in a JSON file next to the vocabulary. The defaults
reproduce the standard correction behaviour; the file only needs the
keys it changes.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from svar_vocab.errors import ConfigurationError

# Environment variable naming the vocabulary file
VOCAB_FILE_ENV = "SVAR_VOCAB_FILE"

# Environment variable naming the settings file
SETTINGS_FILE_ENV = "SVAR_VOCAB_SETTINGS"


def get_config_root() -> Path:
    """Get the directory holding the user's vocabulary and settings."""
    return Path.home() / ".svar"


class EngineSettings(BaseModel):
    """Switches and thresholds for the correction pipeline."""

    # Master switch; when off, text passes through untouched
    enabled: bool = True
    # Per-tier switches
    enable_ngram: bool = True
    enable_exact: bool = True
    enable_phonetic: bool = True
    # Shorter tokens are never phonetically corrected
    min_phonetic_token_length: int = Field(default=3, ge=1)
    # Shorter joined n-grams are only matched exactly
    min_ngram_phonetic_length: int = Field(default=4, ge=1)
    # Fixed edit-distance limit for phonetic n-gram joins
    ngram_max_distance: int = Field(default=3, ge=0)
    # Phonetic acceptance: distance <= max(min_threshold, len(word) // threshold_divisor)
    min_threshold: int = Field(default=2, ge=0)
    threshold_divisor: int = Field(default=3, ge=1)
    # Vocabulary JSON file; None means the environment or the default location
    vocabulary_path: Path | None = None

    def resolve_vocabulary_path(self) -> Path:
        """Vocabulary file to use: settings, then environment, then default."""
        if self.vocabulary_path is not None:
            return self.vocabulary_path.expanduser()
        env_path = os.environ.get(VOCAB_FILE_ENV)
        if env_path:
            return Path(env_path).expanduser()
        return get_config_root() / "vocabulary.json"


def get_settings_path() -> Path:
    """Settings file to use: environment, then default."""
    env_path = os.environ.get(SETTINGS_FILE_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return get_config_root() / "settings.json"


def load_settings(path: Path | str | None = None) -> EngineSettings:
    """Load engine settings from a JSON file.

    A missing file yields the defaults.

    Args:
        path: Settings file; the environment or default location if omitted

    Returns:
        EngineSettings object

    Raises:
        ConfigurationError: If the file is not valid JSON or has bad values
    """
    config_path = Path(path) if path is not None else get_settings_path()
    if not config_path.exists():
        return EngineSettings()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Settings file is not valid JSON: {e}",
            context={"path": str(config_path)},
        ) from e

    try:
        return EngineSettings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid settings: {e.error_count()} error(s)",
            context={"path": str(config_path), "errors": e.errors(include_url=False)},
        ) from e


def save_settings(settings: EngineSettings, path: Path | str | None = None) -> Path:
    """Save engine settings to a JSON file with atomic write.

    Args:
        settings: Settings to save
        path: Settings file; the environment or default location if omitted

    Returns:
        Path to the saved settings file
    """
    from svar_vocab.storage import atomic_write_json

    config_path = Path(path) if path is not None else get_settings_path()
    atomic_write_json(config_path, settings.model_dump(mode="json", exclude_none=True))
    return config_path
