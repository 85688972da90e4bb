"""Vocabulary entry model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _new_id() -> str:
    return uuid4().hex


def normalize_misspellings(misspellings: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Trim misspellings and drop empty and case-insensitive duplicates.

    The first spelling of each duplicate group is kept, in order.

    Args:
        misspellings: Raw misspelling strings

    Returns:
        Cleaned misspellings
    """
    seen: set[str] = set()
    result = []
    for misspelling in misspellings:
        cleaned = misspelling.strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return tuple(result)


class VocabularyEntry(BaseModel):
    """A user-defined correction rule.

    ``word`` is the canonical spelling and the only replacement target.
    ``misspellings`` always resolve to ``word``, compared case-insensitively.
    When ``use_phonetic_matching`` is set, words that sound like ``word``
    are corrected too.

    The phonetic fields are a cache of the encoder output for ``word``.
    The vocabulary store recomputes them on every add, update and load;
    values read from storage are never trusted.

    Entries are immutable. Edit one with ``entry.model_copy(update=...)``
    and hand the copy to the store.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    word: str
    misspellings: tuple[str, ...] = ()
    use_phonetic_matching: bool = True
    phonetic_primary: str | None = None
    phonetic_secondary: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("word")
    @classmethod
    def _strip_word(cls, value: str) -> str:
        return value.strip()

    @field_validator("misspellings")
    @classmethod
    def _clean_misspellings(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return normalize_misspellings(value)

    @property
    def codes(self) -> tuple[str, ...]:
        """Distinct cached phonetic codes, primary first."""
        codes = []
        for code in (self.phonetic_primary, self.phonetic_secondary):
            if code and code not in codes:
                codes.append(code)
        return tuple(codes)

    def has_misspelling(self, text: str) -> bool:
        """Check whether text is one of this entry's misspellings."""
        key = text.strip().lower()
        return any(m.lower() == key for m in self.misspellings)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "VocabularyEntry":
        """Create from a dictionary, discarding any cached phonetic codes."""
        data = {
            k: v for k, v in data.items()
            if k not in ("phonetic_primary", "phonetic_secondary")
        }
        return cls.model_validate(data)
