"""Transcript correction using the vocabulary.

Three tiers run in a fixed order, each on the output of the previous one:

1. N-gram rejoin: two or three adjacent tokens that concatenate to a
   vocabulary word are merged ("type fully" -> "typefully").
2. Exact: tokens listed as a misspelling are replaced by their word.
3. Phonetic: tokens that sound like exactly one phonetic-enabled word,
   and are within edit distance of it, are replaced by that word.

Every tier tokenizes the current text afresh. Character offsets from one
tier are never reused by the next, because each rewrite shifts them.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from svar_vocab.config import EngineSettings
from svar_vocab.logging import get_logger
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.fuzzy import FuzzyMatcher
from svar_vocab.vocabulary.phonetic import PhoneticEncoder
from svar_vocab.vocabulary.store import VocabularySnapshot, VocabularyStore

logger = get_logger(__name__)

# Runs of word characters; everything between them is left untouched
WORD_PATTERN = re.compile(r"\w+")

TIER_NGRAM = "ngram"
TIER_EXACT = "exact"
TIER_PHONETIC = "phonetic"


@dataclass(frozen=True)
class Token:
    """A word token and its span within the string it was read from."""

    text: str
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def tokenize(text: str) -> list[Token]:
    """Split text into word tokens with their character spans.

    Args:
        text: Text to tokenize

    Returns:
        Tokens in order of appearance
    """
    return [Token(m.group(0), m.start(), m.end()) for m in WORD_PATTERN.finditer(text)]


def preserve_capitalization(original: str, replacement: str) -> str:
    """Apply the case pattern of the matched text to its replacement.

    - All upper-case: replacement upper-cased.
    - Title case (first character upper, rest lower): replacement with its
      first character upper-cased and the rest lower-cased. A span of
      several tokens counts as title case when every token is.
    - All lower-case: replacement lower-cased.
    - Anything else: replacement exactly as stored in the vocabulary.

    Args:
        original: Matched text from the transcript
        replacement: Canonical word

    Returns:
        Replacement with the original's capitalization
    """
    if not original or not replacement:
        return replacement

    titled = replacement[:1].upper() + replacement[1:].lower()

    if original.isupper():
        return replacement.upper()

    if original[0].isupper() and original[1:] == original[1:].lower():
        return titled

    if original == original.lower():
        return replacement.lower()

    words = [token.text for token in tokenize(original)]
    if len(words) > 1 and all(w[0].isupper() and w[1:] == w[1:].lower() for w in words):
        return titled

    return replacement


@dataclass
class Correction:
    """A single replacement applied to a transcript."""

    original: str
    corrected: str
    tier: str  # "ngram", "exact", "phonetic"
    position: int  # Character offset in the text the tier worked on
    word: str = ""  # Canonical vocabulary word

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "original": self.original,
            "corrected": self.corrected,
            "tier": self.tier,
            "position": self.position,
            "word": self.word,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Correction":
        """Create from dictionary."""
        return cls(
            original=data["original"],
            corrected=data["corrected"],
            tier=data["tier"],
            position=data["position"],
            word=data.get("word", ""),
        )


@dataclass
class CorrectionLog:
    """Log of all corrections made during one correction pass."""

    corrections: list[Correction] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)
    vocabulary_size: int = 0
    source_text: str = ""
    result_text: str = ""

    def add(self, correction: Correction) -> None:
        self.corrections.append(correction)

    def by_tier(self, tier: str) -> list[Correction]:
        """Corrections applied by one tier."""
        return [c for c in self.corrections if c.tier == tier]

    @property
    def changed(self) -> bool:
        return self.source_text != self.result_text

    def __len__(self) -> int:
        return len(self.corrections)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "vocabulary_size": self.vocabulary_size,
            "source_text": self.source_text,
            "result_text": self.result_text,
            "correction_count": len(self.corrections),
            "corrections": [c.to_dict() for c in self.corrections],
        }

    def save(self, path: Path | str) -> None:
        """Save log to JSON file.

        Args:
            path: Path to save to
        """
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CorrectionLog":
        """Create from dictionary."""
        log = cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            vocabulary_size=data.get("vocabulary_size", 0),
            source_text=data.get("source_text", ""),
            result_text=data.get("result_text", ""),
        )
        for c_data in data.get("corrections", []):
            log.corrections.append(Correction.from_dict(c_data))
        return log


@dataclass(frozen=True)
class _Replacement:
    start: int
    end: int
    text: str


def _splice(text: str, replacements: Iterable[_Replacement]) -> str:
    """Apply non-overlapping replacements, last span first."""
    for r in sorted(replacements, key=lambda r: r.start, reverse=True):
        text = text[:r.start] + r.text + text[r.end:]
    return text


class CorrectionPipeline:
    """Applies the three correction tiers to transcript text.

    The pipeline reads the store through a snapshot taken once per call,
    so a concurrent vocabulary edit never changes the indexes mid-pass.
    """

    def __init__(
        self,
        store: VocabularyStore,
        encoder: PhoneticEncoder | None = None,
        matcher: FuzzyMatcher | None = None,
        settings: EngineSettings | None = None,
    ):
        """Initialize the pipeline.

        Args:
            store: Vocabulary store to read from
            encoder: Phonetic encoder for transcript tokens
            matcher: Edit-distance matcher; built from settings if omitted
            settings: Tier switches and thresholds
        """
        self.store = store
        self.settings = settings or EngineSettings()
        self.encoder = encoder or store.encoder
        self.matcher = matcher or FuzzyMatcher(
            min_threshold=self.settings.min_threshold,
            threshold_divisor=self.settings.threshold_divisor,
        )

    def process(self, text: str) -> str:
        """Correct a transcript.

        Args:
            text: Raw transcript text

        Returns:
            Corrected text; the input itself when nothing applies
        """
        corrected, _ = self.process_with_log(text)
        return corrected

    def process_with_log(self, text: str) -> tuple[str, CorrectionLog]:
        """Correct a transcript and report every replacement made.

        Args:
            text: Raw transcript text

        Returns:
            Tuple of (corrected_text, correction_log)
        """
        snapshot = self.store.snapshot()
        log = CorrectionLog(
            vocabulary_size=len(snapshot.entries),
            source_text=text,
            result_text=text,
        )

        if snapshot.is_empty or not self.settings.enabled:
            return text, log

        result = text
        if self.settings.enable_ngram:
            result = self.apply_ngram_rejoin(result, snapshot, log)
        if self.settings.enable_exact:
            result = self.apply_exact(result, snapshot, log)
        if self.settings.enable_phonetic:
            result = self.apply_phonetic(result, snapshot, log)

        log.result_text = result
        if log.corrections:
            logger.debug(
                f"Applied {len(log)} vocabulary corrections",
                extra={
                    "ngram": len(log.by_tier(TIER_NGRAM)),
                    "exact": len(log.by_tier(TIER_EXACT)),
                    "phonetic": len(log.by_tier(TIER_PHONETIC)),
                },
            )
        return result, log

    # ------------------------------------------------------------------
    # Tier 1: n-gram rejoin
    # ------------------------------------------------------------------

    def apply_ngram_rejoin(
        self,
        text: str,
        snapshot: VocabularySnapshot,
        log: CorrectionLog | None = None,
    ) -> str:
        """Merge adjacent tokens that together spell a vocabulary word.

        Trigrams are tried before bigrams so the longer join wins. The
        replaced span runs from the first token's start to the last
        token's end, separators included.

        Args:
            text: Current text
            snapshot: Vocabulary snapshot
            log: Optional log to record corrections in

        Returns:
            Text with joins applied
        """
        tokens = tokenize(text)
        if len(tokens) < 2:
            return text

        used: set[int] = set()
        replacements: list[_Replacement] = []

        for size in (3, 2):
            for i in range(len(tokens) - size + 1):
                window = range(i, i + size)
                if any(j in used for j in window):
                    continue

                combined = "".join(tokens[j].text for j in window)
                entry = self._match_ngram(combined, snapshot)
                if entry is None:
                    continue

                start, end = tokens[i].start, tokens[i + size - 1].end
                original = text[start:end]
                corrected = preserve_capitalization(original, entry.word)
                replacements.append(_Replacement(start, end, corrected))
                used.update(window)
                self._record(log, original, corrected, TIER_NGRAM, start, entry.word)

        return _splice(text, replacements)

    def _match_ngram(
        self, combined: str, snapshot: VocabularySnapshot
    ) -> VocabularyEntry | None:
        """Find the entry a concatenated token group stands for, if any."""
        entry = snapshot.word_index.get(combined.lower())
        if entry is not None:
            return entry

        if len(combined) < self.settings.min_ngram_phonetic_length:
            return None
        if not snapshot.phonetic_index:
            return None

        candidates = snapshot.candidates(self.encoder.encode(combined))
        close = [
            c for c in candidates
            if self.matcher.within(combined, c.word, self.settings.ngram_max_distance)
        ]
        if len(close) == 1:
            return close[0]
        return None

    # ------------------------------------------------------------------
    # Tier 2: exact misspellings
    # ------------------------------------------------------------------

    def apply_exact(
        self,
        text: str,
        snapshot: VocabularySnapshot,
        log: CorrectionLog | None = None,
    ) -> str:
        """Replace tokens listed as misspellings with their canonical word.

        Args:
            text: Current text
            snapshot: Vocabulary snapshot
            log: Optional log to record corrections in

        Returns:
            Text with exact replacements applied
        """
        if not snapshot.exact_index:
            return text

        replacements = []
        for token in tokenize(text):
            word = snapshot.exact_index.get(token.text.lower())
            if word is None:
                continue
            corrected = preserve_capitalization(token.text, word)
            replacements.append(_Replacement(token.start, token.end, corrected))
            self._record(log, token.text, corrected, TIER_EXACT, token.start, word)

        return _splice(text, replacements)

    # ------------------------------------------------------------------
    # Tier 3: phonetic
    # ------------------------------------------------------------------

    def apply_phonetic(
        self,
        text: str,
        snapshot: VocabularySnapshot,
        log: CorrectionLog | None = None,
    ) -> str:
        """Replace tokens that sound like exactly one phonetic-enabled word.

        Tokens that are a known misspelling or already a canonical word
        are skipped. A token is only replaced when a single candidate
        passes the edit-distance threshold and differs from the token.

        Args:
            text: Current text
            snapshot: Vocabulary snapshot
            log: Optional log to record corrections in

        Returns:
            Text with phonetic replacements applied
        """
        if not snapshot.phonetic_index:
            return text

        replacements = []
        for token in tokenize(text):
            if len(token.text) < self.settings.min_phonetic_token_length:
                continue

            key = token.text.lower()
            if key in snapshot.exact_index or key in snapshot.word_index:
                continue

            entry = self.find_phonetic_match(token.text, snapshot)
            if entry is None or entry.word.lower() == key:
                continue

            corrected = preserve_capitalization(token.text, entry.word)
            replacements.append(_Replacement(token.start, token.end, corrected))
            self._record(log, token.text, corrected, TIER_PHONETIC, token.start, entry.word)

        return _splice(text, replacements)

    def find_phonetic_match(
        self, word: str, snapshot: VocabularySnapshot | None = None
    ) -> VocabularyEntry | None:
        """The single phonetic candidate accepted for a word, if unambiguous.

        Args:
            word: Observed token
            snapshot: Vocabulary snapshot; the store's current one if omitted

        Returns:
            The accepted entry, or None when there are zero or several
        """
        matches = self.phonetic_candidates(word, snapshot)
        if len(matches) == 1:
            return matches[0]
        return None

    def phonetic_candidates(
        self, word: str, snapshot: VocabularySnapshot | None = None
    ) -> list[VocabularyEntry]:
        """All phonetic candidates for a word that pass the distance threshold.

        Args:
            word: Observed token
            snapshot: Vocabulary snapshot; the store's current one if omitted

        Returns:
            Accepted candidates, deduplicated by entry id
        """
        snapshot = snapshot or self.store.snapshot()
        candidates = snapshot.candidates(self.encoder.encode(word))
        return [c for c in candidates if self.matcher.accepts(word, c.word)]

    @staticmethod
    def _record(
        log: CorrectionLog | None,
        original: str,
        corrected: str,
        tier: str,
        position: int,
        word: str,
    ) -> None:
        logger.debug(
            f'{tier}: "{original}" -> "{corrected}"',
            extra={"position": position},
        )
        if log is not None:
            log.add(Correction(original, corrected, tier, position, word))
