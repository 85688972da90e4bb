"""Correction engine: the vocabulary store and pipeline wired together.

This is the object a dictation app holds. The speech recognizer hands it
a transcript string and the returned string goes to the text inserter.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from svar_vocab.config import EngineSettings
from svar_vocab.logging import get_logger
from svar_vocab.storage import VocabularyFile
from svar_vocab.vocabulary.correction import CorrectionLog, CorrectionPipeline
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.fuzzy import FuzzyMatcher
from svar_vocab.vocabulary.phonetic import PhoneticEncoder
from svar_vocab.vocabulary.store import VocabularyStore

logger = get_logger(__name__)


class CorrectionEngine:
    """Owns a vocabulary store and corrects transcripts against it.

    Example:
        engine = CorrectionEngine()
        engine.add_word("Kubernetes", misspellings=["kubernettes"])
        engine.process("I used Kubernettes")  # "I used Kubernetes"
    """

    def __init__(
        self,
        store: VocabularyStore | None = None,
        encoder: PhoneticEncoder | None = None,
        matcher: FuzzyMatcher | None = None,
        settings: EngineSettings | None = None,
    ):
        """Initialize the engine.

        Args:
            store: Vocabulary store; a new empty one if omitted
            encoder: Phonetic encoder shared by store and pipeline
            matcher: Edit-distance matcher
            settings: Pipeline settings
        """
        self.settings = settings or EngineSettings()
        # An empty store is falsy, so test against None
        if store is None:
            self.encoder = encoder or PhoneticEncoder()
            store = VocabularyStore(encoder=self.encoder)
        else:
            self.encoder = encoder or store.encoder
        self.store = store
        self.pipeline = CorrectionPipeline(
            self.store,
            encoder=self.encoder,
            matcher=matcher,
            settings=self.settings,
        )
        self.vocabulary_file: VocabularyFile | None = None

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        settings: EngineSettings | None = None,
        autosave: bool = True,
    ) -> "CorrectionEngine":
        """Create an engine from a vocabulary file.

        Args:
            path: Vocabulary JSON file; may not exist yet
            settings: Pipeline settings
            autosave: Save the file after every vocabulary edit

        Returns:
            CorrectionEngine with the file's entries loaded
        """
        engine = cls(settings=settings)
        vocab_file = VocabularyFile(path)
        vocab_file.load_into(engine.store)
        if autosave:
            vocab_file.attach(engine.store)
        engine.vocabulary_file = vocab_file
        return engine

    def process(self, text: str) -> str:
        """Correct a transcript."""
        return self.pipeline.process(text)

    def process_with_log(self, text: str) -> tuple[str, CorrectionLog]:
        """Correct a transcript and report the corrections made."""
        return self.pipeline.process_with_log(text)

    def add_word(
        self,
        word: str,
        misspellings: Iterable[str] = (),
        use_phonetic_matching: bool = True,
    ) -> VocabularyEntry:
        """Create and add an entry in one call.

        Args:
            word: Canonical spelling
            misspellings: Known mis-transcriptions
            use_phonetic_matching: Also correct similar-sounding words

        Returns:
            The stored entry
        """
        entry = VocabularyEntry(
            word=word,
            misspellings=tuple(misspellings),
            use_phonetic_matching=use_phonetic_matching,
        )
        return self.store.add(entry)

    def save(self) -> None:
        """Write the vocabulary to its file, if the engine has one."""
        if self.vocabulary_file is not None:
            self.vocabulary_file.save(self.store.entries())
