"""Vocabulary store and its derived lookup indexes.

The store owns the entry list. Every mutation rebuilds all indexes from
scratch into a new :class:`VocabularySnapshot` and swaps it in as a
single reference assignment, so readers holding a snapshot never see a
half-built index. Vocabularies are small and hand-curated, which keeps a
full rebuild cheap.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from svar_vocab.errors import DuplicateEntryError, EntryNotFoundError, ValidationError
from svar_vocab.logging import get_logger
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.phonetic import PhoneticEncoder

logger = get_logger(__name__)

# (event, entry or None, store); event is add/update/delete/clear/load
MutationListener = Callable[[str, "VocabularyEntry | None", "VocabularyStore"], None]


@dataclass(frozen=True)
class VocabularySnapshot:
    """Immutable point-in-time view of the vocabulary and its indexes.

    Attributes:
        entries: Entries, newest first
        exact_index: Lowercase misspelling -> canonical word
        phonetic_index: Phonetic code -> entries carrying that code
        word_index: Lowercase canonical word -> entry
    """

    entries: tuple[VocabularyEntry, ...] = ()
    exact_index: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    phonetic_index: Mapping[str, tuple[VocabularyEntry, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    word_index: Mapping[str, VocabularyEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(cls, entries: Iterable[VocabularyEntry]) -> "VocabularySnapshot":
        """Build a snapshot and all indexes from a sequence of entries.

        Later entries win when two of them map the same misspelling or
        canonical word.

        Args:
            entries: Entries with phonetic fields already computed

        Returns:
            New snapshot
        """
        entries = tuple(entries)
        exact: dict[str, str] = {}
        phonetic: dict[str, list[VocabularyEntry]] = {}
        words: dict[str, VocabularyEntry] = {}

        for entry in entries:
            for misspelling in entry.misspellings:
                exact[misspelling.lower()] = entry.word

            words[entry.word.lower()] = entry

            if entry.use_phonetic_matching:
                for code in entry.codes:
                    phonetic.setdefault(code, []).append(entry)

        return cls(
            entries=entries,
            exact_index=MappingProxyType(exact),
            phonetic_index=MappingProxyType({k: tuple(v) for k, v in phonetic.items()}),
            word_index=MappingProxyType(words),
        )

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def candidates(self, codes: Iterable[str | None]) -> list[VocabularyEntry]:
        """Entries indexed under any of the codes, deduplicated by id.

        Args:
            codes: Phonetic codes to look up; None values are skipped

        Returns:
            Candidate entries in lookup order
        """
        seen: set[str] = set()
        result = []
        for code in codes:
            if not code:
                continue
            for entry in self.phonetic_index.get(code, ()):
                if entry.id not in seen:
                    seen.add(entry.id)
                    result.append(entry)
        return result


class VocabularyStore:
    """In-memory source of truth for vocabulary entries.

    A single writer mutates the store; any number of readers take a
    snapshot with :meth:`snapshot` and use it for a whole correction pass.

    Example:
        store = VocabularyStore()
        store.add(VocabularyEntry(word="Kubernetes", misspellings=["kubernettes"]))
        store.exact_index()["kubernettes"]  # "Kubernetes"
    """

    def __init__(
        self,
        entries: Iterable[VocabularyEntry] | None = None,
        encoder: PhoneticEncoder | None = None,
    ):
        """Initialize the store.

        Args:
            entries: Initial entries, newest first; invalid ones are skipped
            encoder: Phonetic encoder used to fill the phonetic fields
        """
        self.encoder = encoder or PhoneticEncoder()
        self._lock = threading.Lock()
        self._snapshot = VocabularySnapshot()
        self._listeners: list[MutationListener] = []

        if entries:
            self.load(entries, notify=False)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> VocabularySnapshot:
        """Current snapshot; stays valid while the store keeps changing."""
        return self._snapshot

    def entries(self) -> tuple[VocabularyEntry, ...]:
        return self._snapshot.entries

    def exact_index(self) -> Mapping[str, str]:
        return self._snapshot.exact_index

    def phonetic_index(self) -> Mapping[str, tuple[VocabularyEntry, ...]]:
        return self._snapshot.phonetic_index

    def word_index(self) -> Mapping[str, VocabularyEntry]:
        return self._snapshot.word_index

    def get(self, entry_id: str) -> VocabularyEntry | None:
        """Look up an entry by id."""
        for entry in self._snapshot.entries:
            if entry.id == entry_id:
                return entry
        return None

    def find(self, word: str) -> VocabularyEntry | None:
        """Look up an entry by canonical word, case-insensitively."""
        return self._snapshot.word_index.get(word.strip().lower())

    def __len__(self) -> int:
        return len(self._snapshot.entries)

    def __contains__(self, word: str) -> bool:
        """Check if word is a canonical word in the vocabulary."""
        return self.find(word) is not None

    def __iter__(self):
        return iter(self._snapshot.entries)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, entry: VocabularyEntry) -> VocabularyEntry:
        """Add an entry at the front of the vocabulary.

        Args:
            entry: Entry to add

        Returns:
            The stored entry, with phonetic fields computed

        Raises:
            ValidationError: If the entry's word is empty
            DuplicateEntryError: If an entry with the same id exists
        """
        prepared = self._prepare(entry)

        with self._lock:
            current = self._snapshot.entries
            if any(e.id == prepared.id for e in current):
                raise DuplicateEntryError(
                    f"Entry already exists: {prepared.word}",
                    context={"id": prepared.id},
                )
            self._swap((prepared, *current))

        logger.info(f"Added vocabulary entry: {prepared.word}", extra={"id": prepared.id})
        self._notify("add", prepared)
        return prepared

    def update(self, entry: VocabularyEntry) -> VocabularyEntry:
        """Replace the entry with the same id, keeping its position.

        Args:
            entry: Edited entry

        Returns:
            The stored entry, with phonetic fields recomputed

        Raises:
            ValidationError: If the entry's word is empty
            EntryNotFoundError: If no entry has this id
        """
        prepared = self._prepare(entry)

        with self._lock:
            current = list(self._snapshot.entries)
            for index, existing in enumerate(current):
                if existing.id == prepared.id:
                    current[index] = prepared
                    break
            else:
                raise EntryNotFoundError(
                    f"No vocabulary entry with id {prepared.id}",
                    context={"word": prepared.word},
                )
            self._swap(current)

        logger.info(f"Updated vocabulary entry: {prepared.word}", extra={"id": prepared.id})
        self._notify("update", prepared)
        return prepared

    def delete(self, entry_id: str) -> VocabularyEntry:
        """Remove an entry by id.

        Args:
            entry_id: Id of the entry to remove

        Returns:
            The removed entry

        Raises:
            EntryNotFoundError: If no entry has this id
        """
        with self._lock:
            current = self._snapshot.entries
            removed = next((e for e in current if e.id == entry_id), None)
            if removed is None:
                raise EntryNotFoundError(f"No vocabulary entry with id {entry_id}")
            self._swap(e for e in current if e.id != entry_id)

        logger.info(f"Deleted vocabulary entry: {removed.word}", extra={"id": entry_id})
        self._notify("delete", removed)
        return removed

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._swap(())

        logger.info("Cleared vocabulary")
        self._notify("clear", None)

    def load(self, entries: Iterable[VocabularyEntry], notify: bool = True) -> int:
        """Replace all entries, e.g. with those read from storage.

        Entries with an empty word are rejected with a warning rather than
        failing the whole load. Phonetic fields are always recomputed.

        Args:
            entries: Entries in stored order (newest first)
            notify: Whether to tell listeners about the load

        Returns:
            Number of entries loaded
        """
        prepared = []
        seen_ids: set[str] = set()
        for entry in entries:
            try:
                candidate = self._prepare(entry)
            except ValidationError as e:
                logger.warning(f"Skipping vocabulary entry: {e.message}", extra=e.context)
                continue
            if candidate.id in seen_ids:
                logger.warning(
                    f"Skipping duplicate vocabulary entry: {candidate.word}",
                    extra={"id": candidate.id},
                )
                continue
            seen_ids.add(candidate.id)
            prepared.append(candidate)

        with self._lock:
            self._swap(prepared)

        logger.info(f"Loaded {len(prepared)} vocabulary entries")
        if notify:
            self._notify("load", None)
        return len(prepared)

    def add_misspelling(self, entry_id: str, misspelling: str) -> VocabularyEntry:
        """Append a misspelling to an entry.

        Args:
            entry_id: Entry to edit
            misspelling: New misspelling; ignored if already present

        Returns:
            The stored entry
        """
        entry = self._require(entry_id)
        if entry.has_misspelling(misspelling) or not misspelling.strip():
            return entry
        return self.update(
            entry.model_copy(update={"misspellings": (*entry.misspellings, misspelling)})
        )

    def remove_misspelling(self, entry_id: str, misspelling: str) -> VocabularyEntry:
        """Remove a misspelling from an entry, case-insensitively.

        Args:
            entry_id: Entry to edit
            misspelling: Misspelling to remove

        Returns:
            The stored entry
        """
        entry = self._require(entry_id)
        key = misspelling.strip().lower()
        remaining = tuple(m for m in entry.misspellings if m.lower() != key)
        if remaining == entry.misspellings:
            return entry
        return self.update(entry.model_copy(update={"misspellings": remaining}))

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: MutationListener) -> None:
        """Register a callback invoked after every mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: MutationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, entry_id: str) -> VocabularyEntry:
        entry = self.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(f"No vocabulary entry with id {entry_id}")
        return entry

    def _prepare(self, entry: VocabularyEntry) -> VocabularyEntry:
        """Normalize an entry and recompute its phonetic fields."""
        # model_copy skips validators, so re-validate edited copies
        entry = VocabularyEntry.model_validate(entry.model_dump())

        if not entry.word:
            raise ValidationError(
                "Vocabulary word must not be empty",
                context={"id": entry.id},
            )

        if entry.use_phonetic_matching:
            primary, secondary = self.encoder.encode(entry.word)
        else:
            primary, secondary = None, None

        return entry.model_copy(
            update={"phonetic_primary": primary, "phonetic_secondary": secondary}
        )

    def _swap(self, entries: Iterable[VocabularyEntry]) -> None:
        """Rebuild indexes and publish the new snapshot. Caller holds the lock."""
        snapshot = VocabularySnapshot.build(entries)
        self._snapshot = snapshot
        logger.debug(
            "Rebuilt vocabulary indexes",
            extra={
                "entries": len(snapshot.entries),
                "misspellings": len(snapshot.exact_index),
                "phonetic_codes": len(snapshot.phonetic_index),
            },
        )

    def _notify(self, event: str, entry: VocabularyEntry | None) -> None:
        for listener in list(self._listeners):
            listener(event, entry, self)
