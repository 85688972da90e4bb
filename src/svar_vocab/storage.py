"""Persistence of vocabulary entries.

Entries are stored as JSON. Cached phonetic codes are written for
readability but ignored on load: the store recomputes them from the word.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from svar_vocab.errors import StorageError
from svar_vocab.logging import get_logger
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.store import VocabularyStore

logger = get_logger(__name__)

FORMAT_VERSION = 1


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    """Write data to a file atomically.

    Writes to a temporary file in the same directory, then renames it over
    the target, so an interrupted write never leaves a truncated file.

    Args:
        path: Target file path
        data: String data to write
        encoding: File encoding (default utf-8)

    Raises:
        StorageError: If the write operation fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    temp_path = None
    try:
        # Same directory keeps the rename on one filesystem
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=path.stem + "_",
            dir=path.parent,
        )
        os.write(fd, data.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        fd = None

        os.replace(temp_path, path)
        temp_path = None

    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}", context={"path": str(path)}) from e
    finally:
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass
        if temp_path is not None:
            try:
                os.unlink(temp_path)
            except OSError:
                pass


def atomic_write_json(path: Path, data: dict | list, indent: int = 2) -> None:
    """Write JSON data to a file atomically.

    Args:
        path: Target file path
        data: Data to serialize as JSON
        indent: JSON indentation level (default 2)
    """
    json_str = json.dumps(data, indent=indent, ensure_ascii=False, default=str)
    atomic_write(path, json_str)


def read_json(path: Path) -> Any:
    """Read JSON data from a file.

    Args:
        path: File path to read

    Returns:
        Parsed JSON data

    Raises:
        StorageError: If the file cannot be read or is invalid JSON
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}", context={"path": str(path)}) from e
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}", context={"path": str(path)}) from e


class VocabularyFile:
    """JSON file holding the user's vocabulary entries.

    The file contains ``{"version": 1, "entries": [...]}``; a bare list of
    entries is also accepted on load.

    Example:
        vocab_file = VocabularyFile(Path("~/.svar/vocabulary.json").expanduser())
        store = VocabularyStore(vocab_file.load())
        vocab_file.attach(store)  # Save after every edit
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[VocabularyEntry]:
        """Read entries from the file.

        Returns:
            Entries in stored order; empty if the file does not exist

        Raises:
            StorageError: If the file is unreadable or does not match the schema
        """
        if not self.path.exists():
            logger.debug(f"No vocabulary file at {self.path}")
            return []

        data = read_json(self.path)
        if isinstance(data, dict):
            records = data.get("entries", [])
        else:
            records = data

        if not isinstance(records, list):
            raise StorageError(
                "Vocabulary file must contain a list of entries",
                context={"path": str(self.path)},
            )

        entries = []
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise StorageError(
                    f"Vocabulary entry {index} is not an object",
                    context={"path": str(self.path)},
                )
            try:
                entries.append(VocabularyEntry.from_dict(record))
            except PydanticValidationError as e:
                raise StorageError(
                    f"Invalid vocabulary entry {index}: {e.error_count()} error(s)",
                    context={"path": str(self.path)},
                ) from e

        logger.info(f"Read {len(entries)} vocabulary entries", extra={"path": str(self.path)})
        return entries

    def save(self, entries: list[VocabularyEntry] | tuple[VocabularyEntry, ...]) -> None:
        """Write entries to the file atomically.

        Args:
            entries: Entries in store order
        """
        payload = {
            "version": FORMAT_VERSION,
            "entries": [entry.to_dict() for entry in entries],
        }
        atomic_write_json(self.path, payload)
        logger.info(f"Saved {len(entries)} vocabulary entries", extra={"path": str(self.path)})

    def load_into(self, store: VocabularyStore) -> int:
        """Replace the store's entries with the file's.

        Returns:
            Number of entries the store accepted
        """
        return store.load(self.load(), notify=False)

    def attach(self, store: VocabularyStore) -> None:
        """Save the store's entries after every mutation."""
        store.subscribe(self._on_mutation)

    def detach(self, store: VocabularyStore) -> None:
        store.unsubscribe(self._on_mutation)

    def _on_mutation(
        self, event: str, entry: VocabularyEntry | None, store: VocabularyStore
    ) -> None:
        self.save(store.entries())
