"""Tests for vocabulary persistence."""

import json

import pytest

from svar_vocab.errors import StorageError
from svar_vocab.storage import VocabularyFile, atomic_write_json, read_json
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.store import VocabularyStore


class TestAtomicWrite:
    """Tests for the atomic write helpers."""

    def test_write_and_read(self, tmp_path):
        """Test JSON written atomically can be read back."""
        path = tmp_path / "nested" / "data.json"

        atomic_write_json(path, {"key": "värde"})

        assert read_json(path) == {"key": "värde"}
        assert list(path.parent.glob("*.tmp")) == []

    def test_read_missing(self, tmp_path):
        """Test reading a file that does not exist."""
        with pytest.raises(StorageError):
            read_json(tmp_path / "missing.json")

    def test_read_invalid(self, tmp_path):
        """Test reading a file that is not JSON."""
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError) as exc_info:
            read_json(path)

        assert exc_info.value.context["path"] == str(path)


class TestVocabularyFile:
    """Tests for VocabularyFile."""

    def test_missing_file_is_empty(self, tmp_path):
        """Test a vocabulary that has never been saved."""
        vocab_file = VocabularyFile(tmp_path / "vocabulary.json")

        assert not vocab_file.exists()
        assert vocab_file.load() == []

    def test_save_format(self, tmp_path):
        """Test the on-disk layout."""
        path = tmp_path / "vocabulary.json"
        VocabularyFile(path).save([VocabularyEntry(word="Svar", misspellings=["swar"])])

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["version"] == 1
        assert data["entries"][0]["word"] == "Svar"
        assert data["entries"][0]["misspellings"] == ["swar"]

    def test_round_trip(self, tmp_path):
        """Test entries survive a save and load with their settings."""
        store = VocabularyStore()
        store.add(VocabularyEntry(word="Svar", misspellings=["swar"]))
        store.add(VocabularyEntry(word="Smith", use_phonetic_matching=False))

        vocab_file = VocabularyFile(tmp_path / "vocabulary.json")
        vocab_file.save(store.entries())

        restored = VocabularyStore()
        assert vocab_file.load_into(restored) == 2

        assert restored.entries() == store.entries()
        smith = restored.find("smith")
        assert smith.use_phonetic_matching is False
        assert smith.phonetic_primary is None
        assert smith.phonetic_secondary is None

    def test_stored_codes_recomputed(self, tmp_path):
        """Test that phonetic codes in the file are not trusted."""
        path = tmp_path / "vocabulary.json"
        path.write_text(
            json.dumps(
                {
                    "version": 1,
                    "entries": [
                        {"word": "Svar", "phonetic_primary": "ZZZZ", "phonetic_secondary": "Y"}
                    ],
                }
            ),
            encoding="utf-8",
        )

        store = VocabularyStore()
        VocabularyFile(path).load_into(store)

        assert store.entries()[0].codes == ("SFR",)
        assert "ZZZZ" not in store.phonetic_index()

    def test_bare_list(self, tmp_path):
        """Test a file holding a plain list of entries."""
        path = tmp_path / "vocabulary.json"
        path.write_text(json.dumps([{"word": "Svar"}, {"word": "Kubernetes"}]), encoding="utf-8")

        entries = VocabularyFile(path).load()

        assert [e.word for e in entries] == ["Svar", "Kubernetes"]

    def test_invalid_json(self, tmp_path):
        """Test a corrupt file raises StorageError."""
        path = tmp_path / "vocabulary.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(StorageError):
            VocabularyFile(path).load()

    def test_wrong_shape(self, tmp_path):
        """Test files that are JSON but not a vocabulary."""
        path = tmp_path / "vocabulary.json"

        path.write_text(json.dumps({"entries": "nope"}), encoding="utf-8")
        with pytest.raises(StorageError):
            VocabularyFile(path).load()

        path.write_text(json.dumps(["Svar"]), encoding="utf-8")
        with pytest.raises(StorageError):
            VocabularyFile(path).load()

        path.write_text(json.dumps([{"misspellings": []}]), encoding="utf-8")
        with pytest.raises(StorageError):
            VocabularyFile(path).load()

    def test_blank_word_skipped_on_load(self, tmp_path):
        """Test an entry with a blank word is dropped, not fatal."""
        path = tmp_path / "vocabulary.json"
        path.write_text(json.dumps([{"word": " "}, {"word": "Svar"}]), encoding="utf-8")

        store = VocabularyStore()
        count = VocabularyFile(path).load_into(store)

        assert count == 1
        assert store.find("svar") is not None

    def test_attach_saves_on_mutation(self, tmp_path):
        """Test an attached file follows every store edit."""
        vocab_file = VocabularyFile(tmp_path / "vocabulary.json")
        store = VocabularyStore()
        vocab_file.attach(store)

        entry = store.add(VocabularyEntry(word="Svar"))
        assert [e.word for e in vocab_file.load()] == ["Svar"]

        store.add_misspelling(entry.id, "swar")
        assert vocab_file.load()[0].misspellings == ("swar",)

        store.delete(entry.id)
        assert vocab_file.load() == []

    def test_detach(self, tmp_path):
        """Test a detached file is no longer written."""
        vocab_file = VocabularyFile(tmp_path / "vocabulary.json")
        store = VocabularyStore()
        vocab_file.attach(store)
        vocab_file.detach(store)

        store.add(VocabularyEntry(word="Svar"))

        assert not vocab_file.exists()
