"""Tests for the transcript correction pipeline."""

import json

import pytest

from svar_vocab.config import EngineSettings
from svar_vocab.vocabulary.correction import (
    TIER_EXACT,
    TIER_NGRAM,
    TIER_PHONETIC,
    Correction,
    CorrectionLog,
    CorrectionPipeline,
    Token,
    preserve_capitalization,
    tokenize,
)
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.store import VocabularyStore


def make_pipeline(*entries, settings=None):
    """Build a pipeline over a store holding the given entries."""
    store = VocabularyStore()
    for entry in entries:
        store.add(entry)
    return CorrectionPipeline(store, settings=settings)


class TestTokenize:
    """Tests for tokenize."""

    def test_spans(self):
        """Test tokens carry their character spans."""
        tokens = tokenize("Hello, world! It's")

        assert tokens == [
            Token("Hello", 0, 5),
            Token("world", 7, 12),
            Token("It", 14, 16),
            Token("s", 17, 18),
        ]

    def test_empty(self):
        """Test text without words."""
        assert tokenize("") == []
        assert tokenize(" ,.! ") == []

    def test_length(self):
        """Test the token length property."""
        assert tokenize("svar")[0].length == 4


class TestPreserveCapitalization:
    """Tests for preserve_capitalization."""

    def test_upper(self):
        """Test all-caps input upper-cases the replacement."""
        assert preserve_capitalization("HELLO", "world") == "WORLD"

    def test_title(self):
        """Test title-case input title-cases the replacement."""
        assert preserve_capitalization("Hello", "wORLD") == "World"

    def test_lower(self):
        """Test lower-case input lower-cases the replacement."""
        assert preserve_capitalization("hello", "World") == "world"

    def test_mixed_keeps_stored_form(self):
        """Test mixed case falls back to the stored spelling."""
        assert preserve_capitalization("hELLo", "iPhone") == "iPhone"

    def test_multi_token_title(self):
        """Test a span of title-case tokens counts as title case."""
        assert preserve_capitalization("Type Fully", "typefully") == "Typefully"

    def test_multi_token_mixed(self):
        """Test a span mixing title and lower case keeps the stored form."""
        assert preserve_capitalization("type Fully", "TypeFully") == "TypeFully"

    def test_multi_token_upper(self):
        """Test an all-caps span."""
        assert preserve_capitalization("TYPE FULLY", "typefully") == "TYPEFULLY"

    def test_empty(self):
        """Test empty input leaves the replacement alone."""
        assert preserve_capitalization("", "Svar") == "Svar"


class TestEmptyAndDisabled:
    """Tests for passthrough behaviour."""

    def test_empty_vocabulary(self):
        """Test that an empty vocabulary returns the input unchanged."""
        pipeline = make_pipeline()
        text = "Nothing to see here, kubernettes."

        assert pipeline.process(text) == text

    def test_empty_text(self):
        """Test empty input."""
        pipeline = make_pipeline(VocabularyEntry(word="Svar"))

        assert pipeline.process("") == ""

    def test_disabled(self):
        """Test the master switch."""
        pipeline = make_pipeline(
            VocabularyEntry(word="Kubernetes", misspellings=["kubernettes"]),
            settings=EngineSettings(enabled=False),
        )

        assert pipeline.process("kubernettes") == "kubernettes"

    def test_clean_text_unchanged(self):
        """Test that text already using the vocabulary is left alone."""
        pipeline = make_pipeline(
            VocabularyEntry(word="Kubernetes", misspellings=["kubernettes"]),
            VocabularyEntry(word="Svar"),
        )
        text = "We deploy Kubernetes with Svar"

        result, log = pipeline.process_with_log(text)

        assert result == text
        assert log.corrections == []
        assert not log.changed


class TestExactTier:
    """Tests for misspelling replacement."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("I used Kubernettes yesterday", "I used Kubernetes yesterday"),
            ("I used kubernettes yesterday", "I used kubernetes yesterday"),
            ("I used KUBERNETTES yesterday", "I used KUBERNETES yesterday"),
        ],
    )
    def test_replaces_with_case(self, text, expected):
        """Test a listed misspelling is replaced in the original case."""
        pipeline = make_pipeline(
            VocabularyEntry(word="Kubernetes", misspellings=["kubernettes"])
        )

        assert pipeline.process(text) == expected

    def test_keeps_punctuation(self):
        """Test surrounding punctuation is untouched."""
        pipeline = make_pipeline(
            VocabularyEntry(
                word="Kubernetes",
                misspellings=["kubernettes"],
                use_phonetic_matching=False,
            )
        )

        assert pipeline.process("(kubernettes), ok?") == "(kubernetes), ok?"

    def test_applies_without_phonetic(self):
        """Test misspellings work for phonetic-disabled entries."""
        pipeline = make_pipeline(
            VocabularyEntry(
                word="Kubernetes",
                misspellings=["kubernettes"],
                use_phonetic_matching=False,
            )
        )

        assert pipeline.process("kubernettes") == "kubernetes"

    def test_every_occurrence(self):
        """Test repeated misspellings are all replaced."""
        pipeline = make_pipeline(VocabularyEntry(word="Svar", misspellings=["swar"]))

        assert pipeline.process("swar then swar") == "svar then svar"


class TestPhoneticTier:
    """Tests for sound-alike replacement."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("open sfar now", "open svar now"),
            ("open Sfar now", "open Svar now"),
            ("open SFAR now", "open SVAR now"),
        ],
    )
    def test_replaces_sound_alike(self, text, expected):
        """Test a sound-alike token within distance is replaced."""
        pipeline = make_pipeline(VocabularyEntry(word="Svar"))

        assert pipeline.process(text) == expected

    def test_threshold_boundary(self):
        """Test acceptance at the distance threshold and rejection past it."""
        pipeline = make_pipeline(VocabularyEntry(word="nadine"))

        assert pipeline.process("nodyne") == "nadine"
        assert pipeline.process("nodyna") == "nodyna"

    def test_ambiguous_left_alone(self):
        """Test that two accepted candidates means no replacement."""
        pipeline = make_pipeline(VocabularyEntry(word="Jon"), VocabularyEntry(word="John"))
        text = "I met jhon today"

        assert pipeline.process(text) == text
        assert len(pipeline.phonetic_candidates("jhon")) == 2
        assert pipeline.find_phonetic_match("jhon") is None

    def test_single_candidate_replaced(self):
        """Test the same token is corrected when only one candidate exists."""
        pipeline = make_pipeline(VocabularyEntry(word="John"))

        assert pipeline.process("I met jhon today") == "I met john today"

    def test_phonetic_disabled_entry(self):
        """Test entries with phonetic matching off are never phonetic targets."""
        pipeline = make_pipeline(VocabularyEntry(word="Svar", use_phonetic_matching=False))

        assert pipeline.process("open sfar now") == "open sfar now"

    def test_short_tokens_skipped(self):
        """Test tokens shorter than three characters are not matched."""
        pipeline = make_pipeline(VocabularyEntry(word="Ada"))

        assert pipeline.process("at an") == "at an"

    def test_misspelling_not_rematched(self):
        """Test tokens listed as misspellings are left to the exact tier."""
        pipeline = make_pipeline(
            VocabularyEntry(word="Svar"),
            VocabularyEntry(word="Other", misspellings=["sfar"], use_phonetic_matching=False),
        )

        assert pipeline.process("sfar") == "other"


class TestNgramTier:
    """Tests for rejoining split words."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("type fully", "typefully"),
            ("Type Fully", "Typefully"),
            ("TYPE FULLY", "TYPEFULLY"),
            ("I love type fully today", "I love typefully today"),
            ("type-fully", "typefully"),
        ],
    )
    def test_bigram(self, text, expected):
        """Test two tokens joining to a vocabulary word."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typefully", use_phonetic_matching=False)
        )

        assert pipeline.process(text) == expected

    def test_trigram(self):
        """Test three tokens joining to a vocabulary word."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typefully", use_phonetic_matching=False)
        )

        assert pipeline.process("type ful ly") == "typefully"

    def test_trigram_preferred(self):
        """Test the longer join wins over a shorter one."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typeful", use_phonetic_matching=False),
            VocabularyEntry(word="typefully", use_phonetic_matching=False),
        )

        assert pipeline.process("type ful ly") == "typefully"

    def test_phonetic_join(self):
        """Test a join that only sounds like a vocabulary word."""
        pipeline = make_pipeline(VocabularyEntry(word="Typefully"))

        assert pipeline.process("type filly") == "typefully"

    def test_ngram_disabled(self):
        """Test the n-gram switch."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typefully", use_phonetic_matching=False),
            settings=EngineSettings(enable_ngram=False),
        )

        assert pipeline.process("type fully") == "type fully"


class TestTierOrdering:
    """Tests for how the tiers interact."""

    def test_join_not_split_by_later_tier(self):
        """Test later tiers see the rejoined text, not the original tokens."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typefully", use_phonetic_matching=False),
            VocabularyEntry(word="Folly", misspellings=["fully"], use_phonetic_matching=False),
        )

        assert pipeline.process("type fully") == "typefully"

    def test_no_double_correction(self):
        """Test a rejoined word is not rewritten into a sound-alike entry."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typefully", use_phonetic_matching=False),
            VocabularyEntry(word="tapfully"),
        )

        assert pipeline.process("type fully") == "typefully"
        assert pipeline.process("typefully") == "typefully"

    def test_all_tiers(self):
        """Test one pass applying each tier and logging it."""
        pipeline = make_pipeline(
            VocabularyEntry(word="typefully", use_phonetic_matching=False),
            VocabularyEntry(
                word="Kubernetes",
                misspellings=["kubernettes"],
                use_phonetic_matching=False,
            ),
            VocabularyEntry(word="Svar"),
        )

        result, log = pipeline.process_with_log("type fully on kubernettes and sfar")

        assert result == "typefully on kubernetes and svar"
        assert [c.tier for c in log.corrections] == [TIER_NGRAM, TIER_EXACT, TIER_PHONETIC]
        assert log.corrections[0] == Correction(
            "type fully", "typefully", TIER_NGRAM, 0, "typefully"
        )
        assert log.by_tier(TIER_EXACT)[0].word == "Kubernetes"
        assert log.vocabulary_size == 3
        assert log.changed

    def test_vocabulary_edit_between_calls(self):
        """Test each call sees the vocabulary as it is at that moment."""
        store = VocabularyStore()
        pipeline = CorrectionPipeline(store)

        assert pipeline.process("swar") == "swar"
        store.add(VocabularyEntry(word="Svar", misspellings=["swar"]))
        assert pipeline.process("swar") == "svar"


class TestCorrectionLog:
    """Tests for CorrectionLog."""

    def test_round_trip(self, tmp_path):
        """Test saving a log and reading it back."""
        log = CorrectionLog(vocabulary_size=2, source_text="swar", result_text="svar")
        log.add(Correction("swar", "svar", TIER_EXACT, 0, "Svar"))

        path = tmp_path / "log.json"
        log.save(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        restored = CorrectionLog.from_dict(data)

        assert data["correction_count"] == 1
        assert restored.corrections == log.corrections
        assert restored.timestamp == log.timestamp
        assert restored.result_text == "svar"

    def test_len_and_by_tier(self):
        """Test counting and filtering."""
        log = CorrectionLog()
        log.add(Correction("a", "b", TIER_EXACT, 0))
        log.add(Correction("c", "d", TIER_PHONETIC, 2))

        assert len(log) == 2
        assert [c.original for c in log.by_tier(TIER_PHONETIC)] == ["c"]
