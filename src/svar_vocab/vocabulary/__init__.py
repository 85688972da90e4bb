"""Vocabulary module for transcript correction.

Provides the phonetic encoder, edit-distance matcher, vocabulary store and
the tiered correction pipeline that fixes words a speech recognizer
commonly gets wrong.
"""

from svar_vocab.vocabulary.correction import (
    Correction,
    CorrectionLog,
    CorrectionPipeline,
    Token,
    preserve_capitalization,
    tokenize,
)
from svar_vocab.vocabulary.entry import VocabularyEntry
from svar_vocab.vocabulary.fuzzy import FuzzyMatcher, levenshtein_distance
from svar_vocab.vocabulary.phonetic import PhoneticEncoder, double_metaphone, encode
from svar_vocab.vocabulary.store import VocabularySnapshot, VocabularyStore

__all__ = [
    "Correction",
    "CorrectionLog",
    "CorrectionPipeline",
    "FuzzyMatcher",
    "PhoneticEncoder",
    "Token",
    "VocabularyEntry",
    "VocabularySnapshot",
    "VocabularyStore",
    "double_metaphone",
    "encode",
    "levenshtein_distance",
    "preserve_capitalization",
    "tokenize",
]
