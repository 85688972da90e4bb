"""Svar Vocab - vocabulary correction for speech transcripts.

Fixes words a speech recognizer gets wrong using a small user-curated
dictionary: explicit misspellings, split-word rejoining and a
Double Metaphone phonetic fallback.
"""

__version__ = "0.1.0"
