"""Edit-distance verification for phonetic candidates.

Phonetic codes are short, so unrelated words collide on them regularly.
Every phonetic candidate is therefore checked against the observed token
with Levenshtein distance before it may replace anything.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MIN_THRESHOLD = 2
DEFAULT_THRESHOLD_DIVISOR = 3


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein (edit) distance between two strings.

    The Levenshtein distance is the minimum number of single-character
    edits (insertions, deletions, substitutions) required to change
    one string into the other. Comparison is case-sensitive; use
    :meth:`FuzzyMatcher.distance` for the case-insensitive form.

    Args:
        s1: First string
        s2: Second string

    Returns:
        Number of edits needed
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    # Only the previous row of the table is needed
    previous_row = list(range(len(s2) + 1))
    current_row = [0] * (len(s2) + 1)

    for i, c1 in enumerate(s1):
        current_row[0] = i + 1

        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)

            current_row[j + 1] = min(insertions, deletions, substitutions)

        previous_row, current_row = current_row, previous_row

    return previous_row[len(s2)]


@dataclass(frozen=True)
class FuzzyMatcher:
    """Case-insensitive edit distance plus the candidate acceptance policy.

    A candidate word is accepted for an observed token when their distance
    is at most ``max(min_threshold, len(word) // threshold_divisor)``, so
    longer words tolerate more edits.

    Attributes:
        min_threshold: Distance always tolerated, whatever the word length
        threshold_divisor: Word length divided by this gives the scaled limit
    """

    min_threshold: int = DEFAULT_MIN_THRESHOLD
    threshold_divisor: int = DEFAULT_THRESHOLD_DIVISOR

    def distance(self, a: str, b: str) -> int:
        """Case-insensitive edit distance between two strings."""
        return levenshtein_distance(a.lower(), b.lower())

    def threshold(self, word: str) -> int:
        """Maximum distance accepted for a candidate with this canonical word."""
        return max(self.min_threshold, len(word) // self.threshold_divisor)

    def accepts(self, token: str, word: str) -> bool:
        """Check whether a phonetic candidate word is close enough to the token.

        Args:
            token: Observed token from the transcript
            word: Canonical word of the candidate entry

        Returns:
            True if the candidate passes the distance threshold
        """
        return self.distance(token, word) <= self.threshold(word)

    def within(self, token: str, word: str, max_distance: int) -> bool:
        """Check the distance against a fixed limit instead of the scaled one."""
        return self.distance(token, word) <= max_distance
