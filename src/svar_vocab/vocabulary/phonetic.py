"""Double Metaphone phonetic encoding.

Implements Lawrence Philips' Double Metaphone algorithm, which maps a word
to a primary and an alternate (secondary) phonetic code. Two words that
share a code are phonetic-match candidates; the edit-distance check in
:mod:`svar_vocab.vocabulary.fuzzy` decides whether a candidate is accepted.

The encoder walks the upper-cased word left to right, consuming one to
four letters per step. Most letters encode the same way in both codes;
the rules that diverge cover words of Germanic, Slavic, Romance and Greek
origin.
"""

from __future__ import annotations

from dataclasses import dataclass

# Codes are capped at this many symbols
MAX_CODE_LENGTH = 4

# Words shorter than this (after cleaning) are not encoded
MIN_WORD_LENGTH = 3

VOWELS = frozenset("AEIOUY")

# Lookahead beyond the end of the word reads as spaces, so patterns such
# as "IER " or "VAN " can test for a word ending.
_PADDING = "     "


class _Word:
    """Upper-cased word with bounds-safe lookups used by the rule table."""

    def __init__(self, word: str):
        self.text = word.upper()
        self.length = len(self.text)
        self.last = self.length - 1
        self._padded = self.text + _PADDING
        self.slavo_germanic = (
            "W" in self.text
            or "K" in self.text
            or "CZ" in self.text
            or "WITZ" in self.text
        )

    def at(self, index: int) -> str:
        """Character at index, a space past the end, empty before the start."""
        if index < 0 or index >= len(self._padded):
            return ""
        return self._padded[index]

    def is_vowel(self, index: int) -> bool:
        if index < 0 or index >= self.length:
            return False
        return self.text[index] in VOWELS

    def string_at(self, start: int, length: int, *options: str) -> bool:
        """Check whether the slice at start matches any of the options."""
        if start < 0:
            return False
        return self._padded[start:start + length] in options


class _Codes:
    """Accumulates the primary and secondary codes side by side."""

    def __init__(self, limit: int = MAX_CODE_LENGTH):
        self.limit = limit
        self.primary = ""
        self.secondary = ""

    def add(self, main: str, alternate: str | None = None) -> None:
        self.primary += main
        self.secondary += main if alternate is None else alternate

    def full(self) -> bool:
        return (
            len(self.primary) >= self.limit
            and len(self.secondary) >= self.limit
        )


def _germanic_prefix(w: _Word) -> bool:
    return w.string_at(0, 4, "VAN ", "VON ") or w.string_at(0, 3, "SCH")


def _encode_c(w: _Word, i: int, out: _Codes) -> int:
    # Germanic "ach": "bacher", "macher"
    if (
        i > 1
        and not w.is_vowel(i - 2)
        and w.string_at(i - 1, 3, "ACH")
        and w.at(i + 2) != "I"
        and (w.at(i + 2) != "E" or w.string_at(i - 2, 6, "BACHER", "MACHER"))
    ):
        out.add("K")
        return i + 2

    if i == 0 and w.string_at(i, 6, "CAESAR"):
        out.add("S")
        return i + 2

    # Italian "chianti"
    if w.string_at(i, 4, "CHIA"):
        out.add("K")
        return i + 2

    if w.string_at(i, 2, "CH"):
        # "michael"
        if i > 0 and w.string_at(i, 4, "CHAE"):
            out.add("K", "X")
            return i + 2

        # Greek roots: "chemistry", "chorus"
        if (
            i == 0
            and (
                w.string_at(i + 1, 5, "HARAC", "HARIS")
                or w.string_at(i + 1, 3, "HOR", "HYM", "HIA", "HEM")
            )
            and not w.string_at(0, 5, "CHORE")
        ):
            out.add("K")
            return i + 2

        if (
            _germanic_prefix(w)
            or w.string_at(i - 2, 6, "ORCHES", "ARCHIT", "ORCHID")
            or w.string_at(i + 2, 1, "T", "S")
            or (
                (w.string_at(i - 1, 1, "A", "O", "U", "E") or i == 0)
                and w.string_at(i + 2, 1, "L", "R", "N", "M", "B", "H", "F", "V", "W", " ")
            )
        ):
            out.add("K")
        elif i > 0:
            if w.string_at(0, 2, "MC"):
                out.add("K")
            else:
                out.add("X", "K")
        else:
            out.add("X")
        return i + 2

    # "czerny"
    if w.string_at(i, 2, "CZ") and not w.string_at(i - 2, 4, "WICZ"):
        out.add("S", "X")
        return i + 2

    # "focaccia"
    if w.string_at(i + 1, 3, "CIA"):
        out.add("X")
        return i + 3

    # Double C, but not "mcclellan"
    if w.string_at(i, 2, "CC") and not (i == 1 and w.at(0) == "M"):
        if w.string_at(i + 2, 1, "I", "E", "H") and not w.string_at(i + 2, 2, "HU"):
            # "accident", "succeed"
            if (i == 1 and w.at(i - 1) == "A") or w.string_at(i - 1, 5, "UCCEE", "UCCES"):
                out.add("KS")
            else:
                out.add("X")
            return i + 3
        out.add("K")
        return i + 2

    if w.string_at(i, 2, "CK", "CG", "CQ"):
        out.add("K")
        return i + 2

    if w.string_at(i, 2, "CI", "CE", "CY"):
        if w.string_at(i, 3, "CIO", "CIE", "CIA"):
            out.add("S", "X")
        else:
            out.add("S")
        return i + 2

    out.add("K")
    # "mac caffrey", "mac gregor"
    if w.string_at(i + 1, 2, " C", " Q", " G"):
        return i + 3
    if w.string_at(i + 1, 1, "C", "K", "Q") and not w.string_at(i + 1, 2, "CE", "CI"):
        return i + 2
    return i + 1


def _encode_d(w: _Word, i: int, out: _Codes) -> int:
    if w.string_at(i, 2, "DG"):
        # "edge"
        if w.string_at(i + 2, 1, "I", "E", "Y"):
            out.add("J")
            return i + 3
        # "edgar"
        out.add("TK")
        return i + 2

    if w.string_at(i, 2, "DT", "DD"):
        out.add("T")
        return i + 2

    out.add("T")
    return i + 1


def _encode_g(w: _Word, i: int, out: _Codes) -> int:
    if w.at(i + 1) == "H":
        if i > 0 and not w.is_vowel(i - 1):
            out.add("K")
            return i + 2

        # "ghislane", "ghiradelli"
        if i == 0:
            if w.at(i + 2) == "I":
                out.add("J")
            else:
                out.add("K")
            return i + 2

        # Parker's rule: "hugh", "bough", "broughton"
        if (
            (i > 1 and w.string_at(i - 2, 1, "B", "H", "D"))
            or (i > 2 and w.string_at(i - 3, 1, "B", "H", "D"))
            or (i > 3 and w.string_at(i - 4, 1, "B", "H"))
        ):
            return i + 2

        # "laugh", "cough", "rough", "tough"
        if i > 2 and w.at(i - 1) == "U" and w.string_at(i - 3, 1, "C", "G", "L", "R", "T"):
            out.add("F")
        elif i > 0 and w.at(i - 1) != "I":
            out.add("K")
        return i + 2

    if w.at(i + 1) == "N":
        if i == 1 and w.is_vowel(0) and not w.slavo_germanic:
            out.add("KN", "N")
        elif not w.string_at(i + 2, 2, "EY") and w.at(i + 1) != "Y" and not w.slavo_germanic:
            # not "cagney"
            out.add("N", "KN")
        else:
            out.add("KN")
        return i + 2

    # "tagliaro"
    if w.string_at(i + 1, 2, "LI") and not w.slavo_germanic:
        out.add("KL", "L")
        return i + 2

    # -ges-, -gep-, -gel-, -gie- at the beginning
    if i == 0 and (
        w.at(i + 1) == "Y"
        or w.string_at(i + 1, 2, "ES", "EP", "EB", "EL", "EY", "IB", "IL", "IN", "IE", "EI", "ER")
    ):
        out.add("K", "J")
        return i + 2

    # -ger-, -gy-
    if (
        (w.string_at(i + 1, 2, "ER") or w.at(i + 1) == "Y")
        and not w.string_at(0, 6, "DANGER", "RANGER", "MANGER")
        and not w.string_at(i - 1, 1, "E", "I")
        and not w.string_at(i - 1, 3, "RGY", "OGY")
    ):
        out.add("K", "J")
        return i + 2

    # Italian "biaggi"
    if w.string_at(i + 1, 1, "E", "I", "Y") or w.string_at(i - 1, 4, "AGGI", "OGGI"):
        if _germanic_prefix(w) or w.string_at(i + 1, 2, "ET"):
            out.add("K")
        elif w.string_at(i + 1, 4, "IER "):
            # French ending is always soft
            out.add("J")
        else:
            out.add("J", "K")
        return i + 2

    out.add("K")
    return i + 2 if w.at(i + 1) == "G" else i + 1


def _encode_j(w: _Word, i: int, out: _Codes) -> int:
    # Spanish "jose", "san jacinto"
    if w.string_at(i, 4, "JOSE") or w.string_at(0, 4, "SAN "):
        if (i == 0 and w.at(i + 4) == " ") or w.string_at(0, 4, "SAN "):
            out.add("H")
        else:
            out.add("J", "H")
        return i + 1

    if i == 0 and not w.string_at(i, 4, "JOSE"):
        # "yankelovich" / "jankelowicz"
        out.add("J", "A")
    elif (
        w.is_vowel(i - 1)
        and not w.slavo_germanic
        and w.at(i + 1) in ("A", "O")
    ):
        # Spanish "bajador"
        out.add("J", "H")
    elif i == w.last:
        out.add("J", "")
    elif not w.string_at(i + 1, 1, "L", "T", "K", "S", "N", "M", "B", "Z") and not w.string_at(
        i - 1, 1, "S", "K", "L"
    ):
        out.add("J")

    return i + 2 if w.at(i + 1) == "J" else i + 1


def _encode_l(w: _Word, i: int, out: _Codes) -> int:
    if w.at(i + 1) == "L":
        # Spanish "cabrillo", "gallegos"
        if (i == w.length - 3 and w.string_at(i - 1, 4, "ILLO", "ILLA", "ALLE")) or (
            (w.string_at(w.last - 1, 2, "AS", "OS") or w.string_at(w.last, 1, "A", "O"))
            and w.string_at(i - 1, 4, "ALLE")
        ):
            out.add("L", "")
            return i + 2
        out.add("L")
        return i + 2

    out.add("L")
    return i + 1


def _encode_m(w: _Word, i: int, out: _Codes) -> int:
    out.add("M")
    # "dumb", "thumb"
    if (
        w.string_at(i - 1, 3, "UMB")
        and (i + 1 == w.last or w.string_at(i + 2, 2, "ER"))
    ) or w.at(i + 1) == "M":
        return i + 2
    return i + 1


def _encode_r(w: _Word, i: int, out: _Codes) -> int:
    # French "rogier", but not "hochmeier"
    if (
        i == w.last
        and not w.slavo_germanic
        and w.string_at(i - 2, 2, "IE")
        and not w.string_at(i - 4, 2, "ME", "MA")
    ):
        out.add("", "R")
    else:
        out.add("R")
    return i + 2 if w.at(i + 1) == "R" else i + 1


def _encode_s(w: _Word, i: int, out: _Codes) -> int:
    # "island", "isle", "carlisle", "carlysle"
    if w.string_at(i - 1, 3, "ISL", "YSL"):
        return i + 1

    if i == 0 and w.string_at(i, 5, "SUGAR"):
        out.add("X", "S")
        return i + 1

    if w.string_at(i, 2, "SH"):
        if w.string_at(i + 1, 4, "HEIM", "HOEK", "HOLM", "HOLZ"):
            out.add("S")
        else:
            out.add("X")
        return i + 2

    # Italian and Armenian
    if w.string_at(i, 3, "SIO", "SIA") or w.string_at(i, 4, "SIAN"):
        if w.slavo_germanic:
            out.add("S")
        else:
            out.add("S", "X")
        return i + 3

    # "smith" matches "schmidt", "snider" matches "schneider"
    if (i == 0 and w.string_at(i + 1, 1, "M", "N", "L", "W")) or w.string_at(i + 1, 1, "Z"):
        out.add("S", "X")
        return i + 2 if w.string_at(i + 1, 1, "Z") else i + 1

    if w.string_at(i, 2, "SC"):
        # Schlesinger's rule
        if w.at(i + 2) == "H":
            # Dutch "school", "schooner"
            if w.string_at(i + 3, 2, "OO", "ER", "EN", "UY", "ED", "EM"):
                # "schermerhorn", "schenker"
                if w.string_at(i + 3, 2, "ER", "EN"):
                    out.add("X", "SK")
                else:
                    out.add("SK")
            elif i == 0 and not w.is_vowel(3) and w.at(3) != "W":
                out.add("X", "S")
            else:
                out.add("X")
            return i + 3

        if w.string_at(i + 2, 1, "I", "E", "Y"):
            out.add("S")
            return i + 3

        out.add("SK")
        return i + 3

    # French "resnais", "artois"
    if i == w.last and w.string_at(i - 2, 2, "AI", "OI"):
        out.add("", "S")
    else:
        out.add("S")
    return i + 2 if w.string_at(i + 1, 1, "S", "Z") else i + 1


def _encode_t(w: _Word, i: int, out: _Codes) -> int:
    if w.string_at(i, 4, "TION"):
        out.add("X")
        return i + 3

    if w.string_at(i, 3, "TIA", "TCH"):
        out.add("X")
        return i + 3

    if w.string_at(i, 2, "TH") or w.string_at(i, 3, "TTH"):
        # "thomas", "thames" or Germanic
        if w.string_at(i + 2, 2, "OM", "AM") or _germanic_prefix(w):
            out.add("T")
        else:
            out.add("0", "T")
        return i + 2

    out.add("T")
    return i + 2 if w.string_at(i + 1, 1, "T", "D") else i + 1


def _encode_w(w: _Word, i: int, out: _Codes) -> int:
    if w.string_at(i, 2, "WR"):
        out.add("R")
        return i + 2

    if i == 0 and (w.is_vowel(i + 1) or w.string_at(i, 2, "WH")):
        # "wasserman" should match "vasserman"
        if w.is_vowel(i + 1):
            out.add("A", "F")
        else:
            out.add("A")

    # "arnow" should match "arnoff"
    if (
        (i == w.last and w.is_vowel(i - 1))
        or w.string_at(i - 1, 5, "EWSKI", "EWSKY", "OWSKI", "OWSKY")
        or w.string_at(0, 3, "SCH")
    ):
        out.add("", "F")
        return i + 1

    # Polish "filipowicz"
    if w.string_at(i, 4, "WICZ", "WITZ"):
        out.add("TS", "FX")
        return i + 4

    return i + 1


def _encode_x(w: _Word, i: int, out: _Codes) -> int:
    # French "breaux"
    if not (
        i == w.last
        and (w.string_at(i - 3, 3, "IAU", "EAU") or w.string_at(i - 2, 2, "AU", "OU"))
    ):
        out.add("KS")
    return i + 2 if w.string_at(i + 1, 1, "C", "X") else i + 1


def _encode_z(w: _Word, i: int, out: _Codes) -> int:
    # Pinyin "zhao"
    if w.at(i + 1) == "H":
        out.add("J")
        return i + 2

    if w.string_at(i + 1, 2, "ZO", "ZI", "ZA") or (
        w.slavo_germanic and i > 0 and w.at(i - 1) != "T"
    ):
        out.add("S", "TS")
    else:
        out.add("S")
    return i + 2 if w.at(i + 1) == "Z" else i + 1


def _encode_simple(code: str):
    """Rule for letters that always encode the same way and collapse doubles."""

    def rule(w: _Word, i: int, out: _Codes) -> int:
        out.add(code)
        return i + 2 if w.at(i + 1) == w.at(i) else i + 1

    return rule


def _encode_b(w: _Word, i: int, out: _Codes) -> int:
    out.add("P")
    return i + 2 if w.at(i + 1) == "B" else i + 1


def _encode_h(w: _Word, i: int, out: _Codes) -> int:
    # Kept only when first or between vowels, and before a vowel
    if (i == 0 or w.is_vowel(i - 1)) and w.is_vowel(i + 1):
        out.add("H")
        return i + 2
    return i + 1


def _encode_p(w: _Word, i: int, out: _Codes) -> int:
    if w.at(i + 1) == "H":
        out.add("F")
        return i + 2
    out.add("P")
    # "campbell", "raspberry"
    return i + 2 if w.string_at(i + 1, 1, "P", "B") else i + 1


_RULES = {
    "B": _encode_b,
    "C": _encode_c,
    "D": _encode_d,
    "F": _encode_simple("F"),
    "G": _encode_g,
    "H": _encode_h,
    "J": _encode_j,
    "K": _encode_simple("K"),
    "L": _encode_l,
    "M": _encode_m,
    "N": _encode_simple("N"),
    "P": _encode_p,
    "Q": _encode_simple("K"),
    "R": _encode_r,
    "S": _encode_s,
    "T": _encode_t,
    "V": _encode_simple("F"),
    "W": _encode_w,
    "X": _encode_x,
    "Z": _encode_z,
}


def double_metaphone(word: str, max_length: int = MAX_CODE_LENGTH) -> tuple[str, str]:
    """Compute the raw Double Metaphone codes for a word.

    Args:
        word: Word to encode (any case)
        max_length: Maximum number of symbols per code

    Returns:
        Tuple of (primary, secondary); either may be empty. The secondary
        code equals the primary when no alternate pronunciation applies.
    """
    w = _Word(word)
    out = _Codes(max_length)
    if w.length == 0:
        return "", ""

    current = 0

    # Silent first letter: "gnome", "knight", "pneumatic", "wrack", "psychology"
    if w.string_at(0, 2, "GN", "KN", "PN", "WR", "PS"):
        current += 1

    # Initial X is pronounced Z: "xavier"
    if w.at(0) == "X":
        out.add("S")
        current += 1

    while current < w.length and not out.full():
        ch = w.at(current)

        if ch in VOWELS:
            if current == 0:
                out.add("A")
            current += 1
        elif ch == "Ç":
            out.add("S")
            current += 1
        elif ch == "Ñ":
            out.add("N")
            current += 1
        elif ch in _RULES:
            current = _RULES[ch](w, current, out)
        else:
            current += 1

    return out.primary[:max_length], out.secondary[:max_length]


@dataclass(frozen=True)
class PhoneticEncoder:
    """Stateless phonetic encoder injected into the store and pipeline.

    Attributes:
        max_length: Maximum number of symbols per code
        min_word_length: Shorter words produce no codes
    """

    max_length: int = MAX_CODE_LENGTH
    min_word_length: int = MIN_WORD_LENGTH

    def encode(self, word: str) -> tuple[str | None, str | None]:
        """Return (primary, secondary) codes for a word.

        Args:
            word: Word to encode

        Returns:
            Tuple of codes; secondary is None when equal to primary
        """
        clean = word.strip().lower()
        if len(clean) < self.min_word_length:
            return None, None

        primary, secondary = double_metaphone(clean, self.max_length)
        if not primary:
            return None, secondary or None
        if not secondary or secondary == primary:
            return primary, None
        return primary, secondary

    def codes(self, word: str) -> list[str]:
        """Return the distinct non-empty codes for a word, primary first."""
        return [code for code in self.encode(word) if code]


_default_encoder = PhoneticEncoder()


def encode(word: str) -> tuple[str | None, str | None]:
    """Encode a word into its phonetic codes for vocabulary matching.

    The word is trimmed and lower-cased first. Words with fewer than three
    characters are not encoded. The secondary code is only returned when
    it differs from the primary.

    Args:
        word: Word to encode

    Returns:
        Tuple of (primary, secondary), each a code or None
    """
    return _default_encoder.encode(word)
