"""
Franchise title normalisation.

A heuristic string pass, not a grammar: every pattern it understands is listed
in the tables below so the behaviour can be tested table by table.

- normalize_title: comparison key for a single title (editions, punctuation and
  numeral style removed, e.g. "The Witcher 3: Wild Hunt - GOTY Edition" and
  "The Witcher III: Wild Hunt" share a key).
- franchise_base: the series key (subtitle and trailing sequel numeral also
  removed, e.g. "the witcher").
- franchise_display_name: a readable series name built from an original title.

Original titles are never modified; these keys are for comparison only.
"""

import re
from typing import List

# Integers 1–20 and their roman numeral spelling.
ROMAN_NUMERALS = {
    1: "i", 2: "ii", 3: "iii", 4: "iv", 5: "v",
    6: "vi", 7: "vii", 8: "viii", 9: "ix", 10: "x",
    11: "xi", 12: "xii", 13: "xiii", 14: "xiv", 15: "xv",
    16: "xvi", 17: "xvii", 18: "xviii", 19: "xix", 20: "xx",
}
ROMAN_TOKENS = frozenset(ROMAN_NUMERALS.values())

# Edition/re-release markers stripped from the end of a title. Each may be
# followed by "edition" or "version" and preceded by ":" or a dash.
EDITION_MARKERS = (
    "game of the year",
    "goty",
    "remastered",
    "remaster",
    "remake",
    "definitive",
    "deluxe",
    "ultimate",
    "complete",
    "enhanced",
    "anniversary",
    "collection",
    "gold",
    "premium",
    "special",
    "digital",
    "standard",
    "legendary",
    "royal",
    "directors cut",
    "final cut",
    "hd",
    "redux",
    "reloaded",
    "reforged",
)

# Characters dropped before any matching.
STRIP_CHARS = ("™", "®", "©", "'", "’")

# Separators introducing a subtitle ("Game: Subtitle", "Game - Subtitle").
SUBTITLE_SEPARATORS = re.compile(r"\s*(?::|\s-\s|\s–\s|\s—\s)\s*")

_PARENTHETICAL = re.compile(r"\s*[\(\[][^\)\]]*[\)\]]")
_EDITION_SUFFIX = re.compile(
    r"(?:\s*[:\-–—]\s*|\s+)(?:the\s+)?(?:%s)(?:\s+(?:edition|version))?\s*$"
    % "|".join(re.escape(m) for m in EDITION_MARKERS)
)
_BARE_EDITION = re.compile(r"\s+(?:edition|version)\s*$")
_NON_WORD = re.compile(r"[^0-9a-z]+")

MIN_BASE_LENGTH = 3


def _prepare(title: str) -> str:
    text = (title or "").lower().strip()
    for ch in STRIP_CHARS:
        text = text.replace(ch, "")
    return _PARENTHETICAL.sub("", text).strip()


def strip_edition_suffixes(text: str) -> str:
    """Remove trailing edition markers, repeatedly, never shrinking below MIN_BASE_LENGTH."""
    for _ in range(4):
        stripped = _EDITION_SUFFIX.sub("", text).strip()
        stripped = _BARE_EDITION.sub("", stripped).strip()
        if stripped == text or len(stripped) < MIN_BASE_LENGTH:
            break
        text = stripped
    return text


def _tokens(text: str) -> List[str]:
    tokens = []
    for token in _NON_WORD.sub(" ", text).split():
        if token.isdigit() and int(token) in ROMAN_NUMERALS:
            token = ROMAN_NUMERALS[int(token)]
        tokens.append(token)
    return tokens


def _is_sequel_token(token: str) -> bool:
    return token in ROMAN_TOKENS or token.isdigit()


def normalize_title(title: str) -> str:
    """Comparison key for one title: lower-case, no editions, no punctuation, roman numerals."""
    text = strip_edition_suffixes(_prepare(title))
    return " ".join(_tokens(text))


def cut_subtitle(text: str) -> str:
    """Drop everything after the first subtitle separator, unless that leaves too little."""
    head = SUBTITLE_SEPARATORS.split(text, maxsplit=1)[0].strip()
    return head if len(head) >= MIN_BASE_LENGTH else text


def franchise_base(title: str) -> str:
    """
    Series key for a title, or "" when the title is too short to group.

    Removes parentheticals, edition markers, the subtitle and one trailing
    sequel numeral (arabic or roman).
    """
    text = strip_edition_suffixes(_prepare(title))
    text = strip_edition_suffixes(cut_subtitle(text))
    tokens = _tokens(text)
    if len(tokens) > 1 and _is_sequel_token(tokens[-1]):
        tokens = tokens[:-1]
    base = " ".join(tokens)
    return base if len(base) >= MIN_BASE_LENGTH else ""


def franchise_display_name(title: str) -> str:
    """Readable series name from an original title, casing preserved."""
    text = _PARENTHETICAL.sub("", (title or "").strip()).strip()
    head = SUBTITLE_SEPARATORS.split(text, maxsplit=1)[0].strip() or text
    parts = head.split()
    if len(parts) > 1 and _is_sequel_token(parts[-1].lower()):
        parts = parts[:-1]
    return " ".join(parts)
