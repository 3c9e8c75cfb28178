"""
Canonical genre mapping.

Catalog platforms disagree on genre names ("FPS" vs "Shooter", "Sport" vs
"Sports"); every stage compares genres through these helpers so the taste
profile, the scorer and the shelves agree on one vocabulary. Genres outside
the canonical list are kept under their lower-cased name.
"""

from typing import Iterable, List, Optional

CANONICAL_GENRES = (
    "Action",
    "Adventure",
    "Casual",
    "Fighting",
    "FPS & Shooter",
    "Horror & Gore",
    "MMO",
    "Puzzle",
    "Racing",
    "RPG",
    "Simulation",
    "Sports",
    "Strategy",
    "Survival",
    "Souls-like",
)

RAW_TO_CANONICAL = {
    "action": "Action",
    "adventure": "Adventure",
    "casual": "Casual",
    "fighting": "Fighting",
    "fps": "FPS & Shooter",
    "shooter": "FPS & Shooter",
    "fps & shooter": "FPS & Shooter",
    "horror": "Horror & Gore",
    "gore": "Horror & Gore",
    "violent": "Horror & Gore",
    "horror & gore": "Horror & Gore",
    "mmo": "MMO",
    "massively multiplayer": "MMO",
    "puzzle": "Puzzle",
    "racing": "Racing",
    "rpg": "RPG",
    "role-playing": "RPG",
    "role-playing (rpg)": "RPG",
    "simulation": "Simulation",
    "simulator": "Simulation",
    "sport": "Sports",
    "sports": "Sports",
    "strategy": "Strategy",
    "real time strategy (rts)": "Strategy",
    "turn-based strategy (tbs)": "Strategy",
    "survival": "Survival",
    "souls-like": "Souls-like",
    "soulslike": "Souls-like",
}


def norm(value: Optional[str]) -> str:
    """Lower-case, trimmed comparison key."""
    return (value or "").strip().lower()


def to_canonical_genre(raw: Optional[str]) -> Optional[str]:
    """Canonical display name for a raw genre, or None when not in the canonical list."""
    key = norm(raw)
    if not key:
        return None
    return RAW_TO_CANONICAL.get(key)


def genre_display(raw: Optional[str]) -> str:
    """Canonical name when known, otherwise the trimmed raw name."""
    return to_canonical_genre(raw) or (raw or "").strip()


def genre_key(raw: Optional[str]) -> str:
    """Comparison key for a genre: normalised canonical name, or the raw name."""
    return norm(genre_display(raw))


def genre_keys(raw_genres: Iterable[str]) -> List[str]:
    """Deduplicated genre keys, first occurrence order preserved."""
    seen = set()
    out = []
    for raw in raw_genres or ():
        key = genre_key(raw)
        if key and key not in seen:
            seen.add(key)
            out.append(key)
    return out


def genre_displays(raw_genres: Iterable[str]) -> List[str]:
    """Deduplicated display names (canonical when known), first occurrence order preserved."""
    seen = set()
    out = []
    for raw in raw_genres or ():
        display = genre_display(raw)
        key = norm(display)
        if key and key not in seen:
            seen.add(key)
            out.append(display)
    return out
