"""
Match explanations — short, templated reasons in a fixed priority order.

Priority: franchise > shared genre > similar-to > quality > popularity; at
most three reasons are joined after the match percentage.
"""

from typing import List, Optional

from oracle.models.profile import TasteProfile
from oracle.models.scoring import ScoredGame
from oracle.utils.genres import genre_key

MAX_REASONS = 3
GENRE_HOURS_CALLOUT = 10.0
ACCLAIMED_METACRITIC = 85
POPULAR_SIGNAL = 0.6


def _genre_reason(game: ScoredGame, profile: TasteProfile) -> Optional[str]:
    shared = game.reasons.shared_genres
    if not shared:
        return None
    top = next((f for f in profile.genres if genre_key(f.name) == genre_key(shared[0])), None)
    if top is not None and top.total_hours > GENRE_HOURS_CALLOUT:
        return f"you've spent {round(top.total_hours)}h in {shared[0]} games"
    return f"matches your love of {' & '.join(shared[:2])}"


def _quality_reason(game: ScoredGame) -> Optional[str]:
    if game.reasons.is_hidden_gem and game.metacritic_score:
        return f"hidden gem with {game.metacritic_score:g} Metacritic"
    if game.reasons.is_hidden_gem:
        return "a hidden gem"
    if game.metacritic_score and game.metacritic_score >= ACCLAIMED_METACRITIC:
        return f"critically acclaimed ({game.metacritic_score:g}/100)"
    return None


def _popularity_reason(game: ScoredGame) -> Optional[str]:
    if game.layer_scores.popularity_signal >= POPULAR_SIGNAL and game.reasons.popularity_rank:
        return f"#{game.reasons.popularity_rank} most played right now"
    return None


def build_explanation(game: ScoredGame, profile: TasteProfile) -> str:
    parts: List[str] = []
    if game.reasons.is_franchise_entry and game.reasons.franchise_of:
        parts.append(f"part of the {game.reasons.franchise_of} series you love")
    genre = _genre_reason(game, profile)
    if genre:
        parts.append(genre)
    if game.reasons.similar_to:
        parts.append(f"similar to {game.reasons.similar_to[0]}")
    quality = _quality_reason(game)
    if quality:
        parts.append(quality)
    popularity = _popularity_reason(game)
    if popularity:
        parts.append(popularity)

    pct = round(game.score * 100)
    if not parts:
        return f"{pct}% match based on your gaming taste"
    return f"{pct}% match: {', '.join(parts[:MAX_REASONS])}"
