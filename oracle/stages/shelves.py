"""
Shelf Assembler — bucket scored games into named, ordered shelves.

One selection rule per shelf type, applied in a fixed order. Every shelf is
sorted by composite score descending with game id as tiebreaker; a game
appears in at most max_shelves_per_game shelves; shelves smaller than their
minimum size are omitted.
"""

import logging
from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Set

from oracle.models.config import OracleConfig
from oracle.models.franchise import FranchiseCluster
from oracle.models.profile import TasteProfile
from oracle.models.scoring import LayerScores, MatchReasons, ScoredGame
from oracle.models.shelf import RecoShelf, ShelfType
from oracle.models.snapshot import ACTIVE_STATUSES, GameStatus, UserGameSnapshot
from oracle.utils.genres import genre_key, genre_keys
from oracle.utils.scores import days_since
from oracle.utils.titles import normalize_title

logger = logging.getLogger(__name__)

MAX_SERIES_SHELVES = 3

# Shelves that are worth showing with a single game.
SINGLE_GAME_SHELVES = frozenset({
    ShelfType.HERO,
    ShelfType.COMPLETE_THE_SERIES,
    ShelfType.UPCOMING_SEQUELS,
    ShelfType.UNFINISHED_BUSINESS,
})


def _by_score(games: Iterable[ScoredGame]) -> List[ScoredGame]:
    return sorted(games, key=lambda g: (-g.score, g.game_id))


def is_unreleased(game: ScoredGame, now_ms: int) -> bool:
    age = days_since(game.release_date, now_ms)
    if age is None:
        return game.coming_soon
    return age < 0


class ShelfAssembler:
    """Builds shelves in order while tracking how often each game has been used."""

    def __init__(self, scored: List[ScoredGame], config: OracleConfig):
        self.scored = _by_score(scored)
        self.config = config
        self.usage: Counter = Counter()
        self.shelves: List[RecoShelf] = []

    def available(self, game: ScoredGame) -> bool:
        return self.usage[game.game_id] < self.config.max_shelves_per_game

    def pick(self, predicate: Callable[[ScoredGame], bool], limit: Optional[int] = None) -> List[ScoredGame]:
        limit = limit or self.config.shelf_size
        picked = []
        for game in self.scored:
            if self.available(game) and predicate(game):
                picked.append(game)
                if len(picked) >= limit:
                    break
        return picked

    def emit(
        self,
        shelf_type: ShelfType,
        title: str,
        games: List[ScoredGame],
        subtitle: Optional[str] = None,
        seed_game_title: Optional[str] = None,
    ) -> bool:
        min_size = 1 if shelf_type in SINGLE_GAME_SHELVES else self.config.min_shelf_size
        if shelf_type == ShelfType.FOR_YOUR_MOOD:
            min_size = max(min_size, self.config.mood_min_size)
        if len(games) < max(1, min_size):
            logger.debug("[shelves] SHELF_SKIPPED type=%s size=%d", shelf_type.value, len(games))
            return False
        games = _by_score(games)
        for game in games:
            self.usage[game.game_id] += 1
        self.shelves.append(
            RecoShelf(
                type=shelf_type,
                title=title,
                subtitle=subtitle,
                seed_game_title=seed_game_title,
                games=games,
            )
        )
        return True


def _because_seeds(snapshots: List[UserGameSnapshot], config: OracleConfig) -> List[UserGameSnapshot]:
    seeds = [
        s for s in snapshots
        if not s.removed_at
        and (s.rating >= config.because_seed_min_rating or s.hours_played >= config.because_seed_min_hours)
    ]
    seeds.sort(key=lambda s: (-(s.rating * 10 + s.hours_played), s.game_id))
    return seeds


def _series_shelves(asm: ShelfAssembler, franchises: List[FranchiseCluster], now_ms: int) -> None:
    cfg = asm.config
    emitted = 0
    for franchise in franchises:
        if emitted >= MAX_SERIES_SHELVES:
            break
        if not franchise.is_actively_engaged(cfg.franchise_active_min_rating, cfg.franchise_active_min_hours):
            continue
        if franchise.next_unowned_entry() is None:
            continue
        missing = {e.game_id for e in franchise.unowned_entries}
        name = franchise.display_name
        if name.lower().startswith("the "):
            name = name[4:]
        games = asm.pick(lambda g: g.game_id in missing and not is_unreleased(g, now_ms))
        if asm.emit(
            ShelfType.COMPLETE_THE_SERIES,
            f"Complete the {name} Series",
            games,
            subtitle=f"You've played {franchise.owned_count} of {len(franchise.entries)} entries",
        ):
            emitted += 1


def _unfinished_business(
    snapshots: List[UserGameSnapshot],
    engagement: Dict[str, float],
    dismissed: Set[str],
    limit: int,
) -> List[ScoredGame]:
    games = [
        ScoredGame(
            game_id=s.game_id,
            title=s.title,
            developer=s.developer,
            publisher=s.publisher,
            genres=list(s.genres),
            themes=list(s.themes),
            game_modes=list(s.game_modes),
            release_date=s.release_date,
            score=engagement.get(s.game_id, 0.0),
            layer_scores=LayerScores(),
            reasons=MatchReasons(explanation="You've been playing this, pick it back up!"),
        )
        for s in snapshots
        if s.status in ACTIVE_STATUSES and not s.removed_at and s.game_id not in dismissed
    ]
    return _by_score(games)[:limit]


def _finish_and_try_seed(snapshots: List[UserGameSnapshot]) -> Optional[UserGameSnapshot]:
    on_hold = [s for s in snapshots if s.status == GameStatus.ON_HOLD and not s.removed_at]
    if not on_hold:
        return None
    return sorted(on_hold, key=lambda s: (-s.hours_played, s.game_id))[0]


def build_shelves(
    scored: List[ScoredGame],
    snapshots: List[UserGameSnapshot],
    profile: TasteProfile,
    franchises: List[FranchiseCluster],
    engagement: Dict[str, float],
    now_ms: int,
    config: OracleConfig,
    dismissed: Optional[Set[str]] = None,
) -> List[RecoShelf]:
    """
    Assemble shelves from scored candidates (and, for unfinished business, the
    user's own in-progress games). Dismissed ids never appear in any shelf.
    """
    dismissed = set(dismissed or ())
    asm = ShelfAssembler([g for g in scored if g.game_id not in dismissed], config)

    # Hero
    asm.emit(ShelfType.HERO, "Your Next Obsession", asm.pick(lambda g: g.score > 0, limit=1))

    # Complete the series / upcoming sequels
    _series_shelves(asm, franchises, now_ms)
    asm.emit(
        ShelfType.UPCOMING_SEQUELS,
        "Upcoming Sequels",
        asm.pick(
            lambda g: g.reasons.is_franchise_entry and is_unreleased(g, now_ms),
            limit=config.upcoming_shelf_size,
        ),
        subtitle="New entries in franchises you love",
    )

    # Because you loved X: candidates whose strongest seed is X
    emitted = 0
    for seed in _because_seeds(snapshots, config):
        if emitted >= config.max_because_shelves:
            break
        games = asm.pick(lambda g, t=seed.title: bool(g.reasons.similar_to) and g.reasons.similar_to[0] == t)
        if asm.emit(
            ShelfType.BECAUSE_YOU_LOVED,
            f"Because you loved {seed.title}",
            games,
            seed_game_title=seed.title,
        ):
            emitted += 1

    if profile.loyal_developers:
        studios = ", ".join(d.title() for d in profile.loyal_developers[:3])
        asm.emit(
            ShelfType.FROM_STUDIOS_YOU_LOVE,
            "From Studios You Love",
            asm.pick(lambda g: g.layer_scores.studio_loyalty_boost > 0),
            subtitle=f"Games by {studios}",
        )

    if profile.top_genre:
        top = genre_key(profile.top_genre)
        asm.emit(
            ShelfType.DEEP_IN_GENRE,
            f"Deep in {profile.top_genre}",
            asm.pick(lambda g: top in genre_keys(g.genres)),
            subtitle="More from your favourite genre",
        )

    for cluster in profile.clusters:
        cluster_genres = {genre_key(f.name) for f in cluster.profile.genres[:3]}
        games = asm.pick(
            lambda g, c=cluster, cg=cluster_genres: g.reasons.best_cluster_label == c.label
            or bool(cg.intersection(genre_keys(g.genres)))
        )
        asm.emit(
            ShelfType.FOR_YOUR_MOOD,
            f"For your {cluster.label} side",
            games,
            subtitle=f"Based on {' & '.join(cluster.top_games[:2])}" if cluster.top_games else None,
        )

    asm.emit(
        ShelfType.HIDDEN_GEMS,
        "Hidden Gems",
        asm.pick(lambda g: g.reasons.is_hidden_gem and g.score >= config.hidden_gem_min_score),
        subtitle="Critically acclaimed, under the radar",
    )
    asm.emit(
        ShelfType.DEALS_FOR_YOU,
        "Deals For You",
        asm.pick(
            lambda g: g.reasons.is_on_sale
            and (g.price.discount_percent or 0) >= config.deal_min_discount
        ),
        subtitle="Games on sale that match your taste",
    )
    asm.emit(
        ShelfType.FREE_FOR_YOU,
        "Free For You",
        asm.pick(lambda g: g.reasons.is_free),
        subtitle="Great free games matching your taste",
    )
    asm.emit(
        ShelfType.CRITICS_CHOICE,
        "Critics' Choice",
        asm.pick(lambda g: (g.metacritic_score or 0) >= config.critics_choice_min_metacritic),
        subtitle="Top-rated by reviewers, matched to your taste",
    )
    asm.emit(
        ShelfType.STRETCH_PICKS,
        "Stretch Picks",
        asm.pick(
            lambda g: g.reasons.is_stretch_pick
            and g.score >= config.stretch_min_score
            and g.layer_scores.quality_signal >= config.stretch_min_quality
        ),
        subtitle="Outside your comfort zone, but you might love them",
    )

    def is_new_release(g: ScoredGame) -> bool:
        age = days_since(g.release_date, now_ms)
        return age is not None and 0 <= age <= config.new_release_window_days

    asm.emit(
        ShelfType.NEW_RELEASES_FOR_YOU,
        "New Releases For You",
        asm.pick(is_new_release),
        subtitle="Recently launched games matching your taste",
    )
    asm.emit(
        ShelfType.COMING_SOON_FOR_YOU,
        "Coming Soon For You",
        asm.pick(lambda g: is_unreleased(g, now_ms) and g.score >= config.coming_soon_min_score),
        subtitle="Upcoming games you might love",
    )
    asm.emit(
        ShelfType.TRENDING_NOW,
        "Trending Now",
        asm.pick(lambda g: g.layer_scores.popularity_signal >= config.trending_min_popularity),
        subtitle="Popular games that match your taste",
    )

    seed = _finish_and_try_seed(snapshots)
    if seed is not None:
        seed_title = normalize_title(seed.title)
        seed_genres = set(genre_keys(seed.genres))

        def follows_seed(g: ScoredGame) -> bool:
            if any(normalize_title(t) == seed_title for t in g.reasons.similar_to):
                return True
            keys = genre_keys(g.genres)
            if not keys or not seed_genres:
                return False
            return len(seed_genres.intersection(keys)) / len(keys) >= config.finish_and_try_min_overlap

        asm.emit(
            ShelfType.FINISH_AND_TRY,
            f"Finish {seed.title}, then try...",
            asm.pick(follows_seed, limit=config.finish_and_try_size),
            subtitle="Motivation to complete what you started",
            seed_game_title=seed.title,
        )

    asm.emit(
        ShelfType.UNFINISHED_BUSINESS,
        "Unfinished Business",
        _unfinished_business(snapshots, engagement, dismissed, config.unfinished_size),
        subtitle="Games you started but haven't completed",
    )

    logger.debug(
        "[shelves] BUILT count=%d types=%s",
        len(asm.shelves), ",".join(s.type.value for s in asm.shelves),
    )
    return asm.shelves
