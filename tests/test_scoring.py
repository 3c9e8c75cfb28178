"""
Candidate Scoring Tests

Layer values, the composite, per-candidate fault isolation and the ordering
properties the composite must satisfy.
"""

import math

import pytest

from oracle.errors import RunSuperseded
from oracle.models import EngagementPattern, GameStatus, LayerScores
from oracle.stages.clusters import detect_taste_clusters
from oracle.stages.franchise import detect_franchises
from oracle.stages.scoring import build_scoring_context, composite_score, score_candidates
from oracle.stages.taste_profile import build_taste_profile, compute_engagement_weights
from oracle.utils.scores import to_epoch_ms

from conftest import NOW_MS, sessions_every


def _context(snaps, cands, config, coverage=1.0, **kwargs):
    engagement = compute_engagement_weights(snaps, NOW_MS, config)
    profile = build_taste_profile(snaps, NOW_MS, config, engagement)
    profile.clusters = detect_taste_clusters(snaps, profile, engagement, NOW_MS, config)
    franchises = detect_franchises(snaps, cands, config)
    return build_scoring_context(
        snaps,
        cands,
        profile,
        profile.clusters,
        franchises,
        engagement,
        now_ms=NOW_MS,
        current_hour=20,
        embedding_coverage=coverage,
        config=config,
        **kwargs,
    )


def _score(snaps, cands, config, **kwargs):
    return score_candidates(cands, _context(snaps, cands, config, **kwargs))


def _by_id(result):
    return {g.game_id: g for g in result.scored}


class TestCompositeProperties:
    def test_composite_is_bounded(self, library, catalog, config):
        result = _score(library, catalog, config)
        assert result.scored
        assert all(0.0 <= g.score <= 1.0 for g in result.scored)

    def test_composite_clamps_extreme_layers(self, config):
        maxed = LayerScores(**{name: 1.0 for name in LayerScores.model_fields})
        maxed = maxed.model_copy(update={"trajectory_multiplier": 1.2, "negative_signal": 0.0})
        assert composite_score(maxed, config.layer_weights(1.0), config.weight_negative) == 1.0
        floored = LayerScores(negative_signal=1.0)
        assert composite_score(floored, config.layer_weights(1.0), config.weight_negative) == 0.0

    def test_shared_genre_beats_unshared_genre(self, snapshot_factory, candidate_factory, config):
        snaps = [snapshot_factory("s", genres=["Strategy"], rating=5, hours_played=50)]
        cands = [
            candidate_factory("strategy", genres=["Strategy"]),
            candidate_factory("puzzle", genres=["Puzzle"]),
        ]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["strategy"].score > scored["puzzle"].score

    def test_output_sorted_by_score_then_id(self, library, catalog, config):
        scored = _score(library, catalog, config).scored
        keys = [(-g.score, g.game_id) for g in scored]
        assert keys == sorted(keys)

    def test_scoring_is_deterministic(self, library, catalog, config):
        first = [g.model_dump() for g in _score(library, catalog, config).scored]
        second = [g.model_dump() for g in _score(library, catalog, config).scored]
        assert first == second


class TestEmbeddingLayers:
    def test_missing_embedding_scores_zero(self, library, candidate_factory, config):
        cands = [
            candidate_factory("with", genres=["RPG"], embedding=[1.0, 0.0, 0.0]),
            candidate_factory("without", genres=["RPG"]),
        ]
        scored = _by_id(_score(library, cands, config, taste_centroid=[1.0, 0.0, 0.0]))
        assert scored["with"].layer_scores.semantic_similarity == pytest.approx(1.0)
        assert scored["without"].layer_scores.semantic_similarity == 0.0
        assert scored["without"].layer_scores.cluster_semantic_sim == 0.0

    def test_centroid_from_snapshot_embeddings(self, snapshot_factory, candidate_factory, config):
        snaps = [
            snapshot_factory("a", embedding=[1.0, 0.0]),
            snapshot_factory("b", embedding=[1.0, 0.0]),
        ]
        cands = [candidate_factory("c", embedding=[1.0, 0.0])]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["c"].layer_scores.semantic_similarity == pytest.approx(1.0)

    def test_dimension_mismatch_excludes_candidate(self, library, candidate_factory, config):
        cands = [
            candidate_factory("good", embedding=[0.5, 0.5, 0.0]),
            candidate_factory("corrupt", embedding=[0.5, 0.5]),
            candidate_factory("plain"),
        ]
        result = _score(library, cands, config, taste_centroid=[1.0, 0.0, 0.0])
        assert result.excluded == 1
        assert set(_by_id(result)) == {"good", "plain"}


class TestLayers:
    def test_graph_signal_names_the_seed(self, library, catalog, config):
        dai = _by_id(_score(library, catalog, config))["dai"]
        assert dai.layer_scores.graph_signal > 0
        assert dai.reasons.similar_to == ["The Witcher 3: Wild Hunt"]

    def test_franchise_and_sequencing(self, library, catalog, config):
        scored = _by_id(_score(library, catalog, config))
        assert scored["w1"].layer_scores.franchise_boost > 0
        assert scored["w1"].reasons.franchise_of == "The Witcher"
        assert scored["w4"].layer_scores.sequencing_boost == 1.0
        assert scored["stellaris"].layer_scores.franchise_boost == 0.0

    def test_negative_signal_from_dropped_games(self, library, catalog, config):
        scored = _by_id(_score(library, catalog, config))
        assert scored["p2"].layer_scores.negative_signal > 0
        assert scored["kcd"].layer_scores.negative_signal == 0.0

    def test_unreleased_candidate_gets_full_recency(self, library, catalog, config):
        assert _by_id(_score(library, catalog, config))["w4"].layer_scores.recency_boost == 1.0

    def test_diversity_bonus_assigned(self, library, catalog, config):
        scored = _score(library, catalog, config).scored
        assert all(0.0 <= g.layer_scores.diversity_bonus <= 1.0 for g in scored)
        assert max(g.layer_scores.diversity_bonus for g in scored) == 1.0

    def test_explanation_leads_with_match_percentage(self, library, catalog, config):
        for game in _score(library, catalog, config).scored:
            assert game.reasons.explanation.startswith(f"{round(game.score * 100)}% match")


class TestContextualLayers:
    EVENING_START = to_epoch_ms("2025-05-01T20:00:00Z")

    def _evening_player(self, snapshot_factory, sessions):
        timestamps, durations = sessions_every(1, sessions, self.EVENING_START)
        return snapshot_factory(
            "civ",
            title="Civilization",
            genres=["Strategy"],
            session_timestamps=timestamps,
            session_durations=durations,
        )

    def test_time_of_day_boost_for_genres_played_now(self, snapshot_factory, candidate_factory, config):
        snaps = [self._evening_player(snapshot_factory, 3)]
        cands = [
            candidate_factory("strat", genres=["Strategy"]),
            candidate_factory("puzz", genres=["Puzzle"]),
        ]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["strat"].layer_scores.time_of_day_boost == pytest.approx(1.0)
        assert scored["puzz"].layer_scores.time_of_day_boost == 0.0

    def test_time_of_day_needs_three_sessions_in_bucket(self, snapshot_factory, candidate_factory, config):
        snaps = [self._evening_player(snapshot_factory, 2)]
        cands = [candidate_factory("strat", genres=["Strategy"])]
        assert _by_id(_score(snaps, cands, config))["strat"].layer_scores.time_of_day_boost == 0.0

    def test_engagement_curve_bonus_scales_with_genre_overlap(self, snapshot_factory, candidate_factory, config):
        snaps = [
            snapshot_factory(
                "epic",
                title="Epic Quest",
                genres=["RPG"],
                hours_played=100,
                rating=5,
                engagement_pattern=EngagementPattern.LONG_TAIL,
            )
        ]
        cands = [
            candidate_factory("rpg", genres=["RPG"]),
            candidate_factory("mixed", genres=["RPG", "Puzzle"]),
            candidate_factory("puzz", genres=["Puzzle"]),
        ]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["rpg"].layer_scores.engagement_curve_bonus == pytest.approx(0.4)
        assert scored["mixed"].layer_scores.engagement_curve_bonus == pytest.approx(0.2)
        assert scored["puzz"].layer_scores.engagement_curve_bonus == 0.0

    def test_studio_loyalty_developer_over_publisher(self, snapshot_factory, candidate_factory, config):
        snaps = [
            snapshot_factory(game_id, title=title, genres=["Strategy"], developer="Firaxis Games", rating=5)
            for game_id, title in (("civ", "Civilization"), ("xcom", "XCOM"), ("smac", "Alpha Centauri"))
        ]
        cands = [
            candidate_factory("dev", title="Marvel's Midnight Suns", developer="Firaxis Games"),
            candidate_factory("pub", title="Haven", developer="Other Studio", publisher="Firaxis Games"),
            candidate_factory("none", title="Half-Life", developer="Valve"),
        ]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["dev"].layer_scores.studio_loyalty_boost == 1.0
        assert scored["pub"].layer_scores.studio_loyalty_boost == 0.6
        assert scored["none"].layer_scores.studio_loyalty_boost == 0.0

    def test_abandoning_user_scores_long_games_lower(self, snapshot_factory, candidate_factory, config):
        snaps = [
            snapshot_factory(game_id, title=title, status=GameStatus.DROPPED, hours_played=2, rating=0)
            for game_id, title in (("a", "Ashen"), ("b", "Bastion"), ("c", "Celeste"))
        ]
        cands = [
            candidate_factory("long", title="Long Saga", estimated_hours=60),
            candidate_factory("short", title="Short Story", estimated_hours=6),
            candidate_factory("unsized", title="Mystery Box"),
        ]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["long"].layer_scores.trajectory_multiplier == pytest.approx(config.trajectory_min)
        assert scored["short"].layer_scores.trajectory_multiplier == pytest.approx(0.95)
        assert scored["unsized"].layer_scores.trajectory_multiplier == 1.0
        assert scored["short"].score > scored["long"].score

    def test_committed_user_scores_long_games_higher(self, snapshot_factory, candidate_factory, config):
        snaps = [
            snapshot_factory(
                game_id, title=title, hours_played=50, engagement_pattern=EngagementPattern.LONG_TAIL
            )
            for game_id, title in (("a", "Ashen"), ("b", "Bastion"))
        ]
        cands = [candidate_factory("long", title="Long Saga", estimated_hours=60)]
        scored = _by_id(_score(snaps, cands, config))
        assert scored["long"].layer_scores.trajectory_multiplier == pytest.approx(config.trajectory_max)

    def test_popularity_is_log_scaled_and_debiased(self, library, candidate_factory, config):
        cands = [
            candidate_factory("mega", player_count=1_000_000),
            candidate_factory("niche", player_count=1_000),
            candidate_factory("unknown", player_count=None),
        ]
        scored = _by_id(_score(library, cands, config))
        raw = math.log(1_001) / math.log(1_000_001)
        assert scored["mega"].layer_scores.popularity_signal == pytest.approx(1.0 - config.popularity_debias)
        assert scored["niche"].layer_scores.popularity_signal == pytest.approx(
            raw * (1.0 - raw * config.popularity_debias)
        )
        assert scored["unknown"].layer_scores.popularity_signal == pytest.approx(0.3)

    def test_free_and_sale_flags(self, library, catalog, config):
        scored = _by_id(_score(library, catalog, config))
        assert scored["fc25"].reasons.is_free
        assert not scored["dai"].reasons.is_free
        assert scored["dai"].reasons.is_on_sale


class TestCandidateFiltering:
    def test_owned_and_dismissed_are_not_scored(self, library, catalog, candidate_factory, config):
        cands = catalog + [candidate_factory("w3", title="The Witcher 3: Wild Hunt")]
        ctx = _context(library, cands, config)
        result = score_candidates(cands, ctx, dismissed={"dai"})
        ids = set(_by_id(result))
        assert "w3" not in ids
        assert "dai" not in ids
        assert len(ids) == len(catalog) - 1

    def test_cancellation_check_propagates(self, library, catalog, config):
        ctx = _context(library, catalog, config)

        def cancel():
            raise RunSuperseded(1)

        with pytest.raises(RunSuperseded):
            score_candidates(catalog, ctx, check_cancelled=cancel)

    def test_progress_fractions_increase(self, library, catalog, config):
        ctx = _context(library, catalog, config)
        seen = []
        score_candidates(catalog, ctx, on_progress=seen.append)
        assert seen[0] == 0.0
        assert seen == sorted(seen)
        assert all(0.0 <= f < 1.0 for f in seen)
