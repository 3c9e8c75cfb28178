"""
Pipeline Orchestrator Tests

End-to-end runs of run_pipeline: determinism, degraded inputs, validation,
progress reporting and cooperative cancellation.
"""

import pytest

from oracle.errors import InputValidationError, RunSuperseded
from oracle.models import RecoWorkerResult, ShelfType
from oracle.recommendation_engine import compute_recommendations
from oracle.stages import run_pipeline

from conftest import NOW_MS


def _comparable(result: RecoWorkerResult):
    return result.model_dump(mode="json", by_alias=True, exclude={"compute_time_ms"})


class TestRunPipeline:
    def test_produces_profile_and_shelves(self, payload):
        result = run_pipeline(payload)
        assert result.type == "result"
        assert result.taste_profile.total_games == 5
        assert result.shelves
        assert result.shelves[0].type == ShelfType.HERO
        assert result.excluded_candidates == 0
        assert result.compute_time_ms >= 0

    def test_identical_input_gives_identical_output(self, payload):
        assert _comparable(run_pipeline(payload)) == _comparable(run_pipeline(payload))

    def test_accepts_model_or_dict(self, worker_input, payload):
        assert _comparable(run_pipeline(worker_input)) == _comparable(run_pipeline(payload))

    def test_empty_pool_gives_empty_shelves(self, library, now_ms):
        result = run_pipeline({
            "userGames": [s.model_dump(mode="json", by_alias=True) for s in library],
            "candidates": [],
            "now": now_ms,
        })
        assert result.shelves == []
        assert result.taste_profile.total_games == len(library)

    def test_empty_everything_gives_zero_profile(self, now_ms):
        result = run_pipeline({"userGames": [], "candidates": [], "now": now_ms})
        assert result.shelves == []
        assert result.taste_profile.is_empty

    def test_cold_start_still_recommends(self, catalog, now_ms):
        result = run_pipeline({
            "userGames": [],
            "candidates": [c.model_dump(mode="json", by_alias=True) for c in catalog],
            "now": now_ms,
        })
        assert result.taste_profile.is_empty
        assert result.shelves

    def test_dismissed_never_shelved(self, payload):
        payload["dismissedGameIds"] = ["dai", "civ7", "xcom2"]
        result = run_pipeline(payload)
        shown = {g.game_id for s in result.shelves for g in s.games}
        assert shown
        assert not shown & {"dai", "civ7", "xcom2"}

    def test_duplicate_candidates_are_collapsed(self, payload):
        payload["candidates"].append(dict(payload["candidates"][0]))
        result = run_pipeline(payload)
        for shelf in result.shelves:
            ids = [g.game_id for g in shelf.games]
            assert len(ids) == len(set(ids))

    def test_corrupt_embedding_is_counted_not_fatal(self, payload):
        payload["tasteCentroid"] = [1.0, 0.0, 0.0]
        payload["candidates"][0]["embedding"] = [1.0, 0.0]
        result = run_pipeline(payload)
        assert result.excluded_candidates == 1


class TestValidation:
    def test_invalid_candidate_names_the_field(self, payload):
        payload["candidates"][1]["gameId"] = ""
        with pytest.raises(InputValidationError) as exc_info:
            run_pipeline(payload)
        assert exc_info.value.field.startswith("candidates.1.")

    def test_rating_out_of_range(self, payload):
        payload["userGames"][0]["rating"] = 9
        with pytest.raises(InputValidationError) as exc_info:
            run_pipeline(payload)
        assert exc_info.value.field.startswith(("userGames.0.", "user_games.0."))

    def test_misaligned_sessions_rejected(self, payload):
        payload["userGames"][0]["sessionTimestamps"] = [NOW_MS, NOW_MS]
        payload["userGames"][0]["sessionDurations"] = [30.0]
        with pytest.raises(InputValidationError):
            run_pipeline(payload)

    def test_nan_session_timestamp_names_the_field(self, payload):
        payload["userGames"][0]["sessionTimestamps"] = [float("nan"), NOW_MS - 86_400_000, NOW_MS - 172_800_000]
        payload["userGames"][0]["sessionDurations"] = [30.0, 30.0, 30.0]
        outcome = compute_recommendations(payload)
        assert outcome.type == "error"
        assert outcome.kind == "validation"
        assert outcome.field == "userGames.0.sessionTimestamps.0"

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_embedding_rejected(self, payload, value):
        payload["candidates"][2]["embedding"] = [0.5, value]
        with pytest.raises(InputValidationError) as exc_info:
            run_pipeline(payload)
        assert exc_info.value.field == "candidates.2.embedding.1"

    def test_non_finite_taste_centroid_rejected(self, payload):
        payload["tasteCentroid"] = [float("inf"), 0.0]
        with pytest.raises(InputValidationError) as exc_info:
            run_pipeline(payload)
        assert exc_info.value.field == "tasteCentroid.0"

    def test_facade_returns_validation_failure(self, payload):
        payload["now"] = -5
        outcome = compute_recommendations(payload)
        assert outcome.type == "error"
        assert outcome.kind == "validation"
        assert outcome.field == "now"


class TestProgressAndCancellation:
    def test_progress_is_strictly_increasing(self, payload):
        seen = []
        run_pipeline(payload, progress=lambda stage, pct: seen.append((stage, pct)))
        percents = [pct for _, pct in seen]
        assert percents == sorted(set(percents))
        assert seen[0] == ("Analyzing your library...", 15)
        assert seen[-1] == ("Building shelves...", 95)
        assert {"Detecting taste clusters...", "Detecting game franchises...", "Scoring candidates..."} <= {
            stage for stage, _ in seen
        }

    def test_cancellation_between_stages(self, payload):
        calls = []

        def check():
            calls.append(1)
            if len(calls) == 3:
                raise RunSuperseded(1)

        with pytest.raises(RunSuperseded):
            run_pipeline(payload, check_cancelled=check)
