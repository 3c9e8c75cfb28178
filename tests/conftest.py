"""
Shared fixtures: a fixed clock, snapshot/candidate factories and a small
library + catalog used by the pipeline, worker and server tests.
"""

from typing import Any, Dict, List

import pytest

from oracle.models import (
    DEFAULT_CONFIG,
    CandidateGame,
    GameStatus,
    RecoWorkerInput,
    UserGameSnapshot,
)
from oracle.utils.scores import MS_PER_DAY, to_epoch_ms

NOW_MS = to_epoch_ms("2025-06-01T12:00:00Z")


def make_snapshot(game_id: str, **overrides) -> UserGameSnapshot:
    data: Dict[str, Any] = {
        "game_id": game_id,
        "title": game_id.title(),
        "genres": ["Action"],
        "status": GameStatus.COMPLETED,
        "hours_played": 10.0,
        "rating": 4.0,
        "added_at": "2024-01-01T00:00:00Z",
        "release_date": "2020-01-01",
    }
    data.update(overrides)
    return UserGameSnapshot(**data)


def make_candidate(game_id: str, **overrides) -> CandidateGame:
    data: Dict[str, Any] = {
        "game_id": game_id,
        "title": game_id.title(),
        "genres": ["Action"],
        "metacritic_score": 80,
        "player_count": 10000,
        "release_date": "2022-01-01",
    }
    data.update(overrides)
    return CandidateGame(**data)


def sessions_every(days: float, count: int, start_ms: int, minutes: float = 60.0):
    """(timestamps, durations) for `count` sessions spaced `days` apart."""
    timestamps = [start_ms + i * days * MS_PER_DAY for i in range(count)]
    return timestamps, [minutes] * count


@pytest.fixture
def now_ms() -> int:
    return NOW_MS


@pytest.fixture
def config():
    return DEFAULT_CONFIG


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def candidate_factory():
    return make_candidate


@pytest.fixture
def library() -> List[UserGameSnapshot]:
    """A user who loves story RPGs and strategy, dropped a puzzle game and is mid-way through XCOM 2."""
    return [
        make_snapshot(
            "w3",
            title="The Witcher 3: Wild Hunt",
            genres=["Role-playing (RPG)", "Adventure"],
            themes=["Fantasy", "Open world"],
            game_modes=["Single player"],
            developer="CD Projekt Red",
            release_date="2015-05-19",
            hours_played=120,
            rating=5,
            added_at="2023-01-10T00:00:00Z",
            last_session_date="2025-05-01T20:00:00Z",
            similar_game_titles=["Dragon Age: Inquisition", "Kingdom Come: Deliverance"],
        ),
        make_snapshot(
            "w2",
            title="The Witcher 2: Assassins of Kings",
            genres=["RPG"],
            themes=["Fantasy"],
            game_modes=["Single player"],
            developer="CD Projekt Red",
            release_date="2011-05-17",
            hours_played=40,
            rating=4,
            added_at="2023-02-01T00:00:00Z",
        ),
        make_snapshot(
            "civ6",
            title="Sid Meier's Civilization VI",
            genres=["Strategy", "Turn-based strategy (TBS)"],
            themes=["Historical"],
            game_modes=["Single player", "Multiplayer"],
            developer="Firaxis Games",
            release_date="2016-10-21",
            hours_played=200,
            rating=5,
            added_at="2023-03-01T00:00:00Z",
            last_session_date="2025-04-20T19:00:00Z",
        ),
        make_snapshot(
            "xcom2",
            title="XCOM 2",
            genres=["Strategy"],
            themes=["Science fiction"],
            developer="Firaxis Games",
            release_date="2016-02-05",
            status=GameStatus.PLAYING,
            hours_played=30,
            rating=4,
            added_at="2024-06-01T00:00:00Z",
            last_session_date="2025-05-25T21:00:00Z",
        ),
        make_snapshot(
            "portal",
            title="Portal",
            genres=["Puzzle"],
            themes=["Science fiction"],
            developer="Valve",
            release_date="2007-10-10",
            status=GameStatus.DROPPED,
            hours_played=1,
            rating=2,
            added_at="2024-09-01T00:00:00Z",
        ),
    ]


@pytest.fixture
def catalog() -> List[CandidateGame]:
    return [
        make_candidate(
            "w1",
            title="The Witcher: Enhanced Edition",
            genres=["RPG"],
            themes=["Fantasy"],
            developer="CD Projekt Red",
            release_date="2008-09-16",
            metacritic_score=86,
            player_count=4000,
        ),
        make_candidate(
            "w4",
            title="The Witcher 4",
            genres=["RPG"],
            themes=["Fantasy"],
            developer="CD Projekt Red",
            release_date="",
            coming_soon=True,
            metacritic_score=None,
            player_count=None,
        ),
        make_candidate(
            "dai",
            title="Dragon Age: Inquisition",
            genres=["RPG", "Adventure"],
            themes=["Fantasy"],
            game_modes=["Single player"],
            developer="BioWare",
            release_date="2014-11-18",
            metacritic_score=85,
            player_count=20000,
            price={"is_free": False, "final_formatted": "$9.99", "discount_percent": 75},
        ),
        make_candidate(
            "kcd",
            title="Kingdom Come: Deliverance",
            genres=["RPG"],
            themes=["Historical", "Open world"],
            developer="Warhorse Studios",
            release_date="2018-02-13",
            metacritic_score=76,
            player_count=15000,
        ),
        make_candidate(
            "civ7",
            title="Sid Meier's Civilization VII",
            genres=["Strategy"],
            themes=["Historical"],
            developer="Firaxis Games",
            release_date="2025-02-11",
            metacritic_score=79,
            player_count=60000,
        ),
        make_candidate(
            "stellaris",
            title="Stellaris",
            genres=["Strategy", "Simulation"],
            themes=["Science fiction"],
            developer="Paradox Development Studio",
            release_date="2016-05-09",
            metacritic_score=78,
            player_count=30000,
        ),
        make_candidate(
            "p2",
            title="Portal 2",
            genres=["Puzzle"],
            themes=["Science fiction", "Comedy"],
            developer="Valve",
            release_date="2011-04-18",
            metacritic_score=95,
            player_count=100000,
        ),
        make_candidate(
            "fc25",
            title="EA Sports FC 25",
            genres=["Sport"],
            developer="EA Vancouver",
            release_date="2024-09-27",
            metacritic_score=None,
            player_count=500000,
            price={"is_free": True},
        ),
        make_candidate(
            "hades",
            title="Hades",
            genres=["Action", "Indie"],
            themes=["Fantasy"],
            developer="Supergiant Games",
            release_date="2020-09-17",
            metacritic_score=93,
            player_count=8000,
        ),
    ]


@pytest.fixture
def worker_input(library, catalog, now_ms) -> RecoWorkerInput:
    return RecoWorkerInput(
        user_games=library,
        candidates=catalog,
        now=now_ms,
        current_hour=20,
        dismissed_game_ids=[],
    )


@pytest.fixture
def payload(worker_input) -> Dict[str, Any]:
    """The worker input as a camelCase JSON-ready dict, as the UI sends it."""
    return worker_input.model_dump(mode="json", by_alias=True)
