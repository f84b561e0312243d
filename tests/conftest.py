# tests/conftest.py
import pytest
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from bracketpool.bracket import Bracket, Game, SlotKey, Team
from bracketpool.tournament import (
    RoundConfig,
    TournamentConfig,
    default_tournament_config,
    seed_first_round,
)

# Configure pytest
pytest_plugins = []

# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def first_team(team1: str, team2: str) -> str:
    return team1


def build_submission(
    config: TournamentConfig,
    choose: Callable[[str, str], str] = first_team,
    overrides: Optional[Dict[SlotKey, str]] = None,
    player_name: str = "Warren Buffett",
    player_email: str = "warren@example.com",
    tie_breaker: Optional[int] = 145,
) -> dict:
    """
    A fully consistent submission payload for ``config``.

    Round-1 teams come from the seeded matchups when present, otherwise
    synthetic ids T1, T2, ... Later-round teams are the feeder winners.
    ``overrides`` forces the winner of specific slots (later rounds follow).
    """
    overrides = overrides or {}
    winners: Dict[SlotKey, str] = {}
    games = []
    for slot in config.slots:
        if slot.round == 1:
            if config.first_round:
                team1, team2 = config.first_round[slot]
            else:
                team1, team2 = f"T{2 * slot.game_number - 1}", f"T{2 * slot.game_number}"
        else:
            feeder_a, feeder_b = config.feeders[slot]
            team1, team2 = winners[feeder_a], winners[feeder_b]
        winner = overrides.get(slot, choose(team1, team2))
        winners[slot] = winner
        games.append({
            "round": slot.round,
            "gameNumber": slot.game_number,
            "team1": {"id": team1, "name": team1},
            "team2": {"id": team2, "name": team2},
            "winner": {"id": winner, "name": winner},
        })
    payload = {"playerName": player_name, "playerEmail": player_email, "games": games}
    if tie_breaker is not None:
        payload["tieBreaker"] = tie_breaker
    return payload


def find_game(payload: dict, round_num: int, game_number: int) -> dict:
    for game in payload["games"]:
        if game["round"] == round_num and game["gameNumber"] == game_number:
            return game
    raise KeyError((round_num, game_number))


@pytest.fixture
def small_config():
    """4 teams, one region, two rounds."""
    return TournamentConfig.standard(
        regions=["East"],
        rounds=[RoundConfig("Semifinal", 2, 1), RoundConfig("Final", 1, 2)],
        total_teams=4,
    )


@pytest.fixture
def scenario_submission():
    """
    Game A (R1G1): X vs Y -> X
    Game B (R1G2): Z vs W -> Z
    Game C (R2G1): X vs Z -> X
    """
    def team(team_id):
        return {"id": team_id, "name": team_id}

    return {
        "playerName": "Pat Jones",
        "playerEmail": "pat@example.com",
        "games": [
            {"round": 1, "gameNumber": 1, "team1": team("X"), "team2": team("Y"), "winner": team("X")},
            {"round": 1, "gameNumber": 2, "team1": team("Z"), "team2": team("W"), "winner": team("Z")},
            {"round": 2, "gameNumber": 1, "team1": team("X"), "team2": team("Z"), "winner": team("X")},
        ],
    }


@pytest.fixture
def field_teams():
    """64 teams: 16 seeds in each of the four regions."""
    return [
        Team(id=f"{region[0]}{seed}", name=f"{region} {seed}", seed=seed, region=region)
        for region in ("East", "West", "South", "Midwest")
        for seed in range(1, 17)
    ]


@pytest.fixture
def season_config(field_teams):
    """The 64-team season with seeded first-round matchups."""
    config = default_tournament_config(tie_breaker_required=True)
    config.first_round = seed_first_round(field_teams, config)
    return config.check()


@pytest.fixture
def fixed_clock():
    """Returns a clock pinned to 2026-03-17 12:00 UTC."""
    now = datetime(2026, 3, 17, 12, 0, tzinfo=timezone.utc)
    return lambda: now


@pytest.fixture
def make_bracket():
    """Build a stored Bracket from a submission payload."""
    def _make(payload: dict, bracket_id: str = "b1", submitted_at: Optional[datetime] = None) -> Bracket:
        return Bracket(
            id=bracket_id,
            player_name=payload["playerName"],
            player_email=payload["playerEmail"],
            submitted_at=submitted_at or datetime(2026, 3, 16, tzinfo=timezone.utc),
            games=[Game.from_dict(g) for g in payload["games"]],
            tie_breaker=payload.get("tieBreaker"),
        )
    return _make


@pytest.fixture
def past_and_future():
    now = datetime(2026, 3, 17, 12, 0, tzinfo=timezone.utc)
    return now - timedelta(hours=1), now + timedelta(hours=1)
