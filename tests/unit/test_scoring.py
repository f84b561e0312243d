"""
Unit tests for bracket scoring and standings.
"""
from datetime import datetime, timedelta, timezone

import pytest

from bracketpool.bracket import Game, Team
from bracketpool.scoring import (
    STANDINGS_SCHEMA,
    calculate_bracket_points,
    compute_standings,
    is_bracket_complete,
    score_bracket,
)

T0 = datetime(2026, 3, 16, 9, 0, tzinfo=timezone.utc)


def team(team_id):
    return {"id": team_id, "name": team_id}


def picks_payload(a, b, c, tie_breaker=None, name="Player"):
    """Semifinal winners a (X/Y) and b (Z/W), final winner c."""
    payload = {
        "playerName": name,
        "playerEmail": f"{name.lower()}@example.com",
        "games": [
            {"round": 1, "gameNumber": 1, "team1": team("X"), "team2": team("Y"), "winner": team(a)},
            {"round": 1, "gameNumber": 2, "team1": team("Z"), "team2": team("W"), "winner": team(b)},
            {"round": 2, "gameNumber": 1, "team1": team(a), "team2": team(b), "winner": team(c)},
        ],
    }
    if tie_breaker is not None:
        payload["tieBreaker"] = tie_breaker
    return payload


@pytest.fixture
def semifinal_results():
    """X beat Y, W beat Z; the final has not been played."""
    x, y, z, w = (Team(id=t, name=t) for t in "XYZW")
    return [
        Game(round=1, game_number=1, team1=x, team2=y, winner=x, score1=70, score2=61, completed=True),
        Game(round=1, game_number=2, team1=z, team2=w, winner=w, score1=55, score2=58, completed=True),
        Game(round=2, game_number=1, team1=x, team2=w),
    ]


class TestPoints:

    def test_correct_picks_score_round_points(self, small_config, make_bracket, semifinal_results):
        bracket = make_bracket(picks_payload("X", "W", "X"))
        assert calculate_bracket_points(bracket, semifinal_results, small_config) == 2

    def test_wrong_picks_score_nothing(self, small_config, make_bracket, semifinal_results):
        bracket = make_bracket(picks_payload("Y", "Z", "Z"))
        assert calculate_bracket_points(bracket, semifinal_results, small_config) == 0

    def test_incomplete_results_are_ignored(self, small_config, make_bracket, semifinal_results):
        # A winner on an unfinished game does not count
        semifinal_results[2].winner = semifinal_results[2].team1
        bracket = make_bracket(picks_payload("X", "W", "X"))
        assert calculate_bracket_points(bracket, semifinal_results, small_config) == 2

    def test_final_counts_once_completed(self, small_config, make_bracket, semifinal_results):
        final = semifinal_results[2]
        final.winner = final.team1
        final.completed = True
        bracket = make_bracket(picks_payload("X", "W", "X"))
        assert calculate_bracket_points(bracket, semifinal_results, small_config) == 4

    def test_score_bracket_returns_copy(self, small_config, make_bracket, semifinal_results):
        bracket = make_bracket(picks_payload("X", "W", "X"))

        scored = score_bracket(bracket, semifinal_results, small_config)

        assert scored.total_points == 2
        assert scored.is_complete
        assert bracket.total_points == 0

    def test_is_bracket_complete(self, small_config, make_bracket):
        payload = picks_payload("X", "W", "X")
        del payload["games"][2]["winner"]
        assert not is_bracket_complete(make_bracket(payload), small_config)


class TestStandings:

    def test_ranking_and_shared_rank(self, small_config, make_bracket, semifinal_results):
        brackets = [
            make_bracket(picks_payload("X", "Z", "X", tie_breaker=140, name="Ann"), "b1", T0),
            make_bracket(picks_payload("Y", "W", "W", tie_breaker=160, name="Bo"), "b2", T0 + timedelta(hours=1)),
            make_bracket(picks_payload("X", "W", "X", name="Cy"), "b3", T0),
            make_bracket(picks_payload("Y", "Z", "Z", tie_breaker=150, name="Di"), "b4", T0),
        ]

        table = compute_standings(brackets, semifinal_results, small_config, actual_tie_breaker=150)

        assert table.columns == list(STANDINGS_SCHEMA)
        assert table["bracket_id"].to_list() == ["b3", "b1", "b2", "b4"]
        assert table["rank"].to_list() == [1, 2, 2, 4]
        assert table["total_points"].to_list() == [2, 1, 1, 0]
        assert table["tie_breaker_diff"].to_list() == [None, 10, 10, 0]

    def test_max_possible(self, small_config, make_bracket, semifinal_results):
        brackets = [
            make_bracket(picks_payload("X", "W", "X"), "alive"),
            make_bracket(picks_payload("Y", "Z", "Z"), "busted"),
        ]

        table = compute_standings(brackets, semifinal_results, small_config)
        rows = {r["bracket_id"]: r for r in table.iter_rows(named=True)}

        assert rows["alive"]["max_possible"] == 4
        assert rows["busted"]["max_possible"] == 0
        assert rows["alive"]["correct_picks"] == 2

    def test_closer_tie_breaker_ranks_higher(self, small_config, make_bracket, semifinal_results):
        brackets = [
            make_bracket(picks_payload("X", "W", "X", tie_breaker=200), "far"),
            make_bracket(picks_payload("X", "W", "X", tie_breaker=145), "close"),
            make_bracket(picks_payload("X", "W", "X"), "none"),
        ]

        table = compute_standings(brackets, semifinal_results, small_config, actual_tie_breaker=150)

        assert table["bracket_id"].to_list() == ["close", "far", "none"]
        assert table["rank"].to_list() == [1, 2, 3]

    def test_without_actual_tie_breaker_ties_share_rank(self, small_config, make_bracket, semifinal_results):
        brackets = [
            make_bracket(picks_payload("X", "W", "X", tie_breaker=200), "late", T0 + timedelta(days=1)),
            make_bracket(picks_payload("X", "W", "X", tie_breaker=145), "early", T0),
        ]

        table = compute_standings(brackets, semifinal_results, small_config)

        assert table["bracket_id"].to_list() == ["early", "late"]
        assert table["rank"].to_list() == [1, 1]

    def test_naive_submission_times_are_utc(self, small_config, make_bracket, semifinal_results):
        bracket = make_bracket(picks_payload("X", "W", "X"), "naive", datetime(2026, 3, 16, 9, 0))

        table = compute_standings([bracket], semifinal_results, small_config)

        assert table["submitted_at"][0] == T0

    def test_empty(self, small_config, semifinal_results):
        table = compute_standings([], semifinal_results, small_config)

        assert len(table) == 0
        assert table.columns == list(STANDINGS_SCHEMA)
