#!/usr/bin/env python3
"""Test the aggregation views over completed matches."""

from quake_log_tools.log.match import Match, PlayerRanking
from quake_log_tools.log.views import flattened_summary, per_match_breakdown, player_rankings


def make_match(match_id, kills, means=None):
    match = Match(id=match_id)
    for player in kills:
        match.add_player(player)
    for player, count in kills.items():
        match.kills[player] = count
    for cause, count in (means or {}).items():
        for _ in range(count):
            match.record_death(cause)
    return match.finalize()


def sample_matches():
    return {
        "match_1": make_match("match_1", {"Zeh": 2, "Isgalamido": 5}, {"MOD_RAILGUN": 7}),
        "match_2": make_match("match_2", {"Isgalamido": 1, "Dono da Bola": 3, "Mal": 0},
                              {"MOD_ROCKET": 3, "MOD_TRIGGER_HURT": 2}),
    }


def test_flattened_summary():
    summary = flattened_summary(sample_matches())

    assert summary["players"] == ["Dono da Bola", "Isgalamido", "Mal", "Zeh"]
    assert summary["kills"] == {"Dono da Bola": 3, "Isgalamido": 6, "Mal": 0, "Zeh": 2}


def test_per_match_breakdown():
    breakdown = per_match_breakdown(sample_matches())

    assert list(breakdown) == ["match_1", "match_2"]
    assert breakdown["match_2"] == {
        "total_kills": 5,
        "players": ["Dono da Bola", "Isgalamido", "Mal"],
        "kills": {"Isgalamido": 1, "Dono da Bola": 3, "Mal": 0},
        "kills_by_means": {"MOD_ROCKET": 3, "MOD_TRIGGER_HURT": 2},
    }


def test_player_rankings_order():
    rankings = player_rankings(sample_matches())

    assert rankings == [
        PlayerRanking("Isgalamido", 6),
        PlayerRanking("Dono da Bola", 3),
        PlayerRanking("Zeh", 2),
        PlayerRanking("Mal", 0),
    ]


def test_player_rankings_ties_break_by_name():
    forward = {"match_1": make_match("match_1", {"Zeh": 2, "Assasinu Credi": 2, "Mal": 2})}
    backward = {"match_1": make_match("match_1", {"Mal": 2, "Assasinu Credi": 2, "Zeh": 2})}

    expected = ["Assasinu Credi", "Mal", "Zeh"]
    assert [entry.name for entry in player_rankings(forward)] == expected
    assert [entry.name for entry in player_rankings(backward)] == expected


def test_views_of_no_matches():
    assert flattened_summary({}) == {"players": [], "kills": {}}
    assert per_match_breakdown({}) == {}
    assert player_rankings({}) == []


if __name__ == "__main__":
    import pytest
    raise SystemExit(pytest.main([__file__, "-v"]))
