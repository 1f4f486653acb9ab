"""
Aggregation views over completed matches.

All functions are read-only and take the completed-match store, a mapping
of match id to finalized ``Match`` in the order the matches were played.
"""

from typing import Any, Dict, List, Mapping

from .match import Match, PlayerRanking


def flattened_summary(matches: Mapping[str, Match]) -> Dict[str, Any]:
    """
    Collapse all matches into one players/kills summary.

    Returns:
        {"players": [sorted names], "kills": {player: kills summed across matches}}
    """
    totals: Dict[str, int] = {}
    for match in matches.values():
        for player in match.players:
            totals[player] = totals.get(player, 0) + match.kills.get(player, 0)

    players = sorted(totals)
    return {
        "players": players,
        "kills": {player: totals[player] for player in players},
    }


def per_match_breakdown(matches: Mapping[str, Match]) -> Dict[str, Dict[str, Any]]:
    """Per-match statistics keyed by match id, in match order."""
    return {match_id: match.to_dict() for match_id, match in matches.items()}


def player_rankings(matches: Mapping[str, Match]) -> List[PlayerRanking]:
    """Kill totals across all matches, most kills first, ties broken by name."""
    totals: Dict[str, int] = {}
    for match in matches.values():
        for player, kills in match.kills.items():
            totals[player] = totals.get(player, 0) + kills

    rankings = [PlayerRanking(name=name, kills=kills) for name, kills in totals.items()]
    rankings.sort(key=lambda r: (-r.kills, r.name))
    return rankings
