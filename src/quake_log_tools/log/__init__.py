"""
Quake Log Parsing

This package turns Quake III Arena games.log files into match statistics:
a tokenizer for log lines and event payloads, a per-session player identity
resolver, the match session state machine and read-only aggregation views.
The log downloader fetches remote logs into the local log directory.
"""

__all__ = ['tokenizer', 'players', 'match', 'games_parser', 'views', 'log_downloader']

from .games_parser import GamesLogParser, ParseSummary, MatchState
from .log_downloader import LogDownloader
from .match import Match, PlayerRanking
from .players import PlayerIdentityResolver
