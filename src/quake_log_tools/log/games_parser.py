"""
Quake III games.log Parser

Reads a games.log file line by line and rebuilds per-match statistics:
players, kills per player and kills by means of death.

Features:
- Match session tracking across InitGame / Exit / ShutdownGame boundaries
- Automatic match opening when a kill shows up outside a session
- Per-session player identity resolution (client id first, name fallback)
- <world> kills penalize the victim, floored at zero
- Malformed lines are reported and skipped, never fatal
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from .match import Match, PlayerRanking
from .players import PlayerIdentityResolver
from .tokenizer import (
    KillEvent,
    LogLine,
    ParseError,
    UserinfoChange,
    is_skippable,
    parse_kill_payload,
    parse_userinfo_payload,
    tokenize_line,
)
from .views import flattened_summary, per_match_breakdown, player_rankings

logger = logging.getLogger(__name__)


class MatchState(Enum):
    NO_ACTIVE_MATCH = "no_active_match"
    ACTIVE_MATCH = "active_match"


@dataclass
class ParseSummary:
    """Summary of parsing results including error reporting."""
    total_lines: int = 0
    skipped_lines: int = 0
    parsed_lines: int = 0
    malformed_lines: int = 0
    malformed_samples: List[str] = field(default_factory=list)
    kill_events: int = 0
    matches: int = 0


class GamesLogParser:
    """
    Match session state machine driven by games.log events.

    One parser instance handles one input source. Completed matches are
    kept in ``matches`` in the order they were played.

    Attributes:
        matches (dict): Completed matches keyed by match id
        current_match (Match): Match being built, or None between sessions
        players (PlayerIdentityResolver): Identity registry of the current session
        summary (ParseSummary): Line counters for the current run
    """

    SESSION_OPEN_EVENTS = frozenset({'InitGame'})
    SESSION_CLOSE_EVENTS = frozenset({'Exit', 'ShutdownGame'})
    USERINFO_EVENT = 'ClientUserinfoChanged'
    KILL_EVENT = 'Kill'
    MATCH_ID_PREFIX = "match_"
    LINE_SAMPLE_MAX_LENGTH = 120

    def __init__(self,
                 on_diagnostic: Optional[Callable[[str], None]] = None,
                 max_malformed_samples: int = 10):
        """
        Initialize the parser.

        Args:
            on_diagnostic: Callback receiving one message per unprocessable line.
                Defaults to logging a warning.
            max_malformed_samples: Maximum number of malformed line samples to keep
        """
        self.matches: Dict[str, Match] = {}
        self.current_match: Optional[Match] = None
        self.match_counter = 0
        self.players = PlayerIdentityResolver()
        self.summary = ParseSummary()
        self.max_malformed_samples = max_malformed_samples
        self._on_diagnostic = on_diagnostic or logger.warning

    @property
    def state(self) -> MatchState:
        if self.current_match is None:
            return MatchState.NO_ACTIVE_MATCH
        return MatchState.ACTIVE_MATCH

    def parse_file(self, log_file: str, debug_skipped_file: Optional[str] = None) -> Dict[str, Match]:
        """
        Parse a whole games.log file.

        Args:
            log_file: Path to the log file
            debug_skipped_file: Optional path to write every malformed line to

        Returns:
            Completed matches keyed by match id

        Raises:
            FileNotFoundError: If the log file does not exist
            OSError: If the log file cannot be read
        """
        log_path = Path(log_file)
        if not log_path.is_file():
            raise FileNotFoundError(f"Log file not found: {log_path}")

        logger.info(f"Parsing log file: {log_path}")

        with open(log_path, 'r', encoding='utf-8', errors='replace') as f:
            if debug_skipped_file:
                with open(debug_skipped_file, 'w', encoding='utf-8') as debug_file:
                    debug_file.write(f"# Malformed lines from {log_path}\n")
                    debug_file.write("# Format: [LINE_NUMBER] ORIGINAL_LINE\n\n")
                    self.parse_lines(f, debug_file)
                logger.info(f"Malformed lines written to debug file: {debug_skipped_file}")
            else:
                self.parse_lines(f)

        logger.info(f"Successfully parsed {len(self.matches)} games")
        if self.summary.malformed_lines:
            logger.warning(f"Found {self.summary.malformed_lines} malformed lines")
        return self.matches

    def parse_lines(self, lines: Iterable[str], debug_file: Optional[TextIO] = None) -> Dict[str, Match]:
        """
        Feed lines through the state machine and finalize the last match.

        Args:
            lines: Raw log lines
            debug_file: Optional open file receiving malformed lines

        Returns:
            Completed matches keyed by match id
        """
        for line_number, raw in enumerate(lines, 1):
            error = self.process_line(raw, line_number)
            if error and debug_file:
                debug_file.write(f"[{line_number:>6}] {raw.rstrip()}\n")
                debug_file.write(f"         ERROR: {error}\n")
        self.finish()
        return self.matches

    def process_line(self, raw: str, line_number: int = 0) -> Optional[ParseError]:
        """
        Process one raw line.

        Returns:
            The ParseError when the line could not be processed, else None
        """
        self.summary.total_lines += 1
        if is_skippable(raw):
            self.summary.skipped_lines += 1
            return None

        entry = tokenize_line(raw)
        if isinstance(entry, ParseError):
            self._report(entry, line_number, "Could not parse line")
            return entry

        error = self.dispatch(entry)
        if error:
            self._report(error, line_number, "Error processing line")
            return error

        self.summary.parsed_lines += 1
        return None

    def _report(self, error: ParseError, line_number: int, prefix: str) -> None:
        self.summary.malformed_lines += 1
        if len(self.summary.malformed_samples) < self.max_malformed_samples:
            sample = error.raw[:self.LINE_SAMPLE_MAX_LENGTH]
            if len(error.raw) > self.LINE_SAMPLE_MAX_LENGTH:
                sample += "..."
            self.summary.malformed_samples.append(f"Line {line_number}: {sample}")
        self._on_diagnostic(f"{prefix} {line_number}: {error}")

    def dispatch(self, entry: LogLine) -> Optional[ParseError]:
        """Route a tokenized line to its state transition. Unknown events are ignored."""
        if entry.event_name in self.SESSION_OPEN_EVENTS:
            self.open_match()
        elif entry.event_name in self.SESSION_CLOSE_EVENTS:
            self.close_match()
        elif entry.event_name == self.USERINFO_EVENT:
            return self._handle_userinfo_changed(entry)
        elif entry.event_name == self.KILL_EVENT:
            return self._handle_kill(entry)
        return None

    def open_match(self) -> Match:
        """Start a new match, finalizing the current one if its close marker was missing."""
        if self.current_match is not None:
            logger.debug(f"{self.current_match.id} was not closed before the next InitGame")
            self._finalize_current()

        self.match_counter += 1
        self.current_match = Match(id=f"{self.MATCH_ID_PREFIX}{self.match_counter}")
        # Client ids are reassigned between matches
        self.players = PlayerIdentityResolver()
        logger.debug(f"Opened {self.current_match.id}")
        return self.current_match

    def close_match(self) -> None:
        if self.current_match is not None:
            self._finalize_current()

    def finish(self) -> None:
        """End of input: finalize a match left open."""
        self.close_match()

    def _finalize_current(self) -> None:
        match = self.current_match.finalize()
        self.matches[match.id] = match
        self.summary.matches = len(self.matches)
        self.current_match = None
        logger.debug(f"Finalized {match.id}: {match.total_kills} kills, {len(match.players)} players")

    def _handle_userinfo_changed(self, entry: LogLine) -> Optional[ParseError]:
        change = parse_userinfo_payload(entry.payload)
        if isinstance(change, ParseError):
            return change
        self.apply_userinfo_change(change)
        return None

    def apply_userinfo_change(self, change: UserinfoChange) -> str:
        canonical = self.players.register(change.client_id, change.raw_name)
        if self.current_match is not None:
            self.current_match.add_player(canonical)
        return canonical

    def _handle_kill(self, entry: LogLine) -> Optional[ParseError]:
        if self.current_match is None:
            logger.debug("Kill event outside of a match, opening one")
            self.open_match()

        kill = parse_kill_payload(entry.payload)
        if isinstance(kill, ParseError):
            return kill
        self.apply_kill(kill)
        return None

    def apply_kill(self, kill: KillEvent) -> None:
        """Score one kill against the current match."""
        match = self.current_match
        self.summary.kill_events += 1

        victim = self.players.resolve(kill.victim_id, kill.victim_name)
        if victim != kill.victim_name:
            logger.debug(f"Victim name mapped from '{kill.victim_name}' to '{victim}'")
        match.add_player(victim)

        if kill.is_world_kill:
            match.penalize(victim)
        else:
            killer = self.players.resolve(kill.killer_id, kill.killer_name)
            if killer != kill.killer_name:
                logger.debug(f"Killer name mapped from '{kill.killer_name}' to '{killer}'")
            match.credit_kill(killer)

        match.record_death(kill.cause_name)

    def get_single_game_output(self) -> Dict:
        return flattened_summary(self.matches)

    def get_multi_game_output(self) -> Dict[str, Dict]:
        return per_match_breakdown(self.matches)

    def get_player_rankings(self) -> List[PlayerRanking]:
        return player_rankings(self.matches)
