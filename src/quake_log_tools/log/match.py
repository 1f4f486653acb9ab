"""Match records built by the games.log parser."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from .tokenizer import WORLD


@dataclass
class Match:
    """Statistics of one match, from InitGame to Exit/ShutdownGame."""
    id: str
    total_kills: int = 0
    players: List[str] = field(default_factory=list)
    kills: Dict[str, int] = field(default_factory=dict)
    kills_by_means: Dict[str, int] = field(default_factory=dict)
    finalized: bool = False
    _roster: Set[str] = field(default_factory=set, repr=False, compare=False)

    def _check_open(self) -> None:
        if self.finalized:
            raise RuntimeError(f"Match {self.id} is finalized and can no longer change")

    def add_player(self, name: str) -> None:
        """Add a player with zero kills unless already present. <world> is never a player."""
        self._check_open()
        if name == WORLD or name in self._roster:
            return
        self._roster.add(name)
        self.players.append(name)
        self.kills.setdefault(name, 0)

    def credit_kill(self, killer: str) -> None:
        self._check_open()
        if killer == WORLD:
            return
        self.add_player(killer)
        self.kills[killer] += 1

    def penalize(self, victim: str) -> None:
        """Remove one kill from a player killed by <world>, never going below zero."""
        self._check_open()
        if self.kills.get(victim, 0) > 0:
            self.kills[victim] -= 1

    def record_death(self, cause: str) -> None:
        self._check_open()
        self.total_kills += 1
        self.kills_by_means[cause] = self.kills_by_means.get(cause, 0) + 1

    def finalize(self) -> "Match":
        """Sort the player list and freeze the match."""
        if not self.finalized:
            self.players.sort()
            self.finalized = True
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_kills": self.total_kills,
            "players": list(self.players),
            "kills": dict(self.kills),
            "kills_by_means": dict(self.kills_by_means),
        }


@dataclass(frozen=True)
class PlayerRanking:
    """A player's kill total across all matches."""
    name: str
    kills: int
