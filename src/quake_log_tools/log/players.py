"""
Player identity resolution for one match session.

The log exposes two signals for a player: the numeric client slot of the
connection and the display name printed in events. Client slots are only
stable within a session, and display names may carry stray punctuation,
so the resolver keeps both maps and hands out one canonical name per player.
"""

import logging
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

TRAILING_PUNCTUATION = "!?.,"


class PlayerIdentityResolver:
    """
    Maps client ids and raw display names to canonical player names.

    A fresh resolver is created for every match session because the server
    reassigns client ids between matches.

    Attributes:
        client_to_canonical (dict): client id -> canonical name
        variant_to_canonical (dict): raw name variant -> canonical name
    """

    def __init__(self, on_diagnostic: Optional[Callable[[str], None]] = None):
        """
        Initialize an empty registry.

        Args:
            on_diagnostic: Optional callback receiving rename notices.
                Defaults to logging them at INFO level.
        """
        self.client_to_canonical: Dict[int, str] = {}
        self.variant_to_canonical: Dict[str, str] = {}
        self._on_diagnostic = on_diagnostic or logger.info

    @staticmethod
    def normalize(raw: str) -> str:
        """Trim whitespace and trailing punctuation from a display name."""
        normalized = raw.strip()
        while normalized and normalized[-1] in TRAILING_PUNCTUATION:
            normalized = normalized[:-1]
        return normalized.strip()

    def _store(self, client_id: int, raw_name: str, canonical: str) -> None:
        self.client_to_canonical[client_id] = canonical
        self.variant_to_canonical[raw_name] = canonical
        self.variant_to_canonical[canonical] = canonical

    def register(self, client_id: int, raw_name: str) -> str:
        """
        Register a (client id, raw name) pair and return the canonical name.

        A known client id with a different normalized name is treated as a
        rename: the new name replaces the old one for later lookups. Kills
        already recorded under the old name stay where they are.

        Args:
            client_id: Client slot from the log
            raw_name: Display name as printed in the log

        Returns:
            The canonical name now bound to the client id
        """
        canonical = self.normalize(raw_name)

        existing = self.client_to_canonical.get(client_id)
        if existing is not None:
            if existing == canonical:
                self.variant_to_canonical[raw_name] = existing
                return existing
            self._on_diagnostic(
                f"Player with client ID {client_id} changed name from '{existing}' to '{canonical}'"
            )

        self._store(client_id, raw_name, canonical)
        return canonical

    def resolve(self, client_id: int, fallback_raw_name: str) -> str:
        """
        Look up the canonical name for a player seen in a kill event.

        The client id is authoritative. When the id is unknown the raw name
        is tried against the known variants, and as a last resort the name
        is normalized and registered under the id.

        Args:
            client_id: Client slot from the kill event
            fallback_raw_name: Name printed in the kill event

        Returns:
            The canonical player name
        """
        canonical = self.client_to_canonical.get(client_id)
        if canonical is not None:
            return canonical

        canonical = self.variant_to_canonical.get(fallback_raw_name)
        if canonical is not None:
            return canonical

        canonical = self.normalize(fallback_raw_name)
        self._store(client_id, fallback_raw_name, canonical)
        return canonical
