"""Client-side mirror of the shared records, replaced wholesale on every notification."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from pyauction.auction.stats import LeagueSummary, TeamStats, compute_all_stats, league_summary
from pyauction.config import TournamentRules, get_rules
from pyauction.models import ActivityEntry, Player, TournamentConfig

from .records import RecordStore


logger = logging.getLogger(__name__)


class LiveView:
    """Subscribes to every top-level record and keeps the latest full copy of each.

    Concurrent clients converge because each notification carries the whole
    value at its path; nothing is merged locally. ``on_change`` is invoked with
    the name of the record that was replaced.
    """

    def __init__(
        self,
        store: RecordStore,
        rules: TournamentRules | None = None,
        *,
        on_change: Callable[[str], None] | None = None,
    ):
        self.store = store
        self.rules = rules or get_rules()
        self._on_change = on_change
        self._lock = threading.Lock()
        self._players: Dict[int, Player] = {}
        self._config = TournamentConfig()
        self._offer: Optional[int] = None
        self._activity: List[ActivityEntry] = []
        self._unsubscribers = [
            store.subscribe_players(self._replace_players),
            store.subscribe_config(self._replace_config),
            store.subscribe_offer(self._replace_offer),
            store.subscribe_activity(self._replace_activity),
        ]

    def _changed(self, name: str) -> None:
        logger.debug("Live view refreshed %s", name)
        if self._on_change is not None:
            self._on_change(name)

    def _replace_players(self, players: Dict[int, Player]) -> None:
        with self._lock:
            self._players = players
        self._changed("players")

    def _replace_config(self, config: TournamentConfig) -> None:
        with self._lock:
            self._config = config
        self._changed("config")

    def _replace_offer(self, player_id: Optional[int]) -> None:
        with self._lock:
            self._offer = player_id
        self._changed("current_offer")

    def _replace_activity(self, entries: List[ActivityEntry]) -> None:
        with self._lock:
            self._activity = entries
        self._changed("activity")

    @property
    def players(self) -> Dict[int, Player]:
        with self._lock:
            return dict(self._players)

    @property
    def config(self) -> TournamentConfig:
        with self._lock:
            return self._config

    @property
    def current_offer(self) -> Optional[int]:
        with self._lock:
            return self._offer

    @property
    def current_player(self) -> Optional[Player]:
        """The offered player, or None when the offer points at an id that no longer exists."""

        with self._lock:
            if self._offer is None:
                return None
            return self._players.get(self._offer)

    def activity(self, limit: Optional[int] = None) -> List[ActivityEntry]:
        with self._lock:
            entries = list(self._activity)
        return entries if limit is None else entries[:limit]

    def team_stats(self) -> List[TeamStats]:
        with self._lock:
            players = list(self._players.values())
            config = self._config
        return compute_all_stats(self.rules.teams, players, config, self.rules.category_keys)

    def summary(self) -> LeagueSummary:
        with self._lock:
            players = list(self._players.values())
        return league_summary(players)

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def __enter__(self) -> "LiveView":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
