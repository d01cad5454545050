"""Lifecycle of the offered player and the sell/revert/correct/captain transitions.

Every transition silently no-ops when its precondition fails: the caller gets
``None`` back and nothing is written. Budget, squad and base-price limits are
advisory (see ``stats.sale_warnings``) and are never enforced here.

Writes are not acknowledged before the caller can issue the next action; the
activity entry for a transition is appended only after its primary write
returned, so a ``StoreWriteError`` propagates to the caller without a log line.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from pyauction.config import TournamentRules, get_rules
from pyauction.ingest import normalize_grade
from pyauction.models import ActivityEntry, ActivityType, Player
from pyauction.store.records import CURRENT_OFFER_PATH, PLAYERS_PATH, RecordStore


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuctionStateMachine:
    def __init__(
        self,
        store: RecordStore,
        *,
        rules: TournamentRules | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.rules = rules or get_rules()
        self._clock = clock or _utc_now
        self._rng = rng or random.Random()
        self._last_log_ms = 0

    def current_player(self) -> Optional[Player]:
        player_id = self.store.current_offer()
        if player_id is None:
            return None
        return self.store.get_player(player_id)

    def offer(self, player_id: int) -> Optional[Player]:
        """Put an unsold player up for bid, replacing any previous offer."""

        player = self.store.get_player(player_id)
        if player is None or player.is_sold:
            logger.debug("Offer ignored for player %s", player_id)
            return None
        self.store.set_current_offer(player.id)
        logger.info("Offering %s (#%d)", player.name, player.id)
        return player

    def clear_offer(self) -> None:
        self.store.set_current_offer(None)

    def spin(self, category: str | None = None, grade: str | None = None) -> Optional[Player]:
        """Offer a random unsold player, optionally restricted to a category and grade."""

        pool = [player for player in self.store.players().values() if not player.is_sold]
        if category:
            key = self.rules.category(category).key
            pool = [player for player in pool if player.plays(key)]
            if grade:
                wanted = normalize_grade(grade)
                pool = [player for player in pool if player.rating(key) == wanted]
        if not pool:
            logger.info("No unsold players left to spin (category=%s, grade=%s)", category, grade)
            return None
        choice = self._rng.choice(pool)
        self.store.set_current_offer(choice.id)
        logger.info("Spun %s (#%d)", choice.name, choice.id)
        return choice

    def sell(self, player_id: int, team: str, price: int) -> Optional[Player]:
        if not self.rules.has_team(team) or price < 0:
            logger.debug("Sale ignored for player %s: team=%r price=%s", player_id, team, price)
            return None
        player = self.store.get_player(player_id)
        if player is None:
            logger.debug("Sale ignored: player %s not found", player_id)
            return None
        now = self._clock()
        updated = player.with_updates(team=team, price=price, sold_at=now)
        writes: Dict[str, Any] = {f"{PLAYERS_PATH}/{updated.id}": updated.to_store()}
        if self.store.current_offer() == updated.id:
            writes[CURRENT_OFFER_PATH] = None
        self.store.transport.update(writes)
        logger.info("Sold %s to %s for %d", updated.name, team, price)
        self._log(
            ActivityType.SALE,
            f"{updated.name} sold to {team} for {price}",
            {"playerId": updated.id, "playerName": updated.name, "team": team, "price": price},
            now,
        )
        return updated

    def unsell(self, player_id: int) -> Optional[Player]:
        """Return a sold player to the pool; already-unsold players are left alone."""

        player = self.store.get_player(player_id)
        if player is None or not player.is_sold:
            logger.debug("Revert ignored for player %s", player_id)
            return None
        updated = player.with_updates(team=None)
        self.store.put_player(updated)
        logger.info("Reverted sale of %s (was %s for %d)", player.name, player.team, player.price)
        self._log(
            ActivityType.REVERT,
            f"{player.name} returned to the pool from {player.team}",
            {
                "playerId": player.id,
                "playerName": player.name,
                "team": None,
                "price": 0,
                "previousTeam": player.team,
                "previousPrice": player.price,
            },
            self._clock(),
        )
        return updated

    def correct(self, player_id: int, team: Optional[str], price: int) -> Optional[Player]:
        """Fix a previous assignment without touching the current offer."""

        player = self.store.get_player(player_id)
        if player is None or price < 0:
            logger.debug("Correction ignored for player %s", player_id)
            return None
        now = self._clock()
        updated = player.with_updates(team=team, price=price, sold_at=player.sold_at or now)
        self.store.put_player(updated)
        logger.info("Corrected %s to %s for %d", updated.name, updated.team, updated.price)
        self._log(
            ActivityType.CORRECTION,
            f"{updated.name} corrected to {updated.team or 'unsold'} for {updated.price}",
            {
                "playerId": updated.id,
                "playerName": updated.name,
                "team": updated.team,
                "price": updated.price,
                "previousTeam": player.team,
                "previousPrice": player.price,
            },
            now,
        )
        return updated

    def assign_captain(self, player_id: int, team: str, category: str, price: int) -> Optional[Player]:
        player = self.store.get_player(player_id)
        if player is None or price < 0 or not (team or "").strip():
            logger.debug("Captain assignment ignored for player %s: team=%r price=%s", player_id, team, price)
            return None
        category_key = self._category_key(category)
        now = self._clock()
        updated = player.with_updates(team=team, price=price, captain_for=category_key, sold_at=now)
        self.store.put_player(updated)
        logger.info("%s named %s captain of %s", updated.name, category_key, updated.team)
        self._log(
            ActivityType.CAPTAIN,
            f"{updated.name} named {category_key} captain of {updated.team} for {updated.price}",
            {
                "playerId": updated.id,
                "playerName": updated.name,
                "team": updated.team,
                "price": updated.price,
                "captainFor": updated.captain_for,
            },
            now,
        )
        return updated

    def remove_captain(self, player_id: int) -> Optional[Player]:
        """Same effect as ``unsell`` but leaves no activity entry."""

        player = self.store.get_player(player_id)
        if player is None or not player.is_sold:
            logger.debug("Captain removal ignored for player %s", player_id)
            return None
        updated = player.with_updates(team=None)
        self.store.put_player(updated)
        logger.info("Removed %s from %s", player.name, player.team)
        return updated

    def reset(self) -> None:
        self.store.reset()

    def _category_key(self, category: str) -> str:
        try:
            return self.rules.category(category).key
        except KeyError:
            return category

    def _log(self, kind: ActivityType, message: str, details: Dict[str, Any], when: datetime) -> ActivityEntry:
        # Keys are write times in ms; keep this client's own entries from sharing a key.
        timestamp = max(int(when.timestamp() * 1000), self._last_log_ms + 1)
        self._last_log_ms = timestamp
        entry = ActivityEntry(timestamp=timestamp, type=kind, message=message, details=details)
        self.store.append_activity(entry)
        return entry
