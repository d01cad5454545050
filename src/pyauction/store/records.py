"""Typed access to the shared auction records.

Layout of the backing store::

    players/{id}          one Player record
    config                the TournamentConfig singleton (always written wholesale)
    current_auction_id    id of the player currently offered, or absent
    activity_log/{ms}     one ActivityEntry keyed by its write time in milliseconds

Consistency is eventual and last-write-wins per path. Two writes issued as
separate calls are not atomic with respect to each other, and activity keys
only approximate chronological order across clients with skewed clocks.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from pyauction.models import ActivityEntry, Player, TournamentConfig

from .transport import Transport


logger = logging.getLogger(__name__)

PLAYERS_PATH = "players"
CONFIG_PATH = "config"
CURRENT_OFFER_PATH = "current_auction_id"
ACTIVITY_PATH = "activity_log"


def _keyed_items(value: Any) -> Iterable[tuple[str, Any]]:
    if isinstance(value, dict):
        return ((str(key), item) for key, item in value.items())
    if isinstance(value, list):
        return ((str(index), item) for index, item in enumerate(value) if item is not None)
    return ()


def players_from_value(value: Any) -> Dict[int, Player]:
    players: Dict[int, Player] = {}
    for key, record in _keyed_items(value):
        if not isinstance(record, dict):
            continue
        try:
            player_id = int(key)
            players[player_id] = Player.model_validate({**record, "id": player_id})
        except (ValueError, ValidationError) as exc:
            logger.warning("Skipping unreadable player record %s: %s", key, exc)
    return dict(sorted(players.items()))


def config_from_value(value: Any) -> TournamentConfig:
    if not isinstance(value, dict):
        return TournamentConfig()
    try:
        return TournamentConfig.model_validate(value)
    except ValidationError as exc:
        logger.warning("Unreadable config record, using defaults: %s", exc)
        return TournamentConfig()


def offer_from_value(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        logger.debug("Ignoring non-numeric current offer %r", value)
        return None


def activity_from_value(value: Any) -> List[ActivityEntry]:
    entries: List[tuple[int, ActivityEntry]] = []
    for key, record in _keyed_items(value):
        if not isinstance(record, dict):
            continue
        try:
            entries.append((int(key), ActivityEntry.model_validate(record)))
        except (ValueError, ValidationError) as exc:
            logger.warning("Skipping unreadable activity entry %s: %s", key, exc)
    entries.sort(key=lambda item: item[0], reverse=True)
    return [entry for _, entry in entries]


class RecordStore:
    """Single source of truth for players, config, the current offer and the activity log."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def players(self) -> Dict[int, Player]:
        return players_from_value(self.transport.get(PLAYERS_PATH))

    def player_list(self) -> List[Player]:
        return list(self.players().values())

    def get_player(self, player_id: int) -> Optional[Player]:
        record = self.transport.get(f"{PLAYERS_PATH}/{int(player_id)}")
        if not isinstance(record, dict):
            return None
        try:
            return Player.model_validate({**record, "id": int(player_id)})
        except ValidationError as exc:
            logger.warning("Unreadable player record %s: %s", player_id, exc)
            return None

    def put_player(self, player: Player) -> None:
        self.transport.put(f"{PLAYERS_PATH}/{player.id}", player.to_store())

    def upsert_players(self, players: Iterable[Player]) -> int:
        """Bulk write keyed by id; players already stored under other ids are left untouched."""

        updates = {f"{PLAYERS_PATH}/{player.id}": player.to_store() for player in players}
        self.transport.update(updates)
        logger.info("Upserted %d players", len(updates))
        return len(updates)

    def config(self) -> TournamentConfig:
        return config_from_value(self.transport.get(CONFIG_PATH))

    def ensure_config(self, default: TournamentConfig) -> TournamentConfig:
        """Write ``default`` when no config exists yet (first boot) and return the effective config."""

        if self.transport.get(CONFIG_PATH) is None:
            self.put_config(default)
            return default
        return self.config()

    def put_config(self, config: TournamentConfig) -> None:
        self.transport.put(CONFIG_PATH, config.to_store())

    def current_offer(self) -> Optional[int]:
        return offer_from_value(self.transport.get(CURRENT_OFFER_PATH))

    def set_current_offer(self, player_id: Optional[int]) -> None:
        self.transport.put(CURRENT_OFFER_PATH, None if player_id is None else int(player_id))

    def append_activity(self, entry: ActivityEntry) -> str:
        key = str(entry.timestamp)
        self.transport.put(f"{ACTIVITY_PATH}/{key}", entry.to_store())
        return key

    def activity(self, limit: Optional[int] = None) -> List[ActivityEntry]:
        """Newest first; ``limit`` trims the view only, the log itself is never truncated."""

        entries = activity_from_value(self.transport.get(ACTIVITY_PATH))
        return entries if limit is None else entries[:limit]

    def reset(self) -> None:
        """Irreversibly clear players, the current offer and the activity log; config is kept."""

        self.transport.update({PLAYERS_PATH: None, CURRENT_OFFER_PATH: None, ACTIVITY_PATH: None})
        logger.warning("Cleared players, current offer and activity log")

    def subscribe_players(self, callback: Callable[[Dict[int, Player]], None]) -> Callable[[], None]:
        return self.transport.subscribe(PLAYERS_PATH, lambda value: callback(players_from_value(value)))

    def subscribe_config(self, callback: Callable[[TournamentConfig], None]) -> Callable[[], None]:
        return self.transport.subscribe(CONFIG_PATH, lambda value: callback(config_from_value(value)))

    def subscribe_offer(self, callback: Callable[[Optional[int]], None]) -> Callable[[], None]:
        return self.transport.subscribe(CURRENT_OFFER_PATH, lambda value: callback(offer_from_value(value)))

    def subscribe_activity(self, callback: Callable[[List[ActivityEntry]], None]) -> Callable[[], None]:
        return self.transport.subscribe(ACTIVITY_PATH, lambda value: callback(activity_from_value(value)))
