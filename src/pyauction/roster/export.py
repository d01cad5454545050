"""Spreadsheet export of the player collection."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Iterable, List, Mapping, Tuple, Union

from pyauction.config import TournamentRules, get_rules
from pyauction.models import NO_GRADE, Player


ID_HEADER = "ID"
NAME_HEADER = "Player Name"
CONTACT_HEADER = "Contact No"
TEAM_HEADER = "Team"
PRICE_HEADER = "Auction Value"
CAPTAIN_HEADER = "Captain"


def export_headers(rules: TournamentRules) -> Tuple[str, ...]:
    """Column order of the export; every header is also understood by the importer."""

    return (
        ID_HEADER,
        NAME_HEADER,
        *(category.label for category in rules.categories),
        CONTACT_HEADER,
        TEAM_HEADER,
        PRICE_HEADER,
        CAPTAIN_HEADER,
    )


def _sort_key(player: Player) -> Tuple[int, str, int]:
    if player.team is None:
        return (1, "", player.id)
    return (0, player.team.casefold(), player.id)


def sorted_for_export(players: Iterable[Player]) -> List[Player]:
    return sorted(players, key=_sort_key)


def export_players_to_csv(
    players: Union[Iterable[Player], Mapping[int, Player]],
    *,
    rules: TournamentRules | None = None,
) -> str:
    """Serialize players sorted by team name, unsold last, then by id."""

    rules = rules or get_rules()
    pool = players.values() if isinstance(players, Mapping) else players

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(export_headers(rules))
    for player in sorted_for_export(pool):
        writer.writerow(
            [
                player.id,
                player.name,
                *(player.ratings.get(category.key, NO_GRADE) for category in rules.categories),
                player.contact_info,
                player.team or "",
                player.price,
                player.captain_for or "",
            ]
        )
    return buffer.getvalue()


__all__ = [
    "export_headers",
    "export_players_to_csv",
    "sorted_for_export",
]
