"""Pure per-team aggregates derived from the player collection and config."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pyauction.models import Player, TournamentConfig


Players = Union[Iterable[Player], Mapping[int, Player]]


@dataclass(frozen=True)
class TeamStats:
    team: str
    roster: Tuple[Player, ...]
    spent: int
    count: int
    remaining: int
    max_squad_size: int
    category_counts: Dict[str, int]

    @property
    def over_budget(self) -> bool:
        """Remaining purse is never clamped; a negative value marks an oversold team."""

        return self.remaining < 0

    @property
    def squad_full(self) -> bool:
        return self.count >= self.max_squad_size

    @property
    def slots_left(self) -> int:
        return max(self.max_squad_size - self.count, 0)


@dataclass(frozen=True)
class LeagueSummary:
    total_sold: int
    remaining_players: int
    highest_bid: int


def _as_list(players: Players) -> List[Player]:
    if isinstance(players, Mapping):
        return list(players.values())
    return list(players)


def compute_stats(
    team: str,
    players: Players,
    config: TournamentConfig,
    categories: Optional[Sequence[str]] = None,
) -> TeamStats:
    roster = tuple(sorted((p for p in _as_list(players) if p.team == team), key=lambda p: p.id))
    spent = sum(player.price or 0 for player in roster)
    if categories is None:
        categories = sorted({key for player in roster for key in player.ratings})
    category_counts = {
        category: sum(1 for player in roster if player.plays(category)) for category in categories
    }
    return TeamStats(
        team=team,
        roster=roster,
        spent=spent,
        count=len(roster),
        remaining=config.purse_limit - spent,
        max_squad_size=config.max_squad_size,
        category_counts=category_counts,
    )


def compute_all_stats(
    teams: Iterable[str],
    players: Players,
    config: TournamentConfig,
    categories: Optional[Sequence[str]] = None,
) -> List[TeamStats]:
    pool = _as_list(players)
    return [compute_stats(team, pool, config, categories) for team in teams]


def league_summary(players: Players) -> LeagueSummary:
    pool = _as_list(players)
    sold = [player for player in pool if player.is_sold]
    return LeagueSummary(
        total_sold=len(sold),
        remaining_players=len(pool) - len(sold),
        highest_bid=max((player.price for player in pool), default=0),
    )


def affordable_teams(stats: Iterable[TeamStats], config: TournamentConfig) -> List[str]:
    """Teams a console would still offer for selection at the base price."""

    return [item.team for item in stats if item.remaining >= config.base_price]


def sale_warnings(stats: TeamStats, price: int, config: TournamentConfig) -> List[str]:
    """Advisory checks for a prospective sale; the state machine never enforces them."""

    warnings: List[str] = []
    if price < config.base_price:
        warnings.append(f"price {price} is below the base price {config.base_price}")
    if price > stats.remaining:
        warnings.append(f"{stats.team} has only {stats.remaining} left in the purse")
    if stats.squad_full:
        warnings.append(f"{stats.team} already has {stats.count}/{stats.max_squad_size} players")
    return warnings
