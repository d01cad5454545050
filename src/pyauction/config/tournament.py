"""Fixed team roster and rating categories for supported tournaments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from pyauction.models import TournamentConfig


def header_token(value: str) -> str:
    """Case- and punctuation-insensitive key used for header and alias matching."""

    return re.sub(r"[^a-z0-9]", "", value.lower())


@dataclass(frozen=True)
class Category:
    key: str
    label: str
    aliases: Tuple[str, ...]

    def matches(self, value: str) -> bool:
        token = header_token(value)
        return token == header_token(self.key) or any(
            token == header_token(alias) for alias in (self.label, *self.aliases)
        )


@dataclass(frozen=True)
class TournamentRules:
    name: str
    teams: Tuple[str, ...]
    categories: Tuple[Category, ...]
    default_config: TournamentConfig

    def has_team(self, team: Optional[str]) -> bool:
        return team is not None and team in self.teams

    def canonical_team(self, team: Optional[str]) -> Optional[str]:
        """Return the roster spelling of ``team`` or None when it is not on the roster."""

        if not team:
            return None
        wanted = team.strip().casefold()
        for candidate in self.teams:
            if candidate.casefold() == wanted:
                return candidate
        return None

    def category(self, value: str) -> Category:
        for category in self.categories:
            if category.matches(value):
                return category
        raise KeyError(f"No category {value!r} in tournament {self.name!r}")

    @property
    def category_keys(self) -> Tuple[str, ...]:
        return tuple(category.key for category in self.categories)


_RULES: Dict[str, TournamentRules] = {
    "default": TournamentRules(
        name="default",
        teams=(
            "Aditya Avengers",
            "Alfen Royals",
            "Lantern Legends",
            "Primark Superkings",
            "Sai Kripa Soldiers",
            "Taluka Fighters",
        ),
        categories=(
            Category(key="cricket", label="Cricket", aliases=("Cricket", "Cric", "CRI")),
            Category(key="badminton", label="Badminton", aliases=("Badminton", "Bad", "BAD")),
            Category(key="tt", label="TT", aliases=("Table Tennis", "TT", "TTE")),
        ),
        default_config=TournamentConfig(purse_limit=10_000, max_squad_size=25, base_price=10),
    ),
}


def iter_rules() -> Iterable[TournamentRules]:
    """Return an iterator of all configured rule sets."""

    return _RULES.values()


def get_rules(name: str = "default") -> TournamentRules:
    """Fetch rules by name, raising KeyError if missing."""

    key = name.lower()
    if key not in _RULES:
        raise KeyError(f"No tournament rules configured for {name!r}")
    return _RULES[key]


def register_rules(rules: TournamentRules) -> None:
    _RULES[rules.name.lower()] = rules
