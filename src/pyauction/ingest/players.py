"""Helpers to load roster spreadsheets and emit canonical player records."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pyauction.config import TournamentRules, get_rules, header_token
from pyauction.config_loader import AliasProfile
from pyauction.models import CONTACT_PLACEHOLDER, GRADES, NO_GRADE, Player


logger = logging.getLogger(__name__)

NAME_ALIASES: tuple[str, ...] = ("Player Name", "Name", "Player")
CONTACT_ALIASES: tuple[str, ...] = ("Contact No", "Mobile", "Contact")
TEAM_ALIASES: tuple[str, ...] = ("Team", "Winning Team")
PRICE_ALIASES: tuple[str, ...] = ("Auction Value", "Price")
GRADE_SHEET_ALIASES: tuple[str, ...] = ("Grade", "Rating", "Level")

_NUMERIC_GRADES = {"1": "A", "2": "B", "3": "C"}
_AMOUNT_PATTERN = re.compile(r"\d+(?:\.\d+)?")


@dataclass(frozen=True)
class FieldSpec:
    field: str
    aliases: Tuple[str, ...]
    normalizer: Callable[[Optional[str]], Any]
    skip_blank: bool = False


@dataclass(frozen=True)
class ImportResult:
    players: List[Player]
    rejected_rows: List[int]

    @property
    def accepted(self) -> int:
        return len(self.players)


@dataclass(frozen=True)
class MergeReport:
    category: str
    total_rows: int
    matched_names: List[str]
    unmatched_rows: List[str]


def normalize_grade(value: Optional[str]) -> str:
    """Map free-form grade text onto ``A``/``B``/``C`` or the does-not-play grade."""

    if value is None:
        return NO_GRADE
    text = str(value).strip().upper()
    if text.startswith("GRADE"):
        text = text[len("GRADE"):].strip(" :-")
    if not text:
        return NO_GRADE
    if text in _NUMERIC_GRADES:
        return _NUMERIC_GRADES[text]
    if text[0] in GRADES and (len(text) == 1 or not text[1].isalpha()):
        return text[0]
    return NO_GRADE


def parse_amount(value: Optional[str]) -> int:
    """Parse a currency-like cell (``"₹1,200L"``, ``"$ 950.50"``) down to whole units."""

    if value is None:
        return 0
    text = str(value).replace(",", "").strip()
    match = _AMOUNT_PATTERN.search(text)
    if not match or "-" in text[: match.start()]:
        return 0
    return int(float(match.group(0)))


def _normalize_text(value: Optional[str]) -> str:
    return value or ""


def _normalize_contact(value: Optional[str]) -> str:
    return value or CONTACT_PLACEHOLDER


def _profile_aliases(aliases: AliasProfile | Mapping[str, Sequence[str]] | None) -> Dict[str, List[str]]:
    if aliases is None:
        return {}
    if isinstance(aliases, AliasProfile):
        return aliases.aliases
    return {key: list(values) for key, values in aliases.items()}


def build_field_specs(
    rules: TournamentRules,
    aliases: AliasProfile | Mapping[str, Sequence[str]] | None = None,
) -> Tuple[FieldSpec, ...]:
    """Declarative alias table for one import; extra aliases are tried after the defaults."""

    extra = _profile_aliases(aliases)

    def with_extra(field: str, defaults: Iterable[str]) -> Tuple[str, ...]:
        combined = list(defaults)
        combined.extend(alias for alias in extra.get(field, []) if alias not in combined)
        return tuple(combined)

    def team(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return rules.canonical_team(value) or value

    specs = [
        FieldSpec("name", with_extra("name", NAME_ALIASES), _normalize_text, skip_blank=True),
        FieldSpec("contact", with_extra("contact", CONTACT_ALIASES), _normalize_contact),
        FieldSpec("team", with_extra("team", TEAM_ALIASES), team),
        FieldSpec("price", with_extra("price", PRICE_ALIASES), parse_amount),
    ]
    for category in rules.categories:
        defaults = (category.label, *category.aliases, category.key)
        specs.append(FieldSpec(category.key, with_extra(category.key, defaults), normalize_grade))
    return tuple(specs)


def _row_tokens(row: Mapping[Any, Any]) -> Dict[str, Any]:
    tokens: Dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue
        tokens.setdefault(header_token(str(key)), value)
    return tokens


def _lookup(tokens: Mapping[str, Any], aliases: Sequence[str], *, skip_blank: bool = False) -> Optional[str]:
    for alias in aliases:
        key = header_token(alias)
        if key not in tokens:
            continue
        value = tokens[key]
        text = "" if value is None else str(value).strip()
        if skip_blank and not text:
            continue
        return text
    return None


def resolve_row(row: Mapping[Any, Any], specs: Sequence[FieldSpec]) -> Dict[str, Any]:
    tokens = _row_tokens(row)
    return {
        spec.field: spec.normalizer(_lookup(tokens, spec.aliases, skip_blank=spec.skip_blank))
        for spec in specs
    }


def normalize_rows(
    rows: Iterable[Mapping[Any, Any]],
    *,
    rules: TournamentRules | None = None,
    aliases: AliasProfile | Mapping[str, Sequence[str]] | None = None,
) -> ImportResult:
    """Turn loosely-typed spreadsheet rows into players with ids ``1..n`` over accepted rows."""

    rules = rules or get_rules()
    specs = build_field_specs(rules, aliases)
    players: List[Player] = []
    rejected: List[int] = []
    for index, row in enumerate(rows, start=1):
        values = resolve_row(row, specs)
        if not values["name"]:
            rejected.append(index)
            logger.debug("Rejected row %d: no player name", index)
            continue
        players.append(
            Player(
                id=len(players) + 1,
                name=values["name"],
                team=values["team"],
                price=values["price"],
                ratings={category.key: values[category.key] for category in rules.categories},
                contact_info=values["contact"],
            )
        )
    logger.info("Normalized %d players (%d rows rejected)", len(players), len(rejected))
    return ImportResult(players=players, rejected_rows=rejected)


def normalize(
    rows: Iterable[Mapping[Any, Any]],
    *,
    rules: TournamentRules | None = None,
    aliases: AliasProfile | Mapping[str, Sequence[str]] | None = None,
) -> List[Player]:
    return normalize_rows(rows, rules=rules, aliases=aliases).players


def read_roster_csv(text: str) -> List[Dict[str, Any]]:
    if text.startswith("\ufeff"):
        text = text[1:]
    return list(csv.DictReader(StringIO(text)))


def load_roster_csv(path: Path) -> List[Dict[str, Any]]:
    with path.open(newline="", encoding="utf-8-sig") as f:
        return list(csv.DictReader(f))


def load_players_from_csv(
    path: Path,
    *,
    rules: TournamentRules | None = None,
    aliases: AliasProfile | Mapping[str, Sequence[str]] | None = None,
) -> ImportResult:
    return normalize_rows(load_roster_csv(path), rules=rules, aliases=aliases)


def _name_key(name: str) -> str:
    return name.strip().casefold()


def merge_category_rows(
    players: Sequence[Player],
    rows: Iterable[Mapping[Any, Any]],
    category: str,
    *,
    rules: TournamentRules | None = None,
    aliases: AliasProfile | Mapping[str, Sequence[str]] | None = None,
) -> Tuple[List[Player], MergeReport]:
    """Apply a single-sport sheet to existing players matched by case-insensitive exact name.

    Returns only the players that received a grade from a matching row; rows
    without a matching player are reported and never create records.
    """

    rules = rules or get_rules()
    target = rules.category(category)
    extra = _profile_aliases(aliases)
    name_aliases = (*NAME_ALIASES, *extra.get("name", []))
    grade_aliases = (target.label, *target.aliases, target.key, *GRADE_SHEET_ALIASES, *extra.get(target.key, []))

    by_name: Dict[str, List[Player]] = {}
    for player in players:
        by_name.setdefault(_name_key(player.name), []).append(player)

    updated: Dict[int, Player] = {}
    matched: List[str] = []
    unmatched: List[str] = []
    total = 0
    for index, row in enumerate(rows, start=1):
        total += 1
        tokens = _row_tokens(row)
        name = _lookup(tokens, name_aliases, skip_blank=True)
        if not name:
            unmatched.append(f"row {index}")
            continue
        candidates = by_name.get(_name_key(name))
        if not candidates:
            unmatched.append(name)
            continue
        grade = normalize_grade(_lookup(tokens, grade_aliases))
        for player in candidates:
            current = updated.get(player.id, player)
            updated[player.id] = current.with_updates(ratings={**current.ratings, target.key: grade})
        matched.append(name)

    logger.info(
        "Merged %s grades: %d matched, %d unmatched", target.key, len(matched), len(unmatched)
    )
    report = MergeReport(
        category=target.key,
        total_rows=total,
        matched_names=matched,
        unmatched_rows=unmatched,
    )
    return [updated[player_id] for player_id in sorted(updated)], report
