"""Input adapters that normalize raw roster spreadsheets."""

from .players import (
    FieldSpec,
    ImportResult,
    MergeReport,
    build_field_specs,
    load_players_from_csv,
    load_roster_csv,
    merge_category_rows,
    normalize,
    normalize_grade,
    normalize_rows,
    parse_amount,
    read_roster_csv,
)

__all__ = [
    "FieldSpec",
    "ImportResult",
    "MergeReport",
    "build_field_specs",
    "load_players_from_csv",
    "load_roster_csv",
    "merge_category_rows",
    "normalize",
    "normalize_grade",
    "normalize_rows",
    "parse_amount",
    "read_roster_csv",
]
