"""Configuration helpers for tournament rules and runtime settings."""

from .settings import Settings, load_settings
from .tournament import (
    Category,
    TournamentRules,
    get_rules,
    header_token,
    iter_rules,
    register_rules,
)

__all__ = [
    "Category",
    "Settings",
    "TournamentRules",
    "get_rules",
    "header_token",
    "iter_rules",
    "load_settings",
    "register_rules",
]
