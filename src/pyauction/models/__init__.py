"""Canonical records held by the auction store."""

from .activity import ActivityEntry, ActivityType
from .player import CONTACT_PLACEHOLDER, GRADES, NO_GRADE, Player
from .tournament import TournamentConfig

__all__ = [
    "ActivityEntry",
    "ActivityType",
    "CONTACT_PLACEHOLDER",
    "GRADES",
    "NO_GRADE",
    "Player",
    "TournamentConfig",
]
