"""Auction state machine and team statistics."""

from .machine import AuctionStateMachine
from .stats import (
    LeagueSummary,
    TeamStats,
    affordable_teams,
    compute_all_stats,
    compute_stats,
    league_summary,
    sale_warnings,
)

__all__ = [
    "AuctionStateMachine",
    "LeagueSummary",
    "TeamStats",
    "affordable_teams",
    "compute_all_stats",
    "compute_stats",
    "league_summary",
    "sale_warnings",
]
