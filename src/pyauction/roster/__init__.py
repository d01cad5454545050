"""Projections of the player collection for use outside the store."""

from .export import export_headers, export_players_to_csv, sorted_for_export

__all__ = ["export_headers", "export_players_to_csv", "sorted_for_export"]
