"""Command-line interface for running a player auction from roster spreadsheets."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from pyauction.auction import compute_all_stats, league_summary
from pyauction.config import Settings, get_rules, load_settings
from pyauction.config_loader import AliasProfile
from pyauction.ingest import load_players_from_csv, load_roster_csv, merge_category_rows
from pyauction.roster import export_players_to_csv
from pyauction.store import RecordStore, SqliteTransport, StoreWriteError


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a sports player auction")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (overrides PYAUCTION_DB_PATH)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (e.g., INFO, DEBUG)")
    commands = parser.add_subparsers(dest="command", required=True)

    import_parser = commands.add_parser("import", help="Normalize a roster CSV and optionally store it")
    import_parser.add_argument("csv", type=Path, help="Roster CSV with any recognised header variants")
    import_parser.add_argument("--commit", action="store_true", help="Write the players to the store")
    import_parser.add_argument("--aliases", type=Path, default=None, help="Load header alias profile JSON")
    import_parser.add_argument("--save-aliases", type=Path, default=None, help="Save the alias profile used")

    merge_parser = commands.add_parser("merge", help="Apply a single-sport grade sheet by player name")
    merge_parser.add_argument("category", help="Category key or label (e.g., cricket, TT)")
    merge_parser.add_argument("csv", type=Path, help="CSV with a name column and a grade column")
    merge_parser.add_argument("--aliases", type=Path, default=None, help="Load header alias profile JSON")

    export_parser = commands.add_parser("export", help="Write the results spreadsheet")
    export_parser.add_argument("--output", type=Path, default=None, help="Destination CSV (stdout if omitted)")

    commands.add_parser("stats", help="Print purse and squad totals per team")

    serve_parser = commands.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    reset_parser = commands.add_parser("reset", help="Clear players, the current offer and the activity log")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the irreversible reset")

    return parser.parse_args(argv)


def _resolve_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    if args.db is not None:
        settings = replace(settings, db_path=args.db)
    return settings


def _open_store(settings: Settings) -> RecordStore:
    return RecordStore(SqliteTransport(settings.db_path))


def _preview(items: list[str], limit: int = 5) -> str:
    more = len(items) - limit
    suffix = f", +{more} more" if more > 0 else ""
    return ", ".join(items[:limit]) + suffix


def _cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    rules = get_rules(settings.rules_name)
    profile = AliasProfile.load(args.aliases) if args.aliases else AliasProfile()
    result = load_players_from_csv(args.csv, rules=rules, aliases=profile)
    print(f"Normalized {result.accepted} players from {args.csv}")
    if result.rejected_rows:
        print(f"Rejected rows without a name: {_preview([str(row) for row in result.rejected_rows])}")
    if args.save_aliases:
        profile.save(args.save_aliases)
        print(f"Saved alias profile to {args.save_aliases}")
    if args.commit:
        store = _open_store(settings)
        store.ensure_config(rules.default_config)
        count = store.upsert_players(result.players)
        print(f"Stored {count} players in {settings.db_path}")
    return 0


def _cmd_merge(args: argparse.Namespace, settings: Settings) -> int:
    rules = get_rules(settings.rules_name)
    profile = AliasProfile.load(args.aliases) if args.aliases else None
    store = _open_store(settings)
    try:
        updated, report = merge_category_rows(
            store.player_list(),
            load_roster_csv(args.csv),
            args.category,
            rules=rules,
            aliases=profile,
        )
    except KeyError:
        print(f"Unknown category {args.category!r}; expected one of {', '.join(rules.category_keys)}")
        return 2
    if updated:
        store.upsert_players(updated)
    print(f"Matched {len(report.matched_names)}/{report.total_rows} rows for {report.category}")
    if report.unmatched_rows:
        print(f"Rows without a matching player: {_preview(report.unmatched_rows)}")
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    rules = get_rules(settings.rules_name)
    csv_text = export_players_to_csv(_open_store(settings).player_list(), rules=rules)
    if args.output:
        args.output.write_text(csv_text, encoding="utf-8")
        print(f"CSV export saved to {args.output}")
    else:
        sys.stdout.write(csv_text)
    return 0


def _cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    rules = get_rules(settings.rules_name)
    store = _open_store(settings)
    players = store.player_list()
    config = store.config()
    summary = league_summary(players)
    print(
        f"Sold {summary.total_sold}, remaining {summary.remaining_players}, "
        f"highest bid {summary.highest_bid}"
    )
    for stats in compute_all_stats(rules.teams, players, config, rules.category_keys):
        counts = " ".join(f"{key}={value}" for key, value in stats.category_counts.items())
        flag = " OVER BUDGET" if stats.over_budget else ""
        print(
            f"{stats.team}: {stats.count}/{stats.max_squad_size} players, "
            f"spent {stats.spent}, remaining {stats.remaining} [{counts}]{flag}"
        )
    return 0


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from pyauction.api import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)
    return 0


def _cmd_reset(args: argparse.Namespace, settings: Settings) -> int:
    if not args.yes:
        print("Refusing to reset without --yes")
        return 2
    _open_store(settings).reset()
    print(f"Cleared players, current offer and activity log in {settings.db_path}")
    return 0


_COMMANDS = {
    "import": _cmd_import,
    "merge": _cmd_merge,
    "export": _cmd_export,
    "stats": _cmd_stats,
    "serve": _cmd_serve,
    "reset": _cmd_reset,
}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = _resolve_settings(args)
    try:
        return _COMMANDS[args.command](args, settings)
    except StoreWriteError as exc:
        print(f"Store write failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
