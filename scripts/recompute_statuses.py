#!/usr/bin/env python3
"""Recompute every match status of a tournament from its stored hole inputs."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from matchplay.db import (
    fetch_active_tournament,
    fetch_matches_for_tournament,
    fetch_rounds_for_tournament,
    fetch_tournaments,
    store_match_status,
)
from matchplay.scoring import compute_match_status, status_label
from matchplay.server import configure_logging
from matchplay.settings import load_settings

logger = logging.getLogger("recompute_statuses")


def _resolve_tournament_id(database_url: str, explicit_id: str | None) -> str | None:
    if explicit_id:
        return explicit_id
    active = fetch_active_tournament(database_url)
    return active.id if active else None


def recompute(database_url: str, tournament_id: str, dry_run: bool = False) -> int:
    rounds = {r.id: r for r in fetch_rounds_for_tournament(database_url, tournament_id)}
    count = 0
    for match in fetch_matches_for_tournament(database_url, tournament_id):
        status = compute_match_status(match, rounds.get(match.round_id or ""))
        print(f"  {match.id}: {status_label(status)}")
        if not dry_run:
            store_match_status(database_url, match.id, asdict(status))
        count += 1
    return count


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Rebuild cached match statuses from raw hole inputs."
    )
    parser.add_argument("--tournament-id", type=str, help="Target tournament ID (defaults to the active one).")
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available tournaments from the database.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print recomputed statuses without storing them.",
    )
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(settings.log_level)

    if args.list:
        tournaments = fetch_tournaments(settings.database_url)
        if not tournaments:
            print("No tournaments found.")
            return
        print("Tournaments:")
        for entry in tournaments:
            marker = " (active)" if entry["active"] else ""
            print(f"  {entry['id']}: {entry['name']}{marker}")
        return

    tournament_id = _resolve_tournament_id(settings.database_url, args.tournament_id)
    if not tournament_id:
        parser.error("Could not resolve a tournament ID. Provide --tournament-id or mark a tournament active.")

    count = recompute(settings.database_url, tournament_id, dry_run=args.dry_run)
    verb = "Checked" if args.dry_run else "Recomputed"
    print(f"{verb} {count} match{'es' if count != 1 else ''} for tournament {tournament_id}.")


if __name__ == "__main__":
    main()
