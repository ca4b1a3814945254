#!/usr/bin/env python3
"""Dump tournament standings and per-match status as JSON."""

import argparse
import json
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
    fetch_tournament,
)
from matchplay.scoring import compute_match_status, match_result
from matchplay.settings import load_settings
from matchplay.standings import aggregate, player_records


def export_standings(database_url: str, tournament_id: str) -> dict:
    tournament = fetch_tournament(database_url, tournament_id)
    rounds = {r.id: r for r in fetch_rounds_for_tournament(database_url, tournament_id)}
    matches = fetch_matches_for_tournament(database_url, tournament_id)
    snapshot = aggregate(matches, rounds, tournament_id=tournament_id)
    match_rows = []
    for match in matches:
        status = compute_match_status(match, rounds.get(match.round_id or ""))
        match_rows.append(
            {
                "id": match.id,
                "round_id": match.round_id,
                "points_value": match.points_value,
                "status": asdict(status),
                "result": match_result(status),
            }
        )
    return {
        "tournament": {"id": tournament_id, "name": tournament.name if tournament else None},
        "rounds": [asdict(r) for r in rounds.values()],
        "standings": snapshot.as_dict(),
        "players": player_records(matches, rounds, tournament_id=tournament_id),
        "matches": match_rows,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Export current standings for a tournament.")
    parser.add_argument(
        "--tournament-id",
        "-t",
        type=str,
        help="Tournament ID to export (defaults to the active tournament).",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Path to write the JSON export (defaults to stdout).",
    )
    args = parser.parse_args()

    db_url = load_settings().database_url
    tournament_id = args.tournament_id
    if not tournament_id:
        active = fetch_active_tournament(db_url)
        tournament_id = active.id if active else None
    if not tournament_id:
        raise SystemExit("Unable to determine tournament ID (mark a tournament active or pass --tournament-id).")

    payload = json.dumps(export_standings(db_url, tournament_id), default=str, indent=2)

    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        print(f"Standings saved to {args.output}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
