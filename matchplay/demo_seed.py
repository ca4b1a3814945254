from __future__ import annotations

from matchplay.db import (
    ensure_schema,
    fetch_tournament,
    insert_match,
    upsert_player,
    upsert_round,
    upsert_tournament,
)
from matchplay.models import BEST_BALL, SCRAMBLE, SINGLES, Player, Round, Team, Tournament
from matchplay.seed import build_tier_pairings
from matchplay.settings import load_settings

DEMO_TOURNAMENT_ID = "demo"
DEMO_TIERS = ("A", "B")
DEMO_PLAYERS_PER_TIER = 2
DEMO_ROUNDS = (
    ("demo-r1", 1, BEST_BALL),
    ("demo-r2", 2, SCRAMBLE),
    ("demo-r3", 3, SINGLES),
)


def demo_roster(side: str) -> dict[str, tuple[str, ...]]:
    """Return a tier → player id mapping for one side of the demo event."""
    return {
        tier: tuple(f"{side.lower()}{tier.lower()}{idx}" for idx in range(1, DEMO_PLAYERS_PER_TIER + 1))
        for tier in DEMO_TIERS
    }


def demo_tournament() -> Tournament:
    return Tournament(
        id=DEMO_TOURNAMENT_ID,
        name="Demo Cup",
        team_a=Team(id="demo-A", name="Reds", color="#b91c1c", roster_by_tier=demo_roster("A")),
        team_b=Team(id="demo-B", name="Blues", color="#1d4ed8", roster_by_tier=demo_roster("B")),
        active=True,
    )


def ensure_demo_fixture(database_url: str) -> list[str]:
    tournament = fetch_tournament(database_url, DEMO_TOURNAMENT_ID) or demo_tournament()
    upsert_tournament(database_url, tournament)
    for team in (tournament.team_a, tournament.team_b):
        for player_id in team.player_ids():
            upsert_player(database_url, Player(player_id, f"Player {player_id.upper()}"))

    created: list[str] = []
    for round_id, day, round_format in DEMO_ROUNDS:
        upsert_round(database_url, Round(round_id, tournament.id, round_format, day=day))
        for match in build_tier_pairings(tournament, round_id, round_format):
            if insert_match(database_url, match):
                created.append(match.id)
    return created


def main() -> None:
    settings = load_settings()
    ensure_schema(settings.database_url)
    created = ensure_demo_fixture(settings.database_url)
    print(f"Seeded {len(created)} demo match{'es' if len(created) != 1 else ''}.")


if __name__ == "__main__":
    main()
