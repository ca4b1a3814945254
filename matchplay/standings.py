from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping

from matchplay.models import (
    SIDE_A,
    SIDE_B,
    STATE_UNKNOWN,
    Match,
    MatchStatus,
    Player,
    Round,
    StandingsSnapshot,
    Tournament,
)
from matchplay.scoring import compute_match_status

logger = logging.getLogger(__name__)


def match_points(status: MatchStatus, points_value: float | None) -> tuple[float, float]:
    """Points each side would take if the match ended right now."""
    pv = 1 if points_value is None else points_value
    if status.leader == SIDE_A:
        return pv, 0
    if status.leader == SIDE_B:
        return 0, pv
    return pv / 2, pv / 2


def _scoped_statuses(
    matches: Iterable[Match],
    rounds: Mapping[str, Round],
    tournament_id: str | None = None,
) -> Iterator[tuple[Match, MatchStatus]]:
    for match in matches:
        round_ = rounds.get(match.round_id) if match.round_id else None
        if round_ is None:
            logger.warning("Excluding match %s: round %r not found", match.id, match.round_id)
            continue
        if tournament_id is not None and (match.tournament_id or round_.tournament_id) != tournament_id:
            continue
        status = compute_match_status(match, round_)
        if status.state == STATE_UNKNOWN:
            logger.warning("Excluding match %s: status unknown", match.id)
            continue
        yield match, status


def aggregate(
    matches: Iterable[Match],
    rounds: Mapping[str, Round],
    tournament_id: str | None = None,
) -> StandingsSnapshot:
    finalized = {SIDE_A: 0.0, SIDE_B: 0.0}
    projected = {SIDE_A: 0.0, SIDE_B: 0.0}
    for match, status in _scoped_statuses(matches, rounds, tournament_id):
        if status.closed:
            bucket = finalized
        elif status.thru > 0:
            bucket = projected
        else:
            continue
        points_a, points_b = match_points(status, match.points_value)
        bucket[SIDE_A] += points_a
        bucket[SIDE_B] += points_b
    return StandingsSnapshot(
        finalized_a=finalized[SIDE_A],
        finalized_b=finalized[SIDE_B],
        projected_a=projected[SIDE_A],
        projected_b=projected[SIDE_B],
    )


def _empty_record(player_id: str, side: str) -> dict:
    return {
        "player_id": player_id,
        "side": side,
        "matches": 0,
        "wins": 0,
        "losses": 0,
        "halves": 0,
        "points": 0.0,
    }


def _record_player(records: dict[str, dict], player_id: str, side: str, leader: str | None, points: float) -> None:
    entry = records.setdefault(player_id, _empty_record(player_id, side))
    entry["matches"] += 1
    entry["points"] += points
    if leader is None:
        entry["halves"] += 1
    elif leader == side:
        entry["wins"] += 1
    else:
        entry["losses"] += 1


def player_records(
    matches: Iterable[Match],
    rounds: Mapping[str, Round],
    tournament_id: str | None = None,
) -> list[dict]:
    """Win/loss/halve record per player over finished matches."""
    records: dict[str, dict] = {}
    for match, status in _scoped_statuses(matches, rounds, tournament_id):
        if not status.closed:
            continue
        points_a, points_b = match_points(status, match.points_value)
        for player in match.team_a_players:
            _record_player(records, player.player_id, SIDE_A, status.leader, points_a)
        for player in match.team_b_players:
            _record_player(records, player.player_id, SIDE_B, status.leader, points_b)
    return sorted(
        records.values(),
        key=lambda item: (item["side"], -item["points"], -item["wins"], item["player_id"]),
    )


def team_rosters(
    tournament: Tournament,
    players: Mapping[str, Player],
    records: Iterable[dict],
) -> list[dict]:
    """Each side's roster grouped by tier, with every rostered player's record.

    Players without a finished match are listed with an empty 0-0-0 record.
    """
    by_player = {entry["player_id"]: entry for entry in records}
    teams = []
    for side, team in ((SIDE_A, tournament.team_a), (SIDE_B, tournament.team_b)):
        tiers = []
        for tier in sorted(team.roster_by_tier):
            rows = []
            for player_id in team.roster_by_tier[tier]:
                entry = dict(by_player.get(player_id) or _empty_record(player_id, side))
                player = players.get(player_id)
                entry["display_name"] = player.display_name if player else "Unknown"
                entry["record"] = f"{entry['wins']}-{entry['losses']}-{entry['halves']}"
                rows.append(entry)
            if rows:
                tiers.append({"tier": tier, "players": rows})
        teams.append(
            {
                "side": side,
                "id": team.id,
                "name": team.name,
                "color": team.color,
                "tiers": tiers,
            }
        )
    return teams
