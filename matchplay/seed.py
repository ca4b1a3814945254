from __future__ import annotations

from itertools import zip_longest
from typing import Mapping, Sequence

from matchplay.holes import normalize_format
from matchplay.models import HOLE_COUNT, SINGLES, Match, MatchPlayer, Player, Tournament

ZERO_STROKES = tuple([0] * HOLE_COUNT)


def _side_groups(player_ids: Sequence[str], size: int) -> list[list[str]]:
    return [list(player_ids[idx:idx + size]) for idx in range(0, len(player_ids), size)]


def _match_players(
    player_ids: Sequence[str],
    strokes_by_player: Mapping[str, Sequence[int]],
) -> tuple[MatchPlayer, ...]:
    return tuple(
        MatchPlayer(pid, tuple(strokes_by_player.get(pid, ZERO_STROKES)))
        for pid in player_ids
    )


def build_tier_pairings(
    tournament: Tournament,
    round_id: str,
    round_format: str,
    strokes_by_player: Mapping[str, Sequence[int]] | None = None,
    points_value: float = 1,
) -> list[Match]:
    """Pair team A against team B tier by tier.

    Singles rounds pair players one to one; every other format pairs two
    players a side. Players left without an opponent in a tier sit out.
    """
    side_size = 1 if normalize_format(round_format) == SINGLES else 2
    strokes = strokes_by_player or {}
    roster_a = tournament.team_a.roster_by_tier
    roster_b = tournament.team_b.roster_by_tier
    matches: list[Match] = []
    counter = 1
    for tier in sorted(set(roster_a) | set(roster_b)):
        groups_a = _side_groups(roster_a.get(tier, ()), side_size)
        groups_b = _side_groups(roster_b.get(tier, ()), side_size)
        for group_a, group_b in zip_longest(groups_a, groups_b):
            if not group_a or not group_b:
                continue
            matches.append(
                Match(
                    id=f"{round_id}-{counter:02d}",
                    round_id=round_id,
                    team_a_players=_match_players(group_a, strokes),
                    team_b_players=_match_players(group_b, strokes),
                    points_value=points_value,
                    tournament_id=tournament.id,
                )
            )
            counter += 1
    return matches


def match_display(match: Match, players: Mapping[str, Player] | None = None) -> str:
    names = players or {}

    def _side(side_players: tuple[MatchPlayer, ...]) -> str:
        return " & ".join(
            names[p.player_id].display_name if p.player_id in names else p.player_id
            for p in side_players
        ) or "TBD"

    return f"{_side(match.team_a_players)} vs {_side(match.team_b_players)}"
