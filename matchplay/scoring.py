from __future__ import annotations

import logging
from typing import Iterable

from matchplay.errors import RecoverableInputError
from matchplay.holes import normalize_format, resolve_hole, validate_hole_number
from matchplay.models import (
    HALVED,
    HOLE_COUNT,
    HOLE_NUMBERS,
    SIDE_A,
    SIDE_B,
    STATE_CLOSED,
    STATE_DORMIE,
    STATE_IN_PROGRESS,
    STATE_NOT_STARTED,
    STATE_UNKNOWN,
    UNKNOWN_STATUS,
    HoleOutcome,
    Match,
    MatchStatus,
    Round,
)

logger = logging.getLogger(__name__)

RESULT_WINNERS = {SIDE_A: "teamA", SIDE_B: "teamB"}


def compute_status(outcomes: Iterable[HoleOutcome]) -> MatchStatus:
    """Fold hole outcomes into the current match status.

    Only the contiguous run of resolved holes starting at hole 1 counts. The
    whole fold is redone on every call; an edit to any early hole can move
    the closing point, the leader and the margin.
    """
    by_hole: dict[int, HoleOutcome] = {}
    for outcome in outcomes:
        number = validate_hole_number(outcome.hole_number)
        if number in by_hole:
            raise RecoverableInputError(f"Duplicate outcome for hole {number}")
        by_hole[number] = outcome

    won_a = won_b = thru = 0
    closing_hole: int | None = None
    for number in HOLE_NUMBERS:
        outcome = by_hole.get(number)
        if outcome is None or not outcome.resolved:
            break
        if outcome.winner == SIDE_A:
            won_a += 1
        elif outcome.winner == SIDE_B:
            won_b += 1
        thru = number
        remaining = HOLE_COUNT - thru
        if closing_hole is None and (abs(won_a - won_b) > remaining or thru == HOLE_COUNT):
            closing_hole = thru

    margin = abs(won_a - won_b)
    closed = closing_hole is not None
    dormie = not closed and margin > 0 and margin == HOLE_COUNT - thru
    if won_a > won_b:
        leader = SIDE_A
    elif won_b > won_a:
        leader = SIDE_B
    else:
        leader = None

    if closed:
        state = STATE_CLOSED
    elif dormie:
        state = STATE_DORMIE
    elif thru > 0:
        state = STATE_IN_PROGRESS
    else:
        state = STATE_NOT_STARTED

    return MatchStatus(
        leader=leader,
        margin=margin,
        thru=thru,
        dormie=dormie,
        closed=closed,
        closing_hole=closing_hole,
        holes_won_a=won_a,
        holes_won_b=won_b,
        state=state,
    )


def hole_outcomes(match: Match, round_format: str) -> list[HoleOutcome]:
    strokes_a = [player.strokes_received for player in match.team_a_players]
    strokes_b = [player.strokes_received for player in match.team_b_players]
    return [
        resolve_hole(round_format, match.holes.get(number), strokes_a, strokes_b, number)
        for number in HOLE_NUMBERS
    ]


def compute_match_status(match: Match, round_: Round | None) -> MatchStatus:
    if round_ is None:
        logger.warning("Match %s has no round; status unknown", match.id)
        return UNKNOWN_STATUS
    if not (match.tournament_id or round_.tournament_id):
        logger.warning("Match %s has no tournament reference; status unknown", match.id)
        return UNKNOWN_STATUS
    try:
        round_format = normalize_format(round_.format)
    except RecoverableInputError:
        logger.warning("Round %s has unknown format %r; status unknown", round_.id, round_.format)
        return UNKNOWN_STATUS
    return compute_status(hole_outcomes(match, round_format))


def match_result(status: MatchStatus) -> dict:
    if status.state in (STATE_UNKNOWN, STATE_NOT_STARTED):
        winner = None
    else:
        winner = RESULT_WINNERS.get(status.leader or "", "AS")
    return {
        "winner": winner,
        "holes_won_a": status.holes_won_a,
        "holes_won_b": status.holes_won_b,
    }


def status_label(status: MatchStatus, team_a_name: str = "A", team_b_name: str = "B") -> str:
    if status.state == STATE_UNKNOWN:
        return "Unknown"
    if status.state == STATE_NOT_STARTED:
        return "—"
    leader_name = {SIDE_A: team_a_name, SIDE_B: team_b_name}.get(status.leader or "")
    remaining = HOLE_COUNT - status.thru
    if status.closed:
        if leader_name is None:
            return "Halved"
        if remaining:
            return f"{leader_name} {status.margin}&{remaining}"
        return f"{leader_name} {status.margin} UP"
    score = f"{leader_name} {status.margin} UP" if leader_name else "AS"
    if status.dormie:
        score += " dormie"
    return f"{score} thru {status.thru}"


def outcome_label(outcome: HoleOutcome) -> str:
    if outcome.winner == HALVED:
        return "Halved"
    if outcome.resolved:
        return outcome.winner
    return "—"
