from __future__ import annotations

from matchplay.models import HOLE_COUNT, HOLE_NUMBERS, Match, MatchStatus, Round
from matchplay.scoring import compute_match_status

LOCK_ROUND = "round_locked"
LOCK_AFTER_CLOSE = "after_closing_hole"
LOCK_INVALID_HOLE = "invalid_hole"
LOCK_NO_ROUND = "round_missing"


def lock_reason(
    round_: Round | None,
    match: Match,
    hole_number: int,
    status: MatchStatus | None = None,
) -> str | None:
    """Why a hole cannot be edited right now, or None when it can.

    The status is recomputed from the match snapshot unless the caller
    already holds one for this exact snapshot.
    """
    if isinstance(hole_number, bool) or not isinstance(hole_number, int):
        return LOCK_INVALID_HOLE
    if not 1 <= hole_number <= HOLE_COUNT:
        return LOCK_INVALID_HOLE
    if round_ is None:
        return LOCK_NO_ROUND
    if round_.locked:
        return LOCK_ROUND
    if status is None:
        status = compute_match_status(match, round_)
    if status.closed and status.closing_hole is not None and hole_number > status.closing_hole:
        return LOCK_AFTER_CLOSE
    return None


def is_hole_editable(
    round_: Round | None,
    match: Match,
    hole_number: int,
    status: MatchStatus | None = None,
) -> bool:
    return lock_reason(round_, match, hole_number, status) is None


def editable_holes(round_: Round | None, match: Match) -> list[int]:
    status = compute_match_status(match, round_) if round_ is not None else None
    return [number for number in HOLE_NUMBERS if is_hole_editable(round_, match, number, status)]
