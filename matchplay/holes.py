"""Per-hole input validation and net-score resolution.

Each round format stores a different raw shape for a hole. The shapes are
modelled as one pydantic model per format and validated strictly when a
scorer writes a hole. When a stored snapshot is read back for scoring the
same models are applied leniently: anything that fails to validate is
treated as a hole that has not been played yet.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from matchplay.errors import RecoverableInputError
from matchplay.models import (
    BEST_BALL,
    HALVED,
    HOLE_COUNT,
    ROUND_FORMATS,
    SCRAMBLE,
    SHAMBLE,
    SIDE_A,
    SIDE_B,
    SINGLES,
    UNDECIDED,
    HoleOutcome,
)

logger = logging.getLogger(__name__)

LEGACY_FORMATS = {
    "twoManBestBall": BEST_BALL,
    "twoManShamble": SHAMBLE,
    "twoManScramble": SCRAMBLE,
}

Gross = Annotated[StrictInt, Field(ge=1, le=99)]


class _HoleInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class ScrambleHoleInput(_HoleInput):
    team_a_gross: Optional[Gross] = Field(default=None, alias="teamAGross")
    team_b_gross: Optional[Gross] = Field(default=None, alias="teamBGross")


class SinglesHoleInput(_HoleInput):
    team_a_player_gross: Optional[Gross] = Field(default=None, alias="teamAPlayerGross")
    team_b_player_gross: Optional[Gross] = Field(default=None, alias="teamBPlayerGross")


class FourBallHoleInput(_HoleInput):
    """Best-ball and shamble: one gross per player, up to two players a side."""

    team_a_players_gross: Optional[list[Optional[Gross]]] = Field(
        default=None, alias="teamAPlayersGross", max_length=2
    )
    team_b_players_gross: Optional[list[Optional[Gross]]] = Field(
        default=None, alias="teamBPlayersGross", max_length=2
    )


HoleInput = Union[ScrambleHoleInput, SinglesHoleInput, FourBallHoleInput]

INPUT_MODELS: dict[str, type[_HoleInput]] = {
    BEST_BALL: FourBallHoleInput,
    SHAMBLE: FourBallHoleInput,
    SCRAMBLE: ScrambleHoleInput,
    SINGLES: SinglesHoleInput,
}


def normalize_format(value: str | None) -> str:
    if value in ROUND_FORMATS:
        return value
    if value in LEGACY_FORMATS:
        return LEGACY_FORMATS[value]
    raise RecoverableInputError(f"Unknown round format: {value!r}")


def validate_hole_number(hole_number: Any) -> int:
    if isinstance(hole_number, bool) or not isinstance(hole_number, int):
        raise RecoverableInputError(f"Hole number must be an integer, got {hole_number!r}")
    if not 1 <= hole_number <= HOLE_COUNT:
        raise RecoverableInputError(f"Hole number {hole_number} is outside 1..{HOLE_COUNT}")
    return hole_number


def parse_hole_input(round_format: str, raw: Any) -> HoleInput:
    model = INPUT_MODELS[normalize_format(round_format)]
    if not isinstance(raw, dict):
        raise RecoverableInputError(f"Hole input for {round_format} must be an object")
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise RecoverableInputError(
            f"Hole input does not match the {round_format} shape: {exc.errors()}"
        ) from exc


def parse_partial_hole_input(round_format: str, raw: Any) -> dict[str, Any]:
    """Validate a partial edit and return only the fields it sets, keyed by wire name."""
    parsed = parse_hole_input(round_format, raw)
    fields = parsed.model_dump(by_alias=True, exclude_unset=True)
    if not fields:
        raise RecoverableInputError("Hole edit does not set any score field")
    return fields


def _snapshot_input(round_format: str, raw: Any) -> HoleInput | None:
    if raw is None:
        return None
    try:
        return parse_hole_input(round_format, raw)
    except RecoverableInputError as exc:
        logger.debug("Treating malformed hole input as undecided: %s", exc)
        return None


def _allowance(strokes: Sequence[Sequence[Any]], player_index: int, hole_number: int) -> float | None:
    if player_index >= len(strokes):
        return None
    per_hole = strokes[player_index]
    if per_hole is None or len(per_hole) < HOLE_COUNT:
        return None
    value = per_hole[hole_number - 1]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _side_best_net(
    grosses: Sequence[Optional[int]] | None,
    strokes: Sequence[Sequence[Any]],
    hole_number: int,
) -> float | None:
    nets: list[float] = []
    for index, gross in enumerate(grosses or []):
        if gross is None:
            continue
        allowance = _allowance(strokes, index, hole_number)
        if allowance is None:
            # A recorded score we cannot net makes the whole hole unplayable.
            return None
        nets.append(gross - allowance)
    return min(nets) if nets else None


def _net_pair(
    hole_input: HoleInput,
    strokes_a: Sequence[Sequence[Any]],
    strokes_b: Sequence[Sequence[Any]],
    hole_number: int,
) -> tuple[float | None, float | None]:
    if isinstance(hole_input, ScrambleHoleInput):
        return hole_input.team_a_gross, hole_input.team_b_gross
    if isinstance(hole_input, SinglesHoleInput):
        net_a = net_b = None
        if hole_input.team_a_player_gross is not None:
            allowance = _allowance(strokes_a, 0, hole_number)
            if allowance is not None:
                net_a = hole_input.team_a_player_gross - allowance
        if hole_input.team_b_player_gross is not None:
            allowance = _allowance(strokes_b, 0, hole_number)
            if allowance is not None:
                net_b = hole_input.team_b_player_gross - allowance
        return net_a, net_b
    return (
        _side_best_net(hole_input.team_a_players_gross, strokes_a, hole_number),
        _side_best_net(hole_input.team_b_players_gross, strokes_b, hole_number),
    )


def resolve_hole(
    round_format: str,
    raw_input: Any,
    strokes_a: Sequence[Sequence[Any]],
    strokes_b: Sequence[Sequence[Any]],
    hole_number: int,
) -> HoleOutcome:
    """Compare both sides' net scores for one hole.

    ``strokes_a``/``strokes_b`` hold one 18-entry allowance array per player,
    in the same order as that side's gross scores. Never raises for bad
    stored data: the hole is reported as undecided instead.
    """
    hole_input = _snapshot_input(round_format, raw_input)
    if hole_input is None:
        return HoleOutcome(hole_number, UNDECIDED)
    net_a, net_b = _net_pair(hole_input, strokes_a, strokes_b, hole_number)
    if net_a is None or net_b is None:
        return HoleOutcome(hole_number, UNDECIDED, net_a, net_b)
    if net_a < net_b:
        winner = SIDE_A
    elif net_b < net_a:
        winner = SIDE_B
    else:
        winner = HALVED
    return HoleOutcome(hole_number, winner, net_a, net_b)
