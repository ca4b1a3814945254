import pytest

from matchplay.errors import RecoverableInputError
from matchplay.holes import (
    normalize_format,
    parse_hole_input,
    parse_partial_hole_input,
    resolve_hole,
    validate_hole_number,
)
from matchplay.models import BEST_BALL, HALVED, SCRAMBLE, SHAMBLE, SIDE_A, SIDE_B, SINGLES, UNDECIDED

ZERO = [0] * 18


def _strokes(hole_number: int, value: int) -> list[int]:
    strokes = [0] * 18
    strokes[hole_number - 1] = value
    return strokes


def test_scramble_lower_gross_wins():
    outcome = resolve_hole(SCRAMBLE, {"teamAGross": 4, "teamBGross": 5}, [ZERO], [ZERO], 1)
    assert outcome.winner == SIDE_A
    assert outcome.net_a == 4
    assert outcome.net_b == 5


def test_scramble_ignores_stroke_allowance():
    outcome = resolve_hole(
        SCRAMBLE,
        {"teamAGross": 4, "teamBGross": 4},
        [_strokes(3, 1)],
        [ZERO],
        3,
    )
    assert outcome.winner == HALVED


def test_singles_applies_allowance_for_the_hole():
    outcome = resolve_hole(
        SINGLES,
        {"teamAPlayerGross": 5, "teamBPlayerGross": 5},
        [_strokes(7, 1)],
        [ZERO],
        7,
    )
    assert outcome.winner == SIDE_A
    assert outcome.net_a == 4

    other_hole = resolve_hole(
        SINGLES,
        {"teamAPlayerGross": 5, "teamBPlayerGross": 5},
        [_strokes(7, 1)],
        [ZERO],
        8,
    )
    assert other_hole.winner == HALVED


def test_singles_missing_gross_is_undecided():
    outcome = resolve_hole(SINGLES, {"teamAPlayerGross": 4, "teamBPlayerGross": None}, [ZERO], [ZERO], 1)
    assert outcome.winner == UNDECIDED
    assert not outcome.resolved


def test_best_ball_takes_lowest_net_per_side():
    outcome = resolve_hole(
        BEST_BALL,
        {"teamAPlayersGross": [6, 5], "teamBPlayersGross": [5, 6]},
        [_strokes(2, 1), ZERO],
        [ZERO, ZERO],
        2,
    )
    assert outcome.net_a == 5
    assert outcome.net_b == 5
    assert outcome.winner == HALVED

    outcome = resolve_hole(
        BEST_BALL,
        {"teamAPlayersGross": [5, 6], "teamBPlayersGross": [5, 6]},
        [_strokes(2, 1), ZERO],
        [ZERO, ZERO],
        2,
    )
    assert outcome.net_a == 4
    assert outcome.winner == SIDE_A


def test_shamble_counts_only_recorded_players():
    outcome = resolve_hole(
        SHAMBLE,
        {"teamAPlayersGross": [None, 4], "teamBPlayersGross": [5, None]},
        [ZERO, ZERO],
        [ZERO, ZERO],
        1,
    )
    assert outcome.winner == SIDE_A


def test_best_ball_side_without_scores_is_undecided():
    outcome = resolve_hole(
        BEST_BALL,
        {"teamAPlayersGross": [4, 5], "teamBPlayersGross": [None, None]},
        [ZERO, ZERO],
        [ZERO, ZERO],
        1,
    )
    assert outcome.winner == UNDECIDED


def test_short_allowance_array_fails_open():
    outcome = resolve_hole(
        SINGLES,
        {"teamAPlayerGross": 4, "teamBPlayerGross": 5},
        [[0] * 10],
        [ZERO],
        12,
    )
    assert outcome.winner == UNDECIDED


def test_malformed_snapshot_fails_open():
    assert resolve_hole(SINGLES, {"teamAPlayerGross": "four"}, [ZERO], [ZERO], 1).winner == UNDECIDED
    assert resolve_hole(SINGLES, {"teamAGross": 4, "teamBGross": 5}, [ZERO], [ZERO], 1).winner == UNDECIDED
    assert resolve_hole(SINGLES, ["not", "a", "dict"], [ZERO], [ZERO], 1).winner == UNDECIDED
    assert resolve_hole("fourball", {"teamAGross": 4}, [ZERO], [ZERO], 1).winner == UNDECIDED
    assert resolve_hole(SINGLES, None, [ZERO], [ZERO], 1).winner == UNDECIDED


def test_best_ball_score_without_matching_player_is_undecided():
    outcome = resolve_hole(
        BEST_BALL,
        {"teamAPlayersGross": [4, 3], "teamBPlayersGross": [5]},
        [ZERO],
        [ZERO],
        1,
    )
    assert outcome.winner == UNDECIDED


def test_normalize_format_accepts_legacy_tags():
    assert normalize_format("twoManBestBall") == BEST_BALL
    assert normalize_format("twoManShamble") == SHAMBLE
    assert normalize_format("twoManScramble") == SCRAMBLE
    assert normalize_format(SINGLES) == SINGLES
    with pytest.raises(RecoverableInputError):
        normalize_format("stableford")


@pytest.mark.parametrize("hole_number", [0, 19, -1, True, "3"])
def test_validate_hole_number_rejects_out_of_range(hole_number):
    with pytest.raises(RecoverableInputError):
        validate_hole_number(hole_number)


def test_parse_hole_input_rejects_shape_mismatch():
    with pytest.raises(RecoverableInputError):
        parse_hole_input(SCRAMBLE, {"teamAPlayerGross": 4})
    with pytest.raises(RecoverableInputError):
        parse_hole_input(SINGLES, {"teamAPlayerGross": 0})
    with pytest.raises(RecoverableInputError):
        parse_hole_input(BEST_BALL, {"teamAPlayersGross": [4, 5, 6]})
    with pytest.raises(RecoverableInputError):
        parse_hole_input(SINGLES, "4")


def test_parse_partial_hole_input_keeps_only_sent_fields():
    assert parse_partial_hole_input(SCRAMBLE, {"teamAGross": 4}) == {"teamAGross": 4}
    assert parse_partial_hole_input(SINGLES, {"teamBPlayerGross": None}) == {"teamBPlayerGross": None}
    assert parse_partial_hole_input(BEST_BALL, {"teamAPlayersGross": [4, None]}) == {
        "teamAPlayersGross": [4, None]
    }
    with pytest.raises(RecoverableInputError):
        parse_partial_hole_input(SINGLES, {})
