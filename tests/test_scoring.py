import random
from dataclasses import replace

import pytest

from matchplay.errors import RecoverableInputError
from matchplay.models import (
    HALVED,
    SIDE_A,
    SIDE_B,
    SCRAMBLE,
    SINGLES,
    STATE_CLOSED,
    STATE_DORMIE,
    STATE_IN_PROGRESS,
    STATE_NOT_STARTED,
    STATE_UNKNOWN,
    UNDECIDED,
    HoleOutcome,
    Match,
    MatchPlayer,
    Round,
)
from matchplay.scoring import compute_match_status, compute_status, match_result, status_label

WINNERS = {"A": SIDE_A, "B": SIDE_B, "H": HALVED, "-": UNDECIDED}
SINGLES_SCORES = {"A": (3, 4), "B": (4, 3), "H": (4, 4)}


def _outcomes(sequence: str) -> list[HoleOutcome]:
    return [HoleOutcome(idx, WINNERS[code]) for idx, code in enumerate(sequence, start=1)]


def _singles_holes(sequence: str) -> dict[int, dict]:
    holes = {}
    for idx, code in enumerate(sequence, start=1):
        if code == "-":
            continue
        gross_a, gross_b = SINGLES_SCORES[code]
        holes[idx] = {"teamAPlayerGross": gross_a, "teamBPlayerGross": gross_b}
    return holes


def _singles_match(holes: dict[int, dict]) -> Match:
    return Match(
        id="m1",
        round_id="r1",
        team_a_players=(MatchPlayer("a1", tuple([0] * 18)),),
        team_b_players=(MatchPlayer("b1", tuple([0] * 18)),),
        holes=holes,
    )


SINGLES_ROUND = Round(id="r1", tournament_id="t1", format=SINGLES)


def test_not_started_match():
    status = compute_status([])
    assert status.thru == 0
    assert status.leader is None
    assert not status.closed
    assert status.closing_hole is None
    assert status.state == STATE_NOT_STARTED
    assert status_label(status) == "—"
    assert match_result(status)["winner"] is None


def test_closed_when_lead_exceeds_holes_left():
    status = compute_status(_outcomes("A" * 16))
    assert status.holes_won_a == 16
    assert status.holes_won_b == 0
    assert status.thru == 16
    assert status.margin == 16
    assert status.closed
    assert status.closing_hole == 10
    assert status.leader == SIDE_A
    assert status.state == STATE_CLOSED
    assert status_label(status, "Reds", "Blues") == "Reds 16&2"
    assert match_result(status) == {"winner": "teamA", "holes_won_a": 16, "holes_won_b": 0}


def test_dormie_before_close():
    early = compute_status(_outcomes("AAA"))
    assert early.margin == 3
    assert not early.closed
    assert not early.dormie

    status = compute_status(_outcomes("AAA" + "BBBBBB" + "AAAAAA"))
    assert status.thru == 15
    assert (status.holes_won_a, status.holes_won_b) == (9, 6)
    assert status.margin == 3
    assert status.dormie
    assert not status.closed
    assert status.state == STATE_DORMIE
    assert status_label(status) == "A 3 UP dormie thru 15"


def test_halved_holes_count_toward_thru_only():
    status = compute_status(_outcomes("HHA"))
    assert status.thru == 3
    assert status.holes_won_a == 1
    assert status.holes_won_b == 0
    assert status.margin == 1
    assert status_label(status) == "A 1 UP thru 3"


def test_all_square_after_eighteen_is_closed_tie():
    status = compute_status(_outcomes("AB" * 9))
    assert status.thru == 18
    assert status.closed
    assert status.closing_hole == 18
    assert status.leader is None
    assert status.margin == 0
    assert status_label(status) == "Halved"
    assert match_result(status)["winner"] == "AS"


def test_one_up_after_eighteen():
    status = compute_status(_outcomes("H" * 17 + "B"))
    assert status.closed
    assert status.closing_hole == 18
    assert status.leader == SIDE_B
    assert status_label(status) == "B 1 UP"


def test_gap_halts_progression():
    status = compute_status(_outcomes("AA-AAAAAAAAAAAAAAA"))
    assert status.thru == 2
    assert status.holes_won_a == 2
    assert not status.closed
    assert status.state == STATE_IN_PROGRESS


def test_missing_hole_halts_progression():
    outcomes = [HoleOutcome(1, SIDE_A), HoleOutcome(2, SIDE_B), HoleOutcome(4, SIDE_A)]
    status = compute_status(outcomes)
    assert status.thru == 2
    assert status.leader is None
    assert status_label(status) == "AS thru 2"


def test_duplicate_hole_outcomes_rejected():
    with pytest.raises(RecoverableInputError):
        compute_status([HoleOutcome(1, SIDE_A), HoleOutcome(1, SIDE_B)])


def test_closure_matches_margin_rule():
    rng = random.Random(7)
    for won_a in range(19):
        for won_b in range(19 - won_a):
            for halved in range(19 - won_a - won_b):
                codes = list("A" * won_a + "B" * won_b + "H" * halved)
                rng.shuffle(codes)
                status = compute_status(_outcomes("".join(codes)))
                thru = won_a + won_b + halved
                assert status.thru == thru
                expected = abs(won_a - won_b) > 18 - thru or thru == 18
                assert status.closed == expected
                if status.closed:
                    assert status.closing_hole <= thru
                else:
                    assert status.dormie == (status.margin > 0 and status.margin == 18 - thru)


def test_idempotent_recompute():
    match = _singles_match(_singles_holes("AHBAA-A"))
    first = compute_match_status(match, SINGLES_ROUND)
    second = compute_match_status(match, SINGLES_ROUND)
    assert first == second
    assert first.thru == 5


def test_edit_arrival_order_does_not_change_status():
    edits = list(_singles_holes("ABHAAHBBAAAAHH").items())
    expected = compute_match_status(_singles_match(dict(edits)), SINGLES_ROUND)
    rng = random.Random(11)
    for _ in range(25):
        shuffled = edits[:]
        rng.shuffle(shuffled)
        holes = {}
        for hole_number, hole_input in shuffled:
            holes[hole_number] = hole_input
        assert compute_match_status(_singles_match(holes), SINGLES_ROUND) == expected


def test_appending_next_hole_never_decreases_thru():
    holes = _singles_holes("AHB")
    before = compute_match_status(_singles_match(holes), SINGLES_ROUND)
    holes_with_gap = {**holes, 6: {"teamAPlayerGross": 4, "teamBPlayerGross": 5}}
    with_gap = compute_match_status(_singles_match(holes_with_gap), SINGLES_ROUND)
    assert with_gap.thru == before.thru
    filled = {**holes_with_gap, 4: {"teamAPlayerGross": 4, "teamBPlayerGross": 4}}
    after = compute_match_status(_singles_match(filled), SINGLES_ROUND)
    assert after.thru == 4
    assert after.thru >= before.thru


def test_reopen_after_correcting_an_earlier_hole():
    sequence = "H" * 12 + "AAHA"
    closed = compute_match_status(_singles_match(_singles_holes(sequence)), SINGLES_ROUND)
    assert closed.closed
    assert closed.closing_hole == 16
    assert closed.leader == SIDE_A
    assert status_label(closed) == "A 3&2"

    corrected = sequence[:13] + "B" + sequence[14:]
    reopened = compute_match_status(_singles_match(_singles_holes(corrected)), SINGLES_ROUND)
    assert not reopened.closed
    assert reopened.closing_hole is None
    assert reopened.thru == 16
    assert reopened.leader == SIDE_A
    assert reopened.margin == 1


def test_scramble_tie_is_halved():
    match = Match(id="m2", round_id="r2", holes={1: {"teamAGross": 4, "teamBGross": 4}})
    status = compute_match_status(match, Round(id="r2", tournament_id="t1", format=SCRAMBLE))
    assert status.thru == 1
    assert status.holes_won_a == 0
    assert status.holes_won_b == 0
    assert status.leader is None


def test_missing_round_gives_unknown_status():
    status = compute_match_status(_singles_match(_singles_holes("AAA")), None)
    assert status.state == STATE_UNKNOWN
    assert status_label(status) == "Unknown"
    assert match_result(status)["winner"] is None


def test_unknown_round_format_gives_unknown_status():
    bad_round = Round(id="r1", tournament_id="t1", format="skins")
    status = compute_match_status(_singles_match(_singles_holes("AAA")), bad_round)
    assert status.state == STATE_UNKNOWN


def test_missing_tournament_reference_gives_unknown_status():
    loose_round = Round(id="r1", tournament_id=None, format=SINGLES)
    status = compute_match_status(_singles_match(_singles_holes("A" * 10)), loose_round)
    assert status.state == STATE_UNKNOWN
    assert not status.closed

    claimed = replace(_singles_match(_singles_holes("A" * 10)), tournament_id="t1")
    assert compute_match_status(claimed, loose_round).state == STATE_CLOSED
