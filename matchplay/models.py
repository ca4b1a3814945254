from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

HOLE_COUNT = 18
HOLE_NUMBERS = tuple(range(1, HOLE_COUNT + 1))

BEST_BALL = "bestBall"
SHAMBLE = "shamble"
SCRAMBLE = "scramble"
SINGLES = "singles"
ROUND_FORMATS = (BEST_BALL, SHAMBLE, SCRAMBLE, SINGLES)

SIDE_A = "A"
SIDE_B = "B"
HALVED = "halved"
UNDECIDED = "undecided"

STATE_NOT_STARTED = "not_started"
STATE_IN_PROGRESS = "in_progress"
STATE_DORMIE = "dormie"
STATE_CLOSED = "closed"
STATE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class Player:
    id: str
    display_name: str


@dataclass(frozen=True)
class MatchPlayer:
    player_id: str
    strokes_received: tuple[int, ...] = ()


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    color: str | None = None
    roster_by_tier: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def player_ids(self) -> list[str]:
        return [pid for tier in sorted(self.roster_by_tier) for pid in self.roster_by_tier[tier]]


@dataclass(frozen=True)
class Tournament:
    id: str
    name: str
    team_a: Team
    team_b: Team
    active: bool = False


@dataclass(frozen=True)
class Round:
    id: str
    tournament_id: str | None
    format: str
    day: int | None = None
    locked: bool = False


@dataclass(frozen=True)
class Match:
    id: str
    round_id: str | None
    team_a_players: tuple[MatchPlayer, ...] = ()
    team_b_players: tuple[MatchPlayer, ...] = ()
    points_value: float = 1
    holes: dict[int, dict[str, Any]] = field(default_factory=dict)
    tournament_id: str | None = None


@dataclass(frozen=True)
class HoleOutcome:
    hole_number: int
    winner: str
    net_a: Optional[float] = None
    net_b: Optional[float] = None

    @property
    def resolved(self) -> bool:
        return self.winner != UNDECIDED


@dataclass(frozen=True)
class MatchStatus:
    leader: str | None = None
    margin: int = 0
    thru: int = 0
    dormie: bool = False
    closed: bool = False
    closing_hole: int | None = None
    holes_won_a: int = 0
    holes_won_b: int = 0
    state: str = STATE_NOT_STARTED


NOT_STARTED_STATUS = MatchStatus()
UNKNOWN_STATUS = MatchStatus(state=STATE_UNKNOWN)


@dataclass(frozen=True)
class StandingsSnapshot:
    finalized_a: float = 0.0
    finalized_b: float = 0.0
    projected_a: float = 0.0
    projected_b: float = 0.0

    @property
    def total(self) -> float:
        return self.finalized_a + self.finalized_b + self.projected_a + self.projected_b

    def as_dict(self) -> dict:
        return {
            "finalized": {SIDE_A: self.finalized_a, SIDE_B: self.finalized_b},
            "projected": {SIDE_A: self.projected_a, SIDE_B: self.projected_b},
        }
