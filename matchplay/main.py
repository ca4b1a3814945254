import logging
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ValidationError

from matchplay.db import (
    apply_hole_edit,
    ensure_schema,
    fetch_active_tournament,
    fetch_match,
    fetch_matches_for_round,
    fetch_matches_for_tournament,
    fetch_players,
    fetch_round,
    fetch_rounds_for_tournament,
    fetch_tournament,
    set_round_locked,
    store_match_status,
)
from matchplay.errors import HoleLockedError, MissingReference, RecoverableInputError
from matchplay.holes import parse_partial_hole_input, validate_hole_number
from matchplay.locks import editable_holes, lock_reason
from matchplay.models import HOLE_NUMBERS, Match, MatchStatus, Round, Tournament
from matchplay.scoring import (
    compute_match_status,
    hole_outcomes,
    match_result,
    outcome_label,
    status_label,
)
from matchplay.seed import match_display
from matchplay.settings import load_settings
from matchplay.standings import aggregate, player_records, team_rosters

logger = logging.getLogger(__name__)

app = FastAPI()
settings = load_settings()


class LockPayload(BaseModel):
    locked: bool
    pin: str


def _team_names(tournament: Tournament | None) -> tuple[str, str]:
    if not tournament:
        return "Team A", "Team B"
    return tournament.team_a.name, tournament.team_b.name


def _status_payload(status: MatchStatus, tournament: Tournament | None = None) -> dict:
    team_a, team_b = _team_names(tournament)
    payload = asdict(status)
    payload["label"] = status_label(status, team_a, team_b)
    payload["result"] = match_result(status)
    return payload


def _match_summary(match: Match, round_: Round | None, tournament: Tournament | None, players: dict) -> dict:
    status = compute_match_status(match, round_)
    return {
        "id": match.id,
        "round_id": match.round_id,
        "display": match_display(match, players),
        "points_value": match.points_value,
        "status": _status_payload(status, tournament),
    }


def _match_detail(match: Match, round_: Round | None, tournament: Tournament | None) -> dict:
    status = compute_match_status(match, round_)
    editable = set(editable_holes(round_, match))
    outcomes = {o.hole_number: o for o in hole_outcomes(match, round_.format)} if round_ else {}
    holes = []
    for number in HOLE_NUMBERS:
        outcome = outcomes.get(number)
        holes.append(
            {
                "hole_number": number,
                "input": match.holes.get(number) or {},
                "net_a": outcome.net_a if outcome else None,
                "net_b": outcome.net_b if outcome else None,
                "result": outcome_label(outcome) if outcome else "—",
                "editable": number in editable,
            }
        )
    return {
        "match": {
            "id": match.id,
            "round_id": match.round_id,
            "points_value": match.points_value,
            "team_a_players": [p.player_id for p in match.team_a_players],
            "team_b_players": [p.player_id for p in match.team_b_players],
        },
        "format": round_.format if round_ else None,
        "round_locked": round_.locked if round_ else None,
        "status": _status_payload(status, tournament),
        "holes": holes,
    }


def _round_listing(rounds: list[Round], matches: list[Match], tournament: Tournament, players: dict) -> list[dict]:
    by_round: dict[str, list[Match]] = {}
    for match in matches:
        by_round.setdefault(match.round_id, []).append(match)
    return [
        {
            "round": asdict(round_),
            "matches": [_match_summary(m, round_, tournament, players) for m in by_round.get(round_.id, [])],
        }
        for round_ in rounds
    ]


def _standings_payload(tournament: Tournament) -> dict:
    round_list = fetch_rounds_for_tournament(settings.database_url, tournament.id)
    rounds = {r.id: r for r in round_list}
    matches = fetch_matches_for_tournament(settings.database_url, tournament.id)
    players = fetch_players(settings.database_url)
    snapshot = aggregate(matches, rounds, tournament_id=tournament.id)
    team_a, team_b = _team_names(tournament)
    return {
        "tournament": {"id": tournament.id, "name": tournament.name},
        "teams": {
            "A": {"name": team_a, "color": tournament.team_a.color},
            "B": {"name": team_b, "color": tournament.team_b.color},
        },
        **snapshot.as_dict(),
        "rounds": _round_listing(round_list, matches, tournament, players),
        "players": player_records(matches, rounds, tournament_id=tournament.id),
    }


def _teams_payload(tournament: Tournament) -> dict:
    rounds = {r.id: r for r in fetch_rounds_for_tournament(settings.database_url, tournament.id)}
    matches = fetch_matches_for_tournament(settings.database_url, tournament.id)
    records = player_records(matches, rounds, tournament_id=tournament.id)
    return {
        "tournament": {"id": tournament.id, "name": tournament.name},
        "teams": team_rosters(tournament, fetch_players(settings.database_url), records),
    }


def _tournament_for(match: Match, round_: Round | None) -> Tournament | None:
    tournament_id = match.tournament_id or (round_.tournament_id if round_ else None)
    return fetch_tournament(settings.database_url, tournament_id) if tournament_id else None


def _load_match_and_round(match_id: str) -> tuple[Match, Round]:
    match = fetch_match(settings.database_url, match_id)
    if not match:
        raise MissingReference("match", match_id)
    round_ = fetch_round(settings.database_url, match.round_id) if match.round_id else None
    if not round_:
        raise MissingReference("round", match.round_id)
    return match, round_


def _edit_hole(match_id: str, hole_number: int, raw_input) -> tuple[Match, Round, MatchStatus]:
    match, round_ = _load_match_and_round(match_id)
    validate_hole_number(hole_number)
    partial = parse_partial_hole_input(round_.format, raw_input)
    reason = lock_reason(round_, match, hole_number)
    if reason:
        raise HoleLockedError(match.id, hole_number, reason)
    # Checked again with the match and round rows locked for the write.
    apply_hole_edit(
        settings.database_url,
        match.id,
        hole_number,
        partial,
        check=lambda current_round, current_match: lock_reason(current_round, current_match, hole_number),
    )
    # Recompute from whatever is durable now, not from the pre-edit snapshot.
    updated = fetch_match(settings.database_url, match.id) or match
    status = compute_match_status(updated, round_)
    store_match_status(settings.database_url, match.id, asdict(status))
    logger.info(
        "Hole %s of match %s updated; status %s thru %s",
        hole_number,
        match.id,
        status.state,
        status.thru,
    )
    return updated, round_, status


@app.on_event("startup")
def startup() -> None:
    ensure_schema(settings.database_url)


@app.get("/", response_class=RedirectResponse)
async def index():
    return RedirectResponse(url="/api/standings")


@app.get("/api/standings")
async def api_active_standings():
    tournament = fetch_active_tournament(settings.database_url)
    if not tournament:
        raise HTTPException(status_code=404, detail="No active tournament")
    return _standings_payload(tournament)


@app.get("/api/tournaments/{tournament_id}/standings")
async def api_tournament_standings(tournament_id: str):
    tournament = fetch_tournament(settings.database_url, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return _standings_payload(tournament)


@app.get("/api/teams")
async def api_active_teams():
    tournament = fetch_active_tournament(settings.database_url)
    if not tournament:
        raise HTTPException(status_code=404, detail="No active tournament")
    return _teams_payload(tournament)


@app.get("/api/tournaments/{tournament_id}/teams")
async def api_tournament_teams(tournament_id: str):
    tournament = fetch_tournament(settings.database_url, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return _teams_payload(tournament)


@app.get("/api/rounds/{round_id}")
async def api_round(round_id: str):
    round_ = fetch_round(settings.database_url, round_id)
    if not round_:
        raise HTTPException(status_code=404, detail="Round not found")
    tournament = (
        fetch_tournament(settings.database_url, round_.tournament_id)
        if round_.tournament_id
        else None
    )
    players = fetch_players(settings.database_url)
    matches = fetch_matches_for_round(settings.database_url, round_id)
    snapshot = aggregate(matches, {round_.id: round_})
    return {
        "round": asdict(round_),
        "matches": [_match_summary(m, round_, tournament, players) for m in matches],
        **snapshot.as_dict(),
    }


@app.get("/api/matches/{match_id}")
async def api_match(match_id: str):
    match = fetch_match(settings.database_url, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    round_ = fetch_round(settings.database_url, match.round_id) if match.round_id else None
    return _match_detail(match, round_, _tournament_for(match, round_))


@app.post("/api/matches/{match_id}/holes/{hole_number}")
async def api_edit_hole(match_id: str, hole_number: int, request: Request):
    try:
        raw_input = await request.json()
    except ValueError:
        return JSONResponse({"error": "Invalid payload"}, status_code=422)
    try:
        match, round_, status = _edit_hole(match_id, hole_number, raw_input)
    except RecoverableInputError as exc:
        logger.info("Rejected edit to hole %s of match %s: %s", hole_number, match_id, exc)
        return JSONResponse({"error": "Invalid hole input", "details": str(exc)}, status_code=422)
    except HoleLockedError as exc:
        logger.info("Rejected edit: %s", exc)
        return JSONResponse({"error": "Hole locked", "reason": exc.reason}, status_code=423)
    except MissingReference as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {
        "match_id": match.id,
        "hole_number": hole_number,
        "input": match.holes.get(hole_number) or {},
        "status": _status_payload(status, _tournament_for(match, round_)),
        "editable_holes": editable_holes(round_, match),
    }


@app.post("/api/rounds/{round_id}/lock")
async def api_lock_round(round_id: str, request: Request):
    try:
        payload = LockPayload.model_validate(await request.json())
    except (ValidationError, ValueError) as exc:
        details = exc.errors() if isinstance(exc, ValidationError) else str(exc)
        return JSONResponse({"error": "Invalid payload", "details": details}, status_code=422)

    if payload.pin != settings.scoring_pin:
        return JSONResponse({"error": "Invalid PIN"}, status_code=403)

    if not set_round_locked(settings.database_url, round_id, payload.locked):
        raise HTTPException(status_code=404, detail="Round not found")
    logger.info("Round %s %s", round_id, "locked" if payload.locked else "unlocked")
    return {"round_id": round_id, "locked": payload.locked}
