from typing import Any, Callable, Optional

import psycopg
from psycopg.types.json import Jsonb

from matchplay.errors import HoleLockedError, MissingReference
from matchplay.models import (
    MatchPlayer,
    Match,
    Player,
    Round,
    Team,
    Tournament,
)

SCHEMA_STATEMENTS = (
    """
    create table if not exists tournaments (
        id text primary key,
        name text not null,
        active boolean not null default false
    );
    """,
    """
    create table if not exists teams (
        id text primary key,
        tournament_id text not null references tournaments(id) on delete cascade,
        side text not null check (side in ('A', 'B')),
        name text not null,
        color text,
        roster_by_tier jsonb not null default '{}'::jsonb,
        unique (tournament_id, side)
    );
    """,
    """
    create table if not exists players (
        id text primary key,
        display_name text not null
    );
    """,
    """
    create table if not exists rounds (
        id text primary key,
        tournament_id text,
        day integer,
        format text not null,
        locked boolean not null default false
    );
    """,
    """
    create table if not exists matches (
        id text primary key,
        round_id text,
        tournament_id text,
        points_value double precision not null default 1,
        team_a_players jsonb not null default '[]'::jsonb,
        team_b_players jsonb not null default '[]'::jsonb,
        status jsonb,
        status_updated_at timestamptz
    );
    """,
    """
    create table if not exists hole_inputs (
        match_id text not null references matches(id) on delete cascade,
        hole_number integer not null check (hole_number between 1 and 18),
        input jsonb not null default '{}'::jsonb,
        updated_at timestamptz not null default now(),
        primary key (match_id, hole_number)
    );
    """,
)


def ensure_schema(database_url: str) -> None:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)


def _row_to_round(row: tuple) -> Round:
    return Round(
        id=row[0],
        tournament_id=row[1],
        day=row[2],
        format=row[3],
        locked=bool(row[4]),
    )


def fetch_round(database_url: str, round_id: str) -> Optional[Round]:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                select id, tournament_id, day, format, locked
                from rounds
                where id = %s;
                """,
                (round_id,),
            )
            row = cur.fetchone()
            return _row_to_round(row) if row else None


def fetch_rounds_for_tournament(database_url: str, tournament_id: str) -> list[Round]:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                select id, tournament_id, day, format, locked
                from rounds
                where tournament_id = %s
                order by coalesce(day, 0), id;
                """,
                (tournament_id,),
            )
            return [_row_to_round(row) for row in cur.fetchall()]


def _row_to_team(row: tuple) -> Team:
    roster = row[3] or {}
    return Team(
        id=row[0],
        name=row[1],
        color=row[2],
        roster_by_tier={tier: tuple(ids or []) for tier, ids in roster.items()},
    )


def _fetch_tournament_where(database_url: str, clause: str, params: tuple) -> Optional[Tournament]:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"""
                select id, name, active
                from tournaments
                where {clause}
                order by id
                limit 1;
                """,
                params,
            )
            row = cur.fetchone()
            if not row:
                return None
            cur.execute(
                """
                select side, id, name, color, roster_by_tier
                from teams
                where tournament_id = %s;
                """,
                (row[0],),
            )
            teams = {side: _row_to_team(rest) for side, *rest in cur.fetchall()}
    return Tournament(
        id=row[0],
        name=row[1],
        team_a=teams.get("A") or Team(id=f"{row[0]}-A", name="Team A"),
        team_b=teams.get("B") or Team(id=f"{row[0]}-B", name="Team B"),
        active=bool(row[2]),
    )


def fetch_tournament(database_url: str, tournament_id: str) -> Optional[Tournament]:
    return _fetch_tournament_where(database_url, "id = %s", (tournament_id,))


def fetch_active_tournament(database_url: str) -> Optional[Tournament]:
    return _fetch_tournament_where(database_url, "active", ())


def fetch_tournaments(database_url: str) -> list[dict]:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute("select id, name, active from tournaments order by id;")
            return [
                {"id": row[0], "name": row[1], "active": bool(row[2])}
                for row in cur.fetchall()
            ]


def fetch_players(database_url: str) -> dict[str, Player]:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute("select id, display_name from players order by id;")
            return {row[0]: Player(id=row[0], display_name=row[1]) for row in cur.fetchall()}


def _match_players(value: Any) -> tuple[MatchPlayer, ...]:
    players = []
    for entry in value or []:
        if not isinstance(entry, dict) or not entry.get("playerId"):
            continue
        strokes = entry.get("strokesReceived")
        players.append(
            MatchPlayer(
                player_id=str(entry["playerId"]),
                strokes_received=tuple(strokes) if isinstance(strokes, list) else (),
            )
        )
    return tuple(players)


def _match_players_json(players: tuple[MatchPlayer, ...]) -> Jsonb:
    return Jsonb(
        [
            {"playerId": player.player_id, "strokesReceived": list(player.strokes_received)}
            for player in players
        ]
    )


def _read_matches(cur: psycopg.Cursor, clause: str, params: tuple) -> list[Match]:
    cur.execute(
        f"""
        select m.id, m.round_id, m.tournament_id, m.points_value,
               m.team_a_players, m.team_b_players
        from matches m
        left join rounds r on r.id = m.round_id
        where {clause}
        order by m.id;
        """,
        params,
    )
    rows = cur.fetchall()
    if not rows:
        return []
    cur.execute(
        """
        select match_id, hole_number, input
        from hole_inputs
        where match_id = any(%s);
        """,
        ([row[0] for row in rows],),
    )
    holes: dict[str, dict[int, dict]] = {}
    for match_id, hole_number, hole_input in cur.fetchall():
        holes.setdefault(match_id, {})[hole_number] = hole_input
    return [
        Match(
            id=row[0],
            round_id=row[1],
            tournament_id=row[2],
            points_value=row[3] if row[3] is not None else 1,
            team_a_players=_match_players(row[4]),
            team_b_players=_match_players(row[5]),
            holes=holes.get(row[0], {}),
        )
        for row in rows
    ]


def _fetch_matches(database_url: str, clause: str, params: tuple) -> list[Match]:
    with psycopg.connect(database_url) as conn:
        # Match rows and their holes must come from one snapshot.
        conn.isolation_level = psycopg.IsolationLevel.REPEATABLE_READ
        with conn.cursor() as cur:
            return _read_matches(cur, clause, params)


def fetch_match(database_url: str, match_id: str) -> Optional[Match]:
    matches = _fetch_matches(database_url, "m.id = %s", (match_id,))
    return matches[0] if matches else None


def fetch_matches_for_round(database_url: str, round_id: str) -> list[Match]:
    return _fetch_matches(database_url, "m.round_id = %s", (round_id,))


def fetch_matches_for_tournament(database_url: str, tournament_id: str) -> list[Match]:
    return _fetch_matches(
        database_url,
        "coalesce(m.tournament_id, r.tournament_id) = %s",
        (tournament_id,),
    )


def apply_hole_edit(
    database_url: str,
    match_id: str,
    hole_number: int,
    partial_input: dict[str, Any],
    check: Optional[Callable[[Optional[Round], Match], Optional[str]]] = None,
) -> dict:
    """Merge the given fields into one hole's stored input; other fields keep their values.

    ``check`` sees the round and match as they stand while the match row is
    held for update and the round row for share, so a concurrent edit or
    round lock cannot slip in between. A returned reason aborts the write
    with ``HoleLockedError``.
    """
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            if check is not None:
                cur.execute("select round_id from matches where id = %s for update;", (match_id,))
                locked_row = cur.fetchone()
                if not locked_row:
                    raise MissingReference("match", match_id)
                round_ = None
                if locked_row[0]:
                    cur.execute(
                        """
                        select id, tournament_id, day, format, locked
                        from rounds
                        where id = %s
                        for share;
                        """,
                        (locked_row[0],),
                    )
                    round_row = cur.fetchone()
                    round_ = _row_to_round(round_row) if round_row else None
                current = _read_matches(cur, "m.id = %s", (match_id,))[0]
                reason = check(round_, current)
                if reason:
                    raise HoleLockedError(match_id, hole_number, reason)
            cur.execute(
                """
                insert into hole_inputs (match_id, hole_number, input)
                values (%s, %s, %s)
                on conflict (match_id, hole_number) do update
                    set input = hole_inputs.input || excluded.input,
                        updated_at = now()
                returning input;
                """,
                (match_id, hole_number, Jsonb(partial_input)),
            )
            row = cur.fetchone()
            return row[0] if row else {}


def store_match_status(database_url: str, match_id: str, status: dict) -> None:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                update matches
                set status = %s,
                    status_updated_at = now()
                where id = %s;
                """,
                (Jsonb(status), match_id),
            )


def set_round_locked(database_url: str, round_id: str, locked: bool) -> bool:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                update rounds
                set locked = %s
                where id = %s
                returning id;
                """,
                (locked, round_id),
            )
            return cur.fetchone() is not None


def upsert_tournament(database_url: str, tournament: Tournament) -> None:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into tournaments (id, name, active)
                values (%s, %s, %s)
                on conflict (id) do update
                    set name = excluded.name,
                        active = excluded.active;
                """,
                (tournament.id, tournament.name, tournament.active),
            )
            for side, team in (("A", tournament.team_a), ("B", tournament.team_b)):
                cur.execute(
                    """
                    insert into teams (id, tournament_id, side, name, color, roster_by_tier)
                    values (%s, %s, %s, %s, %s, %s)
                    on conflict (id) do update
                        set name = excluded.name,
                            color = excluded.color,
                            roster_by_tier = excluded.roster_by_tier;
                    """,
                    (
                        team.id,
                        tournament.id,
                        side,
                        team.name,
                        team.color,
                        Jsonb({tier: list(ids) for tier, ids in team.roster_by_tier.items()}),
                    ),
                )


def upsert_player(database_url: str, player: Player) -> None:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into players (id, display_name)
                values (%s, %s)
                on conflict (id) do update
                    set display_name = excluded.display_name;
                """,
                (player.id, player.display_name),
            )


def upsert_round(database_url: str, round_: Round) -> None:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into rounds (id, tournament_id, day, format, locked)
                values (%s, %s, %s, %s, %s)
                on conflict (id) do update
                    set tournament_id = excluded.tournament_id,
                        day = excluded.day,
                        format = excluded.format;
                """,
                (round_.id, round_.tournament_id, round_.day, round_.format, round_.locked),
            )


def insert_match(database_url: str, match: Match) -> bool:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into matches (
                    id,
                    round_id,
                    tournament_id,
                    points_value,
                    team_a_players,
                    team_b_players
                )
                values (%s, %s, %s, %s, %s, %s)
                on conflict (id) do nothing
                returning id;
                """,
                (
                    match.id,
                    match.round_id,
                    match.tournament_id,
                    match.points_value,
                    _match_players_json(match.team_a_players),
                    _match_players_json(match.team_b_players),
                ),
            )
            return cur.fetchone() is not None
