"""
REST API for team splitting, quick matches and round-robin tournaments.
Thin, stateless wrappers around the service layer: the caller sends the roster
or tournament state and gets the computed result back. Nothing is stored.
"""
from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from teambalance import __version__
from teambalance.config import configure_logging
from teambalance.models import (
    Competitor,
    CompetitorKind,
    Gender,
    MatchPlayer,
    MatchType,
    Player,
    QuickMatch,
    TournamentData,
    TournamentMatch,
)
from teambalance.services.matchmaking import record_match_result, suggest_balanced_match, team_points
from teambalance.services.pairing import InvalidPairError, create_pair, first_playable_match_type
from teambalance.services.scheduling import generate_round_robin_schedule, generate_schedule_fixtures
from teambalance.services.standings import calculate_standings
from teambalance.services.team_balancer import split_teams
from teambalance.services.tournament_service import (
    MatchNotFoundError,
    create_tournament,
    record_tournament_match_result,
)

logger = logging.getLogger(__name__)


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Team Balance API",
    description="Balanced team splits and round-robin tournaments",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request/Response models ----------

MAX_TEAMS = 26


class PlayerIn(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    gender: Gender
    skill_level: int = Field(5, description="Clamped to 1-10")
    team: str | None = None
    is_active: bool = True

    def to_player(self) -> Player:
        return Player(
            id=self.id,
            name=self.name,
            gender=self.gender,
            skill_level=self.skill_level,
            team=self.team,
            is_active=self.is_active,
        )

    def to_match_player(self) -> MatchPlayer:
        return MatchPlayer(id=self.id, name=self.name, gender=self.gender, skill_level=self.skill_level)


class PairIn(BaseModel):
    id: str | None = Field(None, description="Synthetic id derived from members when omitted")
    name: str | None = Field(None, max_length=100)
    players: list[PlayerIn] = Field(..., min_length=2, max_length=2)


class CompetitorIn(BaseModel):
    kind: CompetitorKind = CompetitorKind.PLAYER
    id: str = Field(..., min_length=1)
    label: str | None = None
    members: list[PlayerIn] = Field(..., min_length=1, max_length=2)

    def to_competitor(self) -> Competitor:
        return Competitor(
            kind=self.kind,
            id=self.id,
            members=tuple(m.to_match_player() for m in self.members),
            label=self.label,
        )


class SplitRequest(BaseModel):
    players: list[PlayerIn]
    team_count: int = Field(2, le=MAX_TEAMS, description="Values below 2 are treated as 2")


class CreatePairRequest(BaseModel):
    match_type: MatchType
    pair: PairIn


class CreateTournamentRequest(BaseModel):
    players: list[PlayerIn] | None = Field(None, description="Singles entrants")
    pairs: list[PairIn] | None = Field(None, description="Doubles entrants")
    match_type: MatchType | None = Field(None, description="Inferred from entrants when omitted")


class ScheduleRequest(BaseModel):
    competitors: list[CompetitorIn]


class StandingsRequest(BaseModel):
    competitors: list[CompetitorIn]
    schedule: list[list[dict[str, Any]]]


class RecordResultRequest(BaseModel):
    tournament: dict[str, Any]
    match_id: str = Field(..., min_length=1)
    score_a: int = Field(..., ge=0)
    score_b: int = Field(..., ge=0)


class SuggestMatchRequest(BaseModel):
    players: list[PlayerIn]
    match_type: MatchType
    team_mode: bool = False
    seed: int | None = Field(None, description="Random pick among balanced lineups; omitted gives the closest lineup")


class RecordQuickMatchRequest(BaseModel):
    matches: list[dict[str, Any]]
    players: list[PlayerIn] = Field(default_factory=list, description="Roster used for team points")
    match_id: str = Field(..., min_length=1)
    score_a: int = Field(..., ge=0)
    score_b: int = Field(..., ge=0)


def _pair_competitor(pair: PairIn, match_type: MatchType | None) -> Competitor:
    first, second = (p.to_match_player() for p in pair.players)
    try:
        return create_pair(first, second, match_type=match_type, pair_id=pair.id, name=pair.name)
    except InvalidPairError as e:
        logger.info("Rejected pair %s: %s", pair.id or "(unnamed)", e)
        raise HTTPException(status_code=400, detail=str(e))


def _parse_schedule(raw: list[list[dict[str, Any]]]) -> list[list[TournamentMatch]]:
    try:
        return [[TournamentMatch.from_dict(m) for m in rnd] for rnd in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid schedule: {e}")


def _parse_quick_matches(raw: list[dict[str, Any]]) -> list[QuickMatch]:
    try:
        return [QuickMatch.from_dict(m) for m in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid matches: {e}")


# ---------- Endpoints ----------


@app.get("/")
def root() -> dict[str, Any]:
    """Health check."""
    return {"status": "ok", "service": "teambalance", "version": __version__}


@app.post("/teams/split")
def post_split_teams(req: SplitRequest) -> dict[str, Any]:
    """Split active players into balanced teams; inactive players go to the bench."""
    result = split_teams([p.to_player() for p in req.players], req.team_count)
    return result.to_dict()


@app.post("/matches/suggest")
def post_suggest_match(req: SuggestMatchRequest) -> dict[str, Any]:
    """Auto-balanced quick match for the given match type."""
    rng = random.Random(req.seed) if req.seed is not None else None
    match = suggest_balanced_match(
        [p.to_player() for p in req.players], req.match_type, team_mode=req.team_mode, rng=rng
    )
    if match is None:
        raise HTTPException(status_code=400, detail=f"Not enough eligible players for {req.match_type.value}")
    return match.to_dict()


@app.post("/matches/result")
def post_record_quick_match(req: RecordQuickMatchRequest) -> dict[str, Any]:
    """Record a quick match score; returns the matches and recomputed team points."""
    try:
        matches = record_match_result(
            _parse_quick_matches(req.matches), req.match_id, req.score_a, req.score_b, strict=True
        )
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "matches": [m.to_dict() for m in matches],
        "team_points": team_points(matches, [p.to_player() for p in req.players]),
    }


@app.post("/pairs")
def post_create_pair(req: CreatePairRequest) -> dict[str, Any]:
    """Validate two players as a pair for the given doubles match type."""
    return _pair_competitor(req.pair, req.match_type).to_dict()


@app.post("/tournaments")
def post_create_tournament(req: CreateTournamentRequest) -> dict[str, Any]:
    """
    Create a round-robin tournament from players (singles) or pairs (doubles).
    Exactly one of players / pairs must be given.
    """
    if bool(req.players) == bool(req.pairs):
        raise HTTPException(status_code=400, detail="Provide either players or pairs")
    if req.players:
        entrants: list[Player | Competitor] = [p.to_player() for p in req.players]
        if req.match_type is not None and req.match_type.players_per_side != 1:
            raise HTTPException(status_code=400, detail=f"{req.match_type.value} needs pairs, not players")
    else:
        entrants = [_pair_competitor(p, req.match_type) for p in req.pairs or []]
    tournament = create_tournament(entrants, match_type=req.match_type)
    return tournament.to_dict()


@app.post("/tournaments/schedule")
def post_schedule(req: ScheduleRequest) -> dict[str, Any]:
    """Round-robin rounds for the given competitors, plus a flat fixture list that shows byes."""
    competitors = [c.to_competitor() for c in req.competitors]
    schedule = generate_round_robin_schedule(competitors)
    return {
        "rounds": [[m.to_dict() for m in rnd] for rnd in schedule],
        "fixtures": generate_schedule_fixtures(competitors),
    }


@app.post("/tournaments/standings")
def post_standings(req: StandingsRequest) -> dict[str, Any]:
    """Ranked table recomputed from the completed matches of a schedule."""
    competitors = [c.to_competitor() for c in req.competitors]
    standings = calculate_standings(competitors, _parse_schedule(req.schedule))
    return {"standings": [s.to_dict() for s in standings]}


@app.post("/tournaments/result")
def post_record_result(req: RecordResultRequest) -> dict[str, Any]:
    """Record or overwrite a match score; returns the recomputed tournament."""
    try:
        tournament = TournamentData.from_dict(req.tournament)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid tournament: {e}")
    try:
        updated = record_tournament_match_result(
            tournament, req.match_id, req.score_a, req.score_b, strict=True
        )
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return updated.to_dict()


@app.get("/match-types")
def get_match_types(male_count: int = 0, female_count: int = 0) -> dict[str, Any]:
    """Match types with player requirements, and the suggested type for a group."""
    return {
        "match_types": [
            {"id": t.value, "players_per_side": t.players_per_side} for t in MatchType
        ],
        "suggested": first_playable_match_type(male_count, female_count).value,
    }


# ---------- Run with: uvicorn teambalance.api:app --reload ----------
