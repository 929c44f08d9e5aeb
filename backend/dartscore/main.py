from __future__ import annotations

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from dartscore.config import get_settings
from dartscore.scoring.checkout import CheckoutRoute, get_checkout_suggestion, warm_checkout_tables
from dartscore.scoring.errors import (
    InvalidDartError,
    LegAlreadyFinishedError,
    LegNotFoundError,
    TurnNotFoundError,
    UnsupportedPlayerCountError,
)
from dartscore.scoring.game import Dart, MatchConfig, MatchMode, Turn
from dartscore.scoring.stats import LegStats
from dartscore.scoring.store import get_store
from dartscore.scoring.turns import CricketPlayerState, LegState, ScoringService
from dartscore.scoring.x01 import X01PlayerState

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Darts Scoring")
store = get_store()
service = ScoringService(store)

# Both checkout tables are built once, up front, and only read afterwards.
warm_checkout_tables()


@app.get("/", include_in_schema=False)
def root(request: Request):
    # If a browser hits the root, take them to Swagger UI.
    # Keep the JSON response for API clients (e.g. curl, fetch).
    accept = (request.headers.get("accept") or "").lower()
    if "text/html" in accept:
        return RedirectResponse(url="/docs")
    return {
        "name": "Darts Scoring",
        "docs": "/docs",
        "health": "/health",
        "endpoints": [
            "POST /matches",
            "GET /legs/{leg_id}",
            "GET /legs/{leg_id}/summary",
            "POST /legs/{leg_id}/turns",
            "POST /turns/{turn_id}/undo",
            "GET /checkout?remaining=<int>&double_out=<bool>",
        ],
    }


@app.get("/health")
def health():
    return {"status": "ok"}


class DartDTO(BaseModel):
    multiplier: int = Field(..., ge=1, le=3, description="1=single, 2=double, 3=triple")
    segment: int = Field(..., ge=1, le=50, description="1-20, 25=outer bull, 50=inner bull")


class ThrowDTO(DartDTO):
    score_value: int


class SubmitTurnRequest(BaseModel):
    darts: list[DartDTO] = Field(default_factory=list, description="1 to 3 darts in a turn")


class CreateMatchRequest(BaseModel):
    mode: MatchMode = Field(default=MatchMode.X01)
    target_score: int | None = Field(default=None, gt=0, le=10001)
    double_out: bool = Field(default=True)
    player_ids: list[int] = Field(..., description="Exactly two player ids, in throwing order")
    starting_player_id: int | None = Field(default=None)


class MatchDTO(BaseModel):
    match_id: int
    leg_id: int
    mode: MatchMode
    target_score: int
    double_out: bool
    player_ids: list[int]
    starting_player_id: int
    status: str


class TurnDTO(BaseModel):
    turn_id: int
    turn_number: int
    player_id: int
    total_scored: int
    was_bust: bool
    darts: list[ThrowDTO]


class TurnOutcomeDTO(BaseModel):
    total_scored: int
    was_bust: bool
    did_finish: bool


class X01PlayerStateDTO(BaseModel):
    player_id: int
    remaining: int
    three_dart_average: float


class CricketPlayerStateDTO(BaseModel):
    player_id: int
    n15: int
    n16: int
    n17: int
    n18: int
    n19: int
    n20: int
    bull_marks: int
    points: int


class LegStateDTO(BaseModel):
    leg_id: int
    leg_number: int
    mode: MatchMode
    starting_player_id: int
    active_player_id: int | None
    winner_player_id: int | None
    finished_at: datetime | None
    turns: list[TurnDTO]
    x01_state: list[X01PlayerStateDTO] | None
    cricket_state: list[CricketPlayerStateDTO] | None
    last_outcome: TurnOutcomeDTO | None


class PlayerLegStatsDTO(BaseModel):
    player_id: int
    turns: int
    darts_thrown: int
    scored_points: int
    busts: int
    highest_turn: int | None
    count_180: int | None
    count_140_plus: int | None
    count_100_plus: int | None
    three_dart_average: float
    marks_per_round: float
    remaining: int | None
    cricket_points: int | None


class LegSummaryDTO(BaseModel):
    leg_id: int
    turns: list[TurnDTO]
    players: list[PlayerLegStatsDTO]


class CheckoutRouteDTO(BaseModel):
    darts: list[DartDTO]
    total: int
    route: list[str]


class CheckoutResponseDTO(BaseModel):
    remaining: int
    double_out: bool
    finishable: bool
    note: str
    suggestions: list[CheckoutRouteDTO]


def _dto_to_darts(darts: list[DartDTO]) -> list[tuple[int, int]]:
    return [(d.multiplier, d.segment) for d in darts]


def _throw_to_dto(d: Dart) -> ThrowDTO:
    return ThrowDTO(multiplier=d.multiplier, segment=d.segment, score_value=d.score_value)


def _turn_to_dto(t: Turn) -> TurnDTO:
    return TurnDTO(
        turn_id=t.turn_id,
        turn_number=t.turn_number,
        player_id=t.player_id,
        total_scored=t.total_scored,
        was_bust=t.was_bust,
        darts=[_throw_to_dto(d) for d in t.darts],
    )


def _x01_to_dto(p: X01PlayerState) -> X01PlayerStateDTO:
    return X01PlayerStateDTO(
        player_id=p.player_id, remaining=p.remaining, three_dart_average=p.three_dart_average
    )


def _cricket_to_dto(p: CricketPlayerState) -> CricketPlayerStateDTO:
    return CricketPlayerStateDTO(
        player_id=p.player_id,
        n15=p.marks[15],
        n16=p.marks[16],
        n17=p.marks[17],
        n18=p.marks[18],
        n19=p.marks[19],
        n20=p.marks[20],
        bull_marks=p.marks[25],
        points=p.points,
    )


def _state_to_dto(s: LegState) -> LegStateDTO:
    return LegStateDTO(
        leg_id=s.leg_id,
        leg_number=s.leg_number,
        mode=s.mode,
        starting_player_id=s.starting_player_id,
        active_player_id=s.active_player_id,
        winner_player_id=s.winner_player_id,
        finished_at=s.finished_at,
        turns=[_turn_to_dto(t) for t in s.turns],
        x01_state=[_x01_to_dto(p) for p in s.x01_state] if s.x01_state is not None else None,
        cricket_state=(
            [_cricket_to_dto(p) for p in s.cricket_state] if s.cricket_state is not None else None
        ),
        last_outcome=(
            TurnOutcomeDTO(
                total_scored=s.last_outcome.total_scored,
                was_bust=s.last_outcome.was_bust,
                did_finish=s.last_outcome.did_finish,
            )
            if s.last_outcome is not None
            else None
        ),
    )


def _stats_to_dto(p: LegStats) -> PlayerLegStatsDTO:
    return PlayerLegStatsDTO(
        player_id=p.player_id,
        turns=p.turns,
        darts_thrown=p.darts_thrown,
        scored_points=p.scored_points,
        busts=p.busts,
        highest_turn=p.highest_turn,
        count_180=p.count_180,
        count_140_plus=p.count_140_plus,
        count_100_plus=p.count_100_plus,
        three_dart_average=p.three_dart_average,
        marks_per_round=p.marks_per_round,
        remaining=p.remaining,
        cricket_points=p.cricket_points,
    )


def _route_to_dto(r: CheckoutRoute) -> CheckoutRouteDTO:
    return CheckoutRouteDTO(
        darts=[DartDTO(multiplier=d.multiplier, segment=d.segment) for d in r.darts],
        total=r.total,
        route=r.as_strings(),
    )


@app.post("/matches", response_model=MatchDTO, status_code=201)
def create_match(req: CreateMatchRequest) -> MatchDTO:
    player_ids = list(dict.fromkeys(req.player_ids))
    if len(player_ids) != 2:
        raise HTTPException(status_code=422, detail="exactly two distinct players are required")

    try:
        if req.mode == MatchMode.CRICKET:
            config = MatchConfig.cricket()
        else:
            config = MatchConfig(
                mode=MatchMode.X01,
                target_score=req.target_score or settings.default_target_score,
                double_out=req.double_out,
            )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    match, leg = store.create_match(
        player_ids=player_ids, config=config, starting_player_id=req.starting_player_id
    )
    logger.info("Match %s created (%s), leg %s", match.match_id, config.mode.value, leg.leg_id)
    return MatchDTO(
        match_id=match.match_id,
        leg_id=leg.leg_id,
        mode=match.config.mode,
        target_score=match.config.target_score,
        double_out=match.config.double_out,
        player_ids=list(match.player_ids),
        starting_player_id=leg.starting_player_id,
        status=match.status.value,
    )


@app.get("/legs/{leg_id}", response_model=LegStateDTO)
def get_leg_state(leg_id: int) -> LegStateDTO:
    try:
        state = service.get_leg_state(leg_id)
    except LegNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _state_to_dto(state)


@app.get("/legs/{leg_id}/summary", response_model=LegSummaryDTO)
def get_leg_summary(leg_id: int) -> LegSummaryDTO:
    try:
        summary = service.get_leg_summary(leg_id)
    except LegNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return LegSummaryDTO(
        leg_id=summary.leg_id,
        turns=[_turn_to_dto(t) for t in summary.turns],
        players=[_stats_to_dto(p) for p in summary.players],
    )


@app.post("/legs/{leg_id}/turns", response_model=LegStateDTO)
def submit_turn(leg_id: int, req: SubmitTurnRequest) -> LegStateDTO:
    try:
        with store.lock:
            state = service.record_turn(leg_id, _dto_to_darts(req.darts))
    except InvalidDartError as e:
        logger.warning("Rejected turn on leg %s: %s", leg_id, e)
        raise HTTPException(status_code=422, detail=str(e)) from e
    except LegNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except LegAlreadyFinishedError as e:
        logger.warning("Rejected turn on leg %s: %s", leg_id, e)
        raise HTTPException(status_code=409, detail=str(e)) from e
    except UnsupportedPlayerCountError as e:
        logger.error("Leg %s cannot be scored: %s", leg_id, e)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return _state_to_dto(state)


@app.post("/turns/{turn_id}/undo", response_model=LegStateDTO)
def undo_turn(turn_id: int) -> LegStateDTO:
    try:
        with store.lock:
            state = service.undo_turn(turn_id)
    except TurnNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except UnsupportedPlayerCountError as e:
        logger.error("Turn %s cannot be undone: %s", turn_id, e)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return _state_to_dto(state)


@app.get("/checkout", response_model=CheckoutResponseDTO)
def checkout_suggestions(remaining: int, double_out: bool = True) -> CheckoutResponseDTO:
    suggestion = get_checkout_suggestion(remaining, double_out, limit=settings.checkout_limit)
    return CheckoutResponseDTO(
        remaining=suggestion.remaining,
        double_out=suggestion.double_out,
        finishable=suggestion.finishable,
        note=suggestion.note,
        suggestions=[_route_to_dto(r) for r in suggestion.routes],
    )
