"""Survey, Explore and Travel endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from frontier.api.routers.simulation import session_response
from frontier.api.schemas import (
    ActionOutcomeResponse,
    ActionRequest,
    ActionResultResponse,
    EnrollResponse,
    TravelRequest,
)
from frontier.core.outcomes import Action, ExploreAction, SurveyAction, TravelAction

router = APIRouter()


def _act(request: Request, session_id: str, action: Action | dict) -> dict:
    mgr = request.app.state.session_manager
    try:
        session, outcome = mgr.act(session_id, action)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"outcome": outcome.to_dict(), "session": session_response(session)}


@router.post("/{session_id}/survey", response_model=ActionResultResponse)
def survey(session_id: str, request: Request):
    return _act(request, session_id, SurveyAction())


@router.post("/{session_id}/explore", response_model=ActionResultResponse)
def explore(session_id: str, request: Request):
    return _act(request, session_id, ExploreAction())


@router.post("/{session_id}/travel", response_model=ActionResultResponse)
def travel(session_id: str, req: TravelRequest, request: Request):
    action = TravelAction(destination_area_id=req.destination_area_id, scavenge=req.scavenge)
    return _act(request, session_id, action)


@router.post("/{session_id}/act", response_model=ActionResultResponse)
def act(session_id: str, req: ActionRequest, request: Request):
    """Generic entry point taking ``{"type": ..., ...}``."""
    return _act(request, session_id, req.model_dump())


@router.post("/{session_id}/enroll", response_model=EnrollResponse)
def enroll(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        skill = mgr.enroll(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return skill.to_dict()


@router.get("/{session_id}/history", response_model=list[ActionOutcomeResponse])
def history(session_id: str, request: Request, limit: int = 50):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    outcomes = session.engine.history[-limit:] if limit > 0 else []
    return [o.to_dict() for o in outcomes]
