"""Exploration session management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from frontier.api.schemas import (
    CreateSessionRequest,
    SessionResponse,
    SessionSummary,
)
from frontier.api.sessions import session_summary
from frontier.core.config import ExperimentConfig
from frontier.experiment.presets import get_preset, list_presets

router = APIRouter()


def session_response(session) -> dict:
    engine = session.engine
    skill = engine.exploration_skill
    return {
        **session_summary(session),
        "seed": engine.seed,
        "session_remaining_ticks": engine.clock.session_remaining_ticks,
        "current_area_id": engine.player.current_area_id,
        "exploration_level": skill.level,
        "exploration_xp": skill.xp,
        "total_luck_delta": engine.player.total_luck_delta,
        "current_streak": engine.player.current_streak,
        "config": session.config.to_dict(),
    }


@router.get("/presets", response_model=list[str])
def get_presets():
    return list_presets()


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    mgr = request.app.state.session_manager

    try:
        if req.preset:
            config = get_preset(req.preset)
        elif req.config:
            config = ExperimentConfig.from_dict(req.config)
        else:
            config = ExperimentConfig()
        if req.seed is not None:
            config = config.with_overrides(random_seed=req.seed)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid config: {e}")

    session = mgr.create_session(config=config, name=req.name)
    return session_response(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    mgr = request.app.state.session_manager
    return mgr.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session_response(session)


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"deleted": True}


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.reset_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session_response(session)


@router.get("/sessions/{session_id}/metrics")
def get_metrics(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {
        "summary": session.collector.summary(),
        "history": session.collector.export_for_visualization(),
    }
