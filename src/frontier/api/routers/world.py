"""Read-only views of the player's known world.

Nothing here reveals areas, locations or connections the player has not
discovered.
"""

from __future__ import annotations

import math

from fastapi import APIRouter, HTTPException, Request

from frontier.api.schemas import (
    AreaResponse,
    ChanceResponse,
    ConnectionResponse,
    LocationResponse,
    PathPreviewResponse,
    RenameAreaRequest,
)
from frontier.core.probability import chance_for_area, expected_ticks

router = APIRouter()


def _get_engine(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id).engine
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


def _area_response(engine, area) -> dict:
    return {
        "id": area.id,
        "name": area.display_name,
        "distance": area.distance,
        "is_current": area.id == engine.player.current_area_id,
        "known_locations": [
            loc.to_dict() for loc in area.locations
            if engine.player.knows_location(loc.id)
        ],
    }


def _connection_response(conn) -> dict:
    return {"id": conn.id, **conn.to_dict()}


@router.get("/{session_id}/areas", response_model=list[AreaResponse])
def known_areas(session_id: str, request: Request):
    engine = _get_engine(request, session_id)
    return [_area_response(engine, a) for a in engine.known_areas()]


@router.get("/{session_id}/areas/{area_id}", response_model=AreaResponse)
def known_area(session_id: str, area_id: str, request: Request):
    engine = _get_engine(request, session_id)
    if not engine.player.knows_area(area_id):
        raise HTTPException(status_code=404, detail=f"Area '{area_id}' not known")
    return _area_response(engine, engine.world.get_area(area_id))


@router.put("/{session_id}/areas/{area_id}/name", response_model=AreaResponse)
def rename_area(session_id: str, area_id: str, req: RenameAreaRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.rename_area(session_id, area_id, req.name)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _area_response(session.engine, session.engine.world.get_area(area_id))


@router.get("/{session_id}/locations", response_model=list[LocationResponse])
def known_locations(session_id: str, request: Request):
    engine = _get_engine(request, session_id)
    return [loc.to_dict() for loc in engine.known_locations()]


@router.get("/{session_id}/connections", response_model=list[ConnectionResponse])
def known_connections(session_id: str, request: Request):
    engine = _get_engine(request, session_id)
    return [_connection_response(c) for c in engine.known_connections()]


@router.get("/{session_id}/reachable")
def reachable(session_id: str, request: Request, start: str | None = None):
    engine = _get_engine(request, session_id)
    if start is not None and not engine.player.knows_area(start):
        raise HTTPException(status_code=404, detail=f"Area '{start}' not known")
    return engine.reachable_areas(start)


@router.get("/{session_id}/path/{destination_area_id}", response_model=PathPreviewResponse)
def path_preview(
    session_id: str,
    destination_area_id: str,
    request: Request,
    scavenge: bool = False,
):
    engine = _get_engine(request, session_id)
    if not engine.player.knows_area(destination_area_id):
        raise HTTPException(status_code=404, detail=f"Area '{destination_area_id}' not known")
    found = engine.preview_travel(destination_area_id, scavenge)
    if found is None:
        return {"destination_area_id": destination_area_id, "reachable": False, "scavenge": scavenge}
    path, ticks = found
    return {
        "destination_area_id": destination_area_id,
        "reachable": True,
        "path": path.areas,
        "travel_time": ticks,
        "scavenge": scavenge,
    }


@router.get("/{session_id}/chance", response_model=ChanceResponse)
def discovery_chance(session_id: str, request: Request):
    """Success chance for Survey/Explore in the current area."""
    engine = _get_engine(request, session_id)
    area = engine.current_area
    level = engine.exploration_skill.level
    chance, interval, knowledge = chance_for_area(
        engine.world, engine.player, area, level, engine.config.discovery_config,
    )
    expected = expected_ticks(chance, interval)
    return {
        "area_id": area.id,
        "level": level,
        "success_chance": chance,
        "roll_interval": interval,
        "expected_ticks": None if math.isinf(expected) else expected,
        **knowledge.to_dict(),
    }
