"""
FastAPI application factory for the Frontier discovery API.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from frontier.api.sessions import SessionManager
from frontier.api.routers import actions, simulation, world

# Load .env — try project root first, then CWD
_project_root = Path(__file__).resolve().parents[3]  # src/frontier/api/app.py → project root
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Frontier API",
        description="REST API for the Frontier world-discovery engine",
        version="0.1.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    db_path = os.environ.get("FRONTIER_DB_PATH", "data/frontier.db")
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    application.state.session_manager = SessionManager(db_path=db_path)

    application.include_router(simulation.router, prefix="/api/simulation", tags=["simulation"])
    application.include_router(actions.router, prefix="/api/actions", tags=["actions"])
    application.include_router(world.router, prefix="/api/world", tags=["world"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
