"""Game control API: snapshot, log, history and every player command.

Commands that fail validation (not enough budget, task on cooldown, ...)
still answer 200 with the unchanged snapshot; the reason is in the ops log.
Unknown enum values are rejected by pydantic / FastAPI with 422.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from opsim.simulation.models import ComponentKind, FirewallMode, NodeKind

router = APIRouter(prefix="/api/game", tags=["game"])


class BuyNode(BaseModel):
    kind: NodeKind


class FirewallSetting(BaseModel):
    mode: FirewallMode


def _get_engine(request: Request):
    """Retrieve the SimulationEngine from app state."""
    engine = getattr(request.app.state, "simulation_engine", None)
    if engine is None:
        raise HTTPException(503, "Simulation engine not available")
    return engine


@router.get("/state")
async def get_game_state(request: Request):
    """Current simulation snapshot."""
    return _get_engine(request).get_state().to_dict()


@router.get("/logs")
async def get_logs(request: Request, limit: int | None = None):
    """Ops log, oldest first.  ``limit`` keeps only the newest entries."""
    entries = _get_engine(request).get_logs()
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []
    return [e.to_dict() for e in entries]


@router.get("/history")
async def get_history(request: Request):
    """Rolling traffic chart points."""
    return [p.to_dict() for p in _get_engine(request).get_history()]


@router.post("/nodes")
async def buy_node(body: BuyNode, request: Request):
    return _get_engine(request).buy_node(body.kind).to_dict()


@router.post("/nodes/repair-all")
async def repair_all_nodes(request: Request):
    return _get_engine(request).repair_all_nodes().to_dict()


@router.post("/nodes/{node_id}/upgrade")
async def upgrade_node(node_id: str, request: Request):
    return _get_engine(request).upgrade_node(node_id).to_dict()


@router.post("/nodes/{node_id}/repair")
async def repair_node(node_id: str, request: Request):
    return _get_engine(request).repair_node(node_id).to_dict()


@router.post("/components/{kind}/upgrade")
async def upgrade_component(kind: ComponentKind, request: Request):
    return _get_engine(request).upgrade_component(kind).to_dict()


@router.post("/firewall")
async def set_firewall_mode(body: FirewallSetting, request: Request):
    return _get_engine(request).set_firewall_mode(body.mode).to_dict()


@router.post("/tasks/{task_id}/activate")
async def activate_task(task_id: str, request: Request):
    return _get_engine(request).activate_task(task_id).to_dict()


@router.post("/pause")
async def toggle_pause(request: Request):
    """Pause or resume.  The first call on a fresh engine starts the game."""
    return _get_engine(request).toggle_pause().to_dict()


@router.post("/restart")
async def restart_game(request: Request):
    return _get_engine(request).restart_game().to_dict()
