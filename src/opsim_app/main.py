"""OPSIM: infrastructure operations simulator.

Main FastAPI application.  Hosts one SimulationEngine, runs its tick
timer in a daemon thread and forwards its events to WebSocket clients.
"""

import asyncio
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from opsim import __version__
from opsim.comms.event_bus import EventBus
from opsim.simulation import SimulationEngine, make_rng
from opsim_app.config import settings
from opsim_app.routers import game_router, ws_router
from opsim_app.routers.ws import start_event_bridge


def _create_simulation_engine(event_bus: EventBus) -> SimulationEngine | None:
    """Create the engine from settings. Returns engine or None."""
    if not settings.simulation_enabled:
        return None

    engine = SimulationEngine(
        event_bus,
        rng=make_rng(settings.simulation_seed),
        tick_interval=settings.tick_interval_ms / 1000,
    )
    if settings.simulation_seed is not None:
        logger.info(f"Simulation: seeded with {settings.simulation_seed}")
    if settings.autostart:
        engine.toggle_pause()
        logger.info("Simulation: autostart, game running")
    logger.info("Simulation engine created")
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} v{__version__} - INITIALIZING")
    logger.info("=" * 60)

    event_bus = EventBus()
    app.state.event_bus = event_bus
    sim_engine = _create_simulation_engine(event_bus)
    app.state.simulation_engine = sim_engine

    bridge_stop = threading.Event()
    if sim_engine is not None:
        start_event_bridge(event_bus, asyncio.get_running_loop(), bridge_stop)
        logger.info("Event bridge started")
        sim_engine.start()
        logger.info(f"Simulation engine started ({settings.tick_interval_ms}ms tick)")
    else:
        logger.warning("Simulation disabled (OPSIM_SIMULATION_ENABLED=false)")

    yield

    bridge_stop.set()
    if sim_engine is not None:
        logger.info("Stopping simulation engine...")
        sim_engine.stop()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(game_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    engine = getattr(app.state, "simulation_engine", None)
    return {
        "status": "ok",
        "simulation": engine is not None,
        "ticking": bool(engine and engine.running),
    }


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "opsim_app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
