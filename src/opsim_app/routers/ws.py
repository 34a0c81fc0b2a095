"""WebSocket feed: pushes engine events to dashboards as they happen."""

from __future__ import annotations

import asyncio
import json
import queue
import threading
from datetime import datetime, timezone
from typing import Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from opsim.comms.event_bus import EventBus

router = APIRouter(prefix="/ws", tags=["websocket"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConnectionManager:
    """Manages WebSocket connections for real-time updates."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self.active_connections.add(websocket)
        logger.info(f"WebSocket connected. Total connections: {len(self.active_connections)}")

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self.active_connections.discard(websocket)
        logger.info(f"WebSocket disconnected. Total connections: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Broadcast a message to all connected clients."""
        if not self.active_connections:
            return

        message_str = json.dumps(message)
        disconnected = set()

        async with self._lock:
            for connection in self.active_connections:
                try:
                    await connection.send_text(message_str)
                except Exception as e:
                    logger.warning(f"Failed to send to websocket: {e}")
                    disconnected.add(connection)
            self.active_connections -= disconnected

    async def send_to(self, websocket: WebSocket, message: dict):
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning(f"Failed to send to websocket: {e}")


manager = ConnectionManager()


@router.websocket("/live")
async def websocket_live(websocket: WebSocket):
    """Live engine events: ops_state, ops_log, game_over."""
    await manager.connect(websocket)
    await manager.send_to(websocket, {
        "type": "connected",
        "timestamp": _timestamp(),
        "message": "OPSIM UPLINK ESTABLISHED",
    })

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_to(websocket, {"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await manager.send_to(websocket, {"type": "error", "message": "Expected a JSON object"})
                continue
            if message.get("type") == "ping":
                await manager.send_to(websocket, {"type": "pong", "timestamp": _timestamp()})
            else:
                await manager.send_to(websocket, {
                    "type": "error",
                    "message": f"Unknown message type: {message.get('type')}",
                })
    except WebSocketDisconnect:
        await manager.disconnect(websocket)


def start_event_bridge(event_bus: EventBus, loop: asyncio.AbstractEventLoop,
                       stop: threading.Event | None = None) -> threading.Thread:
    """Forward EventBus events to WebSocket clients from a daemon thread.

    Bridges the engine's threaded EventBus to FastAPI's async side.
    """
    sub = event_bus.subscribe()
    stop = stop or threading.Event()

    def bridge_loop():
        while not stop.is_set():
            try:
                msg = sub.get(timeout=1.0)
            except queue.Empty:
                continue
            asyncio.run_coroutine_threadsafe(
                manager.broadcast({
                    "type": msg.get("type", "unknown"),
                    "data": msg.get("data", {}),
                    "timestamp": _timestamp(),
                }),
                loop,
            )
        event_bus.unsubscribe(sub)

    thread = threading.Thread(target=bridge_loop, daemon=True, name="ops-ws-bridge")
    thread.start()
    return thread
