"""SimulationEngine: owner of the live snapshot, tick timer and command API.

Architecture
------------
The engine holds exactly one ``SimulationState``.  Every mutation goes
through a pure reducer (``tick.run_tick`` for ticks, ``commands.*`` for
player actions) and the result is swapped in under ``_lock``.  The lock is
held for the whole read-compute-swap, so a tick and a command never
interleave and no half-updated snapshot is ever visible.

It runs at most one daemon thread:

  sim-tick: sleeps ``tick_interval`` seconds, then calls ``tick()``.  The
  tick is skipped unless the game is playing, unpaused and not over.

Time and randomness are injected.  ``clock`` returns epoch milliseconds
and ``rng`` supplies every random draw, so tests drive the engine with
``engine.tick(now=...)`` and a ``ScriptedRandom`` without any threads.

Events published on the EventBus (when one is given):
  - ``ops_state``: full snapshot after each committed tick or command
  - ``ops_log``: each new log entry
  - ``game_over``: once, on the tick that ends the game
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import TYPE_CHECKING, Callable, Optional

from . import commands
from .balance import TICK_RATE_MS, initial_state
from .journal import OpsLog, TrafficHistory
from .models import (
    ChartPoint,
    ComponentKind,
    FirewallMode,
    LogEntry,
    NodeKind,
    Outcome,
    SimulationState,
)
from .rng import RandomSource, make_rng
from .tick import run_tick

if TYPE_CHECKING:
    from opsim.comms.event_bus import EventBus

logger = logging.getLogger("opsim.engine")


def _wall_clock_ms() -> float:
    return time.time() * 1000


def _new_node_id() -> str:
    return uuid.uuid4().hex[:8]


class SimulationEngine:
    """Single-writer container for the simulation state."""

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], float]] = None,
        tick_interval: float = TICK_RATE_MS / 1000,
        id_factory: Callable[[], str] = _new_node_id,
    ) -> None:
        self._event_bus = event_bus
        self._rng: RandomSource = rng if rng is not None else make_rng()
        self._clock = clock or _wall_clock_ms
        self._tick_interval = tick_interval
        self._id_factory = id_factory

        self._lock = threading.Lock()
        self._state: SimulationState = initial_state()
        self.ops_log = OpsLog()
        self.history = TrafficHistory()

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def event_bus(self) -> Optional[EventBus]:
        return self._event_bus

    def set_event_bus(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    # -- Read side -------------------------------------------------------------

    def get_state(self) -> SimulationState:
        return self._state

    def get_logs(self) -> list[LogEntry]:
        return self.ops_log.entries()

    def get_history(self) -> list[ChartPoint]:
        return self.history.points()

    # -- Tick --------------------------------------------------------------------

    def tick(self, now: float | None = None) -> SimulationState:
        """Advance one tick if the game is running.  Returns the live snapshot."""
        with self._lock:
            prev = self._state
            if not prev.is_running:
                return prev
            stamp = self._clock() if now is None else now
            outcome = run_tick(prev, stamp, self._rng)
            if outcome.state is prev:
                # Contained failure: nothing committed, nothing recorded
                return prev
            self._commit(outcome, stamp)
            self.history.record(outcome.state.metrics, stamp)
            if outcome.state.is_game_over and not prev.is_game_over:
                self._announce_game_over(outcome.state)
            return self._state

    # -- Commands ----------------------------------------------------------------

    def buy_node(self, kind: NodeKind | str) -> SimulationState:
        kind = NodeKind(kind)
        return self._dispatch(lambda s: commands.buy_node(s, kind, self._identify_node))

    def _identify_node(self, kind: NodeKind) -> tuple[str, str]:
        return self._id_factory(), commands.node_label(kind, self._rng)

    def upgrade_node(self, node_id: str) -> SimulationState:
        return self._dispatch(lambda s: commands.upgrade_node(s, node_id))

    def repair_node(self, node_id: str) -> SimulationState:
        return self._dispatch(lambda s: commands.repair_node(s, node_id))

    def repair_all_nodes(self) -> SimulationState:
        return self._dispatch(commands.repair_all_nodes)

    def upgrade_component(self, kind: ComponentKind | str) -> SimulationState:
        kind = ComponentKind(kind)
        return self._dispatch(lambda s: commands.upgrade_component(s, kind))

    def set_firewall_mode(self, mode: FirewallMode | str) -> SimulationState:
        mode = FirewallMode(mode)
        return self._dispatch(lambda s: commands.set_firewall_mode(s, mode))

    def activate_task(self, task_id: str, now: float | None = None) -> SimulationState:
        stamp = self._stamp(now)
        return self._dispatch(lambda s: commands.activate_task(s, task_id, stamp), stamp)

    def toggle_pause(self) -> SimulationState:
        return self._dispatch(commands.toggle_pause)

    def restart_game(self) -> SimulationState:
        with self._lock:
            self.ops_log.clear()
            self.history.clear()
            self._commit(commands.restart_game(self._state), self._clock())
            return self._state

    def _stamp(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _dispatch(self, command: Callable[[SimulationState], Outcome],
                  now: float | None = None) -> SimulationState:
        with self._lock:
            self._commit(command(self._state), self._stamp(now))
            return self._state

    def _commit(self, outcome: Outcome, now: float) -> None:
        changed = outcome.state is not self._state
        self._state = outcome.state
        for entry in self.ops_log.extend(outcome.messages, now):
            self._publish("ops_log", entry.to_dict())
        if changed:
            self._publish("ops_state", outcome.state.to_dict())

    def _announce_game_over(self, state: SimulationState) -> None:
        reason = "reputation" if state.reputation <= 0 else "bankruptcy"
        logger.info("Game over at tick %d (%s)", state.tick_count, reason)
        self._publish("game_over", {
            "reason": reason,
            "tick_count": state.tick_count,
            "budget": round(state.budget, 2),
            "reputation": round(state.reputation, 2),
        })

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)

    # -- Lifecycle -----------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._tick_loop, name="sim-tick", daemon=True)
        self._thread.start()
        logger.info("Tick loop started (%.2fs interval)", self._tick_interval)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def _tick_loop(self) -> None:
        while not self._stop.wait(self._tick_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Tick loop error")
