"""Tick scheduler: one full state transition of the simulation.

``advance`` is the pure transition: snapshot in, snapshot out, with the
current wall-clock time and the random source passed in explicitly.  It
never reads a clock and never touches anything but its arguments.

``run_tick`` wraps it in the containment boundary the engine relies on:
an unexpected exception is logged and the tick becomes a no-op, returning
the previous snapshot unchanged.

Order of work inside a tick:

  events (roll, expire) -> pattern rotation -> task expiry -> traffic
  -> load distribution -> economics + reputation + decay -> game over
"""

from __future__ import annotations

import logging
from dataclasses import replace

from .balance import (
    BANKRUPTCY_BUDGET,
    DROP_ALERT_FRACTION,
    LOAD_ALERT_PERCENT,
    MIN_REPUTATION,
)
from .decay import age_nodes
from .economy import resolve
from .events import event_magnitude, expire_event, roll_event
from .models import (
    EventKind,
    LogLevel,
    Message,
    Outcome,
    SimulationState,
    TrafficMetrics,
)
from .pipeline import distribute_load
from .reputation import next_reputation
from .rng import RandomSource
from .traffic import current_pattern, generate_demand, rotate_pattern

logger = logging.getLogger("opsim.tick")


def is_game_over(budget: float, reputation: float) -> bool:
    return reputation <= MIN_REPUTATION or budget <= BANKRUPTCY_BUDGET


def advance(state: SimulationState, now: float, rng: RandomSource) -> Outcome:
    """Compute the next snapshot.  Paused or finished games do not move."""
    if state.is_game_over or state.is_paused:
        return Outcome(state)

    tick = state.tick_count + 1
    messages: list[Message] = []

    # Events
    step = roll_event(state, now, rng)
    messages.extend(step.messages)
    step = expire_event(step.state, now)
    messages.extend(step.messages)

    # Pattern + tasks
    step = rotate_pattern(step.state, tick, rng)
    messages.extend(step.messages)
    current = step.state.expire_tasks(now)

    # Traffic
    raw = generate_demand(current, tick, rng)
    result = distribute_load(current, raw, current_pattern(current).weights, rng)

    # Economics, reputation, decay
    ledger = resolve(current, result.processed, tick)
    budget = current.budget + ledger.profit
    reputation = next_reputation(current.reputation, result)
    nodes = age_nodes(
        current.nodes,
        result.utilization,
        event_magnitude(current, EventKind.COOLING_FAILURE),
    )

    game_over = is_game_over(budget, reputation)
    metrics = TrafficMetrics(
        current_traffic=result.attempted_traffic,
        processed_traffic=result.processed_total,
        dropped_traffic=result.total_dropped,
        malicious_traffic=result.malicious_load,
        blocked_malicious=result.blocked_malicious,
        upkeep_cost=ledger.upkeep,
        app_load=min(100.0, result.app.utilization * 100),
        worker_load=min(100.0, result.worker.utilization * 100),
        db_load=min(100.0, result.db.utilization * 100),
        cdn_load=min(100.0, result.cdn_utilization * 100),
    )

    nxt = replace(
        current,
        tick_count=tick,
        budget=budget,
        reputation=reputation,
        nodes=nodes,
        metrics=metrics,
        is_game_over=game_over,
        is_playing=not game_over,
    )
    messages.extend(tick_alerts(metrics))
    return Outcome(nxt, tuple(messages))


def tick_alerts(metrics: TrafficMetrics) -> list[Message]:
    """Operator warnings for overloaded layers and heavy drops."""
    alerts = []
    for label, load in (
        ("App Servers", metrics.app_load),
        ("Workers", metrics.worker_load),
        ("DB", metrics.db_load),
    ):
        if load > LOAD_ALERT_PERCENT:
            alerts.append(Message(LogLevel.WARNING, f"{label} Overloaded ({load:.0f}%)"))

    dropped = metrics.dropped_traffic
    if dropped > 0 and dropped > metrics.processed_traffic * DROP_ALERT_FRACTION:
        alerts.append(Message(LogLevel.ERROR, f"Dropping {round(dropped)} reqs/s!"))
    return alerts


def run_tick(state: SimulationState, now: float, rng: RandomSource) -> Outcome:
    try:
        return advance(state, now, rng)
    except Exception:
        logger.exception("Tick error at tick %d", state.tick_count)
        return Outcome(state)
