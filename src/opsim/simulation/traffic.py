"""Traffic generator: raw demand per tick, plus traffic pattern rotation.

Growth curve (t = tick count):

  base = 2.0 + ln(1 + t/15) * 2.5      early game, logarithmic
             + 0.12 * t                mid game, linear
             + ((t - 1200) / 300)^2    late game kicker, t > 1200 only

A traffic spike multiplies the base, a fiber cut shrinks it (magnitude < 1).
Noise is +/-10 % of the base and the result never drops below 1 request.
"""

from __future__ import annotations

import math
from dataclasses import replace

from .balance import (
    BASE_TRAFFIC,
    DEFAULT_PATTERN,
    LATE_GAME_SPAN,
    LATE_GAME_START,
    LINEAR_GROWTH,
    LOG_GROWTH_MULT,
    LOG_GROWTH_SCALE,
    MIN_TRAFFIC,
    PATTERN_SHIFT_INTERVAL,
    TRAFFIC_NOISE,
    TRAFFIC_PATTERNS,
)
from .events import event_magnitude
from .models import EventKind, LogLevel, Message, Outcome, SimulationState, TrafficPattern
from .rng import RandomSource


def base_demand(tick: int) -> float:
    log_growth = math.log(1 + tick / LOG_GROWTH_SCALE) * LOG_GROWTH_MULT
    linear_growth = tick * LINEAR_GROWTH
    late_kicker = ((tick - LATE_GAME_START) / LATE_GAME_SPAN) ** 2 if tick > LATE_GAME_START else 0.0
    return BASE_TRAFFIC + log_growth + linear_growth + late_kicker


def generate_demand(state: SimulationState, tick: int, rng: RandomSource) -> float:
    """Raw demand entering the system this tick, before any capping."""
    base = base_demand(tick)
    magnitude = event_magnitude(state, EventKind.TRAFFIC_SPIKE, EventKind.FIBER_CUT)
    if magnitude is not None:
        base *= magnitude
    noise = base * (rng.random() * 2 * TRAFFIC_NOISE - TRAFFIC_NOISE)
    return max(MIN_TRAFFIC, base + noise)


def current_pattern(state: SimulationState) -> TrafficPattern:
    return TRAFFIC_PATTERNS.get(state.traffic_pattern, TRAFFIC_PATTERNS[DEFAULT_PATTERN])


def rotate_pattern(state: SimulationState, tick: int, rng: RandomSource) -> Outcome:
    """Every PATTERN_SHIFT_INTERVAL ticks, jump to a randomly drawn pattern."""
    if state.traffic_pattern not in TRAFFIC_PATTERNS:
        state = replace(state, traffic_pattern=DEFAULT_PATTERN)
    if tick % PATTERN_SHIFT_INTERVAL != 0:
        return Outcome(state)

    nxt = rng.choice(list(TRAFFIC_PATTERNS))
    if nxt == state.traffic_pattern:
        return Outcome(state)
    return Outcome(
        replace(state, traffic_pattern=nxt),
        (Message(LogLevel.EVENT, f"Traffic Shift: {TRAFFIC_PATTERNS[nxt].name}"),),
    )
