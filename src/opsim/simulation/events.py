"""Random event manager: starts and expires the single global event.

Only event state (and, for investor funding, the budget) is touched here.
What an event *does* to traffic, decay or the firewall is read by the
stages that care about it.
"""

from __future__ import annotations

from dataclasses import replace

from .balance import EVENT_CHANCE, EVENT_TEMPLATES
from .models import (
    EventKind,
    GlobalEvent,
    LogLevel,
    Message,
    Outcome,
    SimulationState,
)
from .rng import RandomSource


def roll_event(state: SimulationState, now: float, rng: RandomSource) -> Outcome:
    """Maybe start a new event.  No draw is made while one is active."""
    if state.active_event is not None:
        return Outcome(state)
    if rng.random() >= EVENT_CHANCE:
        return Outcome(state)

    template = rng.choice(EVENT_TEMPLATES)
    event = GlobalEvent(
        event_id=f"{template.kind.value.lower()}-{int(now)}",
        kind=template.kind,
        name=template.name,
        description=template.description,
        duration_ms=template.duration_ms,
        start_time=now,
        magnitude=template.magnitude,
    )

    budget = state.budget
    if template.kind == EventKind.INVESTOR_FUNDING:
        budget += template.magnitude
        msg = Message(
            LogLevel.SUCCESS,
            f"Event: {template.name}! Received ${template.magnitude:.0f} funding.",
        )
    else:
        msg = Message(LogLevel.EVENT, f"EVENT: {template.name} - {template.description}")

    return Outcome(replace(state, active_event=event, budget=budget), (msg,))


def expire_event(state: SimulationState, now: float) -> Outcome:
    event = state.active_event
    if event is None or not event.expired(now):
        return Outcome(state)
    return Outcome(
        replace(state, active_event=None),
        (Message(LogLevel.INFO, f"Event Ended: {event.name}"),),
    )


def event_magnitude(state: SimulationState, *kinds: EventKind) -> float | None:
    """Magnitude of the active event if it is one of ``kinds``."""
    event = state.active_event
    if event is not None and event.kind in kinds:
        return event.magnitude
    return None
