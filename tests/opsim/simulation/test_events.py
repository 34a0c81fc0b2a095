"""Unit tests for the global event manager."""

from __future__ import annotations

from dataclasses import replace

import pytest

from opsim.simulation.balance import initial_state
from opsim.simulation.events import event_magnitude, expire_event, roll_event
from opsim.simulation.models import EventKind, GlobalEvent, LogLevel
from opsim.simulation.rng import ScriptedRandom

pytestmark = pytest.mark.unit


def _spike(start=0.0):
    return GlobalEvent(
        event_id="traffic_spike-0", kind=EventKind.TRAFFIC_SPIKE,
        name="Viral Product Launch", description="Massive influx of legitimate traffic!",
        duration_ms=25_000, start_time=start, magnitude=3.0,
    )


class TestRollEvent:
    def test_no_draw_while_event_active(self):
        state = replace(initial_state(playing=True), active_event=_spike())
        rng = ScriptedRandom()
        out = roll_event(state, 1000, rng)
        assert out.state is state
        assert rng.consumed == 0

    def test_trial_misses(self):
        state = initial_state(playing=True)
        rng = ScriptedRandom([0.5])
        out = roll_event(state, 1000, rng)
        assert out.state is state
        assert rng.consumed == 1

    def test_trial_hits_starts_first_template(self):
        out = roll_event(initial_state(playing=True), 5000, ScriptedRandom([0.0, 0.1]))
        event = out.state.active_event
        assert event.kind == EventKind.TRAFFIC_SPIKE
        assert event.event_id == "traffic_spike-5000"
        assert event.start_time == 5000
        assert event.magnitude == 3.0
        assert out.messages[0].level == LogLevel.EVENT
        assert out.messages[0].text == "EVENT: Viral Product Launch - Massive influx of legitimate traffic!"

    def test_investor_funding_credits_budget(self):
        state = initial_state(playing=True)
        out = roll_event(state, 5000, ScriptedRandom([0.0, 0.9]))
        assert out.state.active_event.kind == EventKind.INVESTOR_FUNDING
        assert out.state.budget == state.budget + 800
        assert out.messages[0].level == LogLevel.SUCCESS
        assert out.messages[0].text == "Event: Series B Funding! Received $800 funding."


class TestExpireEvent:
    def test_not_expired_at_exact_duration(self):
        state = replace(initial_state(playing=True), active_event=_spike(start=0))
        assert expire_event(state, 25_000).state is state

    def test_expired_after_duration(self):
        state = replace(initial_state(playing=True), active_event=_spike(start=0))
        out = expire_event(state, 25_001)
        assert out.state.active_event is None
        assert out.messages[0].level == LogLevel.INFO
        assert out.messages[0].text == "Event Ended: Viral Product Launch"

    def test_no_event_is_noop(self):
        state = initial_state()
        out = expire_event(state, 10**9)
        assert out.state is state
        assert out.messages == ()


class TestEventMagnitude:
    def test_matching_kind(self):
        state = replace(initial_state(), active_event=_spike())
        assert event_magnitude(state, EventKind.TRAFFIC_SPIKE, EventKind.FIBER_CUT) == 3.0

    def test_other_kind(self):
        state = replace(initial_state(), active_event=_spike())
        assert event_magnitude(state, EventKind.BOTNET) is None

    def test_no_event(self):
        assert event_magnitude(initial_state(), EventKind.BOTNET) is None
