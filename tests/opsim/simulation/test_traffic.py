"""Unit tests for demand generation and traffic pattern rotation."""

from __future__ import annotations

import math
from dataclasses import replace

import pytest

from opsim.simulation.balance import EVENT_TEMPLATES, TRAFFIC_PATTERNS, initial_state
from opsim.simulation.models import EventKind, GlobalEvent, LogLevel
from opsim.simulation.rng import ScriptedRandom
from opsim.simulation.traffic import (
    base_demand,
    current_pattern,
    generate_demand,
    rotate_pattern,
)

pytestmark = pytest.mark.unit


def _with_event(kind: EventKind):
    template = next(t for t in EVENT_TEMPLATES if t.kind == kind)
    event = GlobalEvent(
        event_id="e", kind=kind, name=template.name, description=template.description,
        duration_ms=template.duration_ms, start_time=0, magnitude=template.magnitude,
    )
    return replace(initial_state(playing=True), active_event=event)


class TestBaseDemand:
    def test_tick_zero(self):
        assert base_demand(0) == pytest.approx(2.0)

    def test_tick_one(self):
        assert base_demand(1) == pytest.approx(2.281346, abs=1e-6)

    def test_monotonic_growth(self):
        values = [base_demand(t) for t in range(0, 2000, 50)]
        assert values == sorted(values)

    def test_late_game_kicker(self):
        t = 1300
        without = 2.0 + math.log(1 + t / 15) * 2.5 + 0.12 * t
        assert base_demand(t) - without == pytest.approx(1 / 9)

    def test_no_kicker_before_late_game(self):
        t = 1200
        assert base_demand(t) == pytest.approx(2.0 + math.log(1 + t / 15) * 2.5 + 0.12 * t)


class TestGenerateDemand:
    def test_mid_draw_is_noise_free(self):
        rng = ScriptedRandom([0.5])
        assert generate_demand(initial_state(), 0, rng) == pytest.approx(2.0)
        assert rng.consumed == 1

    def test_low_draw_subtracts_ten_percent(self):
        assert generate_demand(initial_state(), 0, ScriptedRandom([0.0])) == pytest.approx(1.8)

    def test_high_draw_adds_up_to_ten_percent(self):
        assert generate_demand(initial_state(), 0, ScriptedRandom([0.999])) == pytest.approx(2.1996)

    def test_traffic_spike_multiplies(self):
        state = _with_event(EventKind.TRAFFIC_SPIKE)
        assert generate_demand(state, 0, ScriptedRandom([0.5])) == pytest.approx(6.0)

    def test_fiber_cut_floored_at_one(self):
        state = _with_event(EventKind.FIBER_CUT)
        assert generate_demand(state, 0, ScriptedRandom([0.0])) == 1.0

    def test_unrelated_event_ignored(self):
        state = _with_event(EventKind.BOTNET)
        assert generate_demand(state, 0, ScriptedRandom([0.5])) == pytest.approx(2.0)


class TestPatternRotation:
    def test_off_interval_no_draw(self):
        state = initial_state(playing=True)
        rng = ScriptedRandom()
        out = rotate_pattern(state, 59, rng)
        assert out.state is state
        assert out.messages == ()
        assert rng.consumed == 0

    def test_shift_on_interval(self):
        out = rotate_pattern(initial_state(playing=True), 60, ScriptedRandom([0.3]))
        assert out.state.traffic_pattern == "COMMERCE_SPIKE"
        assert out.messages[0].level == LogLevel.EVENT
        assert out.messages[0].text == "Traffic Shift: Shopping Spree"

    def test_same_pattern_drawn_is_silent(self):
        state = initial_state(playing=True)
        out = rotate_pattern(state, 120, ScriptedRandom([0.1]))
        assert out.state is state
        assert out.messages == ()

    def test_last_pattern_reachable(self):
        out = rotate_pattern(initial_state(playing=True), 60, ScriptedRandom([0.99]))
        assert out.state.traffic_pattern == "VIRAL_CONTENT"

    def test_unknown_pattern_resets_to_normal(self):
        state = replace(initial_state(playing=True), traffic_pattern="MYSTERY")
        out = rotate_pattern(state, 1, ScriptedRandom())
        assert out.state.traffic_pattern == "NORMAL"

    def test_current_pattern_falls_back(self):
        state = replace(initial_state(), traffic_pattern="MYSTERY")
        assert current_pattern(state) is TRAFFIC_PATTERNS["NORMAL"]

    def test_pattern_weights_sum_to_one(self):
        for pattern in TRAFFIC_PATTERNS.values():
            w = pattern.weights
            assert w.legitimate_total + w.malicious == pytest.approx(1.0)
