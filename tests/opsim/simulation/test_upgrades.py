"""Unit tests for shared component upgrade rules."""

from __future__ import annotations

from dataclasses import replace

import pytest

from opsim.simulation.balance import INITIAL_COMPONENTS
from opsim.simulation.models import ComponentKind
from opsim.simulation.upgrades import UPGRADE_RULES, apply_upgrade

pytestmark = pytest.mark.unit


def _comp(kind: ComponentKind):
    return INITIAL_COMPONENTS[kind]


class TestUpgradeRules:
    def test_every_kind_has_a_rule(self):
        assert set(UPGRADE_RULES) == set(ComponentKind)

    def test_load_balancer(self):
        up = apply_upgrade(_comp(ComponentKind.LOAD_BALANCER))
        assert up.level == 2
        assert up.effectiveness == 75
        assert up.cost == pytest.approx(160)
        assert up.description == "Max Traffic Limit: 75 RPS."

    def test_load_balancer_thousands_separator(self):
        comp = replace(_comp(ComponentKind.LOAD_BALANCER), effectiveness=1000)
        assert apply_upgrade(comp).description == "Max Traffic Limit: 1,500 RPS."

    def test_database_tech(self):
        up = apply_upgrade(_comp(ComponentKind.DATABASE_TECH))
        assert up.effectiveness == pytest.approx(1.2)
        assert up.cost == pytest.approx(330)
        assert up.description == "DB Tech Level 2. Efficiency: 120%."

    def test_firewall(self):
        up = apply_upgrade(_comp(ComponentKind.FIREWALL))
        assert up.effectiveness == 70
        assert up.cost == pytest.approx(120)
        assert up.description == "Advanced WAF Rules. Filters 70 reqs/s."

    def test_cdn(self):
        up = apply_upgrade(_comp(ComponentKind.CDN))
        assert up.effectiveness == 64
        assert up.description == "Global Edge Network. Handles 64 static reqs/s."


class TestFirstPurchase:
    def test_cache_first_purchase(self):
        up = apply_upgrade(_comp(ComponentKind.CACHE))
        assert up.level == 1
        assert up.effectiveness == pytest.approx(0.2)
        assert up.cost == pytest.approx(360)
        assert up.description == "Memory Cache. Reduces DB Read load by 20%."

    def test_cache_steps_then_ceiling(self):
        comp = apply_upgrade(_comp(ComponentKind.CACHE))
        comp = apply_upgrade(comp)
        assert comp.effectiveness == pytest.approx(0.32)
        high = replace(comp, level=7, effectiveness=0.9)
        assert apply_upgrade(high).effectiveness == pytest.approx(0.95)

    def test_queue(self):
        first = apply_upgrade(_comp(ComponentKind.QUEUE))
        assert first.effectiveness == 50
        assert first.description == "Message Queue. Buffers 50 requests during spikes."
        second = apply_upgrade(first)
        assert second.effectiveness == 125
        assert second.level == 2
