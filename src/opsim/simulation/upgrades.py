"""Shared component upgrade rules: one row per component kind.

Each rule says how cost scales, how effectiveness moves on a normal
upgrade, what the first purchase jumps to (for components that start at
level 0) and how the description reads afterwards.  ``apply_upgrade`` is
the only place that interprets the table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .models import ComponentKind, SharedComponent


@dataclass(frozen=True)
class UpgradeRule:
    cost_scale: float
    effect_scale: float
    transform: Callable[[float, float], float]
    describe: Callable[[float, int], str]
    first_purchase: Optional[float] = None
    ceiling: Optional[float] = None


def _floor_mult(value: float, scale: float) -> float:
    return float(math.floor(value * scale))


def _mult(value: float, scale: float) -> float:
    return value * scale


def _add(value: float, step: float) -> float:
    return value + step


UPGRADE_RULES: dict[ComponentKind, UpgradeRule] = {
    ComponentKind.LOAD_BALANCER: UpgradeRule(
        cost_scale=1.6,
        effect_scale=1.5,
        transform=_floor_mult,
        describe=lambda eff, lvl: f"Max Traffic Limit: {eff:,.0f} RPS.",
    ),
    ComponentKind.DATABASE_TECH: UpgradeRule(
        cost_scale=2.2,
        effect_scale=1.2,
        transform=_mult,
        describe=lambda eff, lvl: f"DB Tech Level {lvl}. Efficiency: {eff * 100:.0f}%.",
    ),
    ComponentKind.FIREWALL: UpgradeRule(
        cost_scale=1.5,
        effect_scale=1.4,
        transform=_floor_mult,
        describe=lambda eff, lvl: f"Advanced WAF Rules. Filters {eff:.0f} reqs/s.",
    ),
    ComponentKind.CDN: UpgradeRule(
        cost_scale=1.5,
        effect_scale=1.6,
        transform=_floor_mult,
        describe=lambda eff, lvl: f"Global Edge Network. Handles {eff:.0f} static reqs/s.",
    ),
    ComponentKind.CACHE: UpgradeRule(
        cost_scale=1.8,
        effect_scale=0.12,
        transform=_add,
        describe=lambda eff, lvl: f"Memory Cache. Reduces DB Read load by {eff * 100:.0f}%.",
        first_purchase=0.2,
        ceiling=0.95,
    ),
    ComponentKind.QUEUE: UpgradeRule(
        cost_scale=1.6,
        effect_scale=75,
        transform=_add,
        describe=lambda eff, lvl: f"Message Queue. Buffers {eff:g} requests during spikes.",
        first_purchase=50,
    ),
}


def next_effectiveness(comp: SharedComponent, rule: UpgradeRule) -> float:
    if comp.level == 0 and rule.first_purchase is not None:
        effect = rule.first_purchase
    else:
        effect = rule.transform(comp.effectiveness, rule.effect_scale)
    if rule.ceiling is not None:
        effect = min(rule.ceiling, effect)
    return effect


def apply_upgrade(comp: SharedComponent) -> SharedComponent:
    """Return the component one level up.  Affordability is the caller's job."""
    rule = UPGRADE_RULES[comp.kind]
    level = comp.level + 1
    effect = next_effectiveness(comp, rule)
    return replace(
        comp,
        level=level,
        cost=comp.cost * rule.cost_scale,
        effectiveness=effect,
        description=rule.describe(effect, level),
    )
