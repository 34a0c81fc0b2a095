"""Economic resolver: revenue from served traffic, upkeep for what we own."""

from __future__ import annotations

from dataclasses import dataclass

from .balance import (
    COMPONENT_UPKEEP_RATE,
    NODE_ADMIN_COST,
    NODE_KINDS,
    NODE_TIERS,
    REVENUE_RATES,
    UPKEEP_BASE_MULT,
    UPKEEP_MAX_MULT,
    UPKEEP_TICKS_TO_MAX,
)
from .models import SimulationState
from .pipeline import CategoryLoads


@dataclass(frozen=True)
class Ledger:
    revenue: float
    upkeep: float

    @property
    def profit(self) -> float:
        return self.revenue - self.upkeep


def revenue(processed: CategoryLoads) -> float:
    # Malicious traffic, blocked or leaked, never pays
    return (
        processed.static * REVENUE_RATES["static"]
        + processed.read * REVENUE_RATES["read"]
        + processed.write * REVENUE_RATES["write"]
        + processed.upload * REVENUE_RATES["upload"]
        + processed.search * REVENUE_RATES["search"]
    )


def upkeep_multiplier(tick: int) -> float:
    """Operational cost scaling: 1x at tick 0 rising linearly to 4x."""
    progress = min(tick / UPKEEP_TICKS_TO_MAX, 1.0)
    return UPKEEP_BASE_MULT + (UPKEEP_MAX_MULT - UPKEEP_BASE_MULT) * progress


def component_upkeep(state: SimulationState) -> float:
    value = sum(
        c.cost for c in state.components.values()
        if c.purchased
    )
    return value * COMPONENT_UPKEEP_RATE


def node_upkeep(state: SimulationState) -> float:
    return sum(
        NODE_TIERS[n.tier].upkeep * NODE_KINDS[n.kind].cost_mult + NODE_ADMIN_COST
        for n in state.nodes
    )


def upkeep(state: SimulationState, tick: int) -> float:
    return (component_upkeep(state) + node_upkeep(state)) * upkeep_multiplier(tick)


def resolve(state: SimulationState, processed: CategoryLoads, tick: int) -> Ledger:
    return Ledger(revenue=revenue(processed), upkeep=upkeep(state, tick))
