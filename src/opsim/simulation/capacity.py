"""Capacity pipeline: how much of a layer's demand its nodes can serve.

Pure function, no side effects.  Called once per layer per tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .balance import HEALTH_FULL_CAPACITY
from .models import ProcessingNode

# Reported when a layer has demand but no live capacity at all
NO_CAPACITY_UTILIZATION = 2.0


@dataclass(frozen=True)
class LayerStats:
    utilization: float
    drops: float
    success_rate: float


def health_factor(node: ProcessingNode) -> float:
    """Fraction of rated capacity a node delivers at its current health."""
    if node.health > HEALTH_FULL_CAPACITY:
        return 1.0
    return max(0.0, node.health / HEALTH_FULL_CAPACITY)


def calculate_layer_stats(
    demand: float,
    nodes: Iterable[ProcessingNode],
    efficiency: float = 1.0,
    buffer: float = 0.0,
) -> LayerStats:
    """Compute utilization, drops and success rate for one layer.

    Args:
        demand: requests this tick (>= 0)
        nodes: nodes of the layer's kind; crashed nodes are ignored
        efficiency: multiplier on node capacity (database tech)
        buffer: extra absorb-only capacity (message queue)

    Utilization is measured against rated capacity (health ignored) so a
    sick node does not look busier than it is; drops use health-weighted
    capacity plus the buffer.
    """
    live = [n for n in nodes if not n.is_crashed]

    effective = sum(n.capacity * health_factor(n) for n in live) * efficiency
    available = effective + buffer
    theoretical = sum(n.capacity for n in live) * efficiency

    if theoretical > 0:
        utilization = demand / theoretical
    elif demand > 0:
        utilization = NO_CAPACITY_UTILIZATION
    else:
        utilization = 0.0

    drops = max(0.0, demand - available)
    success = (demand - drops) / demand if demand > 0 else 1.0

    return LayerStats(
        utilization=utilization,
        drops=drops,
        success_rate=max(0.0, min(1.0, success)),
    )
