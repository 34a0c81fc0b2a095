"""Health & decay: nodes wear out in proportion to how hard they work.

  utilization <= 0.6     0.2 health / tick
  0.6 < u <= 0.95        0.3 health / tick
  u > 0.95               5.0 * u^2 health / tick (overload)

A cooling failure multiplies all of the above by its magnitude.  A node
whose health reaches 0 is CRASHED and stays that way until repaired.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .balance import (
    NODE_BUSY_MULT,
    NODE_BUSY_UTILIZATION,
    NODE_DECAY_RATE,
    NODE_OVERLOAD_DECAY,
    NODE_OVERLOAD_UTILIZATION,
)
from .models import NodeKind, NodeStatus, ProcessingNode


def decay_amount(utilization: float, cooling_failure: float | None = None) -> float:
    if utilization > NODE_OVERLOAD_UTILIZATION:
        decay = NODE_OVERLOAD_DECAY * utilization ** 2
    elif utilization > NODE_BUSY_UTILIZATION:
        decay = NODE_DECAY_RATE * NODE_BUSY_MULT
    else:
        decay = NODE_DECAY_RATE
    if cooling_failure is not None:
        decay *= cooling_failure
    return decay


def age_node(node: ProcessingNode, utilization: float, cooling_failure: float | None = None) -> ProcessingNode:
    if node.is_crashed:
        return node
    health = node.health - decay_amount(utilization, cooling_failure)
    if health <= 0:
        return replace(node, health=0.0, status=NodeStatus.CRASHED)
    return replace(node, health=min(100.0, health))


def age_nodes(
    nodes: tuple[ProcessingNode, ...],
    utilization_of: Callable[[NodeKind], float],
    cooling_failure: float | None = None,
) -> tuple[ProcessingNode, ...]:
    return tuple(age_node(n, utilization_of(n.kind), cooling_failure) for n in nodes)
