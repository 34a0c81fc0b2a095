"""Command processor: player actions as pure reducers.

Each command takes the current snapshot and returns an ``Outcome``.  An
expected failure (not enough money, unknown id, max tier, cooldown) is a
validated no-op: the same snapshot comes back together with a warning or
info message.  Nothing here raises for those conditions.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from .balance import (
    FIREWALL_MODES,
    NODE_KINDS,
    NODE_TIERS,
    initial_state,
    node_capacity,
    node_cost,
)
from .models import (
    ComponentKind,
    FirewallMode,
    LogLevel,
    Message,
    NodeKind,
    NodeStatus,
    NodeTier,
    Outcome,
    ProcessingNode,
    SimulationState,
)
from .rng import RandomSource
from .upgrades import apply_upgrade

WELCOME_MESSAGE = "System initialized. Welcome, Architect."


def _money(amount: float) -> str:
    return f"${amount:g}"


def _noop(state: SimulationState, level: LogLevel, text: str) -> Outcome:
    return Outcome(state, (Message(level, text),))


def node_label(kind: NodeKind, rng: RandomSource) -> str:
    return f"{kind.value}-{100 + int(rng.random() * 900)}"


def repair_cost(node: ProcessingNode) -> float:
    base = NODE_TIERS[node.tier].repair_cost
    return base * 2 if node.is_crashed else base


# -- Nodes -------------------------------------------------------------------


def buy_node(
    state: SimulationState,
    kind: NodeKind,
    identify: Callable[[NodeKind], tuple[str, str]],
) -> Outcome:
    """Provision a new tier-1 node of ``kind``.

    ``identify`` returns the new node's ``(node_id, name)`` and is only
    called once the purchase is affordable.
    """
    tier = NodeTier.T1
    cost = node_cost(tier, kind)
    kind_name = NODE_KINDS[kind].name
    if state.budget < cost:
        return _noop(state, LogLevel.WARNING, f"Insufficient funds to buy {kind_name}.")

    node_id, name = identify(kind)
    capacity = node_capacity(tier, kind)
    node = ProcessingNode(
        node_id=node_id,
        name=name,
        kind=kind,
        tier=tier,
        capacity=capacity,
        status=NodeStatus.ONLINE,
        health=100.0,
    )
    return Outcome(
        replace(state, budget=state.budget - cost, nodes=state.nodes + (node,)),
        (Message(
            LogLevel.SUCCESS,
            f"New {kind_name} ({tier.value}) provisioned. Capacity: {capacity:.0f} RPS.",
        ),),
    )


def upgrade_node(state: SimulationState, node_id: str) -> Outcome:
    node = state.node(node_id)
    if node is None:
        return Outcome(state)

    tier = node.tier.next_tier
    if tier is None:
        return _noop(state, LogLevel.WARNING, "Node is already at maximum tier.")

    cost = node_cost(tier, node.kind)
    if state.budget < cost:
        return _noop(state, LogLevel.WARNING, f"Insufficient funds to upgrade node ({_money(cost)}).")

    capacity = node_capacity(tier, node.kind)
    upgraded = replace(node, tier=tier, capacity=capacity, health=100.0, status=NodeStatus.ONLINE)
    nodes = tuple(upgraded if n.node_id == node_id else n for n in state.nodes)
    return Outcome(
        replace(state, budget=state.budget - cost, nodes=nodes),
        (Message(
            LogLevel.SUCCESS,
            f"Upgraded {node.name} to {tier.value}. New Capacity: {capacity:.0f}",
        ),),
    )


def repair_node(state: SimulationState, node_id: str) -> Outcome:
    """Reset one node to full health.  Crashed nodes cost double."""
    node = state.node(node_id)
    if node is None:
        return Outcome(state)

    cost = repair_cost(node)
    if state.budget < cost:
        return _noop(state, LogLevel.WARNING, f"Insufficient funds ({_money(cost)}) to repair node.")

    repaired = replace(node, health=100.0, status=NodeStatus.ONLINE)
    nodes = tuple(repaired if n.node_id == node_id else n for n in state.nodes)
    return Outcome(
        replace(state, budget=state.budget - cost, nodes=nodes),
        (Message(LogLevel.INFO, f"Node {node.name} repaired/rebooted for {_money(cost)}."),),
    )


def repair_all_nodes(state: SimulationState) -> Outcome:
    """Repair every damaged or crashed node, or none of them."""
    damaged = [n for n in state.nodes if n.needs_repair]
    if not damaged:
        return _noop(state, LogLevel.INFO, "All nodes are healthy.")

    total = sum(repair_cost(n) for n in damaged)
    if state.budget < total:
        return _noop(state, LogLevel.WARNING, f"Insufficient funds to repair all ({_money(total)} needed).")

    nodes = tuple(
        replace(n, health=100.0, status=NodeStatus.ONLINE) if n.needs_repair else n
        for n in state.nodes
    )
    return Outcome(
        replace(state, budget=state.budget - total, nodes=nodes),
        (Message(LogLevel.SUCCESS, f"Repaired {len(damaged)} nodes for {_money(total)}."),),
    )


# -- Shared components ---------------------------------------------------------


def upgrade_component(state: SimulationState, kind: ComponentKind) -> Outcome:
    comp = state.component(kind)
    if state.budget < comp.cost:
        return _noop(state, LogLevel.WARNING, f"Insufficient funds to upgrade {comp.name}.")

    upgraded = apply_upgrade(comp)
    return Outcome(
        replace(state, budget=state.budget - comp.cost, components=state.with_component(upgraded)),
        (Message(LogLevel.SUCCESS, f"Upgraded {comp.name} to Level {upgraded.level}."),),
    )


def set_firewall_mode(state: SimulationState, mode: FirewallMode) -> Outcome:
    return Outcome(
        replace(state, firewall_mode=mode),
        (Message(LogLevel.INFO, f"Firewall switched to {FIREWALL_MODES[mode].name} mode."),),
    )


# -- Tasks ---------------------------------------------------------------------


def activate_task(state: SimulationState, task_id: str, now: float) -> Outcome:
    task = state.task(task_id)
    if task is None:
        return Outcome(state)
    if task.on_cooldown(now) or task.active_at(now):
        return _noop(state, LogLevel.WARNING, f"{task.name} is on cooldown!")

    state = state.expire_tasks(now)
    tasks = tuple(
        replace(t, is_active=True, last_used=now) if t.task_id == task_id else t
        for t in state.tasks
    )
    return Outcome(
        replace(state, tasks=tasks),
        (Message(LogLevel.INFO, f"Activated: {task.name}"),),
    )


# -- Lifecycle -----------------------------------------------------------------


def toggle_pause(state: SimulationState) -> Outcome:
    if not state.is_playing and state.is_paused:
        return Outcome(replace(state, is_playing=True, is_paused=False))
    return Outcome(replace(state, is_paused=not state.is_paused))


def restart_game(state: SimulationState) -> Outcome:
    """Throw the session away.  The new game waits paused for its first unpause."""
    return Outcome(
        initial_state(playing=True),
        (Message(LogLevel.INFO, WELCOME_MESSAGE),),
    )
