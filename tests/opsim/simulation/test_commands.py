"""Unit tests for player commands.

Every command is a reducer: a failure hands back the very same snapshot
along with a warning, a success a new snapshot plus a log message.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from opsim.simulation import commands
from opsim.simulation.balance import TASK_FLUSH_CACHE, TASK_OPTIMIZE_DB, initial_state
from opsim.simulation.models import (
    ComponentKind,
    FirewallMode,
    LogLevel,
    NodeKind,
    NodeStatus,
    NodeTier,
    ProcessingNode,
)
from opsim.simulation.rng import ScriptedRandom

pytestmark = pytest.mark.unit


def _node(node_id="n1", tier=NodeTier.T1, health=100.0, status=NodeStatus.ONLINE, kind=NodeKind.APP):
    return ProcessingNode(
        node_id=node_id, name=f"APP-{node_id}", kind=kind, tier=tier,
        capacity=10, status=status, health=health,
    )


def _state(budget=600.0, nodes=()):
    return replace(initial_state(playing=True), budget=budget, nodes=tuple(nodes))


def _named(node_id, name):
    return lambda kind: (node_id, name)


class TestBuyNode:
    def test_buy_app_server(self):
        out = commands.buy_node(_state(), NodeKind.APP, _named("n1", "APP-550"))
        assert out.state.budget == pytest.approx(500)
        node = out.state.node("n1")
        assert node.name == "APP-550"
        assert node.tier == NodeTier.T1
        assert node.capacity == pytest.approx(10)
        assert node.health == 100.0
        assert node.status == NodeStatus.ONLINE
        assert out.messages[0].level == LogLevel.SUCCESS
        assert out.messages[0].text == "New App Server (T1) provisioned. Capacity: 10 RPS."

    def test_kind_multipliers(self):
        out = commands.buy_node(_state(), NodeKind.DB, _named("d1", "DB-100"))
        assert out.state.budget == pytest.approx(350)
        assert out.state.node("d1").capacity == pytest.approx(15)
        worker = commands.buy_node(_state(), NodeKind.WORKER, _named("w1", "WORKER-100"))
        assert worker.state.budget == pytest.approx(490)
        assert worker.state.node("w1").capacity == pytest.approx(13)

    def test_insufficient_funds(self):
        state = _state(budget=50)
        out = commands.buy_node(state, NodeKind.APP, _named("n1", "APP-100"))
        assert out.state is state
        assert out.messages[0].level == LogLevel.WARNING
        assert out.messages[0].text == "Insufficient funds to buy App Server."

    def test_budget_equal_to_cost_succeeds(self):
        out = commands.buy_node(_state(budget=100.0), NodeKind.APP, _named("n1", "APP-100"))
        assert out.state.budget == pytest.approx(0.0)
        assert len(out.state.nodes) == 1

    def test_budget_one_below_cost_fails(self):
        state = _state(budget=99.0)
        out = commands.buy_node(state, NodeKind.APP, _named("n1", "APP-100"))
        assert out.state is state
        assert out.messages[0].level == LogLevel.WARNING

    def test_identity_not_requested_when_unaffordable(self):
        calls = []

        def identify(kind):
            calls.append(kind)
            return "n1", "APP-100"

        commands.buy_node(_state(budget=10), NodeKind.DB, identify)
        assert calls == []

    def test_node_label(self):
        assert commands.node_label(NodeKind.APP, ScriptedRandom([0.5])) == "APP-550"
        assert commands.node_label(NodeKind.DB, ScriptedRandom([0.0])) == "DB-100"


class TestUpgradeNode:
    def test_upgrade_to_t2(self):
        state = _state(nodes=[_node(health=40)])
        out = commands.upgrade_node(state, "n1")
        node = out.state.node("n1")
        assert node.tier == NodeTier.T2
        assert node.capacity == pytest.approx(35)
        assert node.health == 100.0
        assert out.state.budget == pytest.approx(350)
        assert out.messages[0].text == "Upgraded APP-n1 to T2. New Capacity: 35"

    def test_upgrade_revives_crashed(self):
        state = _state(nodes=[_node(health=0, status=NodeStatus.CRASHED)])
        assert commands.upgrade_node(state, "n1").state.node("n1").status == NodeStatus.ONLINE

    def test_max_tier(self):
        state = _state(nodes=[_node(tier=NodeTier.T3)])
        out = commands.upgrade_node(state, "n1")
        assert out.state is state
        assert out.messages[0].text == "Node is already at maximum tier."

    def test_insufficient_funds(self):
        state = _state(budget=100, nodes=[_node()])
        out = commands.upgrade_node(state, "n1")
        assert out.state is state
        assert out.messages[0].level == LogLevel.WARNING
        assert out.messages[0].text == "Insufficient funds to upgrade node ($250)."

    def test_unknown_node_silent(self):
        state = _state()
        out = commands.upgrade_node(state, "ghost")
        assert out.state is state
        assert out.messages == ()


class TestRepair:
    def test_repair_damaged(self):
        state = _state(nodes=[_node(health=50)])
        out = commands.repair_node(state, "n1")
        assert out.state.node("n1").health == 100.0
        assert out.state.budget == pytest.approx(570)
        assert out.messages[0].text == "Node APP-n1 repaired/rebooted for $30."

    def test_crashed_costs_double(self):
        state = _state(nodes=[_node(health=0, status=NodeStatus.CRASHED)])
        out = commands.repair_node(state, "n1")
        assert out.state.node("n1").status == NodeStatus.ONLINE
        assert out.state.budget == pytest.approx(540)

    def test_repair_insufficient_funds(self):
        state = _state(budget=10, nodes=[_node(health=0, status=NodeStatus.CRASHED)])
        out = commands.repair_node(state, "n1")
        assert out.state is state
        assert out.messages[0].text == "Insufficient funds ($60) to repair node."

    def test_repair_healthy_node_charges_only(self):
        state = _state(nodes=[_node()])
        out = commands.repair_node(state, "n1")
        assert out.state.node("n1") == state.node("n1")
        assert out.state.budget == pytest.approx(570)

    def test_repair_unknown_silent(self):
        state = _state()
        assert commands.repair_node(state, "ghost").state is state

    def test_repair_all(self):
        nodes = [
            _node("a", health=50),
            _node("b", health=0, status=NodeStatus.CRASHED),
            _node("c"),
        ]
        out = commands.repair_all_nodes(_state(nodes=nodes))
        assert all(n.health == 100.0 for n in out.state.nodes)
        assert all(n.status == NodeStatus.ONLINE for n in out.state.nodes)
        assert out.state.budget == pytest.approx(510)
        assert out.messages[0].level == LogLevel.SUCCESS
        assert out.messages[0].text == "Repaired 2 nodes for $90."

    def test_repair_all_is_all_or_nothing(self):
        nodes = [_node("a", health=50), _node("b", health=0, status=NodeStatus.CRASHED)]
        state = _state(budget=50, nodes=nodes)
        out = commands.repair_all_nodes(state)
        assert out.state is state
        assert out.messages[0].text == "Insufficient funds to repair all ($90 needed)."

    def test_repair_all_nothing_to_do(self):
        state = _state(nodes=[_node()])
        out = commands.repair_all_nodes(state)
        assert out.state is state
        assert out.messages[0].level == LogLevel.INFO
        assert out.messages[0].text == "All nodes are healthy."


class TestComponents:
    def test_upgrade_load_balancer(self):
        out = commands.upgrade_component(_state(), ComponentKind.LOAD_BALANCER)
        lb = out.state.component(ComponentKind.LOAD_BALANCER)
        assert lb.level == 2
        assert lb.effectiveness == 75
        assert out.state.budget == pytest.approx(500)
        assert out.messages[0].text == "Upgraded AWS ALB to Level 2."

    def test_first_purchase(self):
        out = commands.upgrade_component(_state(), ComponentKind.CACHE)
        assert out.state.component(ComponentKind.CACHE).purchased
        assert out.state.budget == pytest.approx(400)

    def test_insufficient_funds(self):
        state = _state(budget=10)
        out = commands.upgrade_component(state, ComponentKind.CDN)
        assert out.state is state
        assert out.messages[0].text == "Insufficient funds to upgrade CloudEdge Basic."

    def test_original_snapshot_untouched(self):
        state = _state()
        commands.upgrade_component(state, ComponentKind.LOAD_BALANCER)
        assert state.component(ComponentKind.LOAD_BALANCER).level == 1

    def test_firewall_mode(self):
        out = commands.set_firewall_mode(_state(), FirewallMode.HIGH)
        assert out.state.firewall_mode == FirewallMode.HIGH
        assert out.messages[0].text == "Firewall switched to High Sec mode."


class TestTasks:
    def test_activate(self):
        out = commands.activate_task(_state(), TASK_FLUSH_CACHE, 1000)
        task = out.state.task(TASK_FLUSH_CACHE)
        assert task.is_active
        assert task.last_used == 1000
        assert out.messages[0].text == "Activated: Flush CDN Cache"

    def test_active_task_refused(self):
        state = commands.activate_task(_state(), TASK_FLUSH_CACHE, 1000).state
        out = commands.activate_task(state, TASK_FLUSH_CACHE, 2000)
        assert out.state is state
        assert out.messages[0].level == LogLevel.WARNING
        assert out.messages[0].text == "Flush CDN Cache is on cooldown!"

    def test_cooldown_outlives_effect(self):
        state = commands.activate_task(_state(), TASK_FLUSH_CACHE, 1000).state
        expired = replace(state, tasks=tuple(replace(t, is_active=False) for t in state.tasks))
        assert commands.activate_task(expired, TASK_FLUSH_CACHE, 30_000).state is expired
        again = commands.activate_task(expired, TASK_FLUSH_CACHE, 41_000)
        assert again.state.task(TASK_FLUSH_CACHE).last_used == 41_000

    def test_reactivate_after_cooldown_without_ticks(self):
        state = commands.activate_task(_state(), TASK_FLUSH_CACHE, 1000).state
        out = commands.activate_task(state, TASK_FLUSH_CACHE, 50_000)
        task = out.state.task(TASK_FLUSH_CACHE)
        assert task.is_active
        assert task.last_used == 50_000
        assert out.messages[0].text == "Activated: Flush CDN Cache"

    def test_lapsed_flag_not_active(self):
        state = commands.activate_task(_state(), TASK_FLUSH_CACHE, 1000).state
        task = state.task(TASK_FLUSH_CACHE)
        assert task.active_at(16_000)
        assert not task.active_at(16_001)

    def test_activation_clears_other_lapsed_flags(self):
        state = commands.activate_task(_state(), TASK_FLUSH_CACHE, 1000).state
        out = commands.activate_task(state, TASK_OPTIMIZE_DB, 20_000)
        assert out.state.task_active(TASK_OPTIMIZE_DB)
        assert not out.state.task_active(TASK_FLUSH_CACHE)

    def test_unknown_task_silent(self):
        state = _state()
        out = commands.activate_task(state, "reboot_universe", 1000)
        assert out.state is state
        assert out.messages == ()


class TestLifecycle:
    def test_first_toggle_starts_game(self):
        out = commands.toggle_pause(initial_state())
        assert out.state.is_playing
        assert not out.state.is_paused

    def test_toggle_flips_pause(self):
        running = commands.toggle_pause(initial_state()).state
        paused = commands.toggle_pause(running).state
        assert paused.is_paused
        assert paused.is_playing
        assert not commands.toggle_pause(paused).state.is_paused

    def test_restart(self):
        state = _state(budget=5, nodes=[_node()])
        out = commands.restart_game(state)
        assert out.state.budget == 600
        assert out.state.nodes == ()
        assert out.state.is_playing
        assert out.state.is_paused
        assert out.state.tick_count == 0
        assert out.messages[0].text == commands.WELCOME_MESSAGE
