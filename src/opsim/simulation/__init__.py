"""Simulation subsystem: tick engine, traffic pipeline, command processor."""
from .balance import initial_state
from .capacity import LayerStats, calculate_layer_stats
from .commands import (
    activate_task,
    buy_node,
    repair_all_nodes,
    repair_node,
    restart_game,
    set_firewall_mode,
    toggle_pause,
    upgrade_component,
    upgrade_node,
)
from .engine import SimulationEngine
from .journal import OpsLog, TrafficHistory
from .models import (
    ChartPoint,
    ComponentKind,
    EventKind,
    FirewallMode,
    GlobalEvent,
    LogEntry,
    LogLevel,
    Message,
    NodeKind,
    NodeStatus,
    NodeTier,
    Outcome,
    ProcessingNode,
    SharedComponent,
    SimulationState,
    Task,
    TrafficMetrics,
    TrafficWeights,
)
from .pipeline import PipelineResult, distribute_load
from .rng import RandomSource, ScriptedRandom, make_rng
from .tick import advance, run_tick

__all__ = [
    "ChartPoint",
    "ComponentKind",
    "EventKind",
    "FirewallMode",
    "GlobalEvent",
    "LayerStats",
    "LogEntry",
    "LogLevel",
    "Message",
    "NodeKind",
    "NodeStatus",
    "NodeTier",
    "OpsLog",
    "Outcome",
    "PipelineResult",
    "ProcessingNode",
    "RandomSource",
    "ScriptedRandom",
    "SharedComponent",
    "SimulationEngine",
    "SimulationState",
    "Task",
    "TrafficHistory",
    "TrafficMetrics",
    "TrafficWeights",
    "activate_task",
    "advance",
    "buy_node",
    "calculate_layer_stats",
    "distribute_load",
    "initial_state",
    "make_rng",
    "repair_all_nodes",
    "repair_node",
    "restart_game",
    "run_tick",
    "set_firewall_mode",
    "toggle_pause",
    "upgrade_component",
    "upgrade_node",
]
