"""Domain model: frozen snapshots of everything the tick engine owns.

Every type here is an immutable dataclass.  The engine never mutates a
snapshot in place: ticks and commands build a new one with
``dataclasses.replace`` and swap it in atomically.  Collections are tuples
(nodes, tasks) or read-only mappings (components) for the same reason.

Status lifecycle of a ProcessingNode:

  ONLINE --(health hits 0)--> CRASHED --(repair / upgrade)--> ONLINE

DEGRADED is part of the status vocabulary but nothing produces it yet.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class NodeKind(str, Enum):
    """Processing layer a node serves (Frontend / Compute / Data-store)."""

    APP = "APP"
    WORKER = "WORKER"
    DB = "DB"


class NodeTier(str, Enum):
    T1 = "T1"
    T2 = "T2"
    T3 = "T3"

    @property
    def next_tier(self) -> Optional[NodeTier]:
        order = list(NodeTier)
        idx = order.index(self)
        return order[idx + 1] if idx + 1 < len(order) else None


class NodeStatus(str, Enum):
    ONLINE = "ONLINE"
    DEGRADED = "DEGRADED"
    CRASHED = "CRASHED"


class ComponentKind(str, Enum):
    LOAD_BALANCER = "LOAD_BALANCER"
    DATABASE_TECH = "DATABASE_TECH"
    FIREWALL = "FIREWALL"
    CDN = "CDN"
    CACHE = "CACHE"
    QUEUE = "QUEUE"


class FirewallMode(str, Enum):
    STANDARD = "STANDARD"
    HIGH = "HIGH"
    PANIC = "PANIC"


class EventKind(str, Enum):
    TRAFFIC_SPIKE = "TRAFFIC_SPIKE"
    BOTNET = "BOTNET"
    COOLING_FAILURE = "COOLING_FAILURE"
    FIBER_CUT = "FIBER_CUT"
    INVESTOR_FUNDING = "INVESTOR_FUNDING"


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    EVENT = "event"


@dataclass(frozen=True)
class ProcessingNode:
    """One unit of capacity in a layer.

    ``capacity`` is requests per tick and is fixed at creation / upgrade
    time (tier capacity x kind multiplier); health only scales what the
    node actually delivers in the capacity pipeline.
    """

    node_id: str
    name: str
    kind: NodeKind
    tier: NodeTier
    capacity: float
    status: NodeStatus = NodeStatus.ONLINE
    health: float = 100.0

    @property
    def is_crashed(self) -> bool:
        return self.status == NodeStatus.CRASHED

    @property
    def needs_repair(self) -> bool:
        return self.health < 100.0 or self.is_crashed

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "name": self.name,
            "kind": self.kind.value,
            "tier": self.tier.value,
            "status": self.status.value,
            "health": round(self.health, 2),
            "capacity": self.capacity,
        }


@dataclass(frozen=True)
class SharedComponent:
    """A single shared piece of infrastructure (load balancer, WAF, ...).

    ``effectiveness`` is interpreted per kind: a hard request cap for the
    load balancer, a capacity multiplier for database tech, a request
    budget for the firewall and CDN, a 0-1 read offload for the cache and a
    buffer size for the queue.  Level 0 means not yet purchased.
    """

    kind: ComponentKind
    name: str
    level: int
    cost: float
    effectiveness: float
    description: str

    @property
    def purchased(self) -> bool:
        return self.level > 0

    @property
    def effect(self) -> float:
        """Effectiveness, or 0 while the component is not purchased."""
        return self.effectiveness if self.purchased else 0.0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "level": self.level,
            "cost": round(self.cost, 2),
            "effectiveness": self.effectiveness,
            "description": self.description,
        }


@dataclass(frozen=True)
class Task:
    """Player-triggered timed buff.  Times are epoch milliseconds."""

    task_id: str
    name: str
    description: str
    cooldown_ms: float
    duration_ms: float
    last_used: float = 0.0
    is_active: bool = False

    def on_cooldown(self, now: float) -> bool:
        return self.last_used != 0 and now - self.last_used < self.cooldown_ms

    def expired(self, now: float) -> bool:
        return self.is_active and now - self.last_used > self.duration_ms

    def active_at(self, now: float) -> bool:
        """Active flag as of ``now``, whether or not a tick has cleared it yet."""
        return self.is_active and not self.expired(now)

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "name": self.name,
            "description": self.description,
            "cooldown_ms": self.cooldown_ms,
            "duration_ms": self.duration_ms,
            "last_used": self.last_used,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class EventTemplate:
    kind: EventKind
    name: str
    description: str
    duration_ms: float
    magnitude: float


@dataclass(frozen=True)
class GlobalEvent:
    event_id: str
    kind: EventKind
    name: str
    description: str
    duration_ms: float
    start_time: float
    magnitude: float

    def expired(self, now: float) -> bool:
        return now - self.start_time > self.duration_ms

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "kind": self.kind.value,
            "name": self.name,
            "description": self.description,
            "duration_ms": self.duration_ms,
            "start_time": self.start_time,
            "magnitude": self.magnitude,
        }


@dataclass(frozen=True)
class TrafficWeights:
    """Share of each request category in a traffic pattern (sums to 1.0)."""

    static: float
    read: float
    write: float
    upload: float
    search: float
    malicious: float

    @property
    def legitimate_total(self) -> float:
        return self.static + self.read + self.write + self.upload + self.search


@dataclass(frozen=True)
class TrafficPattern:
    name: str
    weights: TrafficWeights


@dataclass(frozen=True)
class TrafficMetrics:
    """Per-tick traffic and load figures shown on the dashboard."""

    current_traffic: float = 0.0
    processed_traffic: float = 0.0
    dropped_traffic: float = 0.0
    malicious_traffic: float = 0.0
    blocked_malicious: float = 0.0
    upkeep_cost: float = 0.0
    app_load: float = 0.0
    worker_load: float = 0.0
    db_load: float = 0.0
    cdn_load: float = 0.0

    def to_dict(self) -> dict:
        return {
            "current_traffic": round(self.current_traffic, 2),
            "processed_traffic": round(self.processed_traffic, 2),
            "dropped_traffic": round(self.dropped_traffic, 2),
            "malicious_traffic": round(self.malicious_traffic, 2),
            "blocked_malicious": round(self.blocked_malicious, 2),
            "upkeep_cost": round(self.upkeep_cost, 4),
            "app_load": round(self.app_load, 1),
            "worker_load": round(self.worker_load, 1),
            "db_load": round(self.db_load, 1),
            "cdn_load": round(self.cdn_load, 1),
        }


def _freeze(components: Mapping[ComponentKind, SharedComponent]) -> Mapping[ComponentKind, SharedComponent]:
    return MappingProxyType(dict(components))


@dataclass(frozen=True)
class SimulationState:
    """Aggregate root.  Only the engine swaps it; everyone else reads it."""

    is_playing: bool = False
    is_paused: bool = True
    is_game_over: bool = False
    tick_count: int = 0
    budget: float = 0.0
    reputation: float = 100.0
    nodes: tuple[ProcessingNode, ...] = ()
    components: Mapping[ComponentKind, SharedComponent] = field(default_factory=lambda: _freeze({}))
    firewall_mode: FirewallMode = FirewallMode.STANDARD
    tasks: tuple[Task, ...] = ()
    active_event: Optional[GlobalEvent] = None
    traffic_pattern: str = "NORMAL"
    metrics: TrafficMetrics = field(default_factory=TrafficMetrics)

    def __post_init__(self) -> None:
        if not isinstance(self.components, MappingProxyType):
            object.__setattr__(self, "components", _freeze(self.components))

    @property
    def is_running(self) -> bool:
        """True when the scheduler is allowed to fire a tick."""
        return self.is_playing and not self.is_paused and not self.is_game_over

    def component(self, kind: ComponentKind) -> SharedComponent:
        return self.components[kind]

    def with_component(self, comp: SharedComponent) -> dict[ComponentKind, SharedComponent]:
        updated = dict(self.components)
        updated[comp.kind] = comp
        return updated

    def node(self, node_id: str) -> Optional[ProcessingNode]:
        for n in self.nodes:
            if n.node_id == node_id:
                return n
        return None

    def nodes_of(self, kind: NodeKind) -> list[ProcessingNode]:
        return [n for n in self.nodes if n.kind == kind]

    def task(self, task_id: str) -> Optional[Task]:
        for t in self.tasks:
            if t.task_id == task_id:
                return t
        return None

    def task_active(self, task_id: str) -> bool:
        t = self.task(task_id)
        return t is not None and t.is_active

    def expire_tasks(self, now: float) -> SimulationState:
        """Clear the active flag on tasks whose duration has run out."""
        if not any(t.expired(now) for t in self.tasks):
            return self
        tasks = tuple(replace(t, is_active=False) if t.expired(now) else t for t in self.tasks)
        return replace(self, tasks=tasks)

    def to_dict(self) -> dict:
        """Serialize for EventBus / API consumption."""
        return {
            "is_playing": self.is_playing,
            "is_paused": self.is_paused,
            "is_game_over": self.is_game_over,
            "tick_count": self.tick_count,
            "budget": round(self.budget, 2),
            "reputation": round(self.reputation, 2),
            "nodes": [n.to_dict() for n in self.nodes],
            "components": {k.value: c.to_dict() for k, c in self.components.items()},
            "firewall_mode": self.firewall_mode.value,
            "tasks": [t.to_dict() for t in self.tasks],
            "active_event": self.active_event.to_dict() if self.active_event else None,
            "traffic_pattern": self.traffic_pattern,
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class Message:
    """A log line produced by a reducer, before it is timestamped."""

    level: LogLevel
    text: str


@dataclass(frozen=True)
class Outcome:
    """Result of a reducer: the next snapshot plus the messages it emitted.

    On a validated no-op ``state`` is the very object that was passed in.
    """

    state: SimulationState
    messages: tuple[Message, ...] = ()


@dataclass(frozen=True)
class LogEntry:
    entry_id: str
    timestamp: float
    message: str
    level: LogLevel

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "timestamp": self.timestamp,
            "message": self.message,
            "level": self.level.value,
        }


@dataclass(frozen=True)
class ChartPoint:
    time: str
    legitimate: int
    malicious: int
    processed: int

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "legitimate": self.legitimate,
            "malicious": self.malicious,
            "processed": self.processed,
        }
