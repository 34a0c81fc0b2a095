"""Balance tables: every tunable number the simulation reads.

Kept in one place so the curves can be retuned without touching the
pipeline code.  Times are milliseconds unless the name says otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import (
    ComponentKind,
    EventKind,
    EventTemplate,
    FirewallMode,
    NodeKind,
    NodeTier,
    SharedComponent,
    SimulationState,
    Task,
    TrafficPattern,
    TrafficWeights,
)

INITIAL_BUDGET = 600.0
INITIAL_REPUTATION = 100.0
TICK_RATE_MS = 1000

MAX_LOG_ENTRIES = 100
MAX_CHART_POINTS = 60

# Game over thresholds
BANKRUPTCY_BUDGET = -1000.0
MIN_REPUTATION = 0.0


@dataclass(frozen=True)
class TierSpec:
    name: str
    cost: float
    capacity: float
    upkeep: float
    repair_cost: float


@dataclass(frozen=True)
class KindSpec:
    name: str
    cost_mult: float
    capacity_mult: float


NODE_TIERS: dict[NodeTier, TierSpec] = {
    NodeTier.T1: TierSpec("Micro (T1)",    cost=100, capacity=10, upkeep=0.15, repair_cost=30),
    NodeTier.T2: TierSpec("Standard (T2)", cost=250, capacity=35, upkeep=0.45, repair_cost=80),
    NodeTier.T3: TierSpec("Max (T3)",      cost=600, capacity=90, upkeep=1.2,  repair_cost=200),
}

NODE_KINDS: dict[NodeKind, KindSpec] = {
    NodeKind.APP:    KindSpec("App Server",    cost_mult=1.0, capacity_mult=1.0),
    NodeKind.WORKER: KindSpec("Worker Node",   cost_mult=1.1, capacity_mult=1.3),
    NodeKind.DB:     KindSpec("Database Node", cost_mult=2.5, capacity_mult=1.5),
}


def node_cost(tier: NodeTier, kind: NodeKind) -> float:
    return NODE_TIERS[tier].cost * NODE_KINDS[kind].cost_mult


def node_capacity(tier: NodeTier, kind: NodeKind) -> float:
    return NODE_TIERS[tier].capacity * NODE_KINDS[kind].capacity_mult


# -- Traffic ------------------------------------------------------------------

BASE_TRAFFIC = 2.0
LOG_GROWTH_SCALE = 15.0
LOG_GROWTH_MULT = 2.5
LINEAR_GROWTH = 0.12
LATE_GAME_START = 1200
LATE_GAME_SPAN = 300.0
TRAFFIC_NOISE = 0.1          # +/- 10 %
MIN_TRAFFIC = 1.0
PATTERN_SHIFT_INTERVAL = 60  # ticks

TRAFFIC_PATTERNS: dict[str, TrafficPattern] = {
    "NORMAL": TrafficPattern(
        "Normal Flow",
        TrafficWeights(static=0.3, read=0.2, write=0.15, upload=0.05, search=0.1, malicious=0.2),
    ),
    "COMMERCE_SPIKE": TrafficPattern(
        "Shopping Spree",
        TrafficWeights(static=0.2, read=0.35, write=0.15, upload=0.05, search=0.2, malicious=0.05),
    ),
    "DATA_DUMP": TrafficPattern(
        "Data Ingestion",
        TrafficWeights(static=0.1, read=0.1, write=0.4, upload=0.3, search=0.05, malicious=0.05),
    ),
    "VIRAL_CONTENT": TrafficPattern(
        "Viral Content",
        TrafficWeights(static=0.6, read=0.1, write=0.05, upload=0.05, search=0.05, malicious=0.15),
    ),
}
DEFAULT_PATTERN = "NORMAL"

# Relative cost of each request category on the layer that serves it
LOAD_WEIGHTS = {
    "static": 0.5,
    "read": 1.0,
    "write": 1.5,
    "upload": 3.0,
    "search": 2.5,
}
WRITE_COMPUTE_SHARE = 0.5

# -- Security -----------------------------------------------------------------

DDOS_CHANCE = 0.03
DDOS_SURGE_MIN = 2.0
DDOS_SURGE_MAX = 4.0
BOTNET_FALLBACK_MAGNITUDE = 3.0

BASE_BLOCK_RATE = 0.8
WAF_OVERLOAD_PENALTY = 0.4
MAX_BLOCK_RATE = 0.99
PATCH_SECURITY_BONUS = 0.2


@dataclass(frozen=True)
class FirewallModeSpec:
    name: str
    bonus: float
    false_positive: float


FIREWALL_MODES: dict[FirewallMode, FirewallModeSpec] = {
    FirewallMode.STANDARD: FirewallModeSpec("Standard", bonus=0.0, false_positive=0.0),
    FirewallMode.HIGH:     FirewallModeSpec("High Sec", bonus=0.3, false_positive=0.05),
    FirewallMode.PANIC:    FirewallModeSpec("Panic",    bonus=0.7, false_positive=0.25),
}

# -- Tasks --------------------------------------------------------------------

TASK_FLUSH_CACHE = "flush_cache"
TASK_OPTIMIZE_DB = "optimize_db"
TASK_PATCH_SECURITY = "patch_security"

CDN_FLUSH_MULT = 1.5
DB_OPTIMIZE_MULT = 0.6

INITIAL_TASKS: tuple[Task, ...] = (
    Task(
        task_id=TASK_FLUSH_CACHE,
        name="Flush CDN Cache",
        description="Clears static assets. CDN Capacity +50% for 15s.",
        cooldown_ms=40_000,
        duration_ms=15_000,
    ),
    Task(
        task_id=TASK_OPTIMIZE_DB,
        name="Optimize Indexes",
        description="Re-indexes database. DB Efficiency +50% for 15s.",
        cooldown_ms=60_000,
        duration_ms=15_000,
    ),
    Task(
        task_id=TASK_PATCH_SECURITY,
        name="Live Security Patch",
        description="Tightens WAF rules. Boosts Firewall by 20% for 20s.",
        cooldown_ms=60_000,
        duration_ms=20_000,
    ),
)

# -- Events -------------------------------------------------------------------

EVENT_CHANCE = 0.01

EVENT_TEMPLATES: tuple[EventTemplate, ...] = (
    EventTemplate(EventKind.TRAFFIC_SPIKE, "Viral Product Launch",
                  "Massive influx of legitimate traffic!", 25_000, 3.0),
    EventTemplate(EventKind.BOTNET, "Botnet Detected",
                  "Sophisticated DDoS attack inbound.", 20_000, 5.0),
    EventTemplate(EventKind.COOLING_FAILURE, "AC Failure",
                  "Data center overheating. Nodes decaying rapidly.", 30_000, 5.0),
    EventTemplate(EventKind.FIBER_CUT, "Undersea Cable Cut",
                  "Major region disconnected. Traffic dropped.", 15_000, 0.2),
    EventTemplate(EventKind.INVESTOR_FUNDING, "Series B Funding",
                  "Investors injected capital.", 5_000, 800.0),
)

# -- Economics ----------------------------------------------------------------

REVENUE_RATES = {
    "static": 0.4,
    "read": 1.2,
    "write": 2.2,
    "upload": 2.8,
    "search": 1.8,
    "malicious": 0.0,
}

COMPONENT_UPKEEP_RATE = 0.001
NODE_ADMIN_COST = 0.05
UPKEEP_BASE_MULT = 1.0
UPKEEP_MAX_MULT = 4.0
UPKEEP_TICKS_TO_MAX = 1800

# -- Reputation ---------------------------------------------------------------

REPUTATION_GAIN = 0.5
REPUTATION_LOSS = 5.0
MALICIOUS_PENALTY = 5.0

# -- Decay --------------------------------------------------------------------

NODE_DECAY_RATE = 0.2
NODE_BUSY_UTILIZATION = 0.6
NODE_BUSY_MULT = 1.5
NODE_OVERLOAD_UTILIZATION = 0.95
NODE_OVERLOAD_DECAY = 5.0
HEALTH_FULL_CAPACITY = 30.0  # health above which a node delivers full capacity

# -- Alerts -------------------------------------------------------------------

LOAD_ALERT_PERCENT = 90.0
DROP_ALERT_FRACTION = 0.1

# -- Components ---------------------------------------------------------------

INITIAL_COMPONENTS: dict[ComponentKind, SharedComponent] = {
    ComponentKind.LOAD_BALANCER: SharedComponent(
        ComponentKind.LOAD_BALANCER, "AWS ALB", level=1, cost=100, effectiveness=50,
        description="Hard limit on max concurrent requests.",
    ),
    ComponentKind.DATABASE_TECH: SharedComponent(
        ComponentKind.DATABASE_TECH, "DB Optimization", level=1, cost=150, effectiveness=1.0,
        description="Query Efficiency. Multiplies DB Node Capacity.",
    ),
    ComponentKind.FIREWALL: SharedComponent(
        ComponentKind.FIREWALL, "WAF Basic", level=1, cost=80, effectiveness=50,
        description="Web Application Firewall. Filters 50 reqs/s.",
    ),
    ComponentKind.CDN: SharedComponent(
        ComponentKind.CDN, "CloudEdge Basic", level=1, cost=100, effectiveness=40,
        description="Content Delivery Network. Handles 40 static reqs/s.",
    ),
    ComponentKind.CACHE: SharedComponent(
        ComponentKind.CACHE, "Redis Cluster", level=0, cost=200, effectiveness=0,
        description="Memory Cache. Reduces DB Read/Search load.",
    ),
    ComponentKind.QUEUE: SharedComponent(
        ComponentKind.QUEUE, "SQS Queue", level=0, cost=150, effectiveness=0,
        description="Message Queue. Buffers spikes in Write/Upload.",
    ),
}


def initial_state(playing: bool = False) -> SimulationState:
    """Fresh game: starting budget, default components, no nodes."""
    return SimulationState(
        is_playing=playing,
        is_paused=True,
        is_game_over=False,
        tick_count=0,
        budget=INITIAL_BUDGET,
        reputation=INITIAL_REPUTATION,
        nodes=(),
        components=INITIAL_COMPONENTS,
        firewall_mode=FirewallMode.STANDARD,
        tasks=INITIAL_TASKS,
        active_event=None,
        traffic_pattern=DEFAULT_PATTERN,
    )
