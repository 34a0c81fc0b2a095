"""Load distribution pipeline: routes one tick of traffic through the stack.

Stages, in order:

  1. load balancer cap      raw demand above the LB limit is dropped
  2. hostile injection      botnet event surge, or a random DDoS burst
  3. category split         malicious vs legitimate by pattern weight
  4. firewall               block rate by mode / patch task / overload
  5. re-normalization       legitimate weights scaled to sum to 1
  6. CDN offload            static requests served at the edge first
  7. layer demand           App / Worker / DB demand from category loads
  8. capacity pipeline      once per layer
  9. success composition    a request succeeds only if every layer it
                            touches succeeds
 10. drop accounting        total drops, and the node-failure drops that
                            feed reputation

The function is pure apart from the two DDoS draws it takes from ``rng``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .balance import (
    BASE_BLOCK_RATE,
    BOTNET_FALLBACK_MAGNITUDE,
    CDN_FLUSH_MULT,
    DB_OPTIMIZE_MULT,
    DDOS_CHANCE,
    DDOS_SURGE_MAX,
    DDOS_SURGE_MIN,
    FIREWALL_MODES,
    LOAD_WEIGHTS,
    MAX_BLOCK_RATE,
    PATCH_SECURITY_BONUS,
    TASK_FLUSH_CACHE,
    TASK_OPTIMIZE_DB,
    TASK_PATCH_SECURITY,
    WAF_OVERLOAD_PENALTY,
    WRITE_COMPUTE_SHARE,
)
from .capacity import LayerStats, calculate_layer_stats
from .events import event_magnitude
from .models import ComponentKind, EventKind, NodeKind, SimulationState, TrafficWeights
from .rng import RandomSource


@dataclass(frozen=True)
class CategoryLoads:
    """Requests per legitimate category."""

    static: float = 0.0
    read: float = 0.0
    write: float = 0.0
    upload: float = 0.0
    search: float = 0.0

    @property
    def total(self) -> float:
        return self.static + self.read + self.write + self.upload + self.search


@dataclass(frozen=True)
class PipelineResult:
    raw_demand: float
    entering: float
    dropped_by_lb: float
    surge: float
    total_processing: float
    malicious_load: float
    legitimate_load: float
    block_rate: float
    blocked_malicious: float
    leaked_malicious: float
    false_positives: float
    passing_traffic: float
    loads: CategoryLoads
    cdn_served: float
    cdn_utilization: float
    app_demand: float
    worker_demand: float
    db_demand: float
    app: LayerStats
    worker: LayerStats
    db: LayerStats
    processed: CategoryLoads
    leaked_processed: float
    total_dropped: float
    node_failure_drop: float

    @property
    def processed_legit(self) -> float:
        return self.processed.total

    @property
    def processed_total(self) -> float:
        return self.processed.total + self.leaked_processed

    @property
    def attempted_traffic(self) -> float:
        """Everything the world sent at us this tick, surge included."""
        return self.raw_demand + self.surge

    def utilization(self, kind: NodeKind) -> float:
        return {
            NodeKind.APP: self.app.utilization,
            NodeKind.WORKER: self.worker.utilization,
            NodeKind.DB: self.db.utilization,
        }[kind]


def hostile_surge(state: SimulationState, entering: float, rng: RandomSource) -> float:
    """Extra malicious requests injected on top of entering traffic.

    The DDoS trial is always drawn so the draw sequence does not depend on
    whether a botnet is running.
    """
    botnet = event_magnitude(state, EventKind.BOTNET)
    random_ddos = rng.random() < DDOS_CHANCE
    if botnet is not None:
        return entering * (botnet or BOTNET_FALLBACK_MAGNITUDE)
    if random_ddos:
        return entering * rng.uniform(DDOS_SURGE_MIN, DDOS_SURGE_MAX)
    return 0.0


def block_rate(state: SimulationState, total_processing: float) -> float:
    rate = BASE_BLOCK_RATE + FIREWALL_MODES[state.firewall_mode].bonus
    if state.task_active(TASK_PATCH_SECURITY):
        rate += PATCH_SECURITY_BONUS
    if total_processing > state.component(ComponentKind.FIREWALL).effectiveness:
        rate *= WAF_OVERLOAD_PENALTY
    return min(MAX_BLOCK_RATE, rate)


def split_categories(passing: float, weights: TrafficWeights) -> CategoryLoads:
    legit = weights.legitimate_total
    norm = 1.0 / legit if legit > 0 else 1.0
    return CategoryLoads(
        static=passing * weights.static * norm,
        read=passing * weights.read * norm,
        write=passing * weights.write * norm,
        upload=passing * weights.upload * norm,
        search=passing * weights.search * norm,
    )


def distribute_load(
    state: SimulationState,
    raw_demand: float,
    weights: TrafficWeights,
    rng: RandomSource,
) -> PipelineResult:
    # 1. Load balancer hard cap
    lb_cap = state.component(ComponentKind.LOAD_BALANCER).effectiveness
    entering = min(raw_demand, lb_cap)
    dropped_by_lb = raw_demand - entering

    # 2. Hostile injection
    surge = hostile_surge(state, entering, rng)
    total_processing = entering + surge

    # 3. Category split
    malicious_load = total_processing * weights.malicious + surge
    legitimate_load = total_processing - malicious_load

    # 4. Firewall
    rate = block_rate(state, total_processing)
    blocked = malicious_load * rate
    leaked = malicious_load - blocked
    false_positives = legitimate_load * FIREWALL_MODES[state.firewall_mode].false_positive
    passing = legitimate_load - false_positives

    # 5. Legitimate categories
    loads = split_categories(passing, weights)

    # 6. CDN
    cdn_cap = state.component(ComponentKind.CDN).effectiveness
    if state.task_active(TASK_FLUSH_CACHE):
        cdn_cap *= CDN_FLUSH_MULT
    cdn_served = min(loads.static, cdn_cap)
    static_overflow = loads.static - cdn_served
    cdn_utilization = cdn_served / cdn_cap if loads.static > 0 and cdn_cap > 0 else 0.0

    # 7. Layer demand
    cache = state.component(ComponentKind.CACHE).effect
    read_db = loads.read * (1 - cache)
    search_db = loads.search * (1 - cache)

    app_demand = static_overflow + loads.read + loads.write + loads.search + loads.upload + leaked
    worker_demand = loads.upload * LOAD_WEIGHTS["upload"] + loads.write * WRITE_COMPUTE_SHARE
    db_demand = (
        read_db * LOAD_WEIGHTS["read"]
        + loads.write * LOAD_WEIGHTS["write"]
        + search_db * LOAD_WEIGHTS["search"]
    )
    if state.task_active(TASK_OPTIMIZE_DB):
        db_demand *= DB_OPTIMIZE_MULT

    # 8. Capacity per layer
    queue_buffer = state.component(ComponentKind.QUEUE).effect
    db_efficiency = state.component(ComponentKind.DATABASE_TECH).effectiveness
    app = calculate_layer_stats(app_demand, state.nodes_of(NodeKind.APP))
    worker = calculate_layer_stats(worker_demand, state.nodes_of(NodeKind.WORKER), 1.0, queue_buffer)
    db = calculate_layer_stats(db_demand, state.nodes_of(NodeKind.DB), db_efficiency)

    # 9. Success composition
    static_success = app.success_rate
    data_success = min(app.success_rate, db.success_rate)
    compute_success = min(app.success_rate, worker.success_rate, db.success_rate)

    processed = CategoryLoads(
        static=cdn_served + static_overflow * static_success,
        read=loads.read * data_success,
        write=loads.write * compute_success,
        upload=loads.upload * compute_success,
        search=loads.search * data_success,
    )
    leaked_processed = leaked * app.success_rate
    processed_total = processed.total + leaked_processed

    # 10. Drops
    total_dropped = max(0.0, raw_demand + surge - processed_total - blocked)
    node_failure_drop = max(0.0, passing - processed.total) + dropped_by_lb

    return PipelineResult(
        raw_demand=raw_demand,
        entering=entering,
        dropped_by_lb=dropped_by_lb,
        surge=surge,
        total_processing=total_processing,
        malicious_load=malicious_load,
        legitimate_load=legitimate_load,
        block_rate=rate,
        blocked_malicious=blocked,
        leaked_malicious=leaked,
        false_positives=false_positives,
        passing_traffic=passing,
        loads=loads,
        cdn_served=cdn_served,
        cdn_utilization=cdn_utilization,
        app_demand=app_demand,
        worker_demand=worker_demand,
        db_demand=db_demand,
        app=app,
        worker=worker,
        db=db,
        processed=processed,
        leaked_processed=leaked_processed,
        total_dropped=total_dropped,
        node_failure_drop=node_failure_drop,
    )
