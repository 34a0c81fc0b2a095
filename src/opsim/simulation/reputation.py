"""Reputation model.

Works on ratios, not counts: serving 5 of 10 requests hurts as much at tick
10 as serving 500 of 1000 does at tick 1500.
"""

from __future__ import annotations

from .balance import MALICIOUS_PENALTY, REPUTATION_GAIN, REPUTATION_LOSS
from .pipeline import PipelineResult


def reputation_delta(
    processed_legit: float,
    node_failure_drop: float,
    malicious_load: float,
    leaked_malicious: float,
) -> float:
    delta = 0.0
    legit_demand = processed_legit + node_failure_drop
    if legit_demand > 0:
        delta += (processed_legit / legit_demand) * REPUTATION_GAIN
        delta -= (node_failure_drop / legit_demand) * REPUTATION_LOSS

    total = legit_demand + malicious_load
    if total > 0 and leaked_malicious > 0:
        delta -= (leaked_malicious / total) * MALICIOUS_PENALTY
    return delta


def next_reputation(current: float, result: PipelineResult) -> float:
    delta = reputation_delta(
        result.processed_legit,
        result.node_failure_drop,
        result.malicious_load,
        result.leaked_malicious,
    )
    return max(0.0, min(100.0, current + delta))
