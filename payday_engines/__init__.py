"""
Payday Engines - pure calculation, zero I/O.

Engines take plain values and return frozen results.  They never touch the
database, the clock or the network.
"""

from payday_engines.distribution import (
    AllocationStep,
    DistributionPlan,
    DistributionShare,
    FixedShare,
    PercentageShare,
    PlannedTransfer,
    RemainderShare,
    RuleSpec,
    UnrecognizedShare,
    allocate_step,
    compute_transfer,
    order_rules,
    plan_distribution,
    share_for,
)

__all__ = [
    "AllocationStep",
    "DistributionPlan",
    "DistributionShare",
    "FixedShare",
    "PercentageShare",
    "PlannedTransfer",
    "RemainderShare",
    "RuleSpec",
    "UnrecognizedShare",
    "allocate_step",
    "compute_transfer",
    "order_rules",
    "plan_distribution",
    "share_for",
]
