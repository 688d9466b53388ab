"""
Module: payday_engines.distribution
Responsibility:
    Compute salary-distribution transfer amounts: rule ordering and the three
    amount policies (fixed, percentage, remainder) as a pure fold over a
    running ``remaining`` balance.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payday_kernel/domain and payday_kernel/db/types.

Invariants enforced:
    - Capping: no step transfers more than ``remaining``; the sum of all
      transfers never exceeds the cycle's net amount.
    - Percentage rules are taken against the ORIGINAL net amount, rounded to
      cents (ROUND_HALF_UP), then capped by ``remaining``.
    - Remainder rules take all of ``remaining``; their nominal amount is
      ignored.  After a remainder rule, ``remaining`` is zero.
    - Transfers are never negative; unrecognized rule types transfer zero.
    - Ordering: rules are processed by ``order_index`` ascending, stable for
      ties.
    - Purity: no clock access, no I/O.

Failure modes:
    - ValueError from share constructors on negative amounts or percent.

Usage:
    from payday_engines.distribution import (
        FixedShare, PercentageShare, RemainderShare, RuleSpec, plan_distribution,
    )

    plan = plan_distribution(
        Decimal("4000.00"),
        [
            RuleSpec(key="a", share=FixedShare(Decimal("1000.00")), order_index=0),
            RuleSpec(key="b", share=PercentageShare(Decimal("25")), order_index=1),
            RuleSpec(key="c", share=RemainderShare(), order_index=2),
        ],
    )
    assert [t.transfer for t in plan.transfers] == [
        Decimal("1000.00"), Decimal("1000.00"), Decimal("2000.00"),
    ]
    assert plan.remaining == Decimal("0.00")
"""

from __future__ import annotations

from collections.abc import Collection, Hashable, Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from operator import attrgetter
from typing import Protocol, TypeVar

from payday_kernel.db.types import HUNDRED, ZERO, round_money
from payday_kernel.domain.dtos import DistributionType, RuleOutcome
from payday_kernel.logging_config import get_logger

logger = get_logger("engines.distribution")


# =============================================================================
# Shares: closed union over the amount policies
# =============================================================================


@dataclass(frozen=True)
class FixedShare:
    """Flat amount, capped by what is left."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < ZERO:
            raise ValueError("Fixed amount cannot be negative")


@dataclass(frozen=True)
class PercentageShare:
    """Percent of the original net amount, capped by what is left."""

    percent: Decimal

    def __post_init__(self) -> None:
        if self.percent < ZERO:
            raise ValueError("Percentage cannot be negative")


@dataclass(frozen=True)
class RemainderShare:
    """Whatever is left."""


@dataclass(frozen=True)
class UnrecognizedShare:
    """A stored type this engine does not know; always transfers zero."""

    type_name: str


DistributionShare = FixedShare | PercentageShare | RemainderShare | UnrecognizedShare


def share_for(distribution_type: DistributionType | str, amount: Decimal) -> DistributionShare:
    """
    Map a stored (type, nominal amount) pair to its share.

    Unknown type names map to ``UnrecognizedShare`` rather than raising, so
    a single bad rule cannot abort a cycle.  A negative nominal amount on a
    fixed or percentage rule is treated as zero.
    """
    try:
        kind = DistributionType(distribution_type)
    except ValueError:
        return UnrecognizedShare(str(distribution_type))

    nominal = max(amount, ZERO)
    match kind:
        case DistributionType.FIXED:
            return FixedShare(nominal)
        case DistributionType.PERCENTAGE:
            return PercentageShare(nominal)
        case DistributionType.REMAINDER:
            return RemainderShare()


# =============================================================================
# One fold step
# =============================================================================


@dataclass(frozen=True)
class AllocationStep:
    """Result of one fold step: what moves, and what is left afterwards."""

    transfer: Decimal
    remaining: Decimal

    @property
    def is_transfer(self) -> bool:
        return self.transfer > ZERO


def compute_transfer(share: DistributionShare, net_amount: Decimal, remaining: Decimal) -> Decimal:
    """Transfer amount for one share, before the zero floor.

    Percentage shares are rounded to cents before the cap, since balances
    are held at two decimal places.
    """
    match share:
        case FixedShare(amount=amount):
            return min(amount, remaining)
        case PercentageShare(percent=percent):
            return min(round_money(net_amount * (percent / HUNDRED)), remaining)
        case RemainderShare():
            return remaining
        case UnrecognizedShare(type_name=type_name):
            logger.warning(
                "distribution_unrecognized_type",
                extra={"distribution_type": type_name},
            )
            return ZERO


def allocate_step(share: DistributionShare, net_amount: Decimal, remaining: Decimal) -> AllocationStep:
    """
    Consume ``remaining`` for one rule.

    Preconditions: ``0 <= remaining <= net_amount``.
    Postconditions: ``0 <= transfer <= remaining`` and
        ``step.remaining == remaining - transfer``.
    """
    transfer = compute_transfer(share, net_amount, remaining)
    if transfer <= ZERO:
        return AllocationStep(transfer=ZERO, remaining=remaining)
    return AllocationStep(transfer=transfer, remaining=remaining - transfer)


# =============================================================================
# Ordering
# =============================================================================


class _Ordered(Protocol):
    order_index: int


OrderedT = TypeVar("OrderedT", bound=_Ordered)


def order_rules(rules: Iterable[OrderedT]) -> list[OrderedT]:
    """Rules by ``order_index`` ascending; ties keep their input order."""
    return sorted(rules, key=attrgetter("order_index"))


# =============================================================================
# The full fold
# =============================================================================


@dataclass(frozen=True)
class RuleSpec:
    """A rule as the planner sees it: an opaque key, a share and an order."""

    key: Hashable
    share: DistributionShare
    order_index: int


@dataclass(frozen=True)
class PlannedTransfer:
    """One processed rule within a plan."""

    key: Hashable
    order_index: int
    share: DistributionShare
    outcome: RuleOutcome
    transfer: Decimal
    remaining_after: Decimal


@dataclass(frozen=True)
class DistributionPlan:
    """
    The result of folding a cycle's rules over its net amount.

    Guarantees:
        - ``total_transferred + remaining == net_amount``.
        - ``transfers`` are in processing order.
    """

    net_amount: Decimal
    transfers: tuple[PlannedTransfer, ...]
    remaining: Decimal

    @property
    def total_transferred(self) -> Decimal:
        return sum((t.transfer for t in self.transfers), ZERO)

    @property
    def applied(self) -> tuple[PlannedTransfer, ...]:
        return tuple(t for t in self.transfers if t.outcome == RuleOutcome.APPLIED)


def plan_distribution(
    net_amount: Decimal,
    rules: Sequence[RuleSpec],
    skip: Collection[Hashable] = frozenset(),
) -> DistributionPlan:
    """
    Fold ordered rules over ``net_amount``.

    Args:
        net_amount: The cycle's net amount; the starting ``remaining``.
        rules: Rules in any order; processed by ``order_index``.
        skip: Keys of rules to treat as unresolvable (missing target
            account).  Skipped rules consume nothing.

    Returns:
        DistributionPlan with one PlannedTransfer per rule.
    """
    remaining = net_amount
    transfers: list[PlannedTransfer] = []

    for rule in order_rules(rules):
        if rule.key in skip:
            transfers.append(PlannedTransfer(
                key=rule.key,
                order_index=rule.order_index,
                share=rule.share,
                outcome=RuleOutcome.SKIPPED_MISSING_ACCOUNT,
                transfer=ZERO,
                remaining_after=remaining,
            ))
            continue

        step = allocate_step(rule.share, net_amount, remaining)
        transfers.append(PlannedTransfer(
            key=rule.key,
            order_index=rule.order_index,
            share=rule.share,
            outcome=RuleOutcome.APPLIED if step.is_transfer else RuleOutcome.SKIPPED_ZERO_AMOUNT,
            transfer=step.transfer,
            remaining_after=step.remaining,
        ))
        remaining = step.remaining

    logger.debug("distribution_planned", extra={
        "net_amount": str(net_amount),
        "rule_count": len(transfers),
        "remaining": str(remaining),
    })

    return DistributionPlan(
        net_amount=net_amount,
        transfers=tuple(transfers),
        remaining=remaining,
    )
