"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures and enumerations that flow between
    the distribution engine, the services and their callers: declaration
    input (DeclareCycleRequest), read models (CycleInfo, DistributionInfo,
    SalaryCountdown), execution output (RuleExecution, ExecutionResult) and
    the ledger append contract (LedgerEntryDraft).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service and selector layers.

Invariants enforced:
    - Services return DTOs, never ORM entities.
    - All monetary fields are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from payday_kernel.models.salary_cycle import (
        SalaryCycle as SalaryCycleModel,
        SalaryDistribution as SalaryDistributionModel,
    )


# =============================================================================
# Enumerations
# =============================================================================


class CycleStatus(str, Enum):
    """Lifecycle status of a salary cycle.

    Contract: Transitions are PENDING -> IN_PROGRESS -> COMPLETED.
    FAILED is declared but never assigned by the execution engine.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class DistributionType(str, Enum):
    """How a rule's transfer amount is computed."""

    FIXED = "fixed"  # Flat amount, capped by what is left
    PERCENTAGE = "percentage"  # Percent of the original net amount, capped
    REMAINDER = "remainder"  # Whatever is left

    @classmethod
    def parse(cls, value: str) -> DistributionType:
        """Parse a type name case-insensitively ("Fixed", "FIXED", "fixed").

        Raises:
            ValueError: If the name is not a known distribution type.
        """
        return cls(str(value).strip().lower())


class TransactionType(str, Enum):
    """Direction of money movement on one account."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class TransactionCategory(str, Enum):
    """Why the money moved."""

    SALARY = "salary"
    TRANSFER = "transfer"
    DISTRIBUTION = "distribution"
    EXPENSE = "expense"
    ADJUSTMENT = "adjustment"


class RuleOutcome(str, Enum):
    """What happened to one rule during execution."""

    APPLIED = "applied"
    SKIPPED_MISSING_ACCOUNT = "skipped_missing_account"
    SKIPPED_ZERO_AMOUNT = "skipped_zero_amount"


# =============================================================================
# Declaration input
# =============================================================================


@dataclass(frozen=True)
class DeclareDistribution:
    """One rule as supplied by the caller when declaring a cycle."""

    target_account_id: UUID
    amount: Decimal
    distribution_type: str
    order_index: int


@dataclass(frozen=True)
class DeclareCycleRequest:
    """A salary cycle declaration."""

    pay_date: date
    gross_amount: Decimal
    net_amount: Decimal
    distributions: tuple[DeclareDistribution, ...] = ()


# =============================================================================
# Read models
# =============================================================================


@dataclass(frozen=True)
class DistributionInfo:
    """Immutable view of one distribution rule."""

    id: UUID
    target_account_id: UUID
    amount: Decimal
    distribution_type: DistributionType | str
    order_index: int
    is_executed: bool
    executed_at: datetime | None
    target_account_name: str | None = None

    @classmethod
    def from_model(
        cls,
        model: SalaryDistributionModel,
        account_name: str | None = None,
    ) -> DistributionInfo:
        try:
            distribution_type: DistributionType | str = DistributionType(
                model.distribution_type
            )
        except ValueError:
            distribution_type = model.distribution_type
        return cls(
            id=model.id,
            target_account_id=model.target_account_id,
            amount=model.amount,
            distribution_type=distribution_type,
            order_index=model.order_index,
            is_executed=model.is_executed,
            executed_at=model.executed_at,
            target_account_name=account_name,
        )


@dataclass(frozen=True)
class CycleInfo:
    """Immutable view of a salary cycle and its rules (ordered)."""

    id: UUID
    user_id: UUID
    pay_date: date
    gross_amount: Decimal
    net_amount: Decimal
    status: CycleStatus
    created_at: datetime
    completed_at: datetime | None
    distributions: tuple[DistributionInfo, ...] = ()

    @classmethod
    def from_model(
        cls,
        model: SalaryCycleModel,
        account_names: dict[UUID, str] | None = None,
        include_distributions: bool = True,
    ) -> CycleInfo:
        names = account_names or {}
        distributions: tuple[DistributionInfo, ...] = ()
        if include_distributions:
            distributions = tuple(
                DistributionInfo.from_model(d, names.get(d.target_account_id))
                for d in sorted(model.distributions, key=lambda d: d.order_index)
            )
        return cls(
            id=model.id,
            user_id=model.user_id,
            pay_date=model.pay_date,
            gross_amount=model.gross_amount,
            net_amount=model.net_amount,
            status=CycleStatus(model.status),
            created_at=model.created_at,
            completed_at=model.completed_at,
            distributions=distributions,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == CycleStatus.COMPLETED


@dataclass(frozen=True)
class SalaryCountdown:
    """Days until the next expected pay date.

    ``days_until`` is -1 when the next pay date is unknown.
    """

    next_pay_date: date | None
    days_until: int


# =============================================================================
# Execution output
# =============================================================================


@dataclass(frozen=True)
class RuleExecution:
    """Outcome of processing one rule, in processing order."""

    rule_id: UUID
    target_account_id: UUID
    order_index: int
    distribution_type: DistributionType | str
    outcome: RuleOutcome
    amount: Decimal
    remaining_after: Decimal

    @property
    def applied(self) -> bool:
        return self.outcome == RuleOutcome.APPLIED


@dataclass(frozen=True)
class ExecutionResult:
    """Result of one committed cycle execution."""

    cycle: CycleInfo
    executions: tuple[RuleExecution, ...]
    total_distributed: Decimal
    remaining: Decimal

    @property
    def applied_count(self) -> int:
        return sum(1 for e in self.executions if e.applied)

    @property
    def skipped(self) -> tuple[RuleExecution, ...]:
        return tuple(e for e in self.executions if not e.applied)


# =============================================================================
# Ledger append contract
# =============================================================================


@dataclass(frozen=True)
class LedgerEntryDraft:
    """An entry to append to the ledger.  Never mutated after append."""

    account_id: UUID
    amount: Decimal
    transaction_type: TransactionType
    category: TransactionCategory
    description: str | None
    occurred_at: datetime
