"""
Domain layer - pure types, clock abstraction and collaborator contracts.

Nothing in this package performs I/O except SystemClock.
"""

from payday_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from payday_kernel.domain.dtos import (
    CycleInfo,
    CycleStatus,
    DeclareCycleRequest,
    DeclareDistribution,
    DistributionInfo,
    DistributionType,
    ExecutionResult,
    LedgerEntryDraft,
    RuleExecution,
    RuleOutcome,
    SalaryCountdown,
    TransactionCategory,
    TransactionType,
)
from payday_kernel.domain.ports import (
    AccountStore,
    CycleStore,
    LedgerWriter,
    UnitOfWork,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "SequentialClock",
    "CycleInfo",
    "CycleStatus",
    "DeclareCycleRequest",
    "DeclareDistribution",
    "DistributionInfo",
    "DistributionType",
    "ExecutionResult",
    "LedgerEntryDraft",
    "RuleExecution",
    "RuleOutcome",
    "SalaryCountdown",
    "TransactionCategory",
    "TransactionType",
    "AccountStore",
    "CycleStore",
    "LedgerWriter",
    "UnitOfWork",
]
