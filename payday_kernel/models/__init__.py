"""ORM models for the payday kernel."""

from payday_kernel.domain.dtos import (
    CycleStatus,
    DistributionType,
    TransactionCategory,
    TransactionType,
)
from payday_kernel.models.account import Account, AccountType
from payday_kernel.models.ledger import LedgerEntry
from payday_kernel.models.salary_cycle import SalaryCycle, SalaryDistribution

__all__ = [
    "Account",
    "AccountType",
    "LedgerEntry",
    "TransactionCategory",
    "TransactionType",
    "CycleStatus",
    "DistributionType",
    "SalaryCycle",
    "SalaryDistribution",
]
