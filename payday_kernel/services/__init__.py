"""Kernel services: stores, unit of work, distribution execution and cycle operations."""

from payday_kernel.services.base import BaseService
from payday_kernel.services.distribution_executor import DistributionExecutor
from payday_kernel.services.salary_cycle_service import SalaryCycleService
from payday_kernel.services.stores import (
    SqlAccountStore,
    SqlCycleStore,
    SqlLedgerWriter,
    storage_errors,
)
from payday_kernel.services.unit_of_work import SqlUnitOfWork

__all__ = [
    "BaseService",
    "DistributionExecutor",
    "SalaryCycleService",
    "SqlAccountStore",
    "SqlCycleStore",
    "SqlLedgerWriter",
    "SqlUnitOfWork",
    "storage_errors",
]
