"""
Stores -- SQLAlchemy implementations of the cycle, account and ledger ports.

Responsibility:
    Load and persist salary cycles, account balances and ledger entries
    inside the caller's session.  Translates driver and ORM failures into the
    kernel's typed storage errors.

Architecture position:
    Kernel > Services -- imperative shell.  Implements the contracts in
    ``payday_kernel.domain.ports``; constructed by SqlUnitOfWork.

Invariants enforced:
    - Flush only: stores never commit or rollback (BaseService contract).
    - The cycle row is loaded ``FOR UPDATE`` so a second executor on a
      row-locking backend waits until the first commits or rolls back.
    - Account rows are loaded ``FOR UPDATE`` so the read-then-write balance
      update cannot lose a concurrent write.
    - A balance write stamps ``updated_at`` from the injected Clock.
    - A stale cycle version on flush surfaces as OptimisticLockError.

Failure modes:
    - StorageFailureError wrapping any SQLAlchemyError (original chained as
      ``__cause__``).
    - OptimisticLockError when the cycle was changed by another transaction.
    - ImmutabilityViolationError from the ORM listeners propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from payday_kernel.domain.clock import Clock, SystemClock
from payday_kernel.domain.dtos import LedgerEntryDraft
from payday_kernel.domain.ports import AccountStore, CycleStore, LedgerWriter
from payday_kernel.exceptions import (
    AccountNotFoundError,
    OptimisticLockError,
    StorageFailureError,
)
from payday_kernel.logging_config import get_logger
from payday_kernel.models.account import Account
from payday_kernel.models.ledger import LedgerEntry
from payday_kernel.models.salary_cycle import SalaryCycle
from payday_kernel.services.base import BaseService

logger = get_logger("services.stores")


@contextmanager
def storage_errors(
    operation: str,
    entity_type: str = "row",
    entity_id: object = None,
) -> Iterator[None]:
    """Translate ORM/driver failures raised inside the block.

    StaleDataError becomes OptimisticLockError; any other SQLAlchemyError
    becomes StorageFailureError.  Everything else propagates unchanged.
    """
    try:
        yield
    except StaleDataError as exc:
        logger.warning(
            "optimistic_lock_conflict",
            extra={"operation": operation, "entity_type": entity_type,
                   "entity_id": str(entity_id)},
        )
        raise OptimisticLockError(entity_type, str(entity_id)) from exc
    except SQLAlchemyError as exc:
        logger.error(
            "storage_failure",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise StorageFailureError(operation, str(exc)) from exc


class SqlCycleStore(BaseService[SalaryCycle], CycleStore):
    """Salary cycles and their rules, one session."""

    def load_cycle_with_rules(self, cycle_id: UUID) -> SalaryCycle | None:
        with storage_errors("load_cycle", "SalaryCycle", cycle_id):
            return self.session.execute(
                select(SalaryCycle)
                .where(SalaryCycle.id == cycle_id)
                .options(selectinload(SalaryCycle.distributions))
                .with_for_update()
            ).scalar_one_or_none()

    def save_cycle_and_rules(self, cycle: SalaryCycle) -> None:
        with storage_errors("save_cycle", "SalaryCycle", cycle.id):
            self.session.add(cycle)
            self.session.flush()

    def add_cycle(self, cycle: SalaryCycle) -> None:
        """Insert a newly declared cycle with its rules."""
        with storage_errors("add_cycle", "SalaryCycle", cycle.id):
            self.session.add(cycle)
            self.session.flush()


class SqlAccountStore(BaseService[Account], AccountStore):
    """Account balances, one session."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def load_account(self, account_id: UUID) -> Account | None:
        with storage_errors("load_account", "Account", account_id):
            return self.session.execute(
                select(Account)
                .where(Account.id == account_id)
                .with_for_update()
            ).scalar_one_or_none()

    def save_account_balance(self, account_id: UUID, new_balance: Decimal) -> None:
        with storage_errors("save_account_balance", "Account", account_id):
            account = self.session.get(Account, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            account.current_balance = new_balance
            account.updated_at = self._clock.now()
            self.session.flush()


class SqlLedgerWriter(BaseService[LedgerEntry], LedgerWriter):
    """Append-only writer for the transactions ledger."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def append_ledger_entry(self, entry: LedgerEntryDraft) -> UUID:
        row = LedgerEntry(
            id=uuid4(),
            account_id=entry.account_id,
            amount=entry.amount,
            transaction_type=entry.transaction_type.value,
            category=entry.category.value,
            description=entry.description,
            occurred_at=entry.occurred_at,
            created_at=self._clock.now(),
        )
        with storage_errors("append_ledger_entry", "LedgerEntry", row.id):
            self.session.add(row)
            self.session.flush()
        return row.id
