"""
Ports -- collaborator contracts consumed by the distribution engine.

Responsibility:
    Declares the narrow storage contracts the execution engine is given:
    cycle store, account store, ledger writer and the unit-of-work boundary
    that makes their writes atomic as a set.

Architecture position:
    Kernel > Domain -- interfaces only, zero I/O.  Implemented by
    ``payday_kernel.services.stores`` and ``payday_kernel.services.unit_of_work``
    on top of SQLAlchemy.

Invariants enforced:
    - Every write between ``begin()`` and ``commit()``/``rollback()`` is
      atomic as a set.
    - Implementations translate driver failures to StorageFailureError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from payday_kernel.domain.dtos import LedgerEntryDraft

if TYPE_CHECKING:
    from payday_kernel.models.account import Account
    from payday_kernel.models.salary_cycle import SalaryCycle


class CycleStore(ABC):
    """Holds salary cycles and their ordered rule sub-records."""

    @abstractmethod
    def load_cycle_with_rules(self, cycle_id: UUID) -> SalaryCycle | None:
        """Return the cycle with its full rule set, or None.

        Implementations take an exclusive lock on the cycle for the rest of
        the unit of work where the backend supports it.
        """

    @abstractmethod
    def save_cycle_and_rules(self, cycle: SalaryCycle) -> None:
        """Persist cycle status/timestamps and all rule executed flags.

        Raises:
            OptimisticLockError: If the cycle changed since it was loaded.
        """


class AccountStore(ABC):
    """Holds per-account current balances."""

    @abstractmethod
    def load_account(self, account_id: UUID) -> Account | None:
        """Return the account, or None if it does not exist."""

    @abstractmethod
    def save_account_balance(self, account_id: UUID, new_balance: Decimal) -> None:
        """Persist an updated balance for an account loaded in this unit of work."""


class LedgerWriter(ABC):
    """Appends immutable ledger records."""

    @abstractmethod
    def append_ledger_entry(self, entry: LedgerEntryDraft) -> UUID:
        """Append one entry and return its id."""


class UnitOfWork(ABC):
    """
    Atomic boundary spanning the cycle, account and ledger stores.

    Contract:
        ``begin()`` opens the boundary and exposes ``cycles``, ``accounts``
        and ``ledger``; exactly one of ``commit()`` or ``rollback()`` ends it;
        ``close()`` releases resources and is always safe to call.
    """

    cycles: CycleStore
    accounts: AccountStore
    ledger: LedgerWriter

    @abstractmethod
    def begin(self) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self) -> UnitOfWork:
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.close()
