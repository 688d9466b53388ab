"""
SqlUnitOfWork -- one SQLAlchemy session as the atomic boundary.

Responsibility:
    Opens a session from a session factory, exposes the cycle, account and
    ledger stores bound to it, and commits or rolls back the whole set of
    writes at once.

Architecture position:
    Kernel > Services -- imperative shell.  The only place in the kernel
    that calls ``session.commit()`` besides ``db.engine.session_scope``.

Invariants enforced:
    - All store writes between begin() and commit() share one session and
      one database transaction.
    - close() is idempotent and always releases the session.

Failure modes:
    - StorageFailureError / OptimisticLockError from commit().
    - RuntimeError when a store is used before begin().
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from payday_kernel.domain.clock import Clock, SystemClock
from payday_kernel.domain.ports import UnitOfWork
from payday_kernel.logging_config import get_logger
from payday_kernel.services.stores import (
    SqlAccountStore,
    SqlCycleStore,
    SqlLedgerWriter,
    storage_errors,
)

logger = get_logger("services.unit_of_work")


class SqlUnitOfWork(UnitOfWork):
    """
    Unit of work over a ``sessionmaker``.

    Usage:
        with SqlUnitOfWork(get_session_factory()) as uow:
            cycle = uow.cycles.load_cycle_with_rules(cycle_id)
            ...
            uow.commit()
    """

    cycles: SqlCycleStore
    accounts: SqlAccountStore
    ledger: SqlLedgerWriter

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work has not begun")
        return self._session

    def begin(self) -> None:
        with storage_errors("begin"):
            session = self._session_factory()
            session.begin()
        self._session = session
        self.cycles = SqlCycleStore(session)
        self.accounts = SqlAccountStore(session, self._clock)
        self.ledger = SqlLedgerWriter(session, self._clock)

    def commit(self) -> None:
        with storage_errors("commit", "SalaryCycle"):
            self.session.commit()

    def rollback(self) -> None:
        if self._session is None:
            return
        with storage_errors("rollback"):
            self._session.rollback()
        logger.debug("unit_of_work_rolled_back")

    def close(self) -> None:
        if self._session is None:
            return
        try:
            self._session.close()
        finally:
            self._session = None
