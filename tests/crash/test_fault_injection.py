"""
Fault injection and atomicity tests for cycle execution.

A crash at any point during execution must leave balances, ledger rows,
rule flags and cycle status exactly as they were before the call.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from payday_kernel.exceptions import StorageFailureError
from payday_kernel.services.distribution_executor import DistributionExecutor
from payday_kernel.services.stores import (
    SqlAccountStore,
    SqlCycleStore,
    SqlLedgerWriter,
)
from payday_kernel.services.unit_of_work import SqlUnitOfWork


class SimulatedCrash(Exception):
    """Exception to simulate a crash at a specific point."""
    pass


def _fail_after(original, successes: int):
    """Wrap a store method so it raises SimulatedCrash after ``successes`` calls."""
    calls = {"n": 0}

    def wrapper(self, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] > successes:
            raise SimulatedCrash(f"crash on call {calls['n']}")
        return original(self, *args, **kwargs)

    return wrapper


@pytest.fixture
def three_rule_cycle(user_id, make_account, insert_cycle):
    """A 3000.00 cycle over three funded accounts."""
    a = make_account(user_id, "Hub", Decimal("100.00"))
    b = make_account(user_id, "Parking", Decimal("200.00"))
    c = make_account(user_id, "Savings", Decimal("300.00"))
    return insert_cycle(user_id, Decimal("3000.00"), [
        (a, Decimal("1000.00"), "fixed", 0),
        (b, Decimal("10"), "percentage", 1),
        (c, Decimal("0"), "remainder", 2),
    ])


class TestAtomicityGuarantees:
    """Partial writes are never committed."""

    @pytest.mark.parametrize("successes", [0, 1, 2])
    def test_crash_in_ledger_writer(self, executor, user_id, three_rule_cycle, db_state, successes):
        before = db_state()

        with patch.object(
            SqlLedgerWriter, "append_ledger_entry",
            _fail_after(SqlLedgerWriter.append_ledger_entry, successes),
        ):
            with pytest.raises(SimulatedCrash):
                executor.execute(user_id, three_rule_cycle)

        assert db_state() == before

    @pytest.mark.parametrize("successes", [0, 1, 2])
    def test_crash_in_balance_save(self, executor, user_id, three_rule_cycle, db_state, successes):
        before = db_state()

        with patch.object(
            SqlAccountStore, "save_account_balance",
            _fail_after(SqlAccountStore.save_account_balance, successes),
        ):
            with pytest.raises(SimulatedCrash):
                executor.execute(user_id, three_rule_cycle)

        assert db_state() == before

    def test_crash_on_final_cycle_save(self, executor, user_id, three_rule_cycle, db_state):
        """The claim save succeeds, the completion save crashes."""
        before = db_state()

        with patch.object(
            SqlCycleStore, "save_cycle_and_rules",
            _fail_after(SqlCycleStore.save_cycle_and_rules, 1),
        ):
            with pytest.raises(SimulatedCrash):
                executor.execute(user_id, three_rule_cycle)

        assert db_state() == before

    def test_crash_on_commit_wrapped_as_storage_failure(
        self, executor, user_id, three_rule_cycle, db_state,
    ):
        before = db_state()
        driver_error = OperationalError("COMMIT", {}, Exception("disk I/O error"))

        with patch("sqlalchemy.orm.Session.commit", side_effect=driver_error):
            with pytest.raises(StorageFailureError) as exc_info:
                executor.execute(user_id, three_rule_cycle)

        assert exc_info.value.code == "STORAGE_FAILURE"
        assert exc_info.value.operation == "commit"
        assert exc_info.value.__cause__ is driver_error
        assert db_state() == before

    def test_execution_succeeds_after_crash(self, executor, user_id, three_rule_cycle, db_state):
        """A rolled-back attempt leaves the cycle executable."""
        with patch.object(
            SqlLedgerWriter, "append_ledger_entry",
            _fail_after(SqlLedgerWriter.append_ledger_entry, 1),
        ):
            with pytest.raises(SimulatedCrash):
                executor.execute(user_id, three_rule_cycle)

        result = executor.execute(user_id, three_rule_cycle)

        assert [e.amount for e in result.executions] == [
            Decimal("1000.00"), Decimal("300.00"), Decimal("1700.00"),
        ]
        assert len(db_state().ledger) == 3


class TestUnitOfWorkLifecycle:
    """The unit of work always releases its session."""

    def test_closed_after_failure(self, session_factory, deterministic_clock, user_id, three_rule_cycle):
        opened: list[SqlUnitOfWork] = []

        def factory():
            uow = SqlUnitOfWork(session_factory, deterministic_clock)
            opened.append(uow)
            return uow

        executor = DistributionExecutor(factory, deterministic_clock)
        with patch.object(
            SqlLedgerWriter, "append_ledger_entry",
            _fail_after(SqlLedgerWriter.append_ledger_entry, 0),
        ):
            with pytest.raises(SimulatedCrash):
                executor.execute(user_id, three_rule_cycle)

        assert len(opened) == 1
        with pytest.raises(RuntimeError):
            opened[0].session
