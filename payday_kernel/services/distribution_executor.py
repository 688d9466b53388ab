"""
DistributionExecutor -- atomic execution of a salary cycle's rules.

Responsibility:
    Given a user and a cycle, load the cycle with its rules, walk the rules
    in ``order_index`` order, move money into each target account, append a
    ledger entry per transfer, mark each rule executed and complete the
    cycle.  All of it inside one unit of work.

Architecture position:
    Kernel > Services -- imperative shell around the pure calculation in
    ``payday_engines.distribution``.

Invariants enforced:
    - Ownership: a cycle owned by another user is reported exactly like a
      missing cycle (CycleNotFoundError).
    - Single execution: a COMPLETED cycle is rejected before any mutation.
      The IN_PROGRESS claim is flushed immediately, so the cycle's row lock
      and version check fire before any balance moves.
    - Capping: the sum of transfers never exceeds the cycle's net amount.
    - Atomicity: either every balance, ledger entry, rule flag and the cycle
      status are committed together, or none are.
    - Time: every timestamp written comes from the injected Clock.

Failure modes:
    - CycleNotFoundError, CycleAlreadyCompletedError: nothing written.
    - StorageFailureError (incl. OptimisticLockError): rolled back, safe to
      retry.
    - Any other exception: rolled back and re-raised unchanged.

Audit relevance:
    Every applied transfer leaves exactly one DEPOSIT/DISTRIBUTION ledger
    entry on the target account, described with the cycle's pay date.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from decimal import Decimal
from uuid import UUID

from payday_engines.distribution import allocate_step, order_rules, share_for
from payday_kernel.db.types import ZERO
from payday_kernel.domain.clock import Clock, SystemClock
from payday_kernel.domain.dtos import (
    CycleInfo,
    CycleStatus,
    ExecutionResult,
    LedgerEntryDraft,
    RuleExecution,
    RuleOutcome,
    TransactionCategory,
    TransactionType,
)
from payday_kernel.domain.ports import UnitOfWork
from payday_kernel.exceptions import (
    CycleAlreadyCompletedError,
    CycleNotFoundError,
)
from payday_kernel.logging_config import LogContext, get_logger
from payday_kernel.models.salary_cycle import SalaryCycle, SalaryDistribution

logger = get_logger("services.distribution_executor")

LEDGER_DESCRIPTION_FORMAT = "Salary distribution - {pay_date:%Y-%m-%d}"


class DistributionExecutor:
    """
    Runs one cycle's distribution rules as a single unit of work.

    Contract:
        ``execute(user_id, cycle_id)`` returns an ExecutionResult describing
        a committed execution, or raises with nothing committed.

    Non-goals:
        - Does NOT validate rule amounts; declaration does that.
        - Does NOT retry; StorageFailureError is left to the caller.
    """

    def __init__(
        self,
        unit_of_work_factory: Callable[[], UnitOfWork],
        clock: Clock | None = None,
    ):
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock or SystemClock()

    def execute(self, user_id: UUID, cycle_id: UUID) -> ExecutionResult:
        """
        Execute every rule of a PENDING or IN_PROGRESS cycle.

        Args:
            user_id: The caller; must own the cycle.
            cycle_id: Cycle to execute.

        Returns:
            ExecutionResult with one RuleExecution per rule in processing
            order.

        Raises:
            CycleNotFoundError: Cycle missing or owned by another user.
            CycleAlreadyCompletedError: Cycle already executed.
            StorageFailureError: A read, write or commit failed.
        """
        with LogContext.bind(actor_id=str(user_id), cycle_id=str(cycle_id)):
            t0 = time.monotonic()
            logger.info("distribution_started")

            uow = self._unit_of_work_factory()
            uow.begin()
            try:
                result = self._run(uow, user_id, cycle_id)
                uow.commit()
            except Exception as exc:
                uow.rollback()
                logger.warning(
                    "distribution_rolled_back",
                    extra={
                        "error_type": type(exc).__name__,
                        "error_code": getattr(exc, "code", None),
                    },
                )
                raise
            finally:
                uow.close()

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                "distribution_completed",
                extra={
                    "rule_count": len(result.executions),
                    "applied_count": result.applied_count,
                    "total_distributed": str(result.total_distributed),
                    "remaining": str(result.remaining),
                    "duration_ms": duration_ms,
                },
            )
            return result

    def _run(self, uow: UnitOfWork, user_id: UUID, cycle_id: UUID) -> ExecutionResult:
        cycle = uow.cycles.load_cycle_with_rules(cycle_id)
        if cycle is None or cycle.user_id != user_id:
            raise CycleNotFoundError(cycle_id)
        if cycle.status == CycleStatus.COMPLETED:
            raise CycleAlreadyCompletedError(cycle_id)

        # Claim before any money moves
        cycle.status = CycleStatus.IN_PROGRESS.value
        uow.cycles.save_cycle_and_rules(cycle)

        remaining = cycle.net_amount
        executions: list[RuleExecution] = []
        for rule in order_rules(cycle.distributions):
            with LogContext.bind(rule_id=str(rule.id)):
                execution = self._apply_rule(uow, cycle, rule, remaining)
            executions.append(execution)
            remaining = execution.remaining_after

        cycle.status = CycleStatus.COMPLETED.value
        cycle.completed_at = self._clock.now()
        uow.cycles.save_cycle_and_rules(cycle)

        return ExecutionResult(
            cycle=CycleInfo.from_model(cycle),
            executions=tuple(executions),
            total_distributed=cycle.net_amount - remaining,
            remaining=remaining,
        )

    def _apply_rule(
        self,
        uow: UnitOfWork,
        cycle: SalaryCycle,
        rule: SalaryDistribution,
        remaining: Decimal,
    ) -> RuleExecution:
        account = uow.accounts.load_account(rule.target_account_id)
        if account is None:
            return self._skipped(rule, RuleOutcome.SKIPPED_MISSING_ACCOUNT, remaining)

        step = allocate_step(
            share_for(rule.distribution_type, rule.amount),
            cycle.net_amount,
            remaining,
        )
        if not step.is_transfer:
            return self._skipped(rule, RuleOutcome.SKIPPED_ZERO_AMOUNT, remaining)

        uow.accounts.save_account_balance(
            account.id, account.current_balance + step.transfer
        )

        now = self._clock.now()
        uow.ledger.append_ledger_entry(
            LedgerEntryDraft(
                account_id=account.id,
                amount=step.transfer,
                transaction_type=TransactionType.DEPOSIT,
                category=TransactionCategory.DISTRIBUTION,
                description=LEDGER_DESCRIPTION_FORMAT.format(pay_date=cycle.pay_date),
                occurred_at=now,
            )
        )

        rule.is_executed = True
        rule.executed_at = now

        logger.info(
            "distribution_applied",
            extra={
                "target_account_id": str(account.id),
                "distribution_type": str(rule.distribution_type),
                "amount": str(step.transfer),
                "remaining": str(step.remaining),
            },
        )
        return RuleExecution(
            rule_id=rule.id,
            target_account_id=rule.target_account_id,
            order_index=rule.order_index,
            distribution_type=rule.distribution_type,
            outcome=RuleOutcome.APPLIED,
            amount=step.transfer,
            remaining_after=step.remaining,
        )

    @staticmethod
    def _skipped(
        rule: SalaryDistribution,
        outcome: RuleOutcome,
        remaining: Decimal,
    ) -> RuleExecution:
        logger.info(
            "distribution_rule_skipped",
            extra={
                "target_account_id": str(rule.target_account_id),
                "reason": outcome.value,
            },
        )
        return RuleExecution(
            rule_id=rule.id,
            target_account_id=rule.target_account_id,
            order_index=rule.order_index,
            distribution_type=rule.distribution_type,
            outcome=outcome,
            amount=ZERO,
            remaining_after=remaining,
        )
