"""
SalaryCycleService -- the user-facing salary cycle operations.

Responsibility:
    Declare cycles, read them back, compute the next expected pay date and
    the countdown to it, preview a distribution without side effects and
    execute a cycle through DistributionExecutor.

Architecture position:
    Kernel > Services -- owns transaction boundaries (one unit of work per
    write, one session per read).  Reads go through selectors; execution
    goes through the executor.

Invariants enforced:
    - Ownership: every operation is scoped to ``user_id``; another user's
      cycle is reported as CycleNotFoundError.
    - Declaration validation happens before anything is written.
    - Next pay date is the latest declared pay date plus
      ``pay_interval_days`` (bi-weekly by default).

Failure modes:
    - InvalidCycleError: declaration failed validation.
    - AccountNotFoundError: a declared rule targets an account the user does
      not own.
    - CycleNotFoundError / CycleAlreadyCompletedError / StorageFailureError
      from the executor.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from payday_engines.distribution import (
    DistributionPlan,
    RuleSpec,
    plan_distribution,
    share_for,
)
from payday_kernel.db.types import HUNDRED, ZERO
from payday_kernel.domain.clock import Clock, SystemClock
from payday_kernel.domain.dtos import (
    CycleInfo,
    CycleStatus,
    DeclareCycleRequest,
    DistributionType,
    ExecutionResult,
    SalaryCountdown,
)
from payday_kernel.exceptions import (
    AccountNotFoundError,
    CycleAlreadyCompletedError,
    CycleNotFoundError,
    InvalidCycleError,
)
from payday_kernel.logging_config import LogContext, get_logger
from payday_kernel.models.salary_cycle import SalaryCycle, SalaryDistribution
from payday_kernel.selectors.cycle_selector import AccountSelector, CycleSelector
from payday_kernel.services.distribution_executor import DistributionExecutor
from payday_kernel.services.unit_of_work import SqlUnitOfWork

logger = get_logger("services.salary_cycle")

DEFAULT_PAY_INTERVAL_DAYS = 14
DEFAULT_RECENT_CYCLES = 6


class SalaryCycleService:
    """
    Salary cycle operations for one database.

    Usage:
        service = SalaryCycleService(get_session_factory(), clock=SystemClock())
        cycle = service.declare_cycle(user_id, request)
        result = service.execute_distributions(user_id, cycle.id)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        pay_interval_days: int = DEFAULT_PAY_INTERVAL_DAYS,
        recent_cycles_limit: int = DEFAULT_RECENT_CYCLES,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._pay_interval = timedelta(days=pay_interval_days)
        self._recent_cycles_limit = recent_cycles_limit
        self._executor = DistributionExecutor(self._new_unit_of_work, self._clock)

    def _new_unit_of_work(self) -> SqlUnitOfWork:
        return SqlUnitOfWork(self._session_factory, self._clock)

    # =========================================================================
    # Writes
    # =========================================================================

    def declare_cycle(self, user_id: UUID, request: DeclareCycleRequest) -> CycleInfo:
        """
        Declare a PENDING cycle with unexecuted rules.

        Raises:
            InvalidCycleError: Amounts or rule types are invalid.
            AccountNotFoundError: A rule targets an account the user does
                not own.
        """
        types = _validate_request(request)

        with self._new_unit_of_work() as uow:
            owned = AccountSelector(uow.session).owned_account_ids(
                user_id, (d.target_account_id for d in request.distributions)
            )
            for rule in request.distributions:
                if rule.target_account_id not in owned:
                    raise AccountNotFoundError(rule.target_account_id)

            now = self._clock.now()
            cycle = SalaryCycle(
                id=uuid4(),
                user_id=user_id,
                pay_date=request.pay_date,
                gross_amount=request.gross_amount,
                net_amount=request.net_amount,
                status=CycleStatus.PENDING.value,
                created_at=now,
                distributions=[
                    SalaryDistribution(
                        id=uuid4(),
                        target_account_id=rule.target_account_id,
                        amount=rule.amount,
                        distribution_type=kind.value,
                        order_index=rule.order_index,
                        is_executed=False,
                    )
                    for rule, kind in zip(request.distributions, types)
                ],
            )
            uow.cycles.add_cycle(cycle)
            info = CycleInfo.from_model(cycle)
            uow.commit()

        logger.info(
            "salary_cycle_declared",
            extra={
                "actor_id": str(user_id),
                "cycle_id": str(info.id),
                "pay_date": info.pay_date,
                "net_amount": str(info.net_amount),
                "rule_count": len(info.distributions),
            },
        )
        return info

    def execute_distributions(self, user_id: UUID, cycle_id: UUID) -> ExecutionResult:
        """Execute a cycle's rules atomically; see DistributionExecutor."""
        return self._executor.execute(user_id, cycle_id)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_cycle(self, user_id: UUID, cycle_id: UUID) -> CycleInfo:
        """
        Get one cycle with ordered rules and target account names.

        Raises:
            CycleNotFoundError: Cycle missing or owned by another user.
        """
        with self._session_factory() as session:
            info = CycleSelector(session).get_cycle(user_id, cycle_id)
        if info is None:
            raise CycleNotFoundError(cycle_id)
        return info

    def get_recent_cycles(self, user_id: UUID, count: int | None = None) -> list[CycleInfo]:
        """The user's most recent cycles, newest pay date first."""
        limit = self._recent_cycles_limit if count is None else count
        if limit <= 0:
            return []
        with self._session_factory() as session:
            return CycleSelector(session).recent_cycles(user_id, limit)

    def get_next_pay_date(self, user_id: UUID) -> date | None:
        """Latest declared pay date plus the pay interval, or None."""
        with self._session_factory() as session:
            latest = CycleSelector(session).latest_pay_date(user_id)
        if latest is None:
            return None
        return latest + self._pay_interval

    def get_salary_countdown(self, user_id: UUID) -> SalaryCountdown:
        """Whole days from the clock's local date to the next pay date."""
        next_pay_date = self.get_next_pay_date(user_id)
        if next_pay_date is None:
            return SalaryCountdown(next_pay_date=None, days_until=-1)
        return SalaryCountdown(
            next_pay_date=next_pay_date,
            days_until=(next_pay_date - self._clock.today()).days,
        )

    def preview_distribution(self, user_id: UUID, cycle_id: UUID) -> DistributionPlan:
        """
        Plan a cycle's transfers without touching any state.

        Rules whose target account no longer exists are planned as skipped.
        Plan keys are rule ids.

        Raises:
            CycleNotFoundError: Cycle missing or owned by another user.
            CycleAlreadyCompletedError: The cycle was already executed.
        """
        with LogContext.bind(actor_id=str(user_id), cycle_id=str(cycle_id)):
            cycle = self.get_cycle(user_id, cycle_id)
            if cycle.status == CycleStatus.COMPLETED:
                raise CycleAlreadyCompletedError(cycle_id)
            missing = frozenset(
                d.id for d in cycle.distributions if d.target_account_name is None
            )
            plan = plan_distribution(
                cycle.net_amount,
                [
                    RuleSpec(
                        key=d.id,
                        share=share_for(d.distribution_type, d.amount),
                        order_index=d.order_index,
                    )
                    for d in cycle.distributions
                ],
                skip=missing,
            )
            logger.info(
                "distribution_previewed",
                extra={
                    "total_transferred": str(plan.total_transferred),
                    "remaining": str(plan.remaining),
                },
            )
            return plan


def _validate_request(request: DeclareCycleRequest) -> list[DistributionType]:
    """Validate a declaration; return the parsed rule types in input order."""
    for name in ("gross_amount", "net_amount"):
        value = getattr(request, name)
        if not isinstance(value, Decimal):
            raise InvalidCycleError(f"{name} must be a Decimal", field=name)
        if not value.is_finite():
            raise InvalidCycleError(f"{name} must be finite", field=name)
    if request.net_amount <= ZERO:
        raise InvalidCycleError("net amount must be positive", field="net_amount")
    if request.gross_amount < ZERO:
        raise InvalidCycleError("gross amount cannot be negative", field="gross_amount")

    types: list[DistributionType] = []
    for i, rule in enumerate(request.distributions):
        field = f"distributions[{i}]"
        try:
            kind = DistributionType.parse(rule.distribution_type)
        except ValueError:
            raise InvalidCycleError(
                f"unknown distribution type {rule.distribution_type!r}",
                field=f"{field}.distribution_type",
            ) from None
        if not isinstance(rule.amount, Decimal) or not rule.amount.is_finite():
            raise InvalidCycleError("amount must be a finite Decimal", field=f"{field}.amount")
        if rule.amount < ZERO:
            raise InvalidCycleError("amount cannot be negative", field=f"{field}.amount")
        if kind == DistributionType.PERCENTAGE and rule.amount > HUNDRED:
            raise InvalidCycleError(
                "percentage cannot exceed 100", field=f"{field}.amount"
            )
        types.append(kind)
    return types
