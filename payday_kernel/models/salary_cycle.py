"""
Module: payday_kernel.models.salary_cycle
Responsibility: ORM persistence for salary cycles and their ordered
    distribution rules.
Architecture position: Kernel > Models.  May import from db/base.py and the
    enumerations in domain/dtos.py only.

Invariants enforced:
    - Status moves PENDING -> IN_PROGRESS -> COMPLETED.  FAILED is declared
      but never assigned by the execution engine: a failed execution rolls
      back and leaves the cycle as it was.
    - SalaryCycle.version is an optimistic-concurrency token
      (``version_id_col``).  Every UPDATE matches on the version that was
      loaded, so two executors racing on one cycle cannot both commit.
    - A distribution rule is mutated once, by the engine (is_executed,
      executed_at), and is immutable afterwards (db/immutability.py).
    - target_account_id is a soft reference (no FK): accounts are managed
      outside the kernel, and a dangling target is skipped at execution.

Failure modes:
    - StaleDataError from the ORM when the version check fails; translated
      to OptimisticLockError at the store boundary.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payday_kernel.db.base import Base, UUIDString
from payday_kernel.domain.dtos import CycleStatus, DistributionType


class SalaryCycle(Base):
    """
    One paycheck-distribution event for a user.

    Contract:
        Created PENDING by SalaryCycleService.declare_cycle(); afterwards
        only DistributionExecutor changes status and completed_at.

    Guarantees:
        - distributions are loaded with the cycle and deleted with it.
        - version increments on every UPDATE.
    """

    __tablename__ = "salary_cycles"

    __table_args__ = (
        Index("idx_salary_cycle_user", "user_id"),
        Index("idx_salary_cycle_pay_date", "pay_date"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    pay_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    gross_amount: Mapped[Decimal] = mapped_column(nullable=False)

    net_amount: Mapped[Decimal] = mapped_column(nullable=False)

    status: Mapped[CycleStatus] = mapped_column(
        String(20),
        default=CycleStatus.PENDING.value,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    distributions: Mapped[list["SalaryDistribution"]] = relationship(
        back_populates="cycle",
        cascade="all, delete-orphan",
        order_by="SalaryDistribution.order_index",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<SalaryCycle {self.id} pay_date={self.pay_date} status={self.status}>"

    @property
    def is_completed(self) -> bool:
        return self.status == CycleStatus.COMPLETED


class SalaryDistribution(Base):
    """
    One ordered instruction within a cycle.

    Contract:
        ``amount`` is a flat amount for FIXED, a percent (0-100) for
        PERCENTAGE, and ignored for REMAINDER.  ``order_index`` orders the
        rules of one cycle; it need not be globally unique.
    """

    __tablename__ = "salary_distributions"

    __table_args__ = (
        Index("idx_distribution_cycle", "cycle_id"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("salary_cycles.id", ondelete="CASCADE"),
        nullable=False,
    )

    target_account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    distribution_type: Mapped[DistributionType] = mapped_column(
        String(20),
        nullable=False,
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    is_executed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    executed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    cycle: Mapped[SalaryCycle] = relationship(back_populates="distributions")

    def __repr__(self) -> str:
        return (
            f"<SalaryDistribution {self.distribution_type} {self.amount} "
            f"order={self.order_index} executed={self.is_executed}>"
        )
