"""
Module: payday_kernel.models.account
Responsibility: ORM persistence for user-owned money accounts -- the targets
    of salary distributions.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - current_balance is only ever changed by read-then-write inside a unit
      of work (AccountStore.save_account_balance); there is no blind
      increment path.

Failure modes:
    - A distribution rule may reference an account that no longer exists;
      the execution engine skips such rules rather than failing.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payday_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from payday_kernel.models.ledger import LedgerEntry


class AccountType(str, Enum):
    """Role an account plays in the user's money flow."""

    PAYROLL = "payroll"  # Where the paycheck lands
    HUB = "hub"  # Day-to-day spending hub
    PARKING = "parking"  # Short-term parking
    SAVINGS = "savings"
    CASH_HOLDING = "cash_holding"


class Account(TrackedBase):
    """
    A single money account owned by one user.

    Contract:
        Balances are stored, not derived; the ledger records how they moved.

    Non-goals:
        - Account CRUD lives outside the kernel; this model only carries what
          distribution needs (owner, name, balance).
    """

    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_account_user", "user_id"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    current_balance: Mapped[Decimal] = mapped_column(
        default=Decimal("0"),
        nullable=False,
    )

    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        back_populates="account",
        order_by="LedgerEntry.occurred_at",
    )

    def __repr__(self) -> str:
        return f"<Account {self.name}: {self.current_balance}>"
