"""
Module: payday_kernel.models.ledger
Responsibility: ORM persistence for the append-only transaction ledger.
Architecture position: Kernel > Models.  May import from db/base.py and the
    enumerations in domain/dtos.py only.

Invariants enforced:
    - Append-only: ledger entries are immutable from creation.  UPDATE and
      DELETE through the ORM raise ImmutabilityViolationError (see
      db/immutability.py).
    - Salary distributions always write TransactionType.DEPOSIT with
      TransactionCategory.DISTRIBUTION.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payday_kernel.db.base import Base, UUIDString
from payday_kernel.domain.dtos import TransactionCategory, TransactionType

if TYPE_CHECKING:
    from payday_kernel.models.account import Account


class LedgerEntry(Base):
    """
    One immutable money movement on one account.

    Contract:
        Written once by LedgerWriter.append_ledger_entry(); never updated or
        deleted.  Corrections are new entries.
    """

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transaction_account", "account_id"),
        Index("idx_transaction_occurred_at", "occurred_at"),
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    transaction_type: Mapped[TransactionType] = mapped_column(
        String(20),
        nullable=False,
    )

    category: Mapped[TransactionCategory] = mapped_column(
        String(20),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Business time of the movement
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # For transfers: the other side of the movement
    related_transaction_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    account: Mapped["Account"] = relationship(back_populates="ledger_entries")

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.transaction_type} {self.amount} -> {self.account_id}>"
