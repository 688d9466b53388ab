"""
Module: payday_kernel.selectors.cycle_selector
Responsibility: Read-only queries over salary cycles and the accounts their
    rules target.  Returns CycleInfo DTOs with target account names resolved.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Ownership filter: every cycle query is scoped to one user.
    - Ordering: recent cycles are returned newest pay date first; rules
      within a cycle by order_index.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from payday_kernel.domain.dtos import CycleInfo
from payday_kernel.models.account import Account
from payday_kernel.models.salary_cycle import SalaryCycle
from payday_kernel.selectors.base import BaseSelector


class CycleSelector(BaseSelector[SalaryCycle]):
    """Query salary cycles for one user at a time."""

    def get_cycle(self, user_id: UUID, cycle_id: UUID) -> CycleInfo | None:
        """
        Get one cycle with its rules.

        Returns:
            CycleInfo if the cycle exists and belongs to ``user_id``, else None.
        """
        cycle = self.session.execute(
            select(SalaryCycle).where(
                SalaryCycle.id == cycle_id,
                SalaryCycle.user_id == user_id,
            )
        ).scalar_one_or_none()
        if cycle is None:
            return None
        return CycleInfo.from_model(cycle, self._account_names(cycle))

    def recent_cycles(self, user_id: UUID, limit: int) -> list[CycleInfo]:
        """The ``limit`` most recent cycles by pay date, newest first."""
        cycles = self.session.execute(
            select(SalaryCycle)
            .where(SalaryCycle.user_id == user_id)
            .order_by(SalaryCycle.pay_date.desc(), SalaryCycle.created_at.desc())
            .limit(limit)
        ).scalars().all()
        if not cycles:
            return []
        names = AccountSelector(self.session).names_for(
            d.target_account_id for c in cycles for d in c.distributions
        )
        return [CycleInfo.from_model(c, names) for c in cycles]

    def latest_pay_date(self, user_id: UUID) -> date | None:
        return self.session.execute(
            select(func.max(SalaryCycle.pay_date)).where(
                SalaryCycle.user_id == user_id
            )
        ).scalar_one_or_none()

    def _account_names(self, cycle: SalaryCycle) -> dict[UUID, str]:
        return AccountSelector(self.session).names_for(
            d.target_account_id for d in cycle.distributions
        )


class AccountSelector(BaseSelector[Account]):
    """Query accounts referenced by distribution rules."""

    def names_for(self, account_ids: Iterable[UUID]) -> dict[UUID, str]:
        """Map existing account ids to their names; unknown ids are omitted."""
        ids = set(account_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(Account.id, Account.name).where(Account.id.in_(ids))
        ).all()
        return {row.id: row.name for row in rows}

    def owned_account_ids(self, user_id: UUID, account_ids: Iterable[UUID]) -> set[UUID]:
        """The subset of ``account_ids`` that exist and belong to ``user_id``."""
        ids = set(account_ids)
        if not ids:
            return set()
        return set(
            self.session.execute(
                select(Account.id).where(
                    Account.id.in_(ids),
                    Account.user_id == user_id,
                )
            ).scalars()
        )
