"""Tests for CycleSelector and AccountSelector."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from payday_kernel.domain.dtos import CycleInfo
from payday_kernel.selectors.cycle_selector import AccountSelector, CycleSelector


class TestCycleSelector:

    def test_get_cycle_returns_dto(self, session, user_id, make_account, insert_cycle):
        hub = make_account(user_id, "Hub")
        cycle_id = insert_cycle(user_id, Decimal("10.00"), [
            (hub, Decimal("1.00"), "fixed", 1),
            (hub, Decimal("0"), "remainder", 0),
        ])

        info = CycleSelector(session).get_cycle(user_id, cycle_id)

        assert isinstance(info, CycleInfo)
        assert [d.order_index for d in info.distributions] == [0, 1]
        assert {d.target_account_name for d in info.distributions} == {"Hub"}

    def test_get_cycle_scoped_to_owner(self, session, user_id, other_user_id, insert_cycle):
        cycle_id = insert_cycle(user_id, Decimal("10.00"), [])
        assert CycleSelector(session).get_cycle(other_user_id, cycle_id) is None

    def test_latest_pay_date(self, session, user_id, insert_cycle):
        selector = CycleSelector(session)
        assert selector.latest_pay_date(user_id) is None

        insert_cycle(user_id, Decimal("10.00"), [], pay_date=date(2024, 5, 3))
        insert_cycle(user_id, Decimal("10.00"), [], pay_date=date(2024, 4, 19))

        assert selector.latest_pay_date(user_id) == date(2024, 5, 3)

    def test_selector_does_not_mutate(self, session, user_id, insert_cycle):
        insert_cycle(user_id, Decimal("10.00"), [])
        CycleSelector(session).recent_cycles(user_id, 6)
        assert not session.new
        assert not session.dirty
        assert not session.deleted


class TestAccountSelector:

    def test_names_for_omits_unknown(self, session, user_id, make_account):
        hub = make_account(user_id, "Hub")
        missing = uuid4()

        assert AccountSelector(session).names_for([hub, missing]) == {hub: "Hub"}
        assert AccountSelector(session).names_for([]) == {}

    def test_owned_account_ids(self, session, user_id, other_user_id, make_account):
        mine = make_account(user_id)
        theirs = make_account(other_user_id)

        owned = AccountSelector(session).owned_account_ids(user_id, [mine, theirs, uuid4()])

        assert owned == {mine}
