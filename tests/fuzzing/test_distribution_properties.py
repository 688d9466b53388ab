"""
Property-based tests for the distribution fold.

For any net amount and any rule set:
- every transfer is non-negative and at most the remaining before it
- the transfers plus the final remaining equal the net amount
- nothing follows a remainder rule
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from payday_engines.distribution import (
    FixedShare,
    PercentageShare,
    RemainderShare,
    RuleSpec,
    UnrecognizedShare,
    plan_distribution,
)
from payday_kernel.domain.dtos import RuleOutcome

amounts = st.decimals(
    min_value=Decimal("0.00"),
    max_value=Decimal("999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
net_amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
percents = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100"),
    places=3,
    allow_nan=False,
    allow_infinity=False,
)
shares = st.one_of(
    amounts.map(FixedShare),
    percents.map(PercentageShare),
    st.just(RemainderShare()),
    st.just(UnrecognizedShare("bonus")),
)
rule_lists = st.lists(
    st.tuples(shares, st.integers(min_value=0, max_value=10)),
    max_size=12,
).map(lambda pairs: [RuleSpec(i, share, order) for i, (share, order) in enumerate(pairs)])


class TestCappingInvariant:
    """The sum of transfers never exceeds the net amount."""

    @given(net=net_amounts, rules=rule_lists)
    @settings(max_examples=300)
    def test_transfers_bounded_by_remaining(self, net, rules):
        plan = plan_distribution(net, rules)

        before = net
        for t in plan.transfers:
            assert t.transfer >= 0
            assert t.transfer <= before
            assert t.remaining_after == before - t.transfer
            before = t.remaining_after

        assert plan.total_transferred + plan.remaining == net
        assert plan.total_transferred <= net
        assert plan.remaining >= 0

    @given(net=net_amounts, rules=rule_lists)
    def test_nothing_applied_after_a_remainder(self, net, rules):
        plan = plan_distribution(net, rules)

        drained = False
        for t in plan.transfers:
            if drained:
                assert t.outcome == RuleOutcome.SKIPPED_ZERO_AMOUNT
            if isinstance(t.share, RemainderShare):
                drained = True

    @given(net=net_amounts, rules=rule_lists)
    def test_outcome_matches_transfer(self, net, rules):
        plan = plan_distribution(net, rules)
        for t in plan.transfers:
            assert (t.outcome == RuleOutcome.APPLIED) == (t.transfer > 0)
