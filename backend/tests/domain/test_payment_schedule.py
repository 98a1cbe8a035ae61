"""Tests for payment schedule derivation and payment projections."""

from datetime import timedelta
from decimal import Decimal

import pytest

from artmarket.domain.models import Installment, Milestone, Payment
from artmarket.domain.payments import (
    derive_payment_schedule,
    next_payment_due,
    platform_fee,
    schedule_total,
    to_money,
)

pytestmark = pytest.mark.unit


def _milestones(*percentages):
    return [Milestone(title=f"Step {i}", payment_percentage=Decimal(p)) for i, p in enumerate(percentages)]


class TestDerivePaymentSchedule:
    """Installments derived at quote acceptance."""

    def test_one_installment_per_milestone(self, now):
        schedule = derive_payment_schedule(Decimal("250"), _milestones("50", "50"), None, now)
        assert [i.amount for i in schedule] == [Decimal("125.00"), Decimal("125.00")]
        assert all(not i.paid for i in schedule)

    def test_rounding_remainder_lands_on_last_installment(self, now):
        """Thirds of 100.00 still sum exactly to the agreed price."""
        schedule = derive_payment_schedule(
            Decimal("100"), _milestones("33.33", "33.33", "33.34"), None, now
        )
        assert [i.amount for i in schedule] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert schedule_total(schedule) == Decimal("100.00")

    def test_uneven_price_sums_exactly(self, now):
        schedule = derive_payment_schedule(Decimal("10.01"), _milestones("50", "50"), None, now)
        assert schedule_total(schedule) == Decimal("10.01")

    def test_milestone_due_dates_carry_over(self, now):
        milestones = [
            Milestone(title="Sketch", due_date=now + timedelta(days=3), payment_percentage=Decimal("30")),
            Milestone(title="Final", payment_percentage=Decimal("70")),
        ]
        schedule = derive_payment_schedule(Decimal("200"), milestones, None, now)
        assert schedule[0].due_date == now + timedelta(days=3)
        assert schedule[1].due_date is None
        assert [i.amount for i in schedule] == [Decimal("60.00"), Decimal("140.00")]

    def test_no_milestones_half_now_half_at_expected_completion(self, now):
        completion = now + timedelta(days=14)
        first, second = derive_payment_schedule(Decimal("250"), [], completion, now)
        assert (first.amount, first.due_date) == (Decimal("125.00"), now)
        assert (second.amount, second.due_date) == (Decimal("125.00"), completion)

    def test_no_milestones_without_completion_uses_final_payment_days(self, now):
        _, second = derive_payment_schedule(Decimal("250"), [], None, now, final_payment_days=45)
        assert second.due_date == now + timedelta(days=45)

    def test_odd_cent_split(self, now):
        first, second = derive_payment_schedule(Decimal("0.03"), [], None, now)
        assert first.amount + second.amount == Decimal("0.03")


class TestPaymentProjections:
    """Next payment due and platform fee."""

    def test_next_payment_due_is_earliest_unpaid(self, now):
        payment = Payment(
            total_amount=Decimal("300"),
            payment_schedule=(
                Installment(amount=Decimal("100"), due_date=now, paid=True),
                Installment(amount=Decimal("100"), due_date=now + timedelta(days=20)),
                Installment(amount=Decimal("100"), due_date=now + timedelta(days=10)),
            ),
        )
        assert next_payment_due(payment).due_date == now + timedelta(days=10)

    def test_undated_installments_sort_last(self, now):
        payment = Payment(
            payment_schedule=(
                Installment(amount=Decimal("50")),
                Installment(amount=Decimal("50"), due_date=now + timedelta(days=2)),
            ),
        )
        assert next_payment_due(payment).due_date == now + timedelta(days=2)

    def test_nothing_due_when_all_paid(self, now):
        payment = Payment(payment_schedule=(Installment(amount=Decimal("50"), paid=True),))
        assert next_payment_due(payment) is None

    def test_platform_fee_is_rate_of_total(self):
        assert platform_fee(Payment(total_amount=Decimal("250"))) == Decimal("25.00")

    def test_platform_fee_zero_before_acceptance(self):
        assert platform_fee(Payment()) == Decimal("0.00")

    def test_to_money_rounds_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(7) == Decimal("7.00")
