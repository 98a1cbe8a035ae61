"""Payment schedule derivation.

Pure functions with no external dependencies. Amounts are Decimal values
quantized to cents.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from artmarket.domain.models import Installment, Milestone, Payment

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MAX_AMOUNT = Decimal("9999999999.99")  # Numeric(12, 2) price columns
DEFAULT_FINAL_PAYMENT_DAYS = 30


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a monetary value to cents, rounding half up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_payment_schedule(
    agreed_price: Decimal,
    milestones: Sequence[Milestone],
    expected_completion: datetime | None,
    now: datetime,
    final_payment_days: int = DEFAULT_FINAL_PAYMENT_DAYS,
) -> tuple[Installment, ...]:
    """Build the installment schedule covering an agreed price.

    With milestones: one installment per milestone, sized by its payment
    percentage and due on its due date. When the percentages total 100 the
    last installment absorbs the cent rounding remainder, so the schedule sums
    exactly to the agreed price.

    Without milestones: 50% due now, 50% due at expected completion (or
    ``final_payment_days`` from now when there is no expected completion).
    """
    price = to_money(agreed_price)

    if milestones:
        amounts = [to_money(price * m.payment_percentage / HUNDRED) for m in milestones]
        if sum((m.payment_percentage for m in milestones), Decimal("0")) == HUNDRED:
            amounts[-1] += price - sum(amounts, Decimal("0"))
        return tuple(
            Installment(amount=amount, due_date=milestone.due_date)
            for amount, milestone in zip(amounts, milestones)
        )

    upfront = to_money(price / 2)
    final_due = expected_completion or now + timedelta(days=final_payment_days)
    return (
        Installment(amount=upfront, due_date=now),
        Installment(amount=price - upfront, due_date=final_due),
    )


def schedule_total(schedule: Sequence[Installment]) -> Decimal:
    return sum((i.amount for i in schedule), Decimal("0"))


def next_payment_due(payment: Payment) -> Installment | None:
    """Earliest unpaid installment by due date, or None when all are paid.

    Installments without a due date sort last.
    """
    unpaid = [i for i in payment.payment_schedule if not i.paid]
    if not unpaid:
        return None
    dated = [i for i in unpaid if i.due_date is not None]
    if dated:
        return min(dated, key=lambda i: i.due_date)
    return unpaid[0]


def platform_fee(payment: Payment) -> Decimal:
    """Platform's cut of the total amount (0 before acceptance)."""
    if payment.total_amount is None:
        return Decimal("0.00")
    return to_money(payment.total_amount * payment.platform_fee_rate)
