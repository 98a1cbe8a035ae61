"""Commission statistics projection."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from artmarket.domain.models import Commission, CommissionStatus
from artmarket.domain.payments import to_money


@dataclass
class StatusBreakdown:
    status: CommissionStatus
    count: int
    total_value: Decimal


@dataclass
class CommissionStats:
    total_commissions: int
    total_value: Decimal
    average_value: Decimal
    status_breakdown: list[StatusBreakdown] = field(default_factory=list)


def compute_commission_stats(commissions: Iterable[Commission]) -> CommissionStats:
    """Group commissions by status and total their agreed prices.

    The average is taken over all commissions, priced or not, and is 0 when
    there are none. Statuses with no commissions are omitted from the
    breakdown, which follows lifecycle order.
    """
    counts: dict[CommissionStatus, int] = {}
    values: dict[CommissionStatus, Decimal] = {}
    total = 0
    total_value = Decimal("0")

    for commission in commissions:
        total += 1
        counts[commission.status] = counts.get(commission.status, 0) + 1
        value = commission.agreed_price or Decimal("0")
        values[commission.status] = values.get(commission.status, Decimal("0")) + value
        total_value += value

    breakdown = [
        StatusBreakdown(status=status, count=counts[status], total_value=to_money(values[status]))
        for status in CommissionStatus
        if status in counts
    ]
    average = to_money(total_value / total) if total else to_money(0)

    return CommissionStats(
        total_commissions=total,
        total_value=to_money(total_value),
        average_value=average,
        status_breakdown=breakdown,
    )
