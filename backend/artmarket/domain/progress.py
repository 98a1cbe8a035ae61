"""Deterministic progress and deadline projections.

Pure functions with no external dependencies.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from artmarket.domain.models import Commission, Milestone
from artmarket.domain.transitions import ACTIVE_WORK_STATES


def calculate_progress(milestones: Sequence[Milestone]) -> int:
    """Compute commission progress (0-100) from completed milestones.

    Returns:
        Integer percentage, rounded half up; 0 when there are no milestones
    """
    if not milestones:
        return 0

    completed = sum(1 for m in milestones if m.completed)
    return int(completed * 100 / len(milestones) + 0.5)


def upcoming_deadlines(commissions: Iterable[Commission], now: datetime, days: int = 7) -> list[Commission]:
    """Active commissions whose requirements deadline falls within ``days``.

    Overdue commissions are included. Sorted by deadline, soonest first.
    """
    horizon = now + timedelta(days=days)
    due = [
        c
        for c in commissions
        if c.status in ACTIVE_WORK_STATES
        and c.requirements.deadline is not None
        and c.requirements.deadline <= horizon
    ]
    return sorted(due, key=lambda c: c.requirements.deadline)
