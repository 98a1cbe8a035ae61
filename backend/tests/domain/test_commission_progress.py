"""Tests for milestone progress and upcoming deadline projections."""

from datetime import timedelta
from decimal import Decimal

import pytest

from artmarket.domain.models import (
    Budget,
    Commission,
    CommissionStatus,
    Milestone,
    Requirements,
)
from artmarket.domain.progress import calculate_progress, upcoming_deadlines

pytestmark = pytest.mark.unit


def _commission(status, deadline=None):
    return Commission(
        client_id="client",
        artist_id="artist",
        title="Cat portrait",
        description="A watercolor portrait of two cats.",
        budget=Budget(min=Decimal("100"), max=Decimal("300")),
        requirements=Requirements(deadline=deadline),
        status=status,
    )


class TestCalculateProgress:
    """Progress as the share of completed milestones."""

    def test_no_milestones_returns_zero(self):
        assert calculate_progress(()) == 0

    def test_partial_completion(self):
        milestones = [
            Milestone(title="Sketch", completed=True),
            Milestone(title="Color"),
            Milestone(title="Final"),
        ]
        # 1/3 = 33.3 rounds to 33
        assert calculate_progress(milestones) == 33

    def test_rounds_half_up(self):
        milestones = [Milestone(title=str(i), completed=i == 0) for i in range(8)]
        # 12.5 rounds to 13
        assert calculate_progress(milestones) == 13

    def test_all_completed(self):
        assert calculate_progress([Milestone(title="Only", completed=True)]) == 100


class TestUpcomingDeadlines:
    """Active commissions due within the window."""

    def test_filters_by_window_and_status(self, now):
        soon = _commission(CommissionStatus.IN_PROGRESS, now + timedelta(days=3))
        overdue = _commission(CommissionStatus.ACCEPTED, now - timedelta(days=1))
        later = _commission(CommissionStatus.IN_PROGRESS, now + timedelta(days=30))
        finished = _commission(CommissionStatus.COMPLETED, now + timedelta(days=2))
        undated = _commission(CommissionStatus.IN_PROGRESS)

        result = upcoming_deadlines([soon, overdue, later, finished, undated], now)

        assert result == [overdue, soon]

    def test_custom_window(self, now):
        later = _commission(CommissionStatus.IN_PROGRESS, now + timedelta(days=30))
        assert upcoming_deadlines([later], now, days=31) == [later]
