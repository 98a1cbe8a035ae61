"""Commission status graph and transition validation.

Pure domain logic with no external dependencies.
"""

from dataclasses import dataclass

from artmarket.domain.models import CommissionStatus

TERMINAL_STATES = frozenset(
    {
        CommissionStatus.COMPLETED,
        CommissionStatus.DELIVERED,
        CommissionStatus.CANCELLED,
        CommissionStatus.REJECTED,
    }
)

# Cancelled and rejected are reachable from every non-terminal state
_SIDE_EXITS = frozenset({CommissionStatus.CANCELLED, CommissionStatus.REJECTED})

TRANSITIONS: dict[CommissionStatus, frozenset[CommissionStatus]] = {
    CommissionStatus.PENDING: frozenset({CommissionStatus.REVIEWING, CommissionStatus.QUOTED}) | _SIDE_EXITS,
    CommissionStatus.REVIEWING: frozenset({CommissionStatus.QUOTED}) | _SIDE_EXITS,
    CommissionStatus.QUOTED: frozenset({CommissionStatus.NEGOTIATING, CommissionStatus.ACCEPTED}) | _SIDE_EXITS,
    CommissionStatus.NEGOTIATING: frozenset({CommissionStatus.QUOTED, CommissionStatus.ACCEPTED}) | _SIDE_EXITS,
    CommissionStatus.ACCEPTED: frozenset({CommissionStatus.IN_PROGRESS}) | _SIDE_EXITS,
    CommissionStatus.IN_PROGRESS: frozenset({CommissionStatus.REVIEW}) | _SIDE_EXITS,
    CommissionStatus.REVIEW: frozenset({CommissionStatus.REVISION, CommissionStatus.COMPLETED}) | _SIDE_EXITS,
    CommissionStatus.REVISION: frozenset({CommissionStatus.IN_PROGRESS, CommissionStatus.REVIEW}) | _SIDE_EXITS,
    CommissionStatus.COMPLETED: frozenset({CommissionStatus.DELIVERED}),  # Delivery handoff only
    CommissionStatus.DELIVERED: frozenset(),
    CommissionStatus.CANCELLED: frozenset(),
    CommissionStatus.REJECTED: frozenset(),
}

# Statuses from which specific operations are legal
QUOTABLE_STATES = frozenset(
    {
        CommissionStatus.PENDING,
        CommissionStatus.REVIEWING,
        CommissionStatus.QUOTED,
        CommissionStatus.NEGOTIATING,
    }
)
ACCEPTABLE_STATES = frozenset({CommissionStatus.QUOTED, CommissionStatus.NEGOTIATING})
DELIVERABLE_STATES = frozenset({CommissionStatus.REVIEW, CommissionStatus.COMPLETED})
REVIEWABLE_STATES = frozenset({CommissionStatus.COMPLETED, CommissionStatus.DELIVERED})
ACTIVE_WORK_STATES = frozenset({CommissionStatus.ACCEPTED, CommissionStatus.IN_PROGRESS})


@dataclass
class TransitionResult:
    """Result of a status transition check."""

    allowed: bool
    reason: str = ""
    new_status: CommissionStatus | None = None


def validate_transition(
    current_status: CommissionStatus,
    target_status: CommissionStatus,
    enforce_graph: bool = True,
) -> TransitionResult:
    """Validate whether a status change is allowed.

    Pure function -- no side effects, no DB access.

    Args:
        current_status: Current status of the commission
        target_status: Requested status
        enforce_graph: When False any status may be set (legacy permissive mode)

    Returns:
        TransitionResult with allowed flag, reason, and new_status if allowed
    """
    if not enforce_graph:
        return TransitionResult(True, new_status=target_status)

    if target_status == current_status:
        return TransitionResult(False, f"Commission is already {current_status.value}")

    allowed_targets = TRANSITIONS.get(current_status, frozenset())
    if target_status in allowed_targets:
        return TransitionResult(True, new_status=target_status)

    if current_status in TERMINAL_STATES:
        return TransitionResult(False, f"Commission is {current_status.value} and cannot change status")

    return TransitionResult(
        False,
        f"Cannot move commission from {current_status.value} to {target_status.value}",
    )


def is_terminal(status: CommissionStatus) -> bool:
    return status in TERMINAL_STATES
