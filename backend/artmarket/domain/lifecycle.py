"""Commission lifecycle operations.

Pure functions -- each takes an immutable Commission and the caller, and
returns a TransitionOutcome holding the new Commission plus the notifications
to send once the new value has been persisted. Errors are raised before any
value is built, so a failed operation leaves nothing to persist.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from artmarket.core.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from artmarket.domain.models import (
    Budget,
    Caller,
    Commission,
    CommissionStatus,
    Contract,
    FinalDelivery,
    Message,
    MessageType,
    Milestone,
    Payment,
    ProgressEntry,
    Requirements,
    Review,
    Timeline,
    utcnow,
)
from artmarket.domain.payments import (
    DEFAULT_FINAL_PAYMENT_DAYS,
    HUNDRED,
    MAX_AMOUNT,
    derive_payment_schedule,
    to_money,
)
from artmarket.domain.transitions import (
    ACCEPTABLE_STATES,
    DELIVERABLE_STATES,
    QUOTABLE_STATES,
    REVIEWABLE_STATES,
    is_terminal,
    validate_transition,
)

# Field bounds shared with the request schemas
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 2000
MESSAGE_MAX_LENGTH = 2000
TERMS_MAX_LENGTH = 5000
PROGRESS_TITLE_MAX_LENGTH = 200
PROGRESS_DESCRIPTION_MAX_LENGTH = 1000
MIN_PRICE = Decimal("1")


class CommissionEvent:
    """Event names for committed transitions (log events and pub/sub types)."""

    REQUESTED = "commission.requested"
    MESSAGE_ADDED = "commission.message_added"
    QUOTE_SUBMITTED = "commission.quote_submitted"
    QUOTE_ACCEPTED = "commission.quote_accepted"
    PROGRESS_UPLOADED = "commission.progress_uploaded"
    MILESTONE_COMPLETED = "commission.milestone_completed"
    STATUS_CHANGED = "commission.status_changed"
    REVIEW_LEFT = "commission.review_left"
    DELIVERED = "commission.delivered"


@dataclass(frozen=True)
class NotificationIntent:
    """An email to send to one party after the transition commits."""

    recipient_id: str
    template: str
    subject: str
    data: dict = field(default_factory=dict)


@dataclass
class TransitionOutcome:
    """Result of a lifecycle operation."""

    commission: Commission
    event: str
    notifications: list[NotificationIntent] = field(default_factory=list)
    # False when the operation left the commission untouched
    changed: bool = True


# ──────────────────────────────────────────────────────────────────────────────
# Guards
# ──────────────────────────────────────────────────────────────────────────────


def _require_party(commission: Commission, caller: Caller) -> None:
    if not commission.is_party(caller.user_id):
        raise ForbiddenError("Not authorized")


def _require_artist(commission: Commission, caller: Caller, action: str) -> None:
    if caller.user_id != commission.artist_id:
        raise ForbiddenError(f"Only the artist can {action}")


def _require_client(commission: Commission, caller: Caller, action: str) -> None:
    if caller.user_id != commission.client_id:
        raise ForbiddenError(f"Only the client can {action}")


def _require_status(commission: Commission, allowed: frozenset[CommissionStatus], action: str) -> None:
    if commission.status not in allowed:
        raise InvalidTransitionError(
            commission.status.value,
            f"Cannot {action} while commission is {commission.status.value}",
        )


def _require_length(value: str, name: str, min_length: int, max_length: int) -> None:
    length = len(value.strip())
    if length < min_length or length > max_length:
        raise ValidationError(f"{name} must be {min_length}-{max_length} characters")


def _require_price(value: Decimal, name: str) -> None:
    if not value.is_finite() or not MIN_PRICE <= value <= MAX_AMOUNT:
        raise ValidationError(f"{name} must be between {MIN_PRICE} and {MAX_AMOUNT}")


def validate_budget(budget: Budget) -> None:
    _require_price(budget.min, "Minimum budget")
    _require_price(budget.max, "Maximum budget")
    if budget.max < budget.min:
        raise ValidationError("Maximum budget must be greater than minimum budget")


def validate_milestones(milestones: Sequence[Milestone]) -> None:
    """Each percentage lies in [0, 100] and, when present, they total 100."""
    for index, milestone in enumerate(milestones):
        if not milestone.title.strip():
            raise ValidationError(f"Milestone {index} requires a title")
        if not Decimal("0") <= milestone.payment_percentage <= HUNDRED:
            raise ValidationError(f"Milestone {index} payment percentage must be between 0 and 100")
    if milestones:
        total = sum((m.payment_percentage for m in milestones), Decimal("0"))
        if total != HUNDRED:
            raise ValidationError(f"Milestone payment percentages must total 100 (got {total})")


def _append_message(
    commission: Commission,
    sender_id: str,
    text: str,
    now: datetime,
    message_type: MessageType = MessageType.MESSAGE,
    attachments: Sequence[str] = (),
) -> tuple[Message, ...]:
    entry = Message(
        sender_id=sender_id,
        message=text,
        attachments=tuple(attachments),
        timestamp=now,
        type=message_type,
    )
    return commission.communication + (entry,)


# ──────────────────────────────────────────────────────────────────────────────
# Operations
# ──────────────────────────────────────────────────────────────────────────────


def request_commission(
    client: Caller,
    artist: Caller,
    title: str,
    description: str,
    requirements: Requirements,
    budget: Budget,
    now: datetime | None = None,
    platform_fee_rate: Decimal | None = None,
) -> TransitionOutcome:
    """Create a pending commission from a client's request to an artist."""
    now = now or utcnow()

    if not artist.is_artist:
        raise NotFoundError("Artist not found")
    if artist.user_id == client.user_id:
        raise ValidationError("Cannot commission yourself")
    _require_length(title, "Title", TITLE_MIN_LENGTH, TITLE_MAX_LENGTH)
    _require_length(description, "Description", DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH)
    validate_budget(budget)

    timeline = Timeline()
    if requirements.deadline is not None:
        if requirements.deadline <= now:
            raise ValidationError("Deadline must be in the future")
        seconds = (requirements.deadline - now).total_seconds()
        timeline = Timeline(estimated_days=math.ceil(seconds / 86400))

    commission = Commission(
        client_id=client.user_id,
        artist_id=artist.user_id,
        title=title.strip(),
        description=description.strip(),
        requirements=requirements,
        budget=budget,
        timeline=timeline,
        payment=Payment() if platform_fee_rate is None else Payment(platform_fee_rate=platform_fee_rate),
        status=CommissionStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    return TransitionOutcome(
        commission=commission,
        event=CommissionEvent.REQUESTED,
        notifications=[
            NotificationIntent(
                recipient_id=artist.user_id,
                template="commission-request",
                subject="New Commission Request",
                data={"commission_title": commission.title, "client_name": client.display_name},
            )
        ],
    )


def add_message(
    commission: Commission,
    sender: Caller,
    text: str,
    attachments: Sequence[str] = (),
    message_type: MessageType = MessageType.MESSAGE,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Append a message to the communication log. Status is unchanged."""
    now = now or utcnow()
    _require_party(commission, sender)
    _require_length(text, "Message", 1, MESSAGE_MAX_LENGTH)

    updated = commission.model_copy(
        update={
            "communication": _append_message(commission, sender.user_id, text, now, message_type, attachments),
            "updated_at": now,
        }
    )
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.MESSAGE_ADDED,
        notifications=[
            NotificationIntent(
                recipient_id=commission.counterparty_of(sender.user_id),
                template="commission-message",
                subject=f"New Message: {commission.title}",
                data={
                    "commission_title": commission.title,
                    "sender_name": sender.display_name,
                    "message": text,
                },
            )
        ],
    )


def submit_quote(
    commission: Commission,
    artist: Caller,
    proposed_price: Decimal,
    timeline: Timeline | None = None,
    milestones: Sequence[Milestone] = (),
    terms: str | None = None,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Record the artist's quote and move the commission to quoted.

    Timeline fields supplied with the quote are merged over the existing
    timeline; the milestone list is replaced.
    """
    now = now or utcnow()
    _require_artist(commission, artist, "submit quotes")
    _require_status(commission, QUOTABLE_STATES, "submit a quote")

    _require_price(Decimal(proposed_price), "Proposed price")
    price = to_money(proposed_price)
    if timeline is not None and timeline.estimated_days is not None and timeline.estimated_days < 1:
        raise ValidationError("Estimated days must be at least 1")
    if terms is not None and len(terms) > TERMS_MAX_LENGTH:
        raise ValidationError(f"Terms must be less than {TERMS_MAX_LENGTH} characters")
    validate_milestones(milestones)

    merged_timeline = commission.timeline
    if timeline is not None:
        merged_timeline = commission.timeline.model_copy(update=timeline.model_dump(exclude_none=True))

    updated = commission.model_copy(
        update={
            "proposed_price": price,
            "timeline": merged_timeline,
            "milestones": tuple(milestones),
            "contract": commission.contract.model_copy(update={"terms": terms}),
            "status": CommissionStatus.QUOTED,
            "communication": _append_message(
                commission,
                artist.user_id,
                f"Quote submitted: {price} {commission.budget.currency}",
                now,
                MessageType.QUOTE,
            ),
            "updated_at": now,
        }
    )
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.QUOTE_SUBMITTED,
        notifications=[
            NotificationIntent(
                recipient_id=commission.client_id,
                template="commission-quote",
                subject=f"Quote Received: {commission.title}",
                data={
                    "commission_title": commission.title,
                    "artist_name": artist.display_name,
                    "proposed_price": str(price),
                },
            )
        ],
    )


def accept_quote(
    commission: Commission,
    client: Caller,
    now: datetime | None = None,
    final_payment_days: int = DEFAULT_FINAL_PAYMENT_DAYS,
) -> TransitionOutcome:
    """Accept the current quote, fixing the price and deriving the payment schedule.

    Only legal from quoted or negotiating, so a second acceptance is rejected
    and never overwrites a schedule that may already be partly paid.
    """
    now = now or utcnow()
    _require_client(commission, client, "accept quotes")
    _require_status(commission, ACCEPTABLE_STATES, "accept a quote")
    if commission.proposed_price is None:
        raise InvalidTransitionError(commission.status.value, "No quote to accept")

    agreed_price = commission.proposed_price

    timeline_update: dict = {"start_date": now}
    if commission.timeline.estimated_days:
        timeline_update["expected_completion"] = now + timedelta(days=commission.timeline.estimated_days)
    timeline = commission.timeline.model_copy(update=timeline_update)

    payment = Payment(
        total_amount=agreed_price,
        paid_amount=commission.payment.paid_amount,
        payment_schedule=derive_payment_schedule(
            agreed_price,
            commission.milestones,
            timeline.expected_completion,
            now,
            final_payment_days,
        ),
        platform_fee_rate=commission.payment.platform_fee_rate,
    )

    updated = commission.model_copy(
        update={
            "agreed_price": agreed_price,
            "status": CommissionStatus.ACCEPTED,
            "timeline": timeline,
            "payment": payment,
            "contract": Contract(terms=commission.contract.terms, agreed_date=now),
            "communication": _append_message(
                commission,
                client.user_id,
                f"Quote accepted: {agreed_price} {commission.budget.currency}",
                now,
                MessageType.APPROVAL,
            ),
            "updated_at": now,
        }
    )
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.QUOTE_ACCEPTED,
        notifications=[
            NotificationIntent(
                recipient_id=commission.artist_id,
                template="commission-accepted",
                subject=f"Quote Accepted: {commission.title}",
                data={
                    "commission_title": commission.title,
                    "client_name": client.display_name,
                    "agreed_price": str(agreed_price),
                },
            )
        ],
    )


def upload_progress(
    commission: Commission,
    artist: Caller,
    title: str,
    images: Sequence[str],
    description: str = "",
    now: datetime | None = None,
) -> TransitionOutcome:
    """Append a work-in-progress entry. Status is unchanged."""
    now = now or utcnow()
    _require_artist(commission, artist, "upload progress")
    if is_terminal(commission.status):
        raise InvalidTransitionError(
            commission.status.value,
            f"Cannot upload progress while commission is {commission.status.value}",
        )
    _require_length(title, "Title", 1, PROGRESS_TITLE_MAX_LENGTH)
    if len(description) > PROGRESS_DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Description must be less than {PROGRESS_DESCRIPTION_MAX_LENGTH} characters")
    if not images:
        raise ValidationError("At least one image is required")

    entry = ProgressEntry(title=title, description=description, images=tuple(images), upload_date=now)
    updated = commission.model_copy(
        update={"work_in_progress": commission.work_in_progress + (entry,), "updated_at": now}
    )
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.PROGRESS_UPLOADED,
        notifications=[
            NotificationIntent(
                recipient_id=commission.client_id,
                template="commission-progress",
                subject=f"Progress Update: {commission.title}",
                data={
                    "commission_title": commission.title,
                    "artist_name": artist.display_name,
                    "progress_title": title,
                },
            )
        ],
    )


def complete_milestone(
    commission: Commission,
    artist: Caller,
    milestone_index: int,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Mark one milestone completed.

    Payment and status are untouched; installments are settled by the
    external payment confirmation process.
    """
    now = now or utcnow()
    _require_artist(commission, artist, "complete milestones")
    if not 0 <= milestone_index < len(commission.milestones):
        raise NotFoundError("Milestone not found")
    if is_terminal(commission.status):
        raise InvalidTransitionError(
            commission.status.value,
            f"Cannot complete milestones while commission is {commission.status.value}",
        )

    milestone = commission.milestones[milestone_index]
    if milestone.completed:
        return TransitionOutcome(commission=commission, event=CommissionEvent.MILESTONE_COMPLETED, changed=False)

    milestones = list(commission.milestones)
    milestones[milestone_index] = milestone.model_copy(update={"completed": True, "completed_date": now})
    updated = commission.model_copy(update={"milestones": tuple(milestones), "updated_at": now})
    return TransitionOutcome(commission=updated, event=CommissionEvent.MILESTONE_COMPLETED)


def update_status(
    commission: Commission,
    actor: Caller,
    new_status: CommissionStatus,
    enforce_graph: bool = True,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Move the commission to a new status and record the change in the log."""
    now = now or utcnow()
    _require_party(commission, actor)

    result = validate_transition(commission.status, new_status, enforce_graph)
    if not result.allowed:
        raise InvalidTransitionError(commission.status.value, result.reason)

    old_status = commission.status
    timeline = commission.timeline
    if new_status in (CommissionStatus.COMPLETED, CommissionStatus.DELIVERED) and timeline.actual_completion is None:
        timeline = timeline.model_copy(update={"actual_completion": now})

    updated = commission.model_copy(
        update={
            "status": new_status,
            "timeline": timeline,
            "communication": _append_message(
                commission,
                actor.user_id,
                f'Status changed from "{old_status.value}" to "{new_status.value}"',
                now,
            ),
            "updated_at": now,
        }
    )
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.STATUS_CHANGED,
        notifications=[
            NotificationIntent(
                recipient_id=commission.counterparty_of(actor.user_id),
                template="commission-status-update",
                subject=f"Commission Status Updated: {commission.title}",
                data={
                    "commission_title": commission.title,
                    "old_status": old_status.value,
                    "new_status": new_status.value,
                },
            )
        ],
    )


def leave_review(
    commission: Commission,
    reviewer: Caller,
    rating: int,
    comment: str = "",
    now: datetime | None = None,
) -> TransitionOutcome:
    """Record the reviewer's side of the review pair, at most once per side."""
    now = now or utcnow()
    _require_party(commission, reviewer)
    _require_status(commission, REVIEWABLE_STATES, "leave a review")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    side = "client_review" if reviewer.user_id == commission.client_id else "artist_review"
    if getattr(commission.reviews, side) is not None:
        raise InvalidTransitionError(commission.status.value, "Review already submitted")

    reviews = commission.reviews.model_copy(update={side: Review(rating=rating, comment=comment, date=now)})
    updated = commission.model_copy(update={"reviews": reviews, "updated_at": now})
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.REVIEW_LEFT,
        notifications=[
            NotificationIntent(
                recipient_id=commission.counterparty_of(reviewer.user_id),
                template="commission-review",
                subject=f"New Review: {commission.title}",
                data={"commission_title": commission.title, "rating": rating},
            )
        ],
    )


def submit_delivery(
    commission: Commission,
    artist: Caller,
    images: Sequence[str],
    description: str = "",
    now: datetime | None = None,
) -> TransitionOutcome:
    """Hand over the final work and move the commission to delivered."""
    now = now or utcnow()
    _require_artist(commission, artist, "deliver work")
    _require_status(commission, DELIVERABLE_STATES, "deliver work")
    if not images:
        raise ValidationError("At least one image is required")

    timeline = commission.timeline
    if timeline.actual_completion is None:
        timeline = timeline.model_copy(update={"actual_completion": now})

    updated = commission.model_copy(
        update={
            "final_delivery": FinalDelivery(images=tuple(images), description=description, delivery_date=now),
            "status": CommissionStatus.DELIVERED,
            "timeline": timeline,
            "communication": _append_message(
                commission,
                artist.user_id,
                description or "Final artwork delivered",
                now,
                MessageType.DELIVERY,
                images,
            ),
            "updated_at": now,
        }
    )
    return TransitionOutcome(
        commission=updated,
        event=CommissionEvent.DELIVERED,
        notifications=[
            NotificationIntent(
                recipient_id=commission.client_id,
                template="commission-delivered",
                subject=f"Commission Delivered: {commission.title}",
                data={"commission_title": commission.title, "artist_name": artist.display_name},
            )
        ],
    )
