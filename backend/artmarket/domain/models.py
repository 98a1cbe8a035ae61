"""Commission aggregate and its value types.

Every model is frozen: transitions build new values with ``model_copy``
instead of mutating in place.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommissionStatus(StrEnum):
    """Commission lifecycle states, in lifecycle order."""

    PENDING = "pending"  # Initial request
    REVIEWING = "reviewing"  # Artist reviewing
    QUOTED = "quoted"  # Artist provided quote
    NEGOTIATING = "negotiating"  # Price negotiation
    ACCEPTED = "accepted"  # Client accepted quote
    IN_PROGRESS = "in_progress"
    REVIEW = "review"  # Client reviewing work
    REVISION = "revision"  # Needs changes
    COMPLETED = "completed"
    DELIVERED = "delivered"  # Final delivery
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class MessageType(StrEnum):
    MESSAGE = "message"
    QUOTE = "quote"
    REVISION_REQUEST = "revision_request"
    APPROVAL = "approval"
    DELIVERY = "delivery"


class Priority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class DimensionUnit(StrEnum):
    INCHES = "inches"
    CM = "cm"
    FEET = "feet"
    M = "m"


class UserRole(StrEnum):
    USER = "user"
    ARTIST = "artist"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    """Identity performing an operation, resolved from the user directory."""

    user_id: str
    role: UserRole = UserRole.USER
    email: str = ""
    display_name: str = ""

    @property
    def is_artist(self) -> bool:
        return self.role == UserRole.ARTIST


def utcnow() -> datetime:
    return datetime.now(UTC)


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value):
        # Naive datetimes (e.g. read back from SQLite) are UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class Budget(_Value):
    min: Decimal = Field(max_digits=12, decimal_places=2)
    max: Decimal = Field(max_digits=12, decimal_places=2)
    currency: str = "USD"


class Dimensions(_Value):
    width: float | None = None
    height: float | None = None
    depth: float | None = None
    unit: DimensionUnit = DimensionUnit.INCHES


class Requirements(_Value):
    style: str | None = None
    medium: str | None = None
    dimensions: Dimensions | None = None
    color_preferences: tuple[str, ...] = ()
    themes: tuple[str, ...] = ()
    reference_images: tuple[str, ...] = ()
    deadline: datetime | None = None


class Timeline(_Value):
    estimated_days: int | None = None
    start_date: datetime | None = None
    expected_completion: datetime | None = None
    actual_completion: datetime | None = None


class Milestone(_Value):
    title: str
    description: str = ""
    due_date: datetime | None = None
    payment_percentage: Decimal = Decimal("0")
    completed: bool = False
    completed_date: datetime | None = None


class Message(_Value):
    sender_id: str
    message: str
    attachments: tuple[str, ...] = ()
    timestamp: datetime
    type: MessageType = MessageType.MESSAGE


class ProgressEntry(_Value):
    title: str
    description: str = ""
    images: tuple[str, ...]
    upload_date: datetime
    approved: bool | None = None
    feedback: str | None = None


class Installment(_Value):
    amount: Decimal
    due_date: datetime | None = None
    paid: bool = False
    paid_date: datetime | None = None
    external_order_id: str | None = None
    external_payment_id: str | None = None


class Payment(_Value):
    total_amount: Decimal | None = None
    paid_amount: Decimal = Decimal("0")
    payment_schedule: tuple[Installment, ...] = ()
    platform_fee_rate: Decimal = Decimal("0.10")


class Review(_Value):
    rating: int
    comment: str = ""
    date: datetime


class Reviews(_Value):
    client_review: Review | None = None
    artist_review: Review | None = None


class Contract(_Value):
    terms: str | None = None
    agreed_date: datetime | None = None


class FinalDelivery(_Value):
    images: tuple[str, ...] = ()
    description: str = ""
    delivery_date: datetime


class Commission(_Value):
    """A bespoke-artwork engagement between one client and one artist."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    client_id: str
    artist_id: str
    title: str
    description: str
    requirements: Requirements = Requirements()
    budget: Budget
    proposed_price: Decimal | None = None
    agreed_price: Decimal | None = None
    status: CommissionStatus = CommissionStatus.PENDING
    timeline: Timeline = Timeline()
    milestones: tuple[Milestone, ...] = ()
    communication: tuple[Message, ...] = ()
    work_in_progress: tuple[ProgressEntry, ...] = ()
    payment: Payment = Payment()
    contract: Contract = Contract()
    final_delivery: FinalDelivery | None = None
    reviews: Reviews = Reviews()
    tags: tuple[str, ...] = ()
    priority: Priority = Priority.NORMAL
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.artist_id)

    def counterparty_of(self, user_id: str) -> str:
        """Return the other party's id for a client or artist id."""
        return self.artist_id if user_id == self.client_id else self.client_id
