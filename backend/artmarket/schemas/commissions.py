"""Commission Pydantic schemas for API requests and responses."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from artmarket.domain.lifecycle import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    MESSAGE_MAX_LENGTH,
    PROGRESS_DESCRIPTION_MAX_LENGTH,
    PROGRESS_TITLE_MAX_LENGTH,
    TERMS_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from artmarket.domain.models import (
    Budget,
    Commission,
    CommissionStatus,
    Installment,
    MessageType,
    Milestone,
    Requirements,
    Timeline,
)


class CreateCommissionRequest(BaseModel):
    """Request from a client to commission a specific artist."""

    artist_id: str
    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH)
    requirements: Requirements = Requirements()
    budget: Budget


class UpdateStatusRequest(BaseModel):
    status: CommissionStatus


class AddMessageRequest(BaseModel):
    message: str = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)
    attachments: list[str] = Field(default_factory=list)
    type: MessageType = MessageType.MESSAGE


class MilestoneInput(BaseModel):
    """Milestone as proposed in a quote (completion fields are server-owned)."""

    title: str
    description: str = ""
    due_date: datetime | None = None
    payment_percentage: Decimal = Field(ge=0, le=100)

    def to_milestone(self) -> Milestone:
        return Milestone(
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            payment_percentage=self.payment_percentage,
        )


class QuoteTimeline(BaseModel):
    estimated_days: int | None = Field(default=None, ge=1)
    expected_completion: datetime | None = None

    def to_timeline(self) -> Timeline:
        return Timeline(estimated_days=self.estimated_days, expected_completion=self.expected_completion)


class SubmitQuoteRequest(BaseModel):
    proposed_price: Decimal = Field(max_digits=12, decimal_places=2)
    timeline: QuoteTimeline | None = None
    milestones: list[MilestoneInput] = Field(default_factory=list)
    terms: str | None = Field(default=None, max_length=TERMS_MAX_LENGTH)


class UploadProgressRequest(BaseModel):
    title: str = Field(min_length=1, max_length=PROGRESS_TITLE_MAX_LENGTH)
    description: str = Field(default="", max_length=PROGRESS_DESCRIPTION_MAX_LENGTH)
    images: list[str] = Field(min_length=1, description="At least one image is required")


class LeaveReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=2000)


class SubmitDeliveryRequest(BaseModel):
    images: list[str] = Field(min_length=1)
    description: str = Field(default="", max_length=PROGRESS_DESCRIPTION_MAX_LENGTH)


class CommissionDetailResponse(BaseModel):
    """A commission plus the projections shown on its page."""

    commission: Commission
    progress: int
    next_payment_due: Installment | None = None
    platform_fee: Decimal


class Pagination(BaseModel):
    current: int
    pages: int
    total: int


class CommissionListResponse(BaseModel):
    commissions: list[Commission]
    pagination: Pagination


class StatusBreakdownItem(BaseModel):
    status: CommissionStatus
    count: int
    total_value: Decimal


class CommissionStatsResponse(BaseModel):
    total_commissions: int
    total_value: Decimal
    average_value: Decimal
    status_breakdown: list[StatusBreakdownItem] = Field(default_factory=list)
