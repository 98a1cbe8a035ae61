"""Commission model: one row per commission, nested structures as JSON documents."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid

from artmarket.db.base import Base, JSONDocument
from artmarket.domain.models import Commission


class CommissionRecord(Base):
    __tablename__ = "commissions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    artist_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="pending")
    priority = Column(String(20), nullable=False, default="normal")  # low, normal, high, urgent

    # Scalar prices are columns so stats and filters can query them
    proposed_price = Column(Numeric(12, 2), nullable=True)
    agreed_price = Column(Numeric(12, 2), nullable=True)

    budget = Column(JSONDocument, nullable=False, default=dict)
    requirements = Column(JSONDocument, nullable=False, default=dict)
    timeline = Column(JSONDocument, nullable=False, default=dict)
    milestones = Column(JSONDocument, nullable=False, default=list)
    communication = Column(JSONDocument, nullable=False, default=list)
    work_in_progress = Column(JSONDocument, nullable=False, default=list)
    payment = Column(JSONDocument, nullable=False, default=dict)
    contract = Column(JSONDocument, nullable=False, default=dict)
    final_delivery = Column(JSONDocument, nullable=True)
    reviews = Column(JSONDocument, nullable=False, default=dict)
    tags = Column(JSONDocument, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_commissions_client_status", "client_id", "status"),
        Index("ix_commissions_artist_status", "artist_id", "status"),
        Index("ix_commissions_status_created", "status", "created_at"),
    )

    @classmethod
    def from_domain(cls, commission: Commission) -> "CommissionRecord":
        record = cls(
            id=uuid.UUID(commission.id),
            client_id=uuid.UUID(commission.client_id),
            artist_id=uuid.UUID(commission.artist_id),
            created_at=commission.created_at,
        )
        record.apply(commission)
        return record

    def apply(self, commission: Commission) -> None:
        """Replace every mutable column with the commission's values."""
        data = commission.model_dump(mode="json")
        self.title = commission.title
        self.description = commission.description
        self.status = commission.status.value
        self.priority = commission.priority.value
        self.proposed_price = commission.proposed_price
        self.agreed_price = commission.agreed_price
        self.budget = data["budget"]
        self.requirements = data["requirements"]
        self.timeline = data["timeline"]
        self.milestones = data["milestones"]
        self.communication = data["communication"]
        self.work_in_progress = data["work_in_progress"]
        self.payment = data["payment"]
        self.contract = data["contract"]
        self.final_delivery = data["final_delivery"]
        self.reviews = data["reviews"]
        self.tags = data["tags"]
        self.updated_at = commission.updated_at

    def to_domain(self) -> Commission:
        return Commission.model_validate(
            {
                "id": str(self.id),
                "client_id": str(self.client_id),
                "artist_id": str(self.artist_id),
                "title": self.title,
                "description": self.description,
                "status": self.status,
                "priority": self.priority,
                "proposed_price": self.proposed_price,
                "agreed_price": self.agreed_price,
                "budget": self.budget,
                "requirements": self.requirements or {},
                "timeline": self.timeline or {},
                "milestones": self.milestones or [],
                "communication": self.communication or [],
                "work_in_progress": self.work_in_progress or [],
                "payment": self.payment or {},
                "contract": self.contract or {},
                "final_delivery": self.final_delivery,
                "reviews": self.reviews or {},
                "tags": self.tags or [],
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )
