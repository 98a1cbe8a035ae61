"""User model: directory records for clients and artists."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from artmarket.db.base import Base
from artmarket.domain.models import Caller, UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.USER.value)  # user, artist, admin
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def to_caller(self) -> Caller:
        return Caller(
            user_id=str(self.id),
            role=UserRole(self.role),
            email=self.email,
            display_name=self.display_name,
        )
