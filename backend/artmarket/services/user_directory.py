"""User directory lookups for commission parties."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artmarket.db.models.user import User
from artmarket.domain.models import UserRole


class UserDirectory:
    """Resolves user ids to directory records."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def resolve_user(self, user_id: str) -> User | None:
        """Return the user with this id, or None if absent or not a valid id."""
        try:
            user_uuid = uuid.UUID(str(user_id))
        except ValueError:
            return None

        async with self.session_factory() as session:
            result = await session.execute(select(User).where(User.id == user_uuid))
            return result.scalar_one_or_none()

    @staticmethod
    def is_artist(user: User) -> bool:
        return user.role == UserRole.ARTIST.value
