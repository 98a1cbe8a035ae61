"""CommissionService: runs commission lifecycle operations against the store."""

import math
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artmarket.core.config import Settings, get_settings
from artmarket.core.exceptions import ForbiddenError, NotFoundError
from artmarket.db.models.commission import CommissionRecord
from artmarket.domain import lifecycle
from artmarket.domain.lifecycle import NotificationIntent, TransitionOutcome
from artmarket.domain.models import Caller, Commission, CommissionStatus
from artmarket.domain.progress import upcoming_deadlines
from artmarket.domain.stats import CommissionStats, compute_commission_stats
from artmarket.domain.transitions import ACTIVE_WORK_STATES
from artmarket.integrations.email import Notifier
from artmarket.schemas.commissions import (
    AddMessageRequest,
    CreateCommissionRequest,
    LeaveReviewRequest,
    SubmitDeliveryRequest,
    SubmitQuoteRequest,
    UpdateStatusRequest,
    UploadProgressRequest,
)
from artmarket.services.event_publisher import CommissionEventPublisher
from artmarket.services.user_directory import UserDirectory

logger = structlog.get_logger(__name__)


class CommissionService:
    """Service layer for commission operations.

    Each mutating operation loads the commission row under a row lock, applies
    a pure lifecycle transition, writes the whole record back and commits in a
    single transaction. Notifications and events go out after the commit and
    never fail the operation.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Notifier,
        publisher: CommissionEventPublisher | None = None,
        settings: Settings | None = None,
    ):
        """Initialize with dependency injection.

        Args:
            session_factory: SQLAlchemy async session factory
            notifier: Email notifier for the other party
            publisher: Optional Redis event publisher
            settings: Application settings (defaults to get_settings())
        """
        self.session_factory = session_factory
        self.notifier = notifier
        self.publisher = publisher
        self.settings = settings or get_settings()
        self.users = UserDirectory(session_factory)

    # ──────────────────────────────────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────────────────────────────────

    async def get_commission(self, caller: Caller, commission_id: str) -> Commission:
        """Load a commission visible to the caller.

        Raises:
            NotFoundError: Commission does not exist
            ForbiddenError: Caller is neither the client nor the artist
        """
        async with self.session_factory() as session:
            record = await self._load(session, commission_id)
            commission = record.to_domain()

        if not commission.is_party(caller.user_id):
            raise ForbiddenError("Not authorized to view this commission")
        return commission

    async def list_commissions(
        self,
        caller: Caller,
        status: CommissionStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Commission], int, int]:
        """List the caller's commissions, newest first.

        Artists see commissions addressed to them; everyone else sees the
        commissions they requested.

        Returns:
            Tuple of (commissions, total_count, page_count)
        """
        filters = [self._role_filter(caller)]
        if status is not None:
            filters.append(CommissionRecord.status == status.value)

        async with self.session_factory() as session:
            total = await session.scalar(select(func.count()).select_from(CommissionRecord).where(*filters))
            result = await session.execute(
                select(CommissionRecord)
                .where(*filters)
                .order_by(CommissionRecord.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            commissions = [record.to_domain() for record in result.scalars().all()]

        total = total or 0
        return commissions, total, math.ceil(total / limit)

    async def get_stats(self, caller: Caller) -> CommissionStats:
        """Status breakdown and value totals over the caller's commissions."""
        async with self.session_factory() as session:
            result = await session.execute(select(CommissionRecord).where(self._role_filter(caller)))
            commissions = [record.to_domain() for record in result.scalars().all()]
        return compute_commission_stats(commissions)

    async def get_upcoming_deadlines(self, caller: Caller, days: int = 7) -> list[Commission]:
        """Active commissions of either party role whose deadline is within ``days``."""
        caller_uuid = uuid.UUID(caller.user_id)
        async with self.session_factory() as session:
            result = await session.execute(
                select(CommissionRecord).where(
                    or_(CommissionRecord.client_id == caller_uuid, CommissionRecord.artist_id == caller_uuid),
                    CommissionRecord.status.in_([s.value for s in ACTIVE_WORK_STATES]),
                )
            )
            commissions = [record.to_domain() for record in result.scalars().all()]
        return upcoming_deadlines(commissions, datetime.now(UTC), days)

    # ──────────────────────────────────────────────────────────────────────
    # Lifecycle operations
    # ──────────────────────────────────────────────────────────────────────

    async def request_commission(self, caller: Caller, request: CreateCommissionRequest) -> Commission:
        """Create a pending commission and notify the artist.

        Raises:
            NotFoundError: artist_id does not resolve to an active artist
            ValidationError: Malformed budget, title or description
        """
        artist = await self.users.resolve_user(request.artist_id)
        if artist is None or not artist.is_active or not UserDirectory.is_artist(artist):
            raise NotFoundError("Artist not found")

        outcome = lifecycle.request_commission(
            client=caller,
            artist=artist.to_caller(),
            title=request.title,
            description=request.description,
            requirements=request.requirements,
            budget=request.budget,
            platform_fee_rate=self.settings.platform_fee_rate,
        )

        async with self.session_factory() as session:
            session.add(CommissionRecord.from_domain(outcome.commission))
            await session.commit()

        await self._after_commit(outcome, caller)
        return outcome.commission

    async def add_message(self, caller: Caller, commission_id: str, request: AddMessageRequest) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.add_message(c, caller, request.message, request.attachments, request.type),
        )

    async def submit_quote(self, caller: Caller, commission_id: str, request: SubmitQuoteRequest) -> Commission:
        timeline = request.timeline.to_timeline() if request.timeline else None
        milestones = [m.to_milestone() for m in request.milestones]
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.submit_quote(
                c,
                caller,
                proposed_price=request.proposed_price,
                timeline=timeline,
                milestones=milestones,
                terms=request.terms,
            ),
        )

    async def accept_quote(self, caller: Caller, commission_id: str) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.accept_quote(
                c, caller, final_payment_days=self.settings.default_final_payment_days
            ),
        )

    async def upload_progress(
        self, caller: Caller, commission_id: str, request: UploadProgressRequest
    ) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.upload_progress(
                c, caller, title=request.title, images=request.images, description=request.description
            ),
        )

    async def complete_milestone(self, caller: Caller, commission_id: str, milestone_index: int) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.complete_milestone(c, caller, milestone_index),
        )

    async def update_status(self, caller: Caller, commission_id: str, request: UpdateStatusRequest) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.update_status(
                c, caller, request.status, enforce_graph=self.settings.enforce_status_graph
            ),
        )

    async def leave_review(self, caller: Caller, commission_id: str, request: LeaveReviewRequest) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.leave_review(c, caller, request.rating, request.comment),
        )

    async def submit_delivery(
        self, caller: Caller, commission_id: str, request: SubmitDeliveryRequest
    ) -> Commission:
        return await self._transition(
            caller,
            commission_id,
            lambda c: lifecycle.submit_delivery(c, caller, images=request.images, description=request.description),
        )

    # ──────────────────────────────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────────────────────────────

    def _role_filter(self, caller: Caller):
        caller_uuid = uuid.UUID(caller.user_id)
        if caller.is_artist:
            return CommissionRecord.artist_id == caller_uuid
        return CommissionRecord.client_id == caller_uuid

    async def _load(self, session: AsyncSession, commission_id: str, for_update: bool = False) -> CommissionRecord:
        try:
            commission_uuid = uuid.UUID(str(commission_id))
        except ValueError:
            raise NotFoundError("Commission not found") from None

        stmt = select(CommissionRecord).where(CommissionRecord.id == commission_uuid)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Commission not found")
        return record

    async def _transition(
        self,
        caller: Caller,
        commission_id: str,
        operation: Callable[[Commission], TransitionOutcome],
    ) -> Commission:
        """Apply one operation as a single atomic read-modify-write.

        The row lock (``BEGIN IMMEDIATE`` on SQLite) serializes concurrent
        operations on the same commission, so each one sees the result of the
        last. An error raised by the operation rolls back before anything is
        written. A no-op outcome writes nothing and has no side effects.
        """
        async with self.session_factory() as session:
            async with session.begin():
                record = await self._load(session, commission_id, for_update=True)
                outcome = operation(record.to_domain())
                if not outcome.changed:
                    return outcome.commission
                record.apply(outcome.commission)

        await self._after_commit(outcome, caller)
        return outcome.commission

    async def _after_commit(self, outcome: TransitionOutcome, actor: Caller) -> None:
        commission = outcome.commission
        logger.info(
            outcome.event.replace(".", "_"),
            transition=outcome.event,
            commission_id=commission.id,
            actor_id=actor.user_id,
            status=commission.status.value,
        )

        for intent in outcome.notifications:
            await self._send_notification(commission, intent)

        if self.publisher is not None:
            try:
                await self.publisher.publish(
                    commission.id,
                    {"type": outcome.event, "status": commission.status.value, "actor_id": actor.user_id},
                )
            except Exception:
                logger.warning(
                    "event_publish_failed", commission_id=commission.id, transition=outcome.event, exc_info=True
                )

    async def _send_notification(self, commission: Commission, intent: NotificationIntent) -> None:
        """Email one party. Non-fatal: failures are logged and swallowed."""
        try:
            recipient = await self.users.resolve_user(intent.recipient_id)
            if recipient is None:
                logger.warning(
                    "notification_recipient_missing",
                    commission_id=commission.id,
                    recipient_id=intent.recipient_id,
                )
                return

            data = {
                **intent.data,
                "subject": intent.subject,
                "recipient_name": recipient.display_name,
                "commission_id": commission.id,
                "commission_url": f"{self.settings.client_url}/commission/{commission.id}",
            }
            await self.notifier.notify(recipient.email, intent.template, data)
        except Exception:
            logger.warning(
                "notification_failed",
                commission_id=commission.id,
                template=intent.template,
                recipient_id=intent.recipient_id,
                exc_info=True,
            )
