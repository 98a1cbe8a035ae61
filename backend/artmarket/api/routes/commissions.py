"""Commission API routes."""

from fastapi import APIRouter, Depends, Query

from artmarket.core.auth import require_auth
from artmarket.core.config import get_settings
from artmarket.db.base import get_session_factory
from artmarket.db.redis import get_redis, redis_enabled
from artmarket.domain.models import Caller, Commission, CommissionStatus
from artmarket.domain.payments import next_payment_due, platform_fee
from artmarket.domain.progress import calculate_progress
from artmarket.integrations.email import Notifier, build_notifier
from artmarket.schemas.commissions import (
    AddMessageRequest,
    CommissionDetailResponse,
    CommissionListResponse,
    CommissionStatsResponse,
    CreateCommissionRequest,
    LeaveReviewRequest,
    Pagination,
    StatusBreakdownItem,
    SubmitDeliveryRequest,
    SubmitQuoteRequest,
    UpdateStatusRequest,
    UploadProgressRequest,
)
from artmarket.services.commission_service import CommissionService
from artmarket.services.event_publisher import CommissionEventPublisher

router = APIRouter()


def get_notifier() -> Notifier:
    """Dependency that provides the email notifier.

    Override this dependency in tests via app.dependency_overrides.
    """
    return build_notifier(get_settings())


def get_event_publisher() -> CommissionEventPublisher | None:
    """Dependency that provides the Redis event publisher, if Redis is configured."""
    if not redis_enabled():
        return None
    return CommissionEventPublisher(get_redis())


def get_commission_service(
    notifier: Notifier = Depends(get_notifier),
    publisher: CommissionEventPublisher | None = Depends(get_event_publisher),
) -> CommissionService:
    return CommissionService(get_session_factory(), notifier, publisher)


@router.get("", response_model=CommissionListResponse)
async def list_commissions(
    status: CommissionStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=get_settings().commission_page_size_max),
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """List the caller's commissions, newest first."""
    commissions, total, pages = await service.list_commissions(caller, status, page, limit)
    return CommissionListResponse(
        commissions=commissions,
        pagination=Pagination(current=page, pages=pages, total=total),
    )


@router.get("/stats", response_model=CommissionStatsResponse)
async def get_commission_stats(
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Status breakdown, total and average agreed value of the caller's commissions."""
    stats = await service.get_stats(caller)
    return CommissionStatsResponse(
        total_commissions=stats.total_commissions,
        total_value=stats.total_value,
        average_value=stats.average_value,
        status_breakdown=[
            StatusBreakdownItem(status=item.status, count=item.count, total_value=item.total_value)
            for item in stats.status_breakdown
        ],
    )


@router.get("/upcoming-deadlines", response_model=list[Commission])
async def get_upcoming_deadlines(
    days: int = Query(default=7, ge=1, le=90),
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Active commissions whose deadline falls within the next ``days`` days."""
    return await service.get_upcoming_deadlines(caller, days)


@router.post("", response_model=Commission, status_code=201)
async def create_commission(
    request: CreateCommissionRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Request a commission from an artist.

    Raises:
        404: Artist not found
        422: Invalid budget, title or description
    """
    return await service.request_commission(caller, request)


@router.get("/{commission_id}", response_model=CommissionDetailResponse)
async def get_commission(
    commission_id: str,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Get a commission with its progress and next payment due.

    Raises:
        403: Caller is not the client or the artist
        404: Commission not found
    """
    commission = await service.get_commission(caller, commission_id)
    return CommissionDetailResponse(
        commission=commission,
        progress=calculate_progress(commission.milestones),
        next_payment_due=next_payment_due(commission.payment),
        platform_fee=platform_fee(commission.payment),
    )


@router.put("/{commission_id}/status", response_model=Commission)
async def update_commission_status(
    commission_id: str,
    request: UpdateStatusRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Move a commission to a new status.

    Raises:
        409: Status change not allowed from the current status
    """
    return await service.update_status(caller, commission_id, request)


@router.post("/{commission_id}/messages", response_model=Commission)
async def add_message(
    commission_id: str,
    request: AddMessageRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    return await service.add_message(caller, commission_id, request)


@router.post("/{commission_id}/quote", response_model=Commission)
async def submit_quote(
    commission_id: str,
    request: SubmitQuoteRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Submit a quote (artist only)."""
    return await service.submit_quote(caller, commission_id, request)


@router.post("/{commission_id}/accept", response_model=Commission)
async def accept_quote(
    commission_id: str,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Accept the current quote (client only) and derive the payment schedule."""
    return await service.accept_quote(caller, commission_id)


@router.post("/{commission_id}/progress", response_model=Commission)
async def upload_progress(
    commission_id: str,
    request: UploadProgressRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Upload work in progress (artist only)."""
    return await service.upload_progress(caller, commission_id, request)


@router.put("/{commission_id}/milestones/{milestone_index}/complete", response_model=Commission)
async def complete_milestone(
    commission_id: str,
    milestone_index: int,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Mark a milestone completed (artist only)."""
    return await service.complete_milestone(caller, commission_id, milestone_index)


@router.post("/{commission_id}/reviews", response_model=Commission)
async def leave_review(
    commission_id: str,
    request: LeaveReviewRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    return await service.leave_review(caller, commission_id, request)


@router.post("/{commission_id}/delivery", response_model=Commission)
async def submit_delivery(
    commission_id: str,
    request: SubmitDeliveryRequest,
    caller: Caller = Depends(require_auth),
    service: CommissionService = Depends(get_commission_service),
):
    """Deliver the final work (artist only)."""
    return await service.submit_delivery(caller, commission_id, request)
