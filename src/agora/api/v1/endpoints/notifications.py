"""Notification inbox endpoints; every route is scoped to the caller."""

from fastapi import APIRouter

from agora.models import NotificationStatus
from agora.schemas.common import MessageResponse, Pagination
from agora.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from agora.services.notification_service import NotificationService

from ..dependencies import CurrentUserDep, PageDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    paging: PageDep,
    status: NotificationStatus | None = None,
) -> NotificationListResponse:
    rows, total = NotificationService(db).list_for(
        current_user.id,
        status=status,
        page=paging.page,
        limit=paging.limit,
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(row) for row in rows],
        pagination=Pagination.build(page=paging.page, limit=paging.limit, total=total),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(current_user: CurrentUserDep, db: SessionDep) -> UnreadCountResponse:
    return UnreadCountResponse(count=NotificationService(db).unread_count(current_user.id))


@router.put("/mark-all-read", response_model=MessageResponse)
async def mark_all_read(current_user: CurrentUserDep, db: SessionDep) -> dict[str, str]:
    updated = NotificationService(db).mark_all_read(current_user.id)
    return {"message": f"{updated} notifications marked as read"}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationResponse:
    notification = NotificationService(db).mark_read(notification_id, current_user.id)
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    NotificationService(db).delete(notification_id, current_user.id)
    return {"message": "Notification deleted successfully"}
