from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.notifications.schemas import (
    NotificationResponse, NotificationSettingsResponse, NotificationSettingsUpdate
)
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from typing import List

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.list_notifications(actor, unread_only=unread_only, limit=limit, offset=offset)


@router.post("/read-all")
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return {"updated": service.mark_all_read(actor)}


@router.get("/settings", response_model=NotificationSettingsResponse)
async def get_settings(
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.get_settings(actor)


@router.put("/settings", response_model=NotificationSettingsResponse)
async def update_settings(
    settings_data: NotificationSettingsUpdate,
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.update_settings(actor, settings_data)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(actor, notification_id)
