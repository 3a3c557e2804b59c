from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.events.schemas import EventCreate, EventUpdate, EventResponse
from app.modules.events.service import EventService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from datetime import date
from typing import List, Optional

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    return EventService(db)


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    event_data: EventCreate,
    actor: Actor = Depends(get_current_actor),
    service: EventService = Depends(get_event_service)
):
    return service.create_event(actor, event_data)


@router.get("", response_model=List[EventResponse])
async def list_events(
    project_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    actor: Actor = Depends(get_current_actor),
    service: EventService = Depends(get_event_service)
):
    """Calendar events visible to the user, optionally for one project and date window"""
    return service.list_events(actor, project_id=project_id, start=start, end=end)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    actor: Actor = Depends(get_current_actor),
    service: EventService = Depends(get_event_service)
):
    return service.get_event(actor, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    actor: Actor = Depends(get_current_actor),
    service: EventService = Depends(get_event_service)
):
    return service.update_event(actor, event_id, event_data)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    actor: Actor = Depends(get_current_actor),
    service: EventService = Depends(get_event_service)
):
    service.delete_event(actor, event_id)
    return None
