import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import String, cast, or_

from app.config.policy_config import Entity, Operation
from app.core.base_service import BaseService
from app.core.errors import ValidationError
from app.core.policies import Actor
from app.database.session import transaction
from app.modules.events.models import Event
from app.modules.events.schemas import EventCreate, EventUpdate
from app.modules.projects.models import Project

logger = logging.getLogger(__name__)


def _normalize(event: Event) -> None:
    if event.end_date is not None and event.end_date < event.start_date:
        raise ValidationError("end_date must not be before start_date")
    if event.is_project_event and not event.project_id:
        raise ValidationError("project_id is required for a project event")
    if event.all_day:
        event.start_time = None
        event.end_time = None
    if event.recurring:
        event.recurring_pattern = event.recurring_pattern or "weekly"
    else:
        event.recurring_pattern = None
        event.recurring_end_date = None


class EventService(BaseService):
    def _check_project(self, actor: Actor, project_id: Optional[str]) -> None:
        if project_id:
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)

    def create_event(self, actor: Actor, event_data: EventCreate) -> Event:
        with transaction(self.db):
            self._check_project(actor, event_data.project_id)
            data = event_data.model_dump()
            data["attendees"] = self.require_profiles(data["attendees"], "attendees")
            event = Event(**data, created_by=actor.id)
            _normalize(event)
            self.policy.enforce(actor, Operation.INSERT, Entity.EVENT, event)
            self.db.add(event)
        return event

    def get_event(self, actor: Actor, event_id: str) -> Event:
        event = self.db.get(Event, event_id)
        return self.policy.enforce(actor, Operation.READ, Entity.EVENT, event)

    def list_events(
        self,
        actor: Actor,
        project_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[Event]:
        """Calendar view: events visible to the actor overlapping [start, end]"""
        query = self.db.query(Event)
        if project_id:
            self._check_project(actor, project_id)
            query = query.filter(Event.project_id == project_id)
        else:
            criteria = [Event.created_by == actor.id, cast(Event.attendees, String).contains(actor.id)]
            project_ids = self.resolver.candidate_project_ids(actor.id)
            if project_ids:
                criteria.append(Event.project_id.in_(project_ids))
            query = query.filter(or_(*criteria))
        if end:
            query = query.filter(Event.start_date <= end)
        events = query.order_by(Event.start_date, Event.start_time).all()
        if start:
            events = [e for e in events if (e.end_date or e.start_date) >= start or e.recurring]
        return [e for e in events if self.policy.can(actor, Operation.READ, Entity.EVENT, e)]

    def update_event(self, actor: Actor, event_id: str, event_data: EventUpdate) -> Event:
        with transaction(self.db):
            event = self.db.get(Event, event_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.EVENT, event)
            changes = event_data.model_dump(exclude_unset=True)
            for field in ("title", "start_date", "all_day", "is_project_event", "recurring"):
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be empty")
            if changes.get("project_id") and changes["project_id"] != event.project_id:
                self._check_project(actor, changes["project_id"])
            if "attendees" in changes:
                changes["attendees"] = self.require_profiles(changes["attendees"], "attendees")
            for field, value in changes.items():
                setattr(event, field, value)
            _normalize(event)
        return event

    def delete_event(self, actor: Actor, event_id: str) -> None:
        with transaction(self.db):
            event = self.db.get(Event, event_id)
            self.policy.enforce(actor, Operation.DELETE, Entity.EVENT, event)
            self.db.delete(event)
