from datetime import date, time

import pytest

from app.core.errors import NotFound, ValidationError
from app.modules.events.schemas import EventCreate, EventUpdate
from app.modules.events.service import EventService


def test_all_day_event_drops_times(db, alice):
    event = EventService(db).create_event(alice, EventCreate(
        title="Planting day", start_date=date(2026, 4, 1), start_time=time(9), end_time=time(12),
    ))
    assert event.all_day is True
    assert event.start_time is None
    assert event.end_time is None


def test_recurring_defaults_to_weekly(db, alice):
    event = EventService(db).create_event(alice, EventCreate(
        title="Market", start_date=date(2026, 4, 4), recurring=True,
    ))
    assert event.recurring_pattern == "weekly"

    updated = EventService(db).update_event(alice, event.id, EventUpdate(recurring=False))
    assert updated.recurring_pattern is None


def test_end_before_start_is_rejected(db, alice):
    event = EventService(db).create_event(alice, EventCreate(title="Workshop", start_date=date(2026, 4, 4)))
    with pytest.raises(ValidationError):
        EventService(db).update_event(alice, event.id, EventUpdate(end_date=date(2026, 4, 1)))


def test_project_event_requires_project(db, alice):
    with pytest.raises(ValidationError):
        EventService(db).create_event(alice, EventCreate(
            title="Work day", start_date=date(2026, 4, 4), is_project_event=True,
        ))


def test_attendee_and_member_visibility(db, alice, bob, carol, make_project, add_member):
    project = make_project(alice)
    add_member(alice, project, bob)
    service = EventService(db)
    shared = service.create_event(alice, EventCreate(
        title="Work day", start_date=date(2026, 4, 4), is_project_event=True, project_id=project.id,
    ))
    invite = service.create_event(alice, EventCreate(
        title="Tea", start_date=date(2026, 4, 5), attendees=[carol.id],
    ))

    assert [e.id for e in EventService(db).list_events(bob)] == [shared.id]
    assert [e.id for e in EventService(db).list_events(carol)] == [invite.id]
    with pytest.raises(NotFound):
        EventService(db).get_event(carol, shared.id)


def test_calendar_range_filter(db, alice):
    service = EventService(db)
    april = service.create_event(alice, EventCreate(title="April", start_date=date(2026, 4, 10)))
    service.create_event(alice, EventCreate(title="June", start_date=date(2026, 6, 10)))

    events = EventService(db).list_events(alice, start=date(2026, 4, 1), end=date(2026, 4, 30))
    assert [e.id for e in events] == [april.id]
