# Tables: events (calendar)

"""
events:
- id: uuid (primary key)
- title: text (not null), description, location, color: text
- start_date: date (not null), end_date: date
- start_time, end_time: time; all_day: bool (default true)
- is_project_event: bool - project_id is required when true
- project_id: uuid (references projects.id, cascade delete)
- created_by: uuid (references profiles.user_id, restrict)
- attendees: json array of user ids
- recurring: bool, recurring_pattern: text, recurring_end_date: date
"""

from sqlalchemy import Column, String, Text, Date, Time, DateTime, Boolean, JSON, ForeignKey

from app.database.session import Base, new_id, utcnow


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, index=True, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    all_day = Column(Boolean, nullable=False, default=True)
    location = Column(Text, nullable=True)
    is_project_event = Column(Boolean, nullable=False, default=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=True)
    created_by = Column(String(36), ForeignKey("profiles.user_id", ondelete="RESTRICT"), index=True, nullable=False)
    attendees = Column(JSON, nullable=False, default=list)
    color = Column(Text, nullable=True)
    recurring = Column(Boolean, nullable=False, default=False)
    recurring_pattern = Column(Text, nullable=True)
    recurring_end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
