# Tables: notification_settings, notification_logs

"""
notification_settings: one row per user, created with the profile
- user_id: uuid (unique, not null)
- project_invitations, task_assignments, task_updates, team_changes: bool (default true)
- reminder_timing: immediate | daily_digest | off (default immediate)

notification_logs:
- id: uuid (primary key)
- user_id: uuid (not null) - recipient
- type: text (not null) - e.g. project_invitation, task_assigned
- content: json
- is_read: bool (default false)
- created_at: timestamp
"""

from sqlalchemy import Column, String, Text, DateTime, Boolean, JSON, CheckConstraint

from app.database.session import Base, new_id, utcnow

REMINDER_TIMINGS = ("immediate", "daily_digest", "off")


class NotificationSetting(Base):
    __tablename__ = "notification_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), unique=True, index=True, nullable=False)
    project_invitations = Column(Boolean, nullable=False, default=True)
    task_assignments = Column(Boolean, nullable=False, default=True)
    task_updates = Column(Boolean, nullable=False, default=True)
    team_changes = Column(Boolean, nullable=False, default=True)
    reminder_timing = Column(String(16), nullable=False, default="immediate")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "reminder_timing IN ('immediate','daily_digest','off')", name="ck_notification_reminder_timing"
        ),
    )


class NotificationLog(Base):
    __tablename__ = "notification_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), index=True, nullable=False)
    type = Column(Text, nullable=False)
    content = Column(JSON, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
