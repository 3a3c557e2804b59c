# Tables: tasks

"""
tasks:
- id: uuid (primary key)
- title: text (not null), description: text
- status: todo | in_progress | done | blocked (default todo)
- priority: low | medium | high | urgent (default medium)
- due_date: timestamp
- is_project_task: bool - project_id is required when true
- project_id: uuid (references projects.id, cascade delete)
- assigned_to: uuid - legacy single assignee, mirrors assignees[0]
- assignees: json array of user ids; the first entry is the primary assignee
- created_by: uuid (references profiles.user_id, restrict)
- badge_id: uuid (references badges.id, set null)
- completion_verification: bool - creator must approve before the badge is awarded
- verification_status: none | pending | approved | rejected
- completed_by: uuid - user who marked the task done; badge recipient when there is no assignee
"""

from sqlalchemy import Column, String, Text, DateTime, Boolean, JSON, ForeignKey, CheckConstraint

from app.database.session import Base, new_id, utcnow

TASK_STATUSES = ("todo", "in_progress", "done", "blocked")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")
VERIFICATION_STATUSES = ("none", "pending", "approved", "rejected")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="todo")
    priority = Column(String(16), nullable=False, default="medium")
    due_date = Column(DateTime, nullable=True)
    is_project_task = Column(Boolean, nullable=False, default=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=True)
    assigned_to = Column(String(36), ForeignKey("profiles.user_id", ondelete="SET NULL"), nullable=True)
    assignees = Column(JSON, nullable=False, default=list)
    created_by = Column(String(36), ForeignKey("profiles.user_id", ondelete="RESTRICT"), index=True, nullable=False)
    badge_id = Column(String(36), ForeignKey("badges.id", ondelete="SET NULL"), index=True, nullable=True)
    completion_verification = Column(Boolean, nullable=False, default=False)
    verification_status = Column(String(16), nullable=False, default="none")
    completed_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('todo','in_progress','done','blocked')", name="ck_task_status"),
        CheckConstraint("priority IN ('low','medium','high','urgent')", name="ck_task_priority"),
        CheckConstraint(
            "verification_status IN ('none','pending','approved','rejected')", name="ck_task_verification_status"
        ),
    )

    @property
    def primary_assignee(self):
        if self.assignees:
            return self.assignees[0]
        return self.assigned_to
