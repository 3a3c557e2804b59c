# Tables: badges, user_badges, badge_quests, badge_quest_tasks, user_quest_progress

"""
badges:
- id: uuid (primary key)
- title: text (not null), description, image_url: text
- created_by: uuid (references profiles.user_id)

user_badges: append-only earn records
- id: uuid (primary key)
- user_id: uuid (not null), badge_id: uuid (references badges.id, cascade delete)
- task_id: uuid (references tasks.id, set null) - the task that awarded it
- earned_at: timestamp
- unique constraint on (user_id, badge_id)

badge_quests: a named bundle of tasks whose completion jointly awards a badge
- id: uuid (primary key)
- title: text (not null), description: text
- created_by: uuid, badge_id: uuid (references badges.id, set null)
- required_tasks_count: integer (not null, default 1)

badge_quest_tasks:
- quest_id (cascade delete), task_id (cascade delete), order_position
- unique constraint on (quest_id, task_id)

user_quest_progress:
- user_id, quest_id (cascade delete)
- completed_tasks: json array of task ids
- progress_percentage: integer 0..100
- started_at, updated_at, completed_at: timestamp
- unique constraint on (user_id, quest_id)
"""

from sqlalchemy import (
    Column, String, Text, DateTime, Integer, JSON, ForeignKey, UniqueConstraint, CheckConstraint
)

from app.database.session import Base, new_id, utcnow


class Badge(Base):
    __tablename__ = "badges"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("profiles.user_id", ondelete="RESTRICT"), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class UserBadge(Base):
    __tablename__ = "user_badges"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), index=True, nullable=False)
    badge_id = Column(String(36), ForeignKey("badges.id", ondelete="CASCADE"), index=True, nullable=False)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    earned_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )


class BadgeQuest(Base):
    __tablename__ = "badge_quests"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("profiles.user_id", ondelete="RESTRICT"), index=True, nullable=False)
    badge_id = Column(String(36), ForeignKey("badges.id", ondelete="SET NULL"), index=True, nullable=True)
    required_tasks_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("required_tasks_count >= 1", name="ck_quest_required_tasks"),
    )


class BadgeQuestTask(Base):
    __tablename__ = "badge_quest_tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    quest_id = Column(String(36), ForeignKey("badge_quests.id", ondelete="CASCADE"), index=True, nullable=False)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), index=True, nullable=False)
    order_position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("quest_id", "task_id", name="uq_quest_task"),
    )


class UserQuestProgress(Base):
    __tablename__ = "user_quest_progress"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), index=True, nullable=False)
    quest_id = Column(String(36), ForeignKey("badge_quests.id", ondelete="CASCADE"), index=True, nullable=False)
    completed_tasks = Column(JSON, nullable=False, default=list)
    progress_percentage = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "quest_id", name="uq_user_quest"),
    )
