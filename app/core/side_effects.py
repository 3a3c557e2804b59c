"""
Mutation side effects.

These are the application-level equivalents of the database triggers that
kept derived state consistent. Every method runs inside the caller's open
transaction; if any step fails, the caller's transaction rolls back together
with the primary write.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import String, cast
from sqlalchemy.orm import Session

from app.config.policy_config import InvitationStatus, Role
from app.core.membership import MembershipResolver
from app.core.notifier import Notifier
from app.database.session import new_id, utcnow
from app.modules.badges.models import Badge, BadgeQuest, BadgeQuestTask, UserBadge, UserQuestProgress
from app.modules.events.models import Event
from app.modules.items.models import Item
from app.modules.profiles.models import Profile
from app.modules.projects.models import Project, ProjectMember
from app.modules.tasks.models import Task

logger = logging.getLogger(__name__)


class SideEffects:
    def __init__(self, session: Session, resolver: MembershipResolver, notifier: Optional[Notifier] = None):
        self.session = session
        self.resolver = resolver
        self.notifier = notifier or Notifier()

    # profile.current_projects cache

    def sync_current_projects(self, user_id: str, project: Project) -> None:
        """Make user_id's current_projects agree with their effective membership of project."""
        profile = self.session.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is None:
            return
        current = list(profile.current_projects or [])
        is_member = self.resolver.is_member(user_id, project)
        if is_member and project.id not in current:
            current.append(project.id)
        elif not is_member and project.id in current:
            current = [p for p in current if p != project.id]
        else:
            return
        profile.current_projects = current
        logger.debug(f"current_projects for {user_id} now {current}")

    def _sync_all(self, user_ids: Iterable[str], project: Project) -> None:
        self.session.flush()
        self.resolver.invalidate(project.id)
        for user_id in dict.fromkeys(u for u in user_ids if u):
            self.sync_current_projects(user_id, project)

    # projects

    def on_project_created(self, project: Project, creator_email: str) -> None:
        """Materialize the creator as an accepted owner and seed every member's cache."""
        self.session.add(ProjectMember(
            project_id=project.id,
            user_id=project.created_by,
            role=Role.OWNER.value,
            invitation_status=InvitationStatus.ACCEPTED.value,
            invitation_email=creator_email.lower(),
        ))
        self._sync_all([project.created_by, *(project.team or [])], project)
        self.notifier.notify_many(
            project.team, "team_changed",
            {"project_id": project.id, "title": project.title, "change": "added"},
            exclude=project.created_by,
        )

    def on_team_changed(self, project: Project, old_team: List[str]) -> None:
        old, new = list(old_team or []), list(project.team or [])
        removed = [u for u in old if u not in new]
        added = [u for u in new if u not in old]
        if not removed and not added:
            return
        self._sync_all(removed + added, project)
        content = {"project_id": project.id, "title": project.title}
        self.notifier.notify_many(added, "team_changed", {**content, "change": "added"})
        self.notifier.notify_many(removed, "team_changed", {**content, "change": "removed"})

    def on_membership_changed(self, project: Project, user_id: Optional[str]) -> None:
        self._sync_all([user_id], project)

    def on_project_deleted(self, project: Project) -> None:
        """Remove project from every profile and delete its dependents, then the project itself."""
        project_id = project.id
        profiles = (
            self.session.query(Profile)
            .filter(cast(Profile.current_projects, String).contains(project_id))
            .all()
        )
        for profile in profiles:
            if project_id in (profile.current_projects or []):
                profile.current_projects = [p for p in profile.current_projects if p != project_id]

        self.session.query(Item).filter(Item.project_id == project_id).delete(synchronize_session="fetch")
        task_ids = [row.id for row in self.session.query(Task.id).filter(Task.project_id == project_id)]
        if task_ids:
            self.on_tasks_deleted(task_ids)
            self.session.query(Task).filter(Task.id.in_(task_ids)).delete(synchronize_session="fetch")
        self.session.query(Event).filter(Event.project_id == project_id).delete(synchronize_session="fetch")
        self.session.query(ProjectMember).filter(
            ProjectMember.project_id == project_id
        ).delete(synchronize_session="fetch")
        self.session.delete(project)
        self.session.flush()
        self.resolver.invalidate(project_id)
        logger.info(f"Deleted project {project_id} with {len(task_ids)} task(s) and {len(profiles)} profile reference(s)")

    # tasks

    def on_tasks_deleted(self, task_ids: List[str]) -> None:
        """Detach rows that point at tasks about to be deleted."""
        self.session.query(Item).filter(Item.associated_task_id.in_(task_ids)).update(
            {Item.associated_task_id: None}, synchronize_session="fetch"
        )
        self.session.query(UserBadge).filter(UserBadge.task_id.in_(task_ids)).update(
            {UserBadge.task_id: None}, synchronize_session="fetch"
        )
        self.session.query(BadgeQuestTask).filter(BadgeQuestTask.task_id.in_(task_ids)).delete(
            synchronize_session="fetch"
        )

    def on_task_completed(self, task: Task, actor_id: str) -> str:
        """Award immediately, or park the completion until the task creator verifies it.

        Returns "pending_verification", "awarded" (badge granted) or "completed".
        """
        task.completed_by = actor_id
        if task.completion_verification and actor_id != task.created_by:
            task.verification_status = "pending"
            self.notifier.notify(task.created_by, "task_verification_requested", {
                "task_id": task.id, "title": task.title, "completed_by": actor_id,
            })
            return "pending_verification"
        task.verification_status = "approved" if task.completion_verification else "none"
        return self._accept_completion(task)

    def on_task_verified(self, task: Task, approved: bool) -> str:
        recipient = task.primary_assignee or task.completed_by
        self.notifier.notify(recipient, "task_verified", {
            "task_id": task.id, "title": task.title, "approved": approved,
        })
        if not approved:
            task.verification_status = "rejected"
            return "rejected"
        task.verification_status = "approved"
        return self._accept_completion(task)

    def on_task_reopened(self, task: Task) -> None:
        task.completed_by = None
        if task.verification_status == "pending":
            task.verification_status = "none"

    def _accept_completion(self, task: Task) -> str:
        recipient = task.primary_assignee or task.completed_by
        awarded = False
        if task.badge_id:
            _, awarded = self.award_badge(recipient, task.badge_id, task.id)
        self.record_quest_progress(recipient, task)
        return "awarded" if awarded or task.badge_id else "completed"

    # badges and quests

    def _insert_ignore(self, model, values: dict, conflict_columns: List[str]) -> bool:
        """INSERT ... ON CONFLICT DO NOTHING; True when a row was written."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            criteria = [getattr(model, c) == values[c] for c in conflict_columns]
            if self.session.query(model).filter(*criteria).first() is not None:
                return False
            self.session.add(model(**values))
            self.session.flush()
            return True
        self.session.flush()
        stmt = insert(model.__table__).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
        return self.session.execute(stmt).rowcount == 1

    def award_badge(self, user_id: str, badge_id: str, task_id: Optional[str] = None) -> Tuple[UserBadge, bool]:
        """Idempotent: re-earning an already earned badge leaves the single existing row untouched."""
        created = self._insert_ignore(UserBadge, {
            "id": new_id(),
            "user_id": user_id,
            "badge_id": badge_id,
            "task_id": task_id,
            "earned_at": utcnow(),
        }, ["user_id", "badge_id"])
        user_badge = (
            self.session.query(UserBadge)
            .filter(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
            .one()
        )
        if created:
            logger.info(f"Awarded badge {badge_id} to {user_id}")
            self.notifier.notify(user_id, "badge_earned", {"badge_id": badge_id, "task_id": task_id})
        return user_badge, created

    def record_quest_progress(self, user_id: str, task: Task) -> None:
        links = self.session.query(BadgeQuestTask).filter(BadgeQuestTask.task_id == task.id).all()
        for link in links:
            quest = self.session.get(BadgeQuest, link.quest_id)
            if quest is None:
                continue
            self._insert_ignore(UserQuestProgress, {
                "id": new_id(),
                "user_id": user_id,
                "quest_id": quest.id,
                "completed_tasks": [],
                "progress_percentage": 0,
                "started_at": utcnow(),
                "updated_at": utcnow(),
            }, ["user_id", "quest_id"])
            progress = (
                self.session.query(UserQuestProgress)
                .filter(UserQuestProgress.user_id == user_id, UserQuestProgress.quest_id == quest.id)
                .one()
            )
            completed = list(progress.completed_tasks or [])
            if task.id in completed:
                continue
            completed.append(task.id)
            progress.completed_tasks = completed
            progress.progress_percentage = min(100, len(completed) * 100 // quest.required_tasks_count)
            if len(completed) >= quest.required_tasks_count and progress.completed_at is None:
                progress.completed_at = utcnow()
                logger.info(f"User {user_id} completed quest {quest.id}")
                if quest.badge_id:
                    self.award_badge(user_id, quest.badge_id, task.id)

    def on_badge_deleted(self, badge: Badge) -> None:
        self.session.query(Task).filter(Task.badge_id == badge.id).update(
            {Task.badge_id: None}, synchronize_session="fetch"
        )
        self.session.query(BadgeQuest).filter(BadgeQuest.badge_id == badge.id).update(
            {BadgeQuest.badge_id: None}, synchronize_session="fetch"
        )
        self.session.query(UserBadge).filter(UserBadge.badge_id == badge.id).delete(synchronize_session="fetch")
        self.session.delete(badge)
        self.session.flush()

    def on_quest_deleted(self, quest: BadgeQuest) -> None:
        self.session.query(BadgeQuestTask).filter(BadgeQuestTask.quest_id == quest.id).delete(
            synchronize_session="fetch"
        )
        self.session.query(UserQuestProgress).filter(UserQuestProgress.quest_id == quest.id).delete(
            synchronize_session="fetch"
        )
        self.session.delete(quest)
        self.session.flush()
