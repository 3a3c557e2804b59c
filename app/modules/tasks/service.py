import logging
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, or_

from app.config.policy_config import Entity, Operation
from app.core.base_service import BaseService
from app.core.errors import Conflict, Forbidden, ValidationError
from app.core.policies import Actor
from app.database.session import transaction
from app.modules.badges.models import Badge
from app.modules.projects.models import Project
from app.modules.tasks.models import Task
from app.modules.tasks.schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


class TaskService(BaseService):
    def _check_project(self, actor: Actor, project_id: Optional[str], is_project_task: bool) -> None:
        if is_project_task and not project_id:
            raise ValidationError("project_id is required for a project task")
        if project_id:
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)

    def _check_badge(self, badge_id: Optional[str]) -> None:
        if badge_id and self.db.get(Badge, badge_id) is None:
            raise ValidationError(f"Unknown badge: {badge_id}")

    def _notify_assigned(self, actor: Actor, task: Task, user_ids: List[str]) -> None:
        self.notifier.notify_many(user_ids, "task_assigned", {
            "task_id": task.id, "title": task.title, "project_id": task.project_id, "assigned_by": actor.id,
        }, exclude=actor.id)

    def create_task(self, actor: Actor, task_data: TaskCreate) -> Tuple[Task, Optional[str]]:
        """Create a task; returns (task, completion outcome when created already done)"""
        with transaction(self.db):
            self._check_project(actor, task_data.project_id, task_data.is_project_task)
            self._check_badge(task_data.badge_id)
            data = task_data.model_dump(exclude={"assigned_to", "status"})
            assignees = task_data.assignees or ([task_data.assigned_to] if task_data.assigned_to else [])
            data["assignees"] = self.require_profiles(assignees, "assignees")
            task = Task(**data, assigned_to=data["assignees"][0] if data["assignees"] else None,
                        created_by=actor.id, status="todo")
            self.policy.enforce(actor, Operation.INSERT, Entity.TASK, task)
            self.db.add(task)
            self.db.flush()
            self._notify_assigned(actor, task, task.assignees)

            outcome = None
            if task_data.status == "done":
                task.status = "done"
                outcome = self.effects.on_task_completed(task, actor.id)
            else:
                task.status = task_data.status
        logger.info(f"Task {task.id} created by {actor.id}")
        return task, outcome

    def get_task(self, actor: Actor, task_id: str) -> Task:
        task = self.db.get(Task, task_id)
        return self.policy.enforce(actor, Operation.READ, Entity.TASK, task)

    def list_tasks(
        self,
        actor: Actor,
        project_id: Optional[str] = None,
        assigned_to_me: bool = False,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Task]:
        """Tasks visible to the actor, optionally scoped to one project"""
        query = self.db.query(Task)
        if project_id:
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)
            query = query.filter(Task.project_id == project_id)
        else:
            criteria = [
                Task.created_by == actor.id,
                Task.assigned_to == actor.id,
                cast(Task.assignees, String).contains(actor.id),
            ]
            project_ids = self.resolver.candidate_project_ids(actor.id)
            if project_ids:
                criteria.append(Task.project_id.in_(project_ids))
            query = query.filter(or_(*criteria))
        if status:
            query = query.filter(Task.status == status)
        tasks = query.order_by(Task.created_at.desc()).all()
        tasks = [t for t in tasks if self.policy.can(actor, Operation.READ, Entity.TASK, t)]
        if assigned_to_me:
            tasks = [t for t in tasks if actor.id in (t.assignees or []) or t.assigned_to == actor.id]
        return tasks[offset:offset + limit]

    def update_task(self, actor: Actor, task_id: str, task_data: TaskUpdate) -> Tuple[Task, Optional[str]]:
        with transaction(self.db):
            task = self.db.get(Task, task_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.TASK, task)
            changes = task_data.model_dump(exclude_unset=True)
            reward_fields = [f for f in ("badge_id", "completion_verification") if f in changes]
            if reward_fields and actor.id != task.created_by:
                raise Forbidden(f"Only the task creator may change {', '.join(reward_fields)}")
            for field in ("title", "status", "priority", "is_project_task", "completion_verification"):
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be empty")

            if "project_id" in changes or "is_project_task" in changes:
                project_id = changes.get("project_id", task.project_id)
                if project_id != task.project_id or changes.get("is_project_task"):
                    self._check_project(actor, project_id, changes.get("is_project_task", task.is_project_task))
            if "badge_id" in changes:
                self._check_badge(changes["badge_id"])

            added = []
            if "assignees" in changes:
                new_assignees = self.require_profiles(changes.pop("assignees"), "assignees")
                added = [u for u in new_assignees if u not in (task.assignees or [])]
                task.assignees = new_assignees
                task.assigned_to = new_assignees[0] if new_assignees else None

            new_status = changes.pop("status", None)
            for field, value in changes.items():
                setattr(task, field, value)

            outcome = None
            if new_status is not None and new_status != task.status:
                outcome = self._change_status(actor, task, new_status)
            self._notify_assigned(actor, task, added)
            if actor.id != task.created_by:
                self.notifier.notify(task.created_by, "task_updated", {
                    "task_id": task.id, "title": task.title, "updated_by": actor.id,
                })
        return task, outcome

    def _change_status(self, actor: Actor, task: Task, new_status: str) -> Optional[str]:
        was_done = task.status == "done"
        task.status = new_status
        if new_status == "done":
            return self.effects.on_task_completed(task, actor.id)
        if was_done:
            self.effects.on_task_reopened(task)
        return None

    def complete_task(self, actor: Actor, task_id: str) -> Tuple[Task, str]:
        """Mark done; the badge is awarded now or after the creator verifies"""
        with transaction(self.db):
            task = self.db.get(Task, task_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.TASK, task)
            if task.status == "done":
                raise Conflict("Task is already done")
            outcome = self._change_status(actor, task, "done")
            if actor.id != task.created_by:
                self.notifier.notify(task.created_by, "task_completed", {
                    "task_id": task.id, "title": task.title, "completed_by": actor.id,
                })
        logger.info(f"Task {task.id} completed by {actor.id}: {outcome}")
        return task, outcome

    def verify_task(self, actor: Actor, task_id: str, approved: bool) -> Tuple[Task, str]:
        """Creator approves or rejects a completion awaiting verification"""
        with transaction(self.db):
            task = self.db.get(Task, task_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.TASK, task)
            if task.created_by != actor.id:
                raise Forbidden("Only the task creator can verify completion")
            if task.verification_status != "pending":
                raise Conflict("Task has no completion awaiting verification")
            outcome = self.effects.on_task_verified(task, approved)
            if not approved:
                task.status = "in_progress"
                task.completed_by = None
        logger.info(f"Task {task.id} verification by {actor.id}: {outcome}")
        return task, outcome

    def delete_task(self, actor: Actor, task_id: str) -> None:
        """Delete task (creator or project creator)"""
        with transaction(self.db):
            task = self.db.get(Task, task_id)
            self.policy.enforce(actor, Operation.DELETE, Entity.TASK, task)
            self.effects.on_tasks_deleted([task.id])
            self.db.delete(task)
