"""
Row-level policy evaluator.

authorize() is a pure predicate over (actor, operation, entity, concrete row).
Rules for child rows (members, tasks, items, events) look up membership of
the row's concrete project_id through MembershipResolver; they never call
back into authorize() for another row, so there is no evaluation cycle
between projects and project_members.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.config.policy_config import Entity, InvitationStatus, MANAGER_ROLES, Operation
from app.core.errors import Forbidden, NotFound
from app.core.membership import MembershipResolver
from app.modules.tasks.models import Task

logger = logging.getLogger(__name__)


class Decision(Enum):
    ALLOW = "allow"
    DENY = "deny"

    def __bool__(self) -> bool:
        return self is Decision.ALLOW


@dataclass(frozen=True)
class Actor:
    id: str
    email: Optional[str] = None

    @classmethod
    def from_user_data(cls, user_data: Dict[str, Any]) -> "Actor":
        email = user_data.get("email")
        return cls(id=str(user_data["id"]), email=email.lower() if email else None)


def _in(user_id: str, values) -> bool:
    return user_id in (values or [])


class PolicyEvaluator:
    def __init__(self, session: Session, resolver: Optional[MembershipResolver] = None):
        self.session = session
        self.resolver = resolver or MembershipResolver(session)
        self._rules: Dict[Entity, Callable[[Actor, Operation, Any], bool]] = {
            Entity.PROJECT: self._project,
            Entity.PROJECT_MEMBER: self._project_member,
            Entity.TASK: self._task,
            Entity.ITEM: self._item,
            Entity.EVENT: self._event,
            Entity.BADGE: self._created_resource,
            Entity.BADGE_QUEST: self._created_resource,
            Entity.USER_BADGE: self._user_badge,
            Entity.PROFILE: self._profile,
            Entity.NOTIFICATION: self._notification,
        }

    def authorize(self, actor: Actor, operation: Operation, entity: Entity, row: Any) -> Decision:
        rule = self._rules.get(entity)
        if rule is None or row is None:
            return Decision.DENY
        return Decision.ALLOW if rule(actor, operation, row) else Decision.DENY

    def can(self, actor: Actor, operation: Operation, entity: Entity, row: Any) -> bool:
        return bool(self.authorize(actor, operation, entity, row))

    def enforce(self, actor: Actor, operation: Operation, entity: Entity, row: Any):
        """Return row when allowed; otherwise raise NotFound (invisible rows) or Forbidden."""
        if row is None:
            raise NotFound(f"{entity.value} not found")
        if self.authorize(actor, operation, entity, row):
            return row
        logger.info(f"Denied {operation.value} on {entity.value} {getattr(row, 'id', None)} for user {actor.id}")
        if operation is Operation.INSERT:
            raise Forbidden(f"Cannot create {entity.value}")
        if operation is Operation.READ or not self.authorize(actor, Operation.READ, entity, row):
            raise NotFound(f"{entity.value} not found")
        raise Forbidden(f"Cannot {operation.value} {entity.value}")

    # projects

    def _project(self, actor: Actor, op: Operation, project) -> bool:
        if op is Operation.INSERT:
            return project.created_by == actor.id
        if op is Operation.READ:
            return self.resolver.is_member(actor.id, project)
        if op is Operation.UPDATE:
            return (
                self.resolver.is_creator(actor.id, project)
                or self.resolver.has_role(actor.id, project, MANAGER_ROLES)
            )
        if op is Operation.DELETE:
            return self.resolver.is_creator(actor.id, project)
        return False

    def _is_own_invitation(self, actor: Actor, member) -> bool:
        if member.user_id is not None:
            return member.user_id == actor.id
        return actor.email is not None and (member.invitation_email or "").lower() == actor.email

    def _project_member(self, actor: Actor, op: Operation, member) -> bool:
        project_id = member.project_id
        if op is Operation.READ:
            return (
                self.resolver.is_member(actor.id, project_id)
                or self._is_own_invitation(actor, member)
            )
        if op in (Operation.INSERT, Operation.UPDATE, Operation.DELETE):
            return (
                self.resolver.is_creator(actor.id, project_id)
                or self.resolver.has_role(actor.id, project_id, MANAGER_ROLES)
            )
        if op is Operation.RESPOND:
            return (
                member.invitation_status == InvitationStatus.PENDING.value
                and self._is_own_invitation(actor, member)
            )
        return False

    # project-scoped rows: tasks, items, events

    def _scoped(self, actor: Actor, op: Operation, row, owner: str, participants) -> bool:
        project_id = row.project_id
        if op is Operation.INSERT:
            return owner == actor.id and (
                project_id is None or self.resolver.is_member(actor.id, project_id)
            )
        if op in (Operation.READ, Operation.UPDATE):
            if owner == actor.id or _in(actor.id, participants):
                return True
            return project_id is not None and self.resolver.is_member(actor.id, project_id)
        if op is Operation.DELETE:
            if owner == actor.id:
                return True
            return project_id is not None and self.resolver.is_creator(actor.id, project_id)
        return False

    def _task(self, actor: Actor, op: Operation, task) -> bool:
        participants = list(task.assignees or [])
        if task.assigned_to:
            participants.append(task.assigned_to)
        return self._scoped(actor, op, task, task.created_by, participants)

    def _item(self, actor: Actor, op: Operation, item) -> bool:
        return self._scoped(actor, op, item, item.added_by, item.assignees)

    def _event(self, actor: Actor, op: Operation, event) -> bool:
        return self._scoped(actor, op, event, event.created_by, event.attendees)

    # badges, quests, profiles, notifications

    def _created_resource(self, actor: Actor, op: Operation, row) -> bool:
        if op is Operation.READ:
            return True
        if op in (Operation.INSERT, Operation.UPDATE, Operation.DELETE):
            return row.created_by == actor.id
        return False

    def _user_badge(self, actor: Actor, op: Operation, user_badge) -> bool:
        if op is Operation.READ:
            return True
        if op is Operation.INSERT:
            if user_badge.user_id == actor.id:
                return True
            if user_badge.task_id is None:
                return False
            task = self.session.get(Task, user_badge.task_id)
            return task is not None and task.created_by == actor.id
        # earn records are append-only
        return False

    def _profile(self, actor: Actor, op: Operation, profile) -> bool:
        if op is Operation.READ:
            return True
        if op in (Operation.INSERT, Operation.UPDATE):
            return profile.user_id == actor.id
        return False

    def _notification(self, actor: Actor, op: Operation, row) -> bool:
        if op in (Operation.READ, Operation.UPDATE):
            return row.user_id == actor.id
        return False
