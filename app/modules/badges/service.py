import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func

from app.config.policy_config import Entity, Operation
from app.core.base_service import BaseService
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.policies import Actor
from app.database.session import transaction
from app.modules.badges.models import Badge, BadgeQuest, BadgeQuestTask, UserBadge, UserQuestProgress
from app.modules.badges.schemas import BadgeAward, BadgeCreate, BadgeUpdate, QuestCreate, QuestTaskAdd, QuestUpdate
from app.modules.tasks.models import Task

logger = logging.getLogger(__name__)


def user_badge_view(user_badge: UserBadge, badge: Optional[Badge]) -> Dict[str, Any]:
    return {
        "id": user_badge.id,
        "user_id": user_badge.user_id,
        "badge_id": user_badge.badge_id,
        "task_id": user_badge.task_id,
        "earned_at": user_badge.earned_at,
        "badge_title": badge.title if badge else None,
        "badge_image_url": badge.image_url if badge else None,
    }


class BadgeService(BaseService):
    def create_badge(self, actor: Actor, badge_data: BadgeCreate) -> Badge:
        with transaction(self.db):
            badge = Badge(**badge_data.model_dump(), created_by=actor.id)
            self.policy.enforce(actor, Operation.INSERT, Entity.BADGE, badge)
            self.db.add(badge)
        return badge

    def get_badge(self, actor: Actor, badge_id: str) -> Badge:
        badge = self.db.get(Badge, badge_id)
        return self.policy.enforce(actor, Operation.READ, Entity.BADGE, badge)

    def list_badges(self, actor: Actor, created_by_me: bool = False) -> List[Badge]:
        query = self.db.query(Badge)
        if created_by_me:
            query = query.filter(Badge.created_by == actor.id)
        return query.order_by(Badge.created_at.desc()).all()

    def update_badge(self, actor: Actor, badge_id: str, badge_data: BadgeUpdate) -> Badge:
        with transaction(self.db):
            badge = self.db.get(Badge, badge_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.BADGE, badge)
            changes = badge_data.model_dump(exclude_unset=True)
            if "title" in changes and changes["title"] is None:
                raise ValidationError("title cannot be empty")
            for field, value in changes.items():
                setattr(badge, field, value)
        return badge

    def delete_badge(self, actor: Actor, badge_id: str) -> None:
        """Delete badge; tasks and quests referencing it are detached, earn records removed"""
        with transaction(self.db):
            badge = self.db.get(Badge, badge_id)
            self.policy.enforce(actor, Operation.DELETE, Entity.BADGE, badge)
            self.effects.on_badge_deleted(badge)

    def award_badge(self, actor: Actor, badge_id: str, award_data: BadgeAward) -> Tuple[Dict[str, Any], bool]:
        """Idempotent manual award; the second award of the same badge is a no-op"""
        with transaction(self.db):
            badge = self.get_badge(actor, badge_id)
            candidate = UserBadge(user_id=award_data.user_id, badge_id=badge.id, task_id=award_data.task_id)
            self.policy.enforce(actor, Operation.INSERT, Entity.USER_BADGE, candidate)
            self.require_profiles([award_data.user_id], "user id")
            if award_data.task_id and self.db.get(Task, award_data.task_id) is None:
                raise ValidationError(f"Unknown task: {award_data.task_id}")
            user_badge, created = self.effects.award_badge(award_data.user_id, badge.id, award_data.task_id)
        return user_badge_view(user_badge, badge), created

    def list_user_badges(self, actor: Actor, user_id: str) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(UserBadge, Badge)
            .outerjoin(Badge, Badge.id == UserBadge.badge_id)
            .filter(UserBadge.user_id == user_id)
            .order_by(UserBadge.earned_at.desc())
            .all()
        )
        return [
            user_badge_view(user_badge, badge) for user_badge, badge in rows
            if self.policy.can(actor, Operation.READ, Entity.USER_BADGE, user_badge)
        ]


class QuestService(BaseService):
    def _task_ids(self, quest_id: str) -> List[str]:
        links = (
            self.db.query(BadgeQuestTask)
            .filter(BadgeQuestTask.quest_id == quest_id)
            .order_by(BadgeQuestTask.order_position, BadgeQuestTask.created_at)
            .all()
        )
        return [link.task_id for link in links]

    def quest_view(self, quest: BadgeQuest) -> Dict[str, Any]:
        return {
            "id": quest.id,
            "title": quest.title,
            "description": quest.description,
            "created_by": quest.created_by,
            "badge_id": quest.badge_id,
            "required_tasks_count": quest.required_tasks_count,
            "task_ids": self._task_ids(quest.id),
            "created_at": quest.created_at,
            "updated_at": quest.updated_at,
        }

    def _check_badge(self, badge_id: Optional[str]) -> None:
        if badge_id and self.db.get(Badge, badge_id) is None:
            raise ValidationError(f"Unknown badge: {badge_id}")

    def _link_task(self, actor: Actor, quest: BadgeQuest, task_id: str, order_position: Optional[int]) -> None:
        task = self.db.get(Task, task_id)
        self.policy.enforce(actor, Operation.READ, Entity.TASK, task)
        exists = (
            self.db.query(BadgeQuestTask.id)
            .filter(BadgeQuestTask.quest_id == quest.id, BadgeQuestTask.task_id == task_id)
            .first()
        )
        if exists is not None:
            raise Conflict("Task is already part of this quest")
        if order_position is None:
            last = (
                self.db.query(func.max(BadgeQuestTask.order_position))
                .filter(BadgeQuestTask.quest_id == quest.id)
                .scalar()
            )
            order_position = 0 if last is None else last + 1
        self.db.add(BadgeQuestTask(quest_id=quest.id, task_id=task_id, order_position=order_position))
        self.db.flush()

    def create_quest(self, actor: Actor, quest_data: QuestCreate) -> BadgeQuest:
        with transaction(self.db):
            self._check_badge(quest_data.badge_id)
            quest = BadgeQuest(**quest_data.model_dump(exclude={"task_ids"}), created_by=actor.id)
            self.policy.enforce(actor, Operation.INSERT, Entity.BADGE_QUEST, quest)
            self.db.add(quest)
            self.db.flush()
            for task_id in dict.fromkeys(quest_data.task_ids):
                self._link_task(actor, quest, task_id, None)
        return quest

    def get_quest(self, actor: Actor, quest_id: str) -> BadgeQuest:
        quest = self.db.get(BadgeQuest, quest_id)
        return self.policy.enforce(actor, Operation.READ, Entity.BADGE_QUEST, quest)

    def list_quests(self, actor: Actor) -> List[BadgeQuest]:
        return self.db.query(BadgeQuest).order_by(BadgeQuest.created_at.desc()).all()

    def update_quest(self, actor: Actor, quest_id: str, quest_data: QuestUpdate) -> BadgeQuest:
        with transaction(self.db):
            quest = self.db.get(BadgeQuest, quest_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.BADGE_QUEST, quest)
            changes = quest_data.model_dump(exclude_unset=True)
            for field in ("title", "required_tasks_count"):
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be empty")
            if "badge_id" in changes:
                self._check_badge(changes["badge_id"])
            for field, value in changes.items():
                setattr(quest, field, value)
        return quest

    def delete_quest(self, actor: Actor, quest_id: str) -> None:
        with transaction(self.db):
            quest = self.db.get(BadgeQuest, quest_id)
            self.policy.enforce(actor, Operation.DELETE, Entity.BADGE_QUEST, quest)
            self.effects.on_quest_deleted(quest)

    def add_task(self, actor: Actor, quest_id: str, task_data: QuestTaskAdd) -> BadgeQuest:
        with transaction(self.db):
            quest = self.db.get(BadgeQuest, quest_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.BADGE_QUEST, quest)
            self._link_task(actor, quest, task_data.task_id, task_data.order_position)
        return quest

    def remove_task(self, actor: Actor, quest_id: str, task_id: str) -> BadgeQuest:
        with transaction(self.db):
            quest = self.db.get(BadgeQuest, quest_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.BADGE_QUEST, quest)
            deleted = (
                self.db.query(BadgeQuestTask)
                .filter(BadgeQuestTask.quest_id == quest.id, BadgeQuestTask.task_id == task_id)
                .delete(synchronize_session="fetch")
            )
            if not deleted:
                raise NotFound("Task is not part of this quest")
        return quest

    def list_progress(self, actor: Actor) -> List[UserQuestProgress]:
        """The actor's own quest progress"""
        return (
            self.db.query(UserQuestProgress)
            .filter(UserQuestProgress.user_id == actor.id)
            .order_by(UserQuestProgress.updated_at.desc())
            .all()
        )

    def get_progress(self, actor: Actor, quest_id: str) -> Optional[UserQuestProgress]:
        self.get_quest(actor, quest_id)
        return (
            self.db.query(UserQuestProgress)
            .filter(UserQuestProgress.user_id == actor.id, UserQuestProgress.quest_id == quest_id)
            .first()
        )
