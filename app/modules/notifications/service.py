from typing import List

from app.config.policy_config import Entity, Operation
from app.core.base_service import BaseService
from app.core.errors import ValidationError
from app.core.policies import Actor
from app.database.session import transaction
from app.modules.notifications.models import NotificationLog, NotificationSetting
from app.modules.notifications.schemas import NotificationSettingsUpdate


class NotificationService(BaseService):
    def list_notifications(
        self,
        actor: Actor,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[NotificationLog]:
        query = self.db.query(NotificationLog).filter(NotificationLog.user_id == actor.id)
        if unread_only:
            query = query.filter(NotificationLog.is_read.is_(False))
        return query.order_by(NotificationLog.created_at.desc()).limit(limit).offset(offset).all()

    def mark_read(self, actor: Actor, notification_id: str) -> NotificationLog:
        with transaction(self.db):
            notification = self.db.get(NotificationLog, notification_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.NOTIFICATION, notification)
            notification.is_read = True
        return notification

    def mark_all_read(self, actor: Actor) -> int:
        with transaction(self.db):
            count = (
                self.db.query(NotificationLog)
                .filter(NotificationLog.user_id == actor.id, NotificationLog.is_read.is_(False))
                .update({NotificationLog.is_read: True}, synchronize_session="fetch")
            )
        return count

    def get_settings(self, actor: Actor) -> NotificationSetting:
        setting = self.db.query(NotificationSetting).filter(NotificationSetting.user_id == actor.id).first()
        if setting is None:
            with transaction(self.db):
                setting = NotificationSetting(user_id=actor.id)
                self.db.add(setting)
        return self.policy.enforce(actor, Operation.READ, Entity.NOTIFICATION, setting)

    def update_settings(self, actor: Actor, settings_data: NotificationSettingsUpdate) -> NotificationSetting:
        setting = self.get_settings(actor)
        with transaction(self.db):
            self.policy.enforce(actor, Operation.UPDATE, Entity.NOTIFICATION, setting)
            for field, value in settings_data.model_dump(exclude_unset=True).items():
                if value is None:
                    raise ValidationError(f"{field} cannot be empty")
                setattr(setting, field, value)
        return setting
