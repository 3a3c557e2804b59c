"""
Fire-and-forget notifications.

Events are queued while a transaction is open and delivered only after it
commits, through a separate session. Delivery problems are logged and never
reach the request that produced the event.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker

from app.modules.notifications.models import NotificationLog, NotificationSetting

logger = logging.getLogger(__name__)

# notification type -> notification_settings flag that controls it
SETTING_FOR_TYPE = {
    "project_invitation": "project_invitations",
    "invitation_response": "team_changes",
    "member_role_changed": "team_changes",
    "member_removed": "team_changes",
    "team_changed": "team_changes",
    "task_assigned": "task_assignments",
    "task_updated": "task_updates",
    "task_completed": "task_updates",
    "task_verification_requested": "task_updates",
    "task_verified": "task_updates",
    "badge_earned": "task_updates",
}

PendingEvent = Tuple[str, str, Dict[str, Any]]


class Notifier:
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory
        self._pending: List[PendingEvent] = []

    @classmethod
    def for_session(cls, session: Session) -> "Notifier":
        """One notifier per session, flushed on commit and cleared on rollback."""
        notifier = session.info.get("notifier")
        if notifier is None:
            notifier = cls(sessionmaker(bind=session.get_bind(), future=True))
            notifier.bind(session)
            session.info["notifier"] = notifier
        return notifier

    def bind(self, session: Session) -> None:
        event.listen(session, "after_commit", lambda s: self.flush())
        event.listen(session, "after_soft_rollback", self._on_rollback)

    def _on_rollback(self, session: Session, previous_transaction) -> None:
        # only the outermost rollback discards queued events; nested savepoints keep them
        if not previous_transaction.nested:
            self.discard()

    def notify(self, user_id: Optional[str], type: str, content: Dict[str, Any]) -> None:
        if not user_id:
            return
        self._pending.append((user_id, type, content))

    def notify_many(self, user_ids, type: str, content: Dict[str, Any], exclude: Optional[str] = None) -> None:
        for user_id in dict.fromkeys(user_ids or []):
            if user_id != exclude:
                self.notify(user_id, type, content)

    def discard(self) -> None:
        self._pending.clear()

    def flush(self) -> None:
        pending, self._pending = self._pending, []
        for user_id, type, content in pending:
            try:
                self.deliver(user_id, type, content)
            except Exception as e:
                logger.error(f"Error delivering {type} notification to {user_id}: {e}")

    def deliver(self, user_id: str, type: str, content: Dict[str, Any]) -> None:
        if self.session_factory is None:
            logger.debug(f"No notification store configured; dropping {type} for {user_id}")
            return
        with self.session_factory() as session:
            settings = session.query(NotificationSetting).filter(NotificationSetting.user_id == user_id).first()
            if settings is not None:
                if settings.reminder_timing == "off":
                    return
                flag = SETTING_FOR_TYPE.get(type)
                if flag and not getattr(settings, flag):
                    return
            session.add(NotificationLog(user_id=user_id, type=type, content=content))
            session.commit()
        logger.debug(f"Delivered {type} notification to {user_id}")
