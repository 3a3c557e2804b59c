"""Imports every model module so Base.metadata knows all tables and foreign keys."""

from app.modules.profiles.models import Profile  # noqa: F401
from app.modules.projects.models import Project, ProjectMember  # noqa: F401
from app.modules.badges.models import (  # noqa: F401
    Badge, UserBadge, BadgeQuest, BadgeQuestTask, UserQuestProgress
)
from app.modules.tasks.models import Task  # noqa: F401
from app.modules.items.models import Item  # noqa: F401
from app.modules.events.models import Event  # noqa: F401
from app.modules.notifications.models import NotificationSetting, NotificationLog  # noqa: F401
