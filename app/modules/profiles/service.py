import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_

from app.config.policy_config import Entity, Operation
from app.core.base_service import BaseService
from app.core.errors import NotFound
from app.core.policies import Actor
from app.database.session import transaction
from app.modules.notifications.models import NotificationSetting
from app.modules.profiles.models import Profile
from app.modules.profiles.schemas import ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService(BaseService):
    def ensure_profile(self, user_data: Dict[str, Any]) -> Profile:
        """Create the profile and default notification settings for an auth user on first sight."""
        user_id = str(user_data["id"])
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is not None:
            return profile

        metadata = user_data.get("user_metadata") or {}
        email = user_data.get("email")
        with transaction(self.db):
            profile = Profile(
                user_id=user_id,
                email=email.lower() if email else None,
                name=metadata.get("full_name") or metadata.get("name"),
                skills=[],
                current_projects=[],
            )
            self.db.add(profile)
            exists = self.db.query(NotificationSetting.id).filter(NotificationSetting.user_id == user_id).first()
            if exists is None:
                self.db.add(NotificationSetting(user_id=user_id))
        logger.info(f"Created profile for user {user_id}")
        return profile

    def get_profile(self, actor: Actor, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        return self.policy.enforce(actor, Operation.READ, Entity.PROFILE, profile)

    def update_profile(self, actor: Actor, profile_data: ProfileUpdate) -> Profile:
        with transaction(self.db):
            profile = self.db.query(Profile).filter(Profile.user_id == actor.id).first()
            if profile is None:
                raise NotFound("Profile not found")
            self.policy.enforce(actor, Operation.UPDATE, Entity.PROFILE, profile)
            for field, value in profile_data.model_dump(exclude_unset=True).items():
                if field == "skills" and value is None:
                    value = []
                setattr(profile, field, value)
        return profile

    def search_profiles(
        self,
        actor: Actor,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Profile]:
        """Member search by name or email (case-insensitive substring)."""
        query = self.db.query(Profile)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                func.lower(Profile.name).like(pattern),
                func.lower(Profile.email).like(pattern),
            ))
        profiles = query.order_by(Profile.name).limit(limit).offset(offset).all()
        return [p for p in profiles if self.policy.can(actor, Operation.READ, Entity.PROFILE, p)]
