from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.membership import MembershipResolver
from app.core.notifier import Notifier
from app.core.policies import PolicyEvaluator
from app.core.side_effects import SideEffects
from app.modules.profiles.models import Profile


class BaseService:
    """Wires one session to its resolver, evaluator, notifier and side-effects engine."""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.resolver = MembershipResolver(db)
        self.policy = PolicyEvaluator(db, self.resolver)
        self.notifier = notifier or Notifier.for_session(db)
        self.effects = SideEffects(db, self.resolver, self.notifier)

    def require_profiles(self, user_ids: Optional[Iterable[str]], field: str = "user ids") -> List[str]:
        """De-duplicate user_ids, preserving order; every id must belong to an existing profile."""
        ids = list(dict.fromkeys(u for u in (user_ids or []) if u))
        if not ids:
            return ids
        found = {
            row.user_id for row in self.db.query(Profile.user_id).filter(Profile.user_id.in_(ids))
        }
        missing = [u for u in ids if u not in found]
        if missing:
            raise ValidationError(f"Unknown {field}: {', '.join(missing)}")
        return ids
