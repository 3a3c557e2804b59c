"""
Core dependencies for route protection and actor resolution
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from supabase import Client

from app.core.policies import Actor
from app.database.session import get_db
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    db: Session = Depends(get_db)
) -> AuthService:
    return AuthService(supabase, db)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    return auth_service.get_current_user(token)


def get_current_actor(
    user_data: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Actor:
    """Resolve the authenticated user to an Actor, creating their profile on first request"""
    ProfileService(db).ensure_profile(user_data)
    return Actor.from_user_data(user_data)
