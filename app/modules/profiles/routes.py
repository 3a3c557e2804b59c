from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.profiles.schemas import ProfileResponse, ProfileUpdate
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from typing import List, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


@router.get("", response_model=List[ProfileResponse])
async def search_profiles(
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    actor: Actor = Depends(get_current_actor),
    service: ProfileService = Depends(get_profile_service)
):
    """Search profiles by name or email (member search)"""
    return service.search_profiles(actor, search=search, limit=limit, offset=offset)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    actor: Actor = Depends(get_current_actor),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(actor, actor.id)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ProfileService = Depends(get_profile_service)
):
    """Update own profile; current_projects is derived and cannot be set here"""
    return service.update_profile(actor, profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(actor, user_id)
