from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    MeResponse, PolicyMatrixResponse
)
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_auth_service, get_current_actor, security
from app.core.policies import Actor
from app.config.policy_config import get_policy_matrix

router = APIRouter(prefix="/auth", tags=["auth"])


def bearer_token(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Sign up; the profile and notification settings are created alongside"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(bearer_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Get current authenticated user with their profile and project memberships"""
    profile = ProfileService(db).get_profile(actor, actor.id)
    return MeResponse(
        id=actor.id,
        email=actor.email,
        profile=profile,
        project_ids=list(profile.current_projects or []),
    )


@router.get("/policies", response_model=PolicyMatrixResponse)
async def get_policies(actor: Actor = Depends(get_current_actor)):
    """Rule matrix for frontend UI decisions"""
    return get_policy_matrix()
