from pydantic import BaseModel, EmailStr
from typing import Optional, List, Dict, Any

from app.modules.profiles.schemas import ProfileResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    profile: ProfileResponse
    project_ids: List[str] = []


class PolicyMatrixResponse(BaseModel):
    roles: List[str]
    manager_roles: List[str]
    entities: List[Dict[str, Any]]
