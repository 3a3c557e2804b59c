from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    short_term_mission: Optional[str] = None
    long_term_mission: Optional[str] = None
    skills: Optional[List[str]] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    short_term_mission: Optional[str] = None
    long_term_mission: Optional[str] = None
    skills: List[str] = []
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    current_projects: List[str] = []
    joined_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
