from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class BadgeCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None


class BadgeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None


class BadgeResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BadgeAward(BaseModel):
    user_id: str
    task_id: Optional[str] = None


class UserBadgeResponse(BaseModel):
    id: str
    user_id: str
    badge_id: str
    task_id: Optional[str] = None
    earned_at: datetime
    badge_title: Optional[str] = None
    badge_image_url: Optional[str] = None


class BadgeAwardResponse(BaseModel):
    created: bool  # false when the user already held the badge
    user_badge: UserBadgeResponse


class QuestCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    badge_id: Optional[str] = None
    required_tasks_count: int = Field(1, ge=1)
    task_ids: List[str] = []


class QuestUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    badge_id: Optional[str] = None
    required_tasks_count: Optional[int] = Field(None, ge=1)


class QuestTaskAdd(BaseModel):
    task_id: str
    order_position: Optional[int] = None


class QuestResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    created_by: str
    badge_id: Optional[str] = None
    required_tasks_count: int
    task_ids: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class QuestProgressResponse(BaseModel):
    id: str
    user_id: str
    quest_id: str
    completed_tasks: List[str] = []
    progress_percentage: int
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
