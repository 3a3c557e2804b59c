from pydantic import BaseModel
from typing import Optional, Dict, Any, Literal
from datetime import datetime


class NotificationSettingsUpdate(BaseModel):
    project_invitations: Optional[bool] = None
    task_assignments: Optional[bool] = None
    task_updates: Optional[bool] = None
    team_changes: Optional[bool] = None
    reminder_timing: Optional[Literal["immediate", "daily_digest", "off"]] = None


class NotificationSettingsResponse(BaseModel):
    user_id: str
    project_invitations: bool
    task_assignments: bool
    task_updates: bool
    team_changes: bool
    reminder_timing: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    content: Dict[str, Any] = {}
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
