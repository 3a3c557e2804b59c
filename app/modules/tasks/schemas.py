from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

TaskStatus = Literal["todo", "in_progress", "done", "blocked"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    due_date: Optional[datetime] = None
    is_project_task: bool = False
    project_id: Optional[str] = None
    assignees: List[str] = []
    assigned_to: Optional[str] = None  # legacy single assignee, used when assignees is empty
    badge_id: Optional[str] = None
    completion_verification: bool = False


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    is_project_task: Optional[bool] = None
    project_id: Optional[str] = None
    assignees: Optional[List[str]] = None
    badge_id: Optional[str] = None
    completion_verification: Optional[bool] = None


class TaskVerify(BaseModel):
    approved: bool


class TaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    is_project_task: bool
    project_id: Optional[str] = None
    assigned_to: Optional[str] = None
    assignees: List[str] = []
    created_by: str
    badge_id: Optional[str] = None
    completion_verification: bool
    verification_status: str
    completed_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskCompletionResponse(BaseModel):
    # pending_verification | awarded | completed | rejected
    outcome: str
    task: TaskResponse
