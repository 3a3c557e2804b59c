from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime, date, time

RecurringPattern = Literal["daily", "weekly", "biweekly", "monthly", "yearly"]


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    all_day: bool = True
    location: Optional[str] = None
    is_project_event: bool = False
    project_id: Optional[str] = None
    attendees: List[str] = []
    color: Optional[str] = None
    recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    recurring_end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    all_day: Optional[bool] = None
    location: Optional[str] = None
    is_project_event: Optional[bool] = None
    project_id: Optional[str] = None
    attendees: Optional[List[str]] = None
    color: Optional[str] = None
    recurring: Optional[bool] = None
    recurring_pattern: Optional[RecurringPattern] = None
    recurring_end_date: Optional[date] = None


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    all_day: bool
    location: Optional[str] = None
    is_project_event: bool
    project_id: Optional[str] = None
    created_by: str
    attendees: List[str] = []
    color: Optional[str] = None
    recurring: bool
    recurring_pattern: Optional[str] = None
    recurring_end_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
