from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

PropertyStatus = Literal["owned_land", "potential_property"]
# owner is reserved for the project creator's own membership row
AssignableRole = Literal["viewer", "contributor", "admin"]


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1)
    team: List[str] = []
    location: Optional[str] = None
    property_status: PropertyStatus = "potential_property"
    values_mission_goals: Optional[str] = None
    guilds: List[str] = []
    zone_0: Optional[str] = None
    zone_1: Optional[str] = None
    zone_2: Optional[str] = None
    zone_3: Optional[str] = None
    zone_4: Optional[str] = None
    water: Optional[str] = None
    soil: Optional[str] = None
    power: Optional[str] = None
    structures: List[str] = []
    category: Optional[str] = None
    funding_needs: Optional[str] = None
    image_url: Optional[str] = None


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    team: Optional[List[str]] = None
    location: Optional[str] = None
    property_status: Optional[PropertyStatus] = None
    values_mission_goals: Optional[str] = None
    guilds: Optional[List[str]] = None
    zone_0: Optional[str] = None
    zone_1: Optional[str] = None
    zone_2: Optional[str] = None
    zone_3: Optional[str] = None
    zone_4: Optional[str] = None
    water: Optional[str] = None
    soil: Optional[str] = None
    power: Optional[str] = None
    structures: Optional[List[str]] = None
    category: Optional[str] = None
    funding_needs: Optional[str] = None
    image_url: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    title: str
    created_by: str
    team: List[str] = []
    location: Optional[str] = None
    property_status: str
    values_mission_goals: Optional[str] = None
    guilds: List[str] = []
    zone_0: Optional[str] = None
    zone_1: Optional[str] = None
    zone_2: Optional[str] = None
    zone_3: Optional[str] = None
    zone_4: Optional[str] = None
    water: Optional[str] = None
    soil: Optional[str] = None
    power: Optional[str] = None
    structures: List[str] = []
    category: Optional[str] = None
    funding_needs: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BudgetUpdate(BaseModel):
    amount: Decimal = Field(..., ge=0)


class BudgetSummary(BaseModel):
    project_id: str
    total_budget: Optional[float] = None
    needed_supplies_cost: float
    owned_resources_value: float
    remaining: Optional[float] = None
    status: str  # Not set | Over budget | On budget | Under budget


class MemberInvite(BaseModel):
    email: EmailStr
    role: AssignableRole = "contributor"
    message: Optional[str] = None


class MemberRoleUpdate(BaseModel):
    role: AssignableRole


class InvitationRespond(BaseModel):
    accept: bool


class MemberResponse(BaseModel):
    id: str
    project_id: str
    user_id: Optional[str] = None
    role: str
    invitation_status: str
    invitation_email: str
    invitation_message: Optional[str] = None
    invitation_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberInviteResponse(MemberResponse):
    """Returned to the inviter only; the token is what the invite link carries."""
    invitation_token: Optional[str] = None
