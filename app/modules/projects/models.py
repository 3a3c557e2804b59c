# Tables: projects, project_members

"""
projects:
- id: uuid (primary key)
- title: text (not null)
- created_by: uuid (references profiles.user_id, not null) - owner/creator
- team: json array of user ids - legacy membership list, read as
  membership-equivalent alongside accepted project_members rows
- property_status: owned_land | potential_property
- location, values_mission_goals, category, funding_needs, image_url: text
- guilds, structures: json array of text
- zone_0 .. zone_4, water, soil, power: text
- created_at, updated_at: timestamp

project_members:
- id: uuid (primary key)
- project_id: uuid (references projects.id, cascade delete)
- user_id: uuid (nullable until the invitee has an account)
- role: viewer | contributor | admin | owner (default contributor)
- invitation_status: pending | accepted | declined | expired (default pending)
- invitation_email: text (not null)
- invitation_token, invitation_message: text
- invitation_expires_at: timestamp
- unique constraint on (project_id, invitation_email)
"""

from sqlalchemy import (
    Column, String, Text, DateTime, JSON, ForeignKey, UniqueConstraint, CheckConstraint, Index
)

from app.database.session import Base, new_id, utcnow

PROPERTY_STATUSES = ("owned_land", "potential_property")
MEMBER_ROLES = ("viewer", "contributor", "admin", "owner")
INVITATION_STATUSES = ("pending", "accepted", "declined", "expired")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    created_by = Column(String(36), ForeignKey("profiles.user_id", ondelete="RESTRICT"), index=True, nullable=False)
    team = Column(JSON, nullable=False, default=list)
    location = Column(Text, nullable=True)
    property_status = Column(String(32), nullable=False, default="potential_property")
    values_mission_goals = Column(Text, nullable=True)
    guilds = Column(JSON, nullable=False, default=list)
    zone_0 = Column(Text, nullable=True)
    zone_1 = Column(Text, nullable=True)
    zone_2 = Column(Text, nullable=True)
    zone_3 = Column(Text, nullable=True)
    zone_4 = Column(Text, nullable=True)
    water = Column(Text, nullable=True)
    soil = Column(Text, nullable=True)
    power = Column(Text, nullable=True)
    structures = Column(JSON, nullable=False, default=list)
    category = Column(Text, nullable=True)
    funding_needs = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "property_status IN ('owned_land','potential_property')", name="ck_project_property_status"
        ),
    )


class ProjectMember(Base):
    __tablename__ = "project_members"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=True)
    role = Column(String(16), nullable=False, default="contributor")
    invitation_status = Column(String(16), nullable=False, default="pending")
    invitation_email = Column(Text, nullable=False)
    invitation_token = Column(String(64), unique=True, nullable=True)
    invitation_message = Column(Text, nullable=True)
    invitation_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("project_id", "invitation_email", name="uq_project_member_email"),
        CheckConstraint("role IN ('viewer','contributor','admin','owner')", name="ck_member_role"),
        CheckConstraint(
            "invitation_status IN ('pending','accepted','declined','expired')", name="ck_member_invitation_status"
        ),
        Index("ix_project_members_project_user", "project_id", "user_id"),
    )
