# Tables: profiles
# Authentication is handled by Supabase Auth (auth.users); this table holds
# the public profile and the derived current_projects cache.

"""
profiles:
- id: uuid (primary key)
- user_id: uuid (unique, not null) - the Supabase auth user id
- name, email, short_term_mission, long_term_mission, location, avatar_url: text
- skills: json array of text
- current_projects: json array of project ids - derived, maintained only by
  app.core.side_effects; never written from a user request
- joined_at, updated_at: timestamp
"""

from sqlalchemy import Column, String, Text, DateTime, JSON

from app.database.session import Base, new_id, utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), unique=True, index=True, nullable=False)
    name = Column(Text, nullable=True)
    email = Column(Text, index=True, nullable=True)
    short_term_mission = Column(Text, nullable=True)
    long_term_mission = Column(Text, nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    location = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    current_projects = Column(JSON, nullable=False, default=list)
    joined_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
