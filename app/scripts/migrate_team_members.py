"""
Migrate Legacy Team Members Script
Materializes each project's legacy team array as accepted project_members
rows (contributor role; the creator as owner), skipping (project, email)
pairs that already exist, then resyncs profiles.current_projects.
Safe to run repeatedly.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.orm import Session
from app.config.policy_config import InvitationStatus, Role
from app.core.membership import MembershipResolver
from app.core.notifier import Notifier
from app.core.side_effects import SideEffects
from app.database.session import SessionLocal, init_db, transaction
from app.modules.profiles.models import Profile
from app.modules.projects.models import Project, ProjectMember
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def migrate_project(session: Session, project: Project) -> int:
    """Create missing membership rows for one project; returns how many were created"""
    existing_emails = {
        row.invitation_email.lower()
        for row in session.query(ProjectMember.invitation_email).filter(ProjectMember.project_id == project.id)
    }
    wanted = [(project.created_by, Role.OWNER)]
    wanted += [(user_id, Role.CONTRIBUTOR) for user_id in project.team or [] if user_id != project.created_by]

    created = 0
    for user_id, role in wanted:
        profile = session.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is None or not profile.email:
            logger.warning(f"Skipping {user_id} on project {project.id}: no profile email")
            continue
        email = profile.email.lower()
        if email in existing_emails:
            continue
        session.add(ProjectMember(
            project_id=project.id,
            user_id=user_id,
            role=role.value,
            invitation_status=InvitationStatus.ACCEPTED.value,
            invitation_email=email,
        ))
        existing_emails.add(email)
        created += 1
    return created


def migrate_all(session: Session) -> dict:
    resolver = MembershipResolver(session)
    # migration runs silently; no notifications for backfilled rows
    effects = SideEffects(session, resolver, Notifier())
    projects_count = 0
    created_count = 0

    for project in session.query(Project).order_by(Project.created_at).all():
        try:
            with transaction(session):
                created = migrate_project(session, project)
                session.flush()
                resolver.invalidate(project.id)
                for user_id in [project.created_by, *(project.team or [])]:
                    effects.sync_current_projects(user_id, project)
            projects_count += 1
            created_count += created
            logger.debug(f"Project {project.id}: {created} membership(s) created")
        except Exception as e:
            logger.error(f"Error migrating project {project.id}: {e}")

    return {"projects": projects_count, "created": created_count}


def main():
    """Main function to backfill project_members from legacy team arrays"""
    try:
        init_db()
        session = SessionLocal()
        try:
            logger.info("Starting legacy team migration...")
            result = migrate_all(session)
            logger.info("Migration completed successfully!")
            logger.info(f"Total: {result['projects']} projects processed, {result['created']} memberships created")
        finally:
            session.close()
    except Exception as e:
        logger.error(f"Error during migration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
