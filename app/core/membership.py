"""
Membership resolution for projects.

Every lookup here is a direct filtered query on a concrete project id and
user id. Nothing in this module asks the policy evaluator anything, which is
what keeps project and project-member authorization free of recursion.
"""

import logging
from typing import Dict, Iterable, Optional, Set, Tuple, Union

from sqlalchemy.orm import Session

from app.config.policy_config import InvitationStatus, Role
from app.modules.profiles.models import Profile
from app.modules.projects.models import Project, ProjectMember

logger = logging.getLogger(__name__)

ProjectRef = Union[Project, str, None]


class MembershipResolver:
    """Request-scoped resolver; results are memoized until invalidate() is called."""

    def __init__(self, session: Session):
        self.session = session
        self._accepted: Dict[Tuple[str, str], Optional[ProjectMember]] = {}

    def get_project(self, project: ProjectRef) -> Optional[Project]:
        if project is None or isinstance(project, Project):
            return project
        return self.session.get(Project, project)

    def is_creator(self, user_id: str, project: ProjectRef) -> bool:
        project = self.get_project(project)
        return project is not None and project.created_by == user_id

    def accepted_membership(self, user_id: str, project_id: str) -> Optional[ProjectMember]:
        """Accepted project_members row for (project_id, user_id); pending/declined/expired rows never count."""
        key = (project_id, user_id)
        if key not in self._accepted:
            self._accepted[key] = (
                self.session.query(ProjectMember)
                .filter(
                    ProjectMember.project_id == project_id,
                    ProjectMember.user_id == user_id,
                    ProjectMember.invitation_status == InvitationStatus.ACCEPTED.value,
                )
                .first()
            )
        return self._accepted[key]

    def in_legacy_team(self, user_id: str, project: ProjectRef) -> bool:
        project = self.get_project(project)
        return project is not None and user_id in (project.team or [])

    def is_member(self, user_id: str, project: ProjectRef) -> bool:
        """Effective membership: creator, accepted member, or listed in the legacy team array."""
        project = self.get_project(project)
        if project is None:
            return False
        if project.created_by == user_id:
            return True
        if self.accepted_membership(user_id, project.id) is not None:
            return True
        return user_id in (project.team or [])

    def role_of(self, user_id: str, project: ProjectRef) -> Optional[Role]:
        """Creator is always owner; legacy team members without an accepted row have no role."""
        project = self.get_project(project)
        if project is None:
            return None
        if project.created_by == user_id:
            return Role.OWNER
        membership = self.accepted_membership(user_id, project.id)
        if membership is None:
            return None
        return Role(membership.role)

    def has_role(self, user_id: str, project: ProjectRef, roles: Iterable[Role]) -> bool:
        project = self.get_project(project)
        if project is None:
            return False
        membership = self.accepted_membership(user_id, project.id)
        return membership is not None and Role(membership.role) in set(roles)

    def candidate_project_ids(self, user_id: str) -> Set[str]:
        """Projects the user may be a member of; callers still filter through the policy evaluator."""
        ids = {
            row.id for row in self.session.query(Project.id).filter(Project.created_by == user_id)
        }
        ids.update(
            row.project_id
            for row in self.session.query(ProjectMember.project_id).filter(
                ProjectMember.user_id == user_id,
                ProjectMember.invitation_status == InvitationStatus.ACCEPTED.value,
            )
        )
        # current_projects also carries legacy team memberships
        profile = self.session.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is not None:
            ids.update(profile.current_projects or [])
        return ids

    def invalidate(self, project_id: Optional[str] = None) -> None:
        if project_id is None:
            self._accepted.clear()
            return
        for key in [k for k in self._accepted if k[0] == project_id]:
            del self._accepted[key]
