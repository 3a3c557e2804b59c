import logging
import re
import secrets
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy import func, or_

from app.config import settings
from app.config.policy_config import Entity, INVITATION_TRANSITIONS, InvitationStatus, Operation, Role
from app.core.base_service import BaseService
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.policies import Actor
from app.database.session import transaction, utcnow
from app.modules.items.models import Item
from app.modules.profiles.models import Profile
from app.modules.projects.models import Project, ProjectMember
from app.modules.projects.schemas import (
    BudgetSummary, BudgetUpdate, MemberInvite, MemberRoleUpdate, ProjectCreate, ProjectUpdate
)

logger = logging.getLogger(__name__)


def parse_budget(funding_needs: Optional[str]) -> Optional[Decimal]:
    """funding_needs is free text such as "$12,500.00"; keep only the number."""
    if not funding_needs:
        return None
    digits = re.sub(r"[^0-9.]", "", funding_needs)
    if not digits:
        return None
    try:
        return Decimal(digits)
    except InvalidOperation:
        return None


def _line_total(item: Item, quantity: int) -> Decimal:
    # a zero or missing quantity still counts one unit
    return Decimal(item.price or 0) * (quantity or 1)


class ProjectService(BaseService):
    def create_project(self, actor: Actor, project_data: ProjectCreate) -> Project:
        """Create a project; the creator becomes its owner member"""
        with transaction(self.db):
            data = project_data.model_dump()
            data["team"] = self.require_profiles(data["team"], "team members")
            project = Project(**data, created_by=actor.id)
            self.policy.enforce(actor, Operation.INSERT, Entity.PROJECT, project)
            self.db.add(project)
            self.db.flush()

            profile = self.db.query(Profile).filter(Profile.user_id == actor.id).first()
            email = actor.email or (profile.email if profile else None) or actor.id
            self.effects.on_project_created(project, email)
        logger.info(f"Project {project.id} created by {actor.id}")
        return project

    def get_project(self, actor: Actor, project_id: str) -> Project:
        project = self.db.get(Project, project_id)
        return self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)

    def list_projects(
        self,
        actor: Actor,
        created_by_me: bool = False,
        limit: int = 10,
        offset: int = 0
    ) -> List[Project]:
        """Projects the actor can read, newest first"""
        if created_by_me:
            query = self.db.query(Project).filter(Project.created_by == actor.id)
        else:
            candidate_ids = self.resolver.candidate_project_ids(actor.id)
            if not candidate_ids:
                return []
            query = self.db.query(Project).filter(Project.id.in_(candidate_ids))
        projects = query.order_by(Project.created_at.desc()).all()
        readable = [p for p in projects if self.policy.can(actor, Operation.READ, Entity.PROJECT, p)]
        return readable[offset:offset + limit]

    def update_project(self, actor: Actor, project_id: str, project_data: ProjectUpdate) -> Project:
        with transaction(self.db):
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.PROJECT, project)
            old_team = list(project.team or [])
            changes = project_data.model_dump(exclude_unset=True)
            if "team" in changes:
                changes["team"] = self.require_profiles(changes["team"], "team members")
            for field in ("guilds", "structures"):
                if field in changes and changes[field] is None:
                    changes[field] = []
            for field in ("title", "property_status"):
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be empty")
            for field, value in changes.items():
                setattr(project, field, value)
            if "team" in changes:
                self.effects.on_team_changed(project, old_team)
        return project

    def delete_project(self, actor: Actor, project_id: str) -> None:
        """Delete project with its members, tasks, items and events (creator only)"""
        with transaction(self.db):
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.DELETE, Entity.PROJECT, project)
            self.effects.on_project_deleted(project)

    def get_budget_summary(self, actor: Actor, project_id: str) -> BudgetSummary:
        project = self.get_project(actor, project_id)
        items = self.db.query(Item).filter(Item.project_id == project.id).all()
        needed = sum(
            (_line_total(i, i.quantity_needed) for i in items if i.item_type == "needed_supply"),
            Decimal(0),
        )
        owned = sum(
            (_line_total(i, i.quantity_owned) for i in items if i.item_type == "owned_resource"),
            Decimal(0),
        )
        budget = parse_budget(project.funding_needs)
        if budget is None:
            status, remaining = "Not set", None
        else:
            remaining = budget - needed
            if remaining < 0:
                status = "Over budget"
            elif remaining == 0:
                status = "On budget"
            else:
                status = "Under budget"
        return BudgetSummary(
            project_id=project.id,
            total_budget=float(budget) if budget is not None else None,
            needed_supplies_cost=float(needed),
            owned_resources_value=float(owned),
            remaining=float(remaining) if remaining is not None else None,
            status=status,
        )

    def set_budget(self, actor: Actor, project_id: str, budget_data: BudgetUpdate) -> BudgetSummary:
        with transaction(self.db):
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.PROJECT, project)
            project.funding_needs = f"${budget_data.amount:,.2f}"
        return self.get_budget_summary(actor, project_id)


class MemberService(BaseService):
    def _project(self, actor: Actor, project_id: str) -> Project:
        project = self.db.get(Project, project_id)
        return self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)

    def _expire_due(self, members: List[ProjectMember]) -> None:
        """Move pending invitations past their expiry to expired."""
        now = utcnow()
        due = [
            m for m in members
            if m.invitation_status == InvitationStatus.PENDING.value
            and m.invitation_expires_at is not None
            and m.invitation_expires_at < now
        ]
        if not due:
            return
        with transaction(self.db):
            for member in due:
                self._transition(member, InvitationStatus.EXPIRED)
        logger.info(f"Expired {len(due)} invitation(s)")

    def _check_transition(self, member: ProjectMember, target: InvitationStatus) -> None:
        current = InvitationStatus(member.invitation_status)
        if target not in INVITATION_TRANSITIONS[current]:
            raise Conflict(f"Invitation is already {current.value}")

    def _transition(self, member: ProjectMember, target: InvitationStatus) -> None:
        self._check_transition(member, target)
        member.invitation_status = target.value

    def _load_member(self, actor: Actor, member_id: str, project_id: Optional[str] = None) -> ProjectMember:
        member = self.db.get(ProjectMember, member_id)
        if member is not None and project_id is not None and member.project_id != project_id:
            member = None
        self.policy.enforce(actor, Operation.READ, Entity.PROJECT_MEMBER, member)
        self._expire_due([member])
        return member

    def list_members(self, actor: Actor, project_id: str) -> List[ProjectMember]:
        """Roster visible to the actor: the whole roster for members, otherwise only their own invitation"""
        members = (
            self.db.query(ProjectMember)
            .filter(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.created_at)
            .all()
        )
        visible = [m for m in members if self.policy.can(actor, Operation.READ, Entity.PROJECT_MEMBER, m)]
        if not visible:
            self._project(actor, project_id)
        self._expire_due(visible)
        return visible

    def invite_member(self, actor: Actor, project_id: str, invite_data: MemberInvite) -> ProjectMember:
        with transaction(self.db):
            project = self._project(actor, project_id)
            email = invite_data.email.lower()
            profile = self.db.query(Profile).filter(func.lower(Profile.email) == email).first()
            member = ProjectMember(
                project_id=project.id,
                user_id=profile.user_id if profile else None,
                role=invite_data.role,
                invitation_status=InvitationStatus.PENDING.value,
                invitation_email=email,
                invitation_token=secrets.token_hex(24),
                invitation_message=invite_data.message,
                invitation_expires_at=utcnow() + timedelta(days=settings.invitation_ttl_days),
            )
            self.policy.enforce(actor, Operation.INSERT, Entity.PROJECT_MEMBER, member)
            existing = (
                self.db.query(ProjectMember.id)
                .filter(ProjectMember.project_id == project.id, ProjectMember.invitation_email == email)
                .first()
            )
            if existing is not None:
                raise Conflict(f"{email} has already been invited to this project")
            self.db.add(member)
            self.db.flush()
            self.notifier.notify(member.user_id, "project_invitation", {
                "project_id": project.id,
                "title": project.title,
                "role": member.role,
                "invited_by": actor.id,
                "member_id": member.id,
            })
        logger.info(f"Invited {email} to project {project.id} as {member.role}")
        return member

    def respond(self, actor: Actor, member_id: str, accept: bool) -> ProjectMember:
        """Invitee accepts or declines their own pending invitation"""
        member = self._load_member(actor, member_id)
        with transaction(self.db):
            target = InvitationStatus.ACCEPTED if accept else InvitationStatus.DECLINED
            self._check_transition(member, target)
            self.policy.enforce(actor, Operation.RESPOND, Entity.PROJECT_MEMBER, member)
            self._transition(member, target)
            project = self.db.get(Project, member.project_id)
            if accept:
                member.user_id = actor.id
                self.effects.on_membership_changed(project, actor.id)
            self.notifier.notify(project.created_by, "invitation_response", {
                "project_id": project.id,
                "title": project.title,
                "member_id": member.id,
                "user_id": actor.id,
                "status": member.invitation_status,
            })
        logger.info(f"User {actor.id} {member.invitation_status} invitation {member.id}")
        return member

    def respond_by_token(self, actor: Actor, token: str, accept: bool) -> ProjectMember:
        member = self.db.query(ProjectMember).filter(ProjectMember.invitation_token == token).first()
        if member is None:
            raise NotFound("Invitation not found")
        return self.respond(actor, member.id, accept)

    def list_my_invitations(self, actor: Actor) -> List[ProjectMember]:
        criteria = [ProjectMember.user_id == actor.id]
        if actor.email:
            criteria.append(func.lower(ProjectMember.invitation_email) == actor.email)
        members = (
            self.db.query(ProjectMember)
            .filter(ProjectMember.invitation_status == InvitationStatus.PENDING.value, or_(*criteria))
            .order_by(ProjectMember.created_at.desc())
            .all()
        )
        self._expire_due(members)
        return [m for m in members if m.invitation_status == InvitationStatus.PENDING.value]

    def update_member_role(
        self, actor: Actor, project_id: str, member_id: str, role_data: MemberRoleUpdate
    ) -> ProjectMember:
        member = self._load_member(actor, member_id, project_id)
        with transaction(self.db):
            self.policy.enforce(actor, Operation.UPDATE, Entity.PROJECT_MEMBER, member)
            project = self.db.get(Project, member.project_id)
            if member.user_id == project.created_by:
                raise ValidationError("The project creator's owner role cannot be changed")
            member.role = role_data.role
            self.effects.on_membership_changed(project, member.user_id)
            if member.invitation_status == InvitationStatus.ACCEPTED.value:
                self.notifier.notify(member.user_id, "member_role_changed", {
                    "project_id": project.id, "title": project.title, "role": member.role,
                })
        return member

    def remove_member(self, actor: Actor, project_id: str, member_id: str) -> None:
        member = self._load_member(actor, member_id, project_id)
        with transaction(self.db):
            self.policy.enforce(actor, Operation.DELETE, Entity.PROJECT_MEMBER, member)
            project = self.db.get(Project, member.project_id)
            if member.user_id == project.created_by:
                raise ValidationError("The project creator cannot be removed")
            user_id, was_accepted = member.user_id, member.invitation_status == InvitationStatus.ACCEPTED.value
            self.db.delete(member)
            self.effects.on_membership_changed(project, user_id)
            if was_accepted:
                self.notifier.notify(user_id, "member_removed", {
                    "project_id": project.id, "title": project.title,
                })
        logger.info(f"Removed member {member_id} from project {project_id}")

    def get_role(self, actor: Actor, project_id: str) -> Optional[Role]:
        project = self._project(actor, project_id)
        return self.resolver.role_of(actor.id, project)
