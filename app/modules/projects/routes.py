from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse,
    BudgetSummary, BudgetUpdate,
    MemberInvite, MemberRoleUpdate, MemberResponse, MemberInviteResponse, InvitationRespond
)
from app.modules.projects.service import ProjectService, MemberService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from typing import List

router = APIRouter(prefix="/projects", tags=["projects"])
invitations_router = APIRouter(prefix="/invitations", tags=["invitations"])


def get_project_service(db: Session = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


def get_member_service(db: Session = Depends(get_db)) -> MemberService:
    return MemberService(db)


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """Create a new project; the caller becomes its owner"""
    return service.create_project(actor, project_data)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    created_by_me: bool = False,
    limit: int = 10,
    offset: int = 0,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """List projects the user created or is a member of. Use created_by_me=true to restrict to projects they created."""
    return service.list_projects(actor, created_by_me=created_by_me, limit=limit, offset=offset)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    return service.get_project(actor, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """Update project (creator or admin/owner member)"""
    return service.update_project(actor, project_id, project_data)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """Delete project (creator only)"""
    service.delete_project(actor, project_id)
    return None


@router.get("/{project_id}/budget", response_model=BudgetSummary)
async def get_budget(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    return service.get_budget_summary(actor, project_id)


@router.put("/{project_id}/budget", response_model=BudgetSummary)
async def set_budget(
    project_id: str,
    budget_data: BudgetUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    return service.set_budget(actor, project_id, budget_data)


@router.get("/{project_id}/my-role")
async def get_my_role(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    """Caller's role on the project; null for legacy team members without a membership row"""
    role = service.get_role(actor, project_id)
    return {"project_id": project_id, "role": role.value if role else None}


@router.get("/{project_id}/members", response_model=List[MemberResponse])
async def list_members(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    """List project members (any member of the project)"""
    return service.list_members(actor, project_id)


@router.post("/{project_id}/members", response_model=MemberInviteResponse, status_code=201)
async def invite_member(
    project_id: str,
    invite_data: MemberInvite,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    """Invite a user by email (project creator or admin/owner member)"""
    return service.invite_member(actor, project_id, invite_data)


@router.put("/{project_id}/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    project_id: str,
    member_id: str,
    role_data: MemberRoleUpdate,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    return service.update_member_role(actor, project_id, member_id, role_data)


@router.delete("/{project_id}/members/{member_id}", status_code=204)
async def remove_member(
    project_id: str,
    member_id: str,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    service.remove_member(actor, project_id, member_id)
    return None


@invitations_router.get("", response_model=List[MemberResponse])
async def list_my_invitations(
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    """Pending invitations addressed to the caller"""
    return service.list_my_invitations(actor)


@invitations_router.post("/{member_id}/respond", response_model=MemberResponse)
async def respond_to_invitation(
    member_id: str,
    response: InvitationRespond,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    return service.respond(actor, member_id, response.accept)


@invitations_router.post("/token/{token}/respond", response_model=MemberResponse)
async def respond_by_token(
    token: str,
    response: InvitationRespond,
    actor: Actor = Depends(get_current_actor),
    service: MemberService = Depends(get_member_service)
):
    """Accept or decline through the token carried by an invite link"""
    return service.respond_by_token(actor, token, response.accept)
