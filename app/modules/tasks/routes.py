from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, TaskVerify, TaskResponse, TaskCompletionResponse
)
from app.modules.tasks.service import TaskService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from typing import List, Optional

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    task_data: TaskCreate,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    """Create a personal task, or a project task (requires project access)"""
    task, _ = service.create_task(actor, task_data)
    return task


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    project_id: Optional[str] = None,
    assigned_to_me: bool = False,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    return service.list_tasks(
        actor, project_id=project_id, assigned_to_me=assigned_to_me, status=status, limit=limit, offset=offset
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    return service.get_task(actor, task_id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    """Update task (creator, assignee or project member)"""
    task, _ = service.update_task(actor, task_id, task_data)
    return task


@router.post("/{task_id}/complete", response_model=TaskCompletionResponse)
async def complete_task(
    task_id: str,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    task, outcome = service.complete_task(actor, task_id)
    return {"outcome": outcome, "task": task}


@router.post("/{task_id}/verify", response_model=TaskCompletionResponse)
async def verify_task(
    task_id: str,
    verify_data: TaskVerify,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    """Approve or reject a completion awaiting verification (task creator only)"""
    task, outcome = service.verify_task(actor, task_id, verify_data.approved)
    return {"outcome": outcome, "task": task}


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service)
):
    service.delete_task(actor, task_id)
    return None
