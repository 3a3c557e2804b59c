from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.badges.schemas import (
    BadgeCreate, BadgeUpdate, BadgeResponse, BadgeAward, BadgeAwardResponse, UserBadgeResponse,
    QuestCreate, QuestUpdate, QuestTaskAdd, QuestResponse, QuestProgressResponse
)
from app.modules.badges.service import BadgeService, QuestService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from typing import List, Optional

router = APIRouter(prefix="/badges", tags=["badges"])
quests_router = APIRouter(prefix="/quests", tags=["quests"])


def get_badge_service(db: Session = Depends(get_db)) -> BadgeService:
    return BadgeService(db)


def get_quest_service(db: Session = Depends(get_db)) -> QuestService:
    return QuestService(db)


@router.post("", response_model=BadgeResponse, status_code=201)
async def create_badge(
    badge_data: BadgeCreate,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    return service.create_badge(actor, badge_data)


@router.get("", response_model=List[BadgeResponse])
async def list_badges(
    created_by_me: bool = False,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    return service.list_badges(actor, created_by_me=created_by_me)


@router.get("/users/{user_id}", response_model=List[UserBadgeResponse])
async def list_user_badges(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    """Badges earned by a user"""
    return service.list_user_badges(actor, user_id)


@router.get("/{badge_id}", response_model=BadgeResponse)
async def get_badge(
    badge_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    return service.get_badge(actor, badge_id)


@router.put("/{badge_id}", response_model=BadgeResponse)
async def update_badge(
    badge_id: str,
    badge_data: BadgeUpdate,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    return service.update_badge(actor, badge_id, badge_data)


@router.delete("/{badge_id}", status_code=204)
async def delete_badge(
    badge_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    service.delete_badge(actor, badge_id)
    return None


@router.post("/{badge_id}/award", response_model=BadgeAwardResponse)
async def award_badge(
    badge_id: str,
    award_data: BadgeAward,
    actor: Actor = Depends(get_current_actor),
    service: BadgeService = Depends(get_badge_service)
):
    """Award a badge to yourself or, as task creator, to someone completing your task"""
    user_badge, created = service.award_badge(actor, badge_id, award_data)
    return {"created": created, "user_badge": user_badge}


@quests_router.post("", response_model=QuestResponse, status_code=201)
async def create_quest(
    quest_data: QuestCreate,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return service.quest_view(service.create_quest(actor, quest_data))


@quests_router.get("", response_model=List[QuestResponse])
async def list_quests(
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return [service.quest_view(q) for q in service.list_quests(actor)]


@quests_router.get("/progress", response_model=List[QuestProgressResponse])
async def list_my_progress(
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return service.list_progress(actor)


@quests_router.get("/{quest_id}", response_model=QuestResponse)
async def get_quest(
    quest_id: str,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return service.quest_view(service.get_quest(actor, quest_id))


@quests_router.put("/{quest_id}", response_model=QuestResponse)
async def update_quest(
    quest_id: str,
    quest_data: QuestUpdate,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return service.quest_view(service.update_quest(actor, quest_id, quest_data))


@quests_router.delete("/{quest_id}", status_code=204)
async def delete_quest(
    quest_id: str,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    service.delete_quest(actor, quest_id)
    return None


@quests_router.post("/{quest_id}/tasks", response_model=QuestResponse, status_code=201)
async def add_quest_task(
    quest_id: str,
    task_data: QuestTaskAdd,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return service.quest_view(service.add_task(actor, quest_id, task_data))


@quests_router.delete("/{quest_id}/tasks/{task_id}", response_model=QuestResponse)
async def remove_quest_task(
    quest_id: str,
    task_id: str,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    return service.quest_view(service.remove_task(actor, quest_id, task_id))


@quests_router.get("/{quest_id}/progress", response_model=Optional[QuestProgressResponse])
async def get_my_progress(
    quest_id: str,
    actor: Actor = Depends(get_current_actor),
    service: QuestService = Depends(get_quest_service)
):
    """Caller's progress on one quest; null before any quest task is completed"""
    return service.get_progress(actor, quest_id)
