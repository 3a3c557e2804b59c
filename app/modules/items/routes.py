from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database.session import get_db
from app.modules.items.schemas import ItemCreate, ItemUpdate, ItemResponse, PriceEstimateRequest
from app.modules.items.service import ItemService
from app.core.dependencies import get_current_actor
from app.core.policies import Actor
from app.core.price_estimator import PriceEstimator, get_price_estimator
from typing import List, Optional

router = APIRouter(prefix="/items", tags=["items"])


def get_item_service(db: Session = Depends(get_db)) -> ItemService:
    return ItemService(db)


@router.post("", response_model=ItemResponse, status_code=201)
async def create_item(
    item_data: ItemCreate,
    actor: Actor = Depends(get_current_actor),
    service: ItemService = Depends(get_item_service)
):
    return service.create_item(actor, item_data)


@router.get("", response_model=List[ItemResponse])
async def list_items(
    project_id: Optional[str] = None,
    item_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    actor: Actor = Depends(get_current_actor),
    service: ItemService = Depends(get_item_service)
):
    """List inventory items visible to the user, optionally for one project"""
    return service.list_items(actor, project_id=project_id, item_type=item_type, limit=limit, offset=offset)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ItemService = Depends(get_item_service)
):
    return service.get_item(actor, item_id)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    item_data: ItemUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ItemService = Depends(get_item_service)
):
    return service.update_item(actor, item_id, item_data)


@router.post("/{item_id}/estimate-price", response_model=ItemResponse)
async def estimate_price(
    item_id: str,
    estimate_data: Optional[PriceEstimateRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: ItemService = Depends(get_item_service),
    estimator: PriceEstimator = Depends(get_price_estimator)
):
    """Store an AI price estimate on the item (requires update access)"""
    prompt = estimate_data.prompt if estimate_data else None
    return service.estimate_price(actor, item_id, estimator, prompt=prompt)


@router.delete("/{item_id}", status_code=204)
async def delete_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ItemService = Depends(get_item_service)
):
    service.delete_item(actor, item_id)
    return None
