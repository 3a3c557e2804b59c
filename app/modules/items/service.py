import logging
from typing import List, Optional

from sqlalchemy import String, cast, or_

from app.config.policy_config import Entity, Operation
from app.core.base_service import BaseService
from app.core.errors import ValidationError
from app.core.policies import Actor
from app.core.price_estimator import PriceEstimator
from app.database.session import transaction, utcnow
from app.modules.items.models import Item
from app.modules.items.schemas import ItemCreate, ItemUpdate
from app.modules.projects.models import Project
from app.modules.tasks.models import Task

logger = logging.getLogger(__name__)


def build_price_prompt(item: Item) -> str:
    parts = [item.title]
    if item.description:
        parts.append(item.description)
    if item.unit:
        parts.append(f"Unit: {item.unit}")
    return ". ".join(parts)


class ItemService(BaseService):
    def _check_links(self, actor: Actor, project_id: Optional[str], task_id: Optional[str]) -> None:
        if project_id:
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)
        if task_id:
            task = self.db.get(Task, task_id)
            self.policy.enforce(actor, Operation.READ, Entity.TASK, task)

    def _apply_price(self, item: Item, price, source: Optional[str], estimated: bool = False) -> None:
        item.price = price
        item.estimated_price = estimated
        item.price_date = utcnow() if price is not None else None
        item.price_source = source if price is not None else None

    def create_item(self, actor: Actor, item_data: ItemCreate) -> Item:
        with transaction(self.db):
            self._check_links(actor, item_data.project_id, item_data.associated_task_id)
            data = item_data.model_dump(exclude={"price", "price_source"})
            data["assignees"] = self.require_profiles(data["assignees"], "assignees")
            item = Item(**data, added_by=actor.id)
            self._apply_price(item, item_data.price, item_data.price_source or "manual")
            self.policy.enforce(actor, Operation.INSERT, Entity.ITEM, item)
            self.db.add(item)
        logger.info(f"Item {item.id} added by {actor.id}")
        return item

    def get_item(self, actor: Actor, item_id: str) -> Item:
        item = self.db.get(Item, item_id)
        return self.policy.enforce(actor, Operation.READ, Entity.ITEM, item)

    def list_items(
        self,
        actor: Actor,
        project_id: Optional[str] = None,
        item_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Item]:
        query = self.db.query(Item)
        if project_id:
            project = self.db.get(Project, project_id)
            self.policy.enforce(actor, Operation.READ, Entity.PROJECT, project)
            query = query.filter(Item.project_id == project_id)
        else:
            criteria = [Item.added_by == actor.id, cast(Item.assignees, String).contains(actor.id)]
            project_ids = self.resolver.candidate_project_ids(actor.id)
            if project_ids:
                criteria.append(Item.project_id.in_(project_ids))
            query = query.filter(or_(*criteria))
        if item_type:
            query = query.filter(Item.item_type == item_type)
        items = query.order_by(Item.created_at.desc()).all()
        items = [i for i in items if self.policy.can(actor, Operation.READ, Entity.ITEM, i)]
        return items[offset:offset + limit]

    def update_item(self, actor: Actor, item_id: str, item_data: ItemUpdate) -> Item:
        with transaction(self.db):
            item = self.db.get(Item, item_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.ITEM, item)
            changes = item_data.model_dump(exclude_unset=True)
            for field in ("title", "item_type", "fundraiser", "quantity_needed", "quantity_owned",
                          "quantity_borrowed", "price_currency"):
                if field in changes and changes[field] is None:
                    raise ValidationError(f"{field} cannot be empty")

            if changes.get("project_id") and changes["project_id"] != item.project_id:
                self._check_links(actor, changes["project_id"], None)
            if changes.get("associated_task_id") and changes["associated_task_id"] != item.associated_task_id:
                self._check_links(actor, None, changes["associated_task_id"])
            if "assignees" in changes:
                changes["assignees"] = self.require_profiles(changes["assignees"], "assignees")
            if "tags" in changes and changes["tags"] is None:
                changes["tags"] = []

            price_changed = "price" in changes
            price = changes.pop("price", None)
            source = changes.pop("price_source", None)
            for field, value in changes.items():
                setattr(item, field, value)
            if price_changed:
                self._apply_price(item, price, source or "manual")
            elif source is not None:
                item.price_source = source
        return item

    def delete_item(self, actor: Actor, item_id: str) -> None:
        with transaction(self.db):
            item = self.db.get(Item, item_id)
            self.policy.enforce(actor, Operation.DELETE, Entity.ITEM, item)
            self.db.delete(item)

    def estimate_price(
        self,
        actor: Actor,
        item_id: str,
        estimator: PriceEstimator,
        prompt: Optional[str] = None
    ) -> Item:
        """Ask the estimator for a price; the caller must be allowed to update the item first"""
        with transaction(self.db):
            item = self.db.get(Item, item_id)
            self.policy.enforce(actor, Operation.UPDATE, Entity.ITEM, item)
            price = estimator.estimate(prompt or build_price_prompt(item))
            self._apply_price(item, price, "ai_estimate", estimated=True)
        logger.info(f"Estimated price {price} for item {item.id}")
        return item
