from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

ItemType = Literal["needed_supply", "owned_resource", "borrowed_or_rental"]


class ItemCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    item_type: ItemType = "needed_supply"
    fundraiser: bool = False
    tags: List[str] = []
    quantity_needed: int = Field(0, ge=0)
    quantity_owned: int = Field(0, ge=0)
    quantity_borrowed: int = Field(0, ge=0)
    unit: Optional[str] = None
    product_link: Optional[str] = None
    info_link: Optional[str] = None
    image_url: Optional[str] = None
    associated_task_id: Optional[str] = None
    project_id: Optional[str] = None
    assignees: List[str] = []
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    price_currency: str = "USD"
    price_source: Optional[str] = None


class ItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    item_type: Optional[ItemType] = None
    fundraiser: Optional[bool] = None
    tags: Optional[List[str]] = None
    quantity_needed: Optional[int] = Field(None, ge=0)
    quantity_owned: Optional[int] = Field(None, ge=0)
    quantity_borrowed: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    product_link: Optional[str] = None
    info_link: Optional[str] = None
    image_url: Optional[str] = None
    associated_task_id: Optional[str] = None
    project_id: Optional[str] = None
    assignees: Optional[List[str]] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    price_currency: Optional[str] = None
    price_source: Optional[str] = None


class PriceEstimateRequest(BaseModel):
    # defaults to a description built from the item itself
    prompt: Optional[str] = None


class ItemResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    item_type: str
    fundraiser: bool
    tags: List[str] = []
    quantity_needed: int
    quantity_owned: int
    quantity_borrowed: int
    unit: Optional[str] = None
    product_link: Optional[str] = None
    info_link: Optional[str] = None
    image_url: Optional[str] = None
    associated_task_id: Optional[str] = None
    project_id: Optional[str] = None
    added_by: str
    assignees: List[str] = []
    price: Optional[float] = None
    estimated_price: bool
    price_currency: str
    price_date: Optional[datetime] = None
    price_source: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
