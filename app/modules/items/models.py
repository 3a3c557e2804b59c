# Tables: items (project inventory)

"""
items:
- id: uuid (primary key)
- title: text (not null), description: text
- item_type: needed_supply | owned_resource | borrowed_or_rental (default needed_supply)
- fundraiser: bool
- tags: json array of text
- quantity_needed, quantity_owned, quantity_borrowed: integer (default 0)
- unit, product_link, info_link, image_url: text
- associated_task_id: uuid (references tasks.id, set null)
- project_id: uuid (references projects.id, cascade delete)
- added_by: uuid (references profiles.user_id, restrict)
- assignees: json array of user ids
- price: decimal(10, 2)
- estimated_price: bool - price came from an estimate rather than a quote
- price_currency: text (default USD), price_date: timestamp, price_source: text
"""

from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, Numeric, JSON, ForeignKey, CheckConstraint
)

from app.database.session import Base, new_id, utcnow

ITEM_TYPES = ("needed_supply", "owned_resource", "borrowed_or_rental")


class Item(Base):
    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    item_type = Column(String(32), nullable=False, default="needed_supply")
    fundraiser = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    quantity_needed = Column(Integer, nullable=False, default=0)
    quantity_owned = Column(Integer, nullable=False, default=0)
    quantity_borrowed = Column(Integer, nullable=False, default=0)
    unit = Column(Text, nullable=True)
    product_link = Column(Text, nullable=True)
    info_link = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    associated_task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=True)
    added_by = Column(String(36), ForeignKey("profiles.user_id", ondelete="RESTRICT"), index=True, nullable=False)
    assignees = Column(JSON, nullable=False, default=list)
    price = Column(Numeric(10, 2), nullable=True)
    estimated_price = Column(Boolean, nullable=False, default=False)
    price_currency = Column(String(8), nullable=False, default="USD")
    price_date = Column(DateTime, nullable=True)
    price_source = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "item_type IN ('needed_supply','owned_resource','borrowed_or_rental')", name="ck_item_type"
        ),
    )
