"""Reply Schema - the structured-output contract with the model.

A bill update is a fenced ```json block holding an array of objects:
    {"name": str, "stock": int, "price": number, "usage": str, "lowStockThreshold": int}

Anything that does not validate against BillItem is a ParseError; the
model never writes to the inventory unchecked.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReplyKind(str, Enum):
    TEXT = "text"
    TEXT_WITH_UPDATE = "text_with_update"


class BillItem(BaseModel):
    """One purchased line read off a wholesale bill."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    stock: int = Field(0, ge=0)  # quantity bought
    price: Optional[float] = Field(None, ge=0)  # selling price the owner chose
    usage: Optional[str] = None
    low_stock_threshold: Optional[int] = Field(None, ge=0, alias="lowStockThreshold")
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name is required")
        return v


class AssistantReply(BaseModel):
    """Tagged result of reading one model reply.

    kind == TEXT:             plain answer, items is empty
    kind == TEXT_WITH_UPDATE: text has the fenced block removed, items holds it
    """
    kind: ReplyKind
    text: str
    items: list[BillItem] = []

    @property
    def has_update(self) -> bool:
        return self.kind == ReplyKind.TEXT_WITH_UPDATE
