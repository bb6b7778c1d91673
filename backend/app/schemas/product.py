from pydantic import BaseModel, Field, field_validator
from typing import Optional


class ProductBase(BaseModel):
    name: str
    price: float = Field(0, ge=0)
    stock: int = Field(0, ge=0)
    location: str = ""
    usage: str = ""
    low_stock_threshold: int = Field(2, ge=0)
    category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Product name cannot be empty")
        return v

    @field_validator("location", "usage", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""


class ProductSave(ProductBase):
    """Insert when id is absent, update in place otherwise."""
    id: Optional[str] = None


class ProductResponse(ProductBase):
    id: str

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    count: int
