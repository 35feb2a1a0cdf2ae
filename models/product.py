from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import StrictInt
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from .base import TimestampMixin, new_object_id


class Category(str, Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME_GARDEN = "Home & Garden"
    SPORTS = "Sports"


# --- Embedded variant schemas ---
class VariantCreate(SQLModel):
    color: str = Field(min_length=1)
    size: str = Field(min_length=1)
    # Strict so "7" and true are refused here as they are on a stock update
    stock: StrictInt = Field(ge=0)
    sku: str = Field(min_length=1)
    price_adjustment: float = Field(default=0.0)


class VariantRead(VariantCreate):
    id: str


# --- Product schemas ---
class ProductBase(SQLModel):
    name: str = Field(min_length=1, index=True)
    description: str = Field(default="")
    base_price: float = Field(ge=0)
    brand: Optional[str] = None


class ProductCreate(ProductBase):
    category: Category
    tags: List[str] = Field(default_factory=list)
    variants: List[VariantCreate] = Field(default_factory=list)


class ProductUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    base_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[Category] = None
    brand: Optional[str] = None
    tags: Optional[List[str]] = None
    variants: Optional[List[VariantCreate]] = None


class ProductRead(ProductBase):
    id: str
    category: str
    tags: List[str] = []
    variants: List[VariantRead] = []
    created_at: datetime
    updated_at: datetime


# --- Tables ---
class Product(ProductBase, TimestampMixin, table=True):
    """One catalog document. Variants and tags live inside the row as JSON."""

    id: str = Field(default_factory=new_object_id, primary_key=True, max_length=32)
    category: str = Field(index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    variants: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # Bumped on every write; embedded-list updates compare-and-swap on it
    version: int = Field(default=1)


class VariantSku(SQLModel, table=True):
    """Global sku key. The primary key makes a sku unique across all products."""

    __tablename__ = "variant_sku"

    sku: str = Field(primary_key=True)
    product_id: str = Field(foreign_key="product.id", index=True)
