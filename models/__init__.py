from .base import TimestampMixin, new_object_id, utcnow
from .product import (
    Category,
    Product,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    VariantCreate,
    VariantRead,
    VariantSku,
)

__all__ = [
    "TimestampMixin",
    "new_object_id",
    "utcnow",
    "Category",
    "Product",
    "ProductCreate",
    "ProductRead",
    "ProductUpdate",
    "VariantCreate",
    "VariantRead",
    "VariantSku",
]
