from core.config import settings
from core.exceptions import (
    CatalogError,
    ConcurrentUpdate,
    InvalidKey,
    NotFound,
    StoreUnavailable,
    ValidationError,
)

__all__ = [
    "settings",
    "CatalogError",
    "ConcurrentUpdate",
    "InvalidKey",
    "NotFound",
    "StoreUnavailable",
    "ValidationError",
]
