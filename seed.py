"""Load demo products into an empty catalog.

Run ``python seed.py`` once after creating the database, or set
``SEED_ON_STARTUP=true`` to have the API do it when it starts.
"""
import logging
from typing import Any, Dict, List
from catalog import CatalogStore
from database import create_db_and_tables, get_write_session_context

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "T-Shirt",
        "description": "Cotton crew neck t-shirt",
        "base_price": 25,
        "category": "Clothing",
        "brand": "Basics",
        "tags": ["cotton", "summer"],
        "variants": [
            {"color": "Red", "size": "M", "stock": 10, "sku": "TS-RED-M"},
            {"color": "Blue", "size": "L", "stock": 5, "sku": "TS-BLUE-L"},
        ],
    },
    {
        "name": "Laptop",
        "description": "Lightweight laptop for work and travel",
        "base_price": 1200,
        "category": "Electronics",
        "brand": "Northwind",
        "tags": ["computers"],
        "variants": [
            {"color": "Silver", "size": "15-inch", "stock": 7, "sku": "LT-SIL-15", "price_adjustment": 150},
            {"color": "Black", "size": "13-inch", "stock": 3, "sku": "LT-BLK-13"},
        ],
    },
    {
        "name": "Running Shoes",
        "description": "Cushioned road running shoes",
        "base_price": 80,
        "category": "Sports",
        "brand": "Stride",
        "tags": ["running", "shoes"],
        "variants": [
            {"color": "White", "size": "42", "stock": 15, "sku": "RS-WHT-42"},
            {"color": "Black", "size": "40", "stock": 8, "sku": "RS-BLK-40"},
        ],
    },
]


def seed_catalog(catalog: CatalogStore) -> int:
    """Insert the sample products unless the catalog already has data."""
    if catalog.list_products():
        logger.info("Catalog already has products, skipping seed")
        return 0
    for draft in SAMPLE_PRODUCTS:
        catalog.create(draft)
    logger.info("Seeded %d sample products", len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_db_and_tables()
    with get_write_session_context() as session:
        seed_catalog(CatalogStore(session))
