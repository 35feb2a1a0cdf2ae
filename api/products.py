from fastapi import APIRouter, Body, Depends, Query, status
from sqlmodel import Session
from typing import Any, Dict, List, Optional

from catalog import CatalogStore
from database import get_read_session, get_write_session
from models import ProductRead, VariantRead
from validation import DEFAULT_PROJECTION

router = APIRouter()


def read_catalog(session: Session = Depends(get_read_session)) -> CatalogStore:
    return CatalogStore(session)


def write_catalog(session: Session = Depends(get_write_session)) -> CatalogStore:
    return CatalogStore(session)


# Fixed paths first so "variants" and "category" are never taken for a product id
@router.get("/category/{category}", response_model=List[ProductRead])
def get_products_by_category(category: str, catalog: CatalogStore = Depends(read_catalog)):
    return catalog.list_products(category=category)


@router.get("/variants/color/{color}", response_model=List[ProductRead])
def get_products_by_variant_color(color: str, catalog: CatalogStore = Depends(read_catalog)):
    return catalog.list_products(variant_color=color)


@router.get("/variants/details", response_model=List[Dict[str, Any]])
def get_variant_details(
    fields: Optional[str] = Query(
        default=None,
        description="Comma separated fields, dotted for variant sub-fields (e.g. name,variants.sku)",
    ),
    catalog: CatalogStore = Depends(read_catalog)
):
    projection = fields.split(",") if fields else DEFAULT_PROJECTION
    return catalog.project(projection)


@router.patch("/variants/{sku}/stock", response_model=Dict[str, str])
def update_variant_stock(
    sku: str,
    payload: Dict[str, Any] = Body(...),
    catalog: CatalogStore = Depends(write_catalog)
):
    catalog.update_variant_stock(sku, payload.get("stock"))
    return {"message": "Variant stock updated successfully"}


@router.delete("/variants/{sku}", response_model=Dict[str, str])
def remove_variant(sku: str, catalog: CatalogStore = Depends(write_catalog)):
    catalog.remove_variant_by_sku(sku)
    return {"message": "Variant deleted successfully"}


# Product endpoints
@router.get("", response_model=List[ProductRead])
def get_products(
    category: Optional[str] = None,
    color: Optional[str] = None,
    catalog: CatalogStore = Depends(read_catalog)
):
    return catalog.list_products(category=category, variant_color=color)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: Dict[str, Any] = Body(...),
    catalog: CatalogStore = Depends(write_catalog)
):
    return catalog.create(payload)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: str, catalog: CatalogStore = Depends(read_catalog)):
    return catalog.get_by_id(product_id)


@router.get("/{product_id}/variants", response_model=List[VariantRead])
def get_product_variants(product_id: str, catalog: CatalogStore = Depends(read_catalog)):
    return catalog.get_variants(product_id)


@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: str,
    payload: Dict[str, Any] = Body(...),
    catalog: CatalogStore = Depends(write_catalog)
):
    return catalog.update_product(product_id, payload)


@router.post("/{product_id}/variants", status_code=status.HTTP_201_CREATED)
def add_variant(
    product_id: str,
    payload: Dict[str, Any] = Body(...),
    catalog: CatalogStore = Depends(write_catalog)
):
    variant = catalog.add_variant(product_id, payload)
    return {"message": "Variant added successfully", "variant": variant}


@router.delete("/{product_id}", response_model=Dict[str, str])
def delete_product(product_id: str, catalog: CatalogStore = Depends(write_catalog)):
    catalog.delete_product(product_id)
    return {"message": "Product deleted successfully"}
