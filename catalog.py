"""Catalog store: product documents with embedded variant lists.

Each product is one row; its variants live inside that row as a JSON list.
Changes to a single embedded variant are made with a read-modify-write that
compare-and-swaps on the product's ``version`` column, so a writer never
overwrites a sibling variant that somebody else changed in the meantime.

Global sku uniqueness is held by the ``variant_sku`` key table, whose primary
key is the sku itself. It also tells us which product owns a sku without
scanning every document.
"""
import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from sqlalchemy import delete, insert, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, col, select
from core.config import settings
from core.exceptions import CatalogError, ConcurrentUpdate, NotFound, StoreUnavailable, ValidationError
from models import Product, VariantCreate, VariantSku, new_object_id, utcnow
from validation import (
    DEFAULT_PROJECTION,
    validate_object_id,
    validate_product_draft,
    validate_product_update,
    validate_projection,
    validate_stock,
    validate_variant_draft,
)

logger = logging.getLogger(__name__)

sku_keys = VariantSku.__table__


def storage_errors(func):
    """Roll back on failure and surface an unreachable database as StoreUnavailable."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except CatalogError:
            self.session.rollback()
            raise
        except OperationalError as exc:
            self.session.rollback()
            logger.error("Catalog store unavailable during %s: %s", func.__name__, exc)
            raise StoreUnavailable("Catalog store unavailable") from exc
    return wrapper


class CatalogStore:
    def __init__(self, session: Session, max_retries: Optional[int] = None):
        self.session = session
        self.max_retries = max_retries or settings.CAS_MAX_RETRIES

    # --- Reads ---
    @storage_errors
    def list_products(self, category: Optional[str] = None, variant_color: Optional[str] = None) -> List[Product]:
        query = select(Product).order_by(col(Product.created_at))
        if category is not None:
            query = query.where(Product.category == category)
        products = list(self.session.exec(query).all())

        # "any variant has color X" is matched on the embedded documents
        if variant_color is not None:
            products = [
                product for product in products
                if any(variant.get("color") == variant_color for variant in product.variants)
            ]
        return products

    @storage_errors
    def project(self, fields: Sequence[str] = DEFAULT_PROJECTION) -> List[Dict[str, Any]]:
        """Return every product shaped down to the requested fields.

        Paths use dot notation for variant sub-fields, e.g. ``variants.sku``.
        The product id is always included.
        """
        top_level, variant_fields = validate_projection(fields)
        shaped = []
        for product in self.list_products():
            document: Dict[str, Any] = {"id": product.id}
            for field in top_level:
                if field != "variants":
                    document[field] = getattr(product, field)
                elif variant_fields:
                    document["variants"] = [
                        {key: variant[key] for key in variant_fields if key in variant}
                        for variant in product.variants
                    ]
                else:
                    document["variants"] = [dict(variant) for variant in product.variants]
            shaped.append(document)
        return shaped

    @storage_errors
    def get_by_id(self, product_id: str) -> Product:
        validate_object_id(product_id)
        product = self._load(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def get_variants(self, product_id: str) -> List[Dict[str, Any]]:
        return list(self.get_by_id(product_id).variants)

    # --- Product writes ---
    @storage_errors
    def create(self, data: Any) -> Product:
        draft = validate_product_draft(data)
        skus = [variant.sku for variant in draft.variants]
        self._ensure_skus_free(skus)

        now = utcnow()
        product = Product(
            name=draft.name,
            description=draft.description,
            base_price=draft.base_price,
            category=draft.category.value,
            brand=draft.brand,
            tags=list(draft.tags),
            variants=[self._new_variant(variant) for variant in draft.variants],
            created_at=now,
            updated_at=now,
        )
        self.session.add(product)
        self.session.flush()
        self._claim_skus(product.id, skus)
        self.session.commit()
        self.session.refresh(product)

        logger.info("Created product %s (%s) with %d variants", product.id, product.name, len(skus))
        return product

    @storage_errors
    def update_product(self, product_id: str, data: Any) -> Product:
        """Merge top-level fields into a product; ``variants`` replaces the whole list."""
        validate_object_id(product_id)
        changes = validate_product_update(data)
        if self._load(product_id) is None:
            raise NotFound("Product not found")

        variants: Optional[List[VariantCreate]] = changes.pop("variants", None)
        if "category" in changes:
            changes["category"] = changes["category"].value
        if "tags" in changes:
            changes["tags"] = list(changes["tags"])

        new_skus = None
        if variants is not None:
            new_skus = [variant.sku for variant in variants]
            self._ensure_skus_free(new_skus, owner=product_id)

        def apply(product: Product) -> Dict[str, Any]:
            values = dict(changes)
            if variants is not None:
                # A variant that keeps its sku keeps its id
                known_ids = {variant.get("sku"): variant.get("id") for variant in product.variants}
                values["variants"] = [
                    self._new_variant(variant, known_ids.get(variant.sku)) for variant in variants
                ]
            return values

        self._mutate(product_id, apply)
        if new_skus is not None:
            self.session.exec(delete(sku_keys).where(sku_keys.c.product_id == product_id))
            self._claim_skus(product_id, new_skus)
        self.session.commit()

        product = self._load(product_id)
        logger.info("Updated product %s", product_id)
        return product

    @storage_errors
    def delete_product(self, product_id: str) -> None:
        validate_object_id(product_id)
        product = self._load(product_id)
        if product is None:
            raise NotFound("Product not found")

        # Variants are embedded, so dropping the row drops them; only the sku keys need clearing
        self.session.exec(delete(sku_keys).where(sku_keys.c.product_id == product_id))
        self.session.delete(product)
        self.session.commit()
        logger.info("Deleted product %s", product_id)

    # --- Embedded variant writes ---
    @storage_errors
    def update_variant_stock(self, sku: str, new_stock: Any) -> None:
        """Positional update: rewrite ``stock`` on the one variant holding ``sku``."""
        stock = validate_stock(new_stock)
        product_id = self._owner_of(sku)

        def apply(product: Product) -> Dict[str, Any]:
            if not any(variant.get("sku") == sku for variant in product.variants):
                raise NotFound("Variant not found")
            return {
                "variants": [
                    dict(variant, stock=stock) if variant.get("sku") == sku else variant
                    for variant in product.variants
                ]
            }

        self._mutate(product_id, apply)
        self.session.commit()
        logger.info("Set stock of %s to %d (product %s)", sku, stock, product_id)

    @storage_errors
    def add_variant(self, product_id: str, data: Any) -> Dict[str, Any]:
        validate_object_id(product_id)
        draft = validate_variant_draft(data)
        if self._load(product_id) is None:
            raise NotFound("Product not found")
        self._ensure_skus_free([draft.sku])

        variant = self._new_variant(draft)
        self._mutate(product_id, lambda product: {"variants": [*product.variants, variant]})
        self._claim_skus(product_id, [draft.sku])
        self.session.commit()

        logger.info("Added variant %s to product %s", draft.sku, product_id)
        return variant

    @storage_errors
    def remove_variant_by_sku(self, sku: str) -> None:
        """Filter-pull: drop exactly the variant holding ``sku`` from its product."""
        product_id = self._owner_of(sku)

        def apply(product: Product) -> Dict[str, Any]:
            remaining = [variant for variant in product.variants if variant.get("sku") != sku]
            if len(remaining) == len(product.variants):
                raise NotFound("Variant not found")
            return {"variants": remaining}

        self._mutate(product_id, apply)
        self.session.exec(delete(sku_keys).where(sku_keys.c.sku == sku))
        self.session.commit()
        logger.info("Removed variant %s from product %s", sku, product_id)

    # --- Internals ---
    def _load(self, product_id: str) -> Optional[Product]:
        # populate_existing so a retry never reads the identity map's stale copy
        return self.session.get(Product, product_id, populate_existing=True)

    def _owner_of(self, sku: str) -> str:
        product_id = self.session.exec(
            select(VariantSku.product_id).where(VariantSku.sku == sku)
        ).first()
        if product_id is None:
            raise NotFound("Variant not found")
        return product_id

    def _ensure_skus_free(self, skus: Iterable[str], owner: Optional[str] = None) -> None:
        skus = list(skus)
        if not skus:
            return
        rows = self.session.exec(
            select(VariantSku.sku, VariantSku.product_id).where(col(VariantSku.sku).in_(skus))
        ).all()
        taken = sorted(sku for sku, product_id in rows if product_id != owner)
        if taken:
            raise ValidationError(f"SKU already exists: {', '.join(taken)}")

    def _claim_skus(self, product_id: str, skus: List[str]) -> None:
        if not skus:
            return
        try:
            self.session.exec(insert(sku_keys).values([{"sku": sku, "product_id": product_id} for sku in skus]))
        except IntegrityError as exc:
            # Lost a race with a concurrent writer claiming the same sku
            self.session.rollback()
            raise ValidationError(f"SKU already exists: {', '.join(sorted(skus))}") from exc

    def _compare_and_set(self, product: Product, values: Dict[str, Any]) -> bool:
        statement = (
            update(Product)
            .where(col(Product.id) == product.id, col(Product.version) == product.version)
            .values(version=col(Product.version) + 1, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(statement)
        return result.rowcount == 1

    def _mutate(self, product_id: str, apply: Callable[[Product], Dict[str, Any]]) -> None:
        """Apply ``apply``'s field values to a product, retrying on concurrent writes.

        ``apply`` receives a freshly loaded product and returns the columns to
        write; it is re-run against the newer document after each lost race.
        """
        for attempt in range(1, self.max_retries + 1):
            product = self._load(product_id)
            if product is None:
                raise NotFound("Product not found")
            if self._compare_and_set(product, apply(product)):
                return
            self.session.rollback()
            logger.warning(
                "Product %s changed during write, retrying (%d/%d)", product_id, attempt, self.max_retries
            )
        raise ConcurrentUpdate(f"Product {product_id} is being modified concurrently, try again")

    @staticmethod
    def _new_variant(draft: VariantCreate, variant_id: Optional[str] = None) -> Dict[str, Any]:
        return {"id": variant_id or new_object_id(), **draft.model_dump()}
