"""Explicit checks applied to request payloads before they reach the store.

The request schemas in models.product describe field shapes; the functions
here run them, turn pydantic failures into catalog ValidationErrors and add
the rules a single field cannot express (sku collisions inside one payload,
nulls on required fields, identifier format).
"""
import re
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple
from pydantic import ValidationError as SchemaError
from core.exceptions import InvalidKey, ValidationError
from models import ProductCreate, ProductUpdate, VariantCreate

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

# Top-level fields that may not be cleared by an update
REQUIRED_ON_UPDATE = ("name", "description", "base_price", "category", "tags", "variants")

PROJECTABLE_FIELDS = {
    "name", "description", "base_price", "category", "brand", "tags",
    "created_at", "updated_at", "variants",
}
PROJECTABLE_VARIANT_FIELDS = {"id", "color", "size", "stock", "sku", "price_adjustment"}

DEFAULT_PROJECTION = (
    "name",
    "category",
    "variants.color",
    "variants.size",
    "variants.stock",
    "variants.sku",
)


def describe_errors(errors: Iterable[Mapping[str, Any]]) -> str:
    problems = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


def _ensure_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{what} must be a JSON object")
    return data


def check_unique_skus(variants: Iterable[VariantCreate]) -> None:
    seen: Set[str] = set()
    for variant in variants:
        if variant.sku in seen:
            raise ValidationError(f"Duplicate sku '{variant.sku}' in variant list")
        seen.add(variant.sku)


def validate_object_id(value: Any) -> str:
    if not isinstance(value, str) or not OBJECT_ID_PATTERN.match(value):
        raise InvalidKey(f"Invalid product ID: {value!r}")
    return value


def validate_product_draft(data: Any) -> ProductCreate:
    data = _ensure_mapping(data, "Product")
    try:
        draft = ProductCreate.model_validate(data)
    except SchemaError as exc:
        raise ValidationError(describe_errors(exc.errors())) from exc
    check_unique_skus(draft.variants)
    return draft


def validate_product_update(data: Any) -> Dict[str, Any]:
    """Return only the fields the caller actually sent, validated."""
    data = _ensure_mapping(data, "Product update")
    try:
        update = ProductUpdate.model_validate(data)
    except SchemaError as exc:
        raise ValidationError(describe_errors(exc.errors())) from exc

    changes = {field: getattr(update, field) for field in update.model_fields_set}
    for field in REQUIRED_ON_UPDATE:
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field}: cannot be null")
    if changes.get("variants") is not None:
        check_unique_skus(changes["variants"])
    return changes


def validate_variant_draft(data: Any) -> VariantCreate:
    data = _ensure_mapping(data, "Variant")
    try:
        return VariantCreate.model_validate(data)
    except SchemaError as exc:
        raise ValidationError(describe_errors(exc.errors())) from exc


def validate_stock(value: Any) -> int:
    # bool is an int subclass; a stock of True is a client bug
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("stock: must be an integer")
    if value < 0:
        raise ValidationError("stock: must be greater than or equal to 0")
    return value


def validate_projection(fields: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split dotted projection paths into top-level and variant sub-fields.

    A bare "variants" selects whole variants; "variants.<name>" selects one
    sub-field. Returns (top_level, variant_fields); an empty variant_fields
    list with "variants" in top_level means the full variant.
    """
    top_level: List[str] = []
    variant_fields: List[str] = []
    whole_variants = False
    for raw in fields:
        path = raw.strip()
        if not path:
            continue
        head, _, sub = path.partition(".")
        if head not in PROJECTABLE_FIELDS:
            raise ValidationError(f"Unknown projection field '{path}'")
        if head == "variants" and not sub:
            whole_variants = True
        if sub:
            if head != "variants" or sub not in PROJECTABLE_VARIANT_FIELDS:
                raise ValidationError(f"Unknown projection field '{path}'")
            if sub not in variant_fields:
                variant_fields.append(sub)
            head = "variants"
        if head not in top_level:
            top_level.append(head)
    if not top_level:
        raise ValidationError("Projection needs at least one field")
    if whole_variants:
        variant_fields = []
    return top_level, variant_fields
