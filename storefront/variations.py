"""
Product variation management.

A variation is one (color, size) configuration of a product with its own
price, optional sale price and images. (product_id, color, size) is unique at
the storage layer; these helpers turn the IntegrityError into a ConflictError
and check the same rule up front so the message can name the combination.

Services flush but do not commit; the router owns the transaction. Bulk upsert
is all-or-nothing: any failing row rolls back the whole batch.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.errors import ConflictError, NotFoundError, ValidationError
from storefront.logger import get_logger
from storefront.models import Product, ProductVariation
from storefront.pricing import to_money
from storefront.schemas import BulkVariationItem, VariationCreate, VariationUpdate

logger = get_logger("variations")


# ============================================================================
# Palettes
# ============================================================================

COLORS = (
    "black", "white", "yellow", "green", "red", "blue",
    "orange", "pink", "purple", "gray", "brown", "gold",
)

SIZES = ("40x60", "60x80", "80x120", "100x140", "120x160", "150x200")


def normalize_color(color: str) -> str:
    value = (color or "").strip().lower()
    if value not in COLORS:
        raise ValidationError(f"Unknown color '{color}'. Allowed: {', '.join(COLORS)}", field="color")
    return value


def normalize_size(size: str) -> str:
    value = (size or "").strip().lower().replace("×", "x").replace(" ", "")
    if value not in SIZES:
        raise ValidationError(f"Unknown size '{size}'. Allowed: {', '.join(SIZES)}", field="size")
    return value


def check_sale_price(price: Any, sale_price: Any) -> None:
    """A sale price, when present, must undercut the regular price."""
    price, sale_price = to_money(price), to_money(sale_price)
    if sale_price is not None and price is not None and sale_price >= price:
        raise ValidationError("salePrice must be lower than price", field="salePrice")


# ============================================================================
# Lookups
# ============================================================================

def get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def get_variation_or_404(db: Session, variation_id: int) -> ProductVariation:
    variation = db.get(ProductVariation, variation_id)
    if variation is None:
        raise NotFoundError("Variation not found")
    return variation


def _find_combination(
    db: Session, product_id: int, color: str, size: str, exclude_id: Optional[int] = None
) -> Optional[ProductVariation]:
    query = db.query(ProductVariation).filter(
        ProductVariation.product_id == product_id,
        ProductVariation.color == color,
        ProductVariation.size == size,
    )
    if exclude_id is not None:
        query = query.filter(ProductVariation.id != exclude_id)
    return query.first()


def _conflict(color: str, size: str) -> ConflictError:
    return ConflictError(f"Variation with color '{color}' and size '{size}' already exists for this product")


def _flush(db: Session, color: str, size: str) -> None:
    try:
        db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent insert of the same combination
        logger.warning(f"Variation insert hit unique_variation: {e.orig}")
        raise _conflict(color, size)


# ============================================================================
# Read
# ============================================================================

def list_active(db: Session, product_id: int) -> List[ProductVariation]:
    """Active variations of a product, ordered by color then size."""
    return (
        db.query(ProductVariation)
        .filter(ProductVariation.product_id == product_id, ProductVariation.is_active.is_(True))
        .order_by(ProductVariation.color, ProductVariation.size)
        .all()
    )


# ============================================================================
# Write
# ============================================================================

def create_variation(db: Session, product_id: int, data: VariationCreate) -> ProductVariation:
    get_product_or_404(db, product_id)
    color = normalize_color(data.color)
    size = normalize_size(data.size)
    check_sale_price(data.price, data.sale_price)

    # Inactive rows still occupy their combination
    if _find_combination(db, product_id, color, size) is not None:
        raise _conflict(color, size)

    variation = ProductVariation(
        product_id=product_id,
        color=color,
        size=size,
        price=to_money(data.price),
        sale_price=to_money(data.sale_price),
        images=list(data.images),
        is_active=True,
    )
    db.add(variation)
    _flush(db, color, size)
    logger.info(f"Created variation {variation.id} ({color}/{size}) for product {product_id}")
    return variation


def update_variation(db: Session, variation_id: int, data: VariationUpdate) -> ProductVariation:
    """Partial update; fields not present in the request keep their value."""
    variation = get_variation_or_404(db, variation_id)
    fields = data.model_fields_set

    color = normalize_color(data.color) if "color" in fields and data.color else variation.color
    size = normalize_size(data.size) if "size" in fields and data.size else variation.size
    price = data.price if "price" in fields and data.price is not None else variation.price
    sale_price = data.sale_price if "sale_price" in fields else variation.sale_price
    check_sale_price(price, sale_price)

    if (color, size) != (variation.color, variation.size):
        if _find_combination(db, variation.product_id, color, size, exclude_id=variation.id) is not None:
            raise _conflict(color, size)

    variation.color = color
    variation.size = size
    variation.price = to_money(price)
    variation.sale_price = to_money(sale_price)
    if "images" in fields and data.images is not None:
        variation.images = list(data.images)
    if "is_active" in fields and data.is_active is not None:
        variation.is_active = data.is_active

    _flush(db, color, size)
    logger.info(f"Updated variation {variation.id}")
    return variation


def delete_variation(db: Session, variation_id: int) -> None:
    variation = get_variation_or_404(db, variation_id)
    db.delete(variation)
    db.flush()
    logger.info(f"Deleted variation {variation_id}")


def bulk_upsert(db: Session, product_id: int, items: List[BulkVariationItem]) -> List[ProductVariation]:
    """
    Create or overwrite many variations in one transaction.

    Entries carrying an id overwrite that row completely (is_active defaults
    to True when omitted); entries without one are inserted. Rows are
    returned in input order. Any failure rolls back every item.
    """
    get_product_or_404(db, product_id)
    results: List[ProductVariation] = []
    try:
        for item in items:
            color = normalize_color(item.color)
            size = normalize_size(item.size)
            check_sale_price(item.price, item.sale_price)

            if item.id is not None:
                variation = db.get(ProductVariation, item.id)
                if variation is None or variation.product_id != product_id:
                    raise NotFoundError(f"Variation {item.id} not found for this product")
                clash = _find_combination(db, product_id, color, size, exclude_id=variation.id)
                if clash is not None:
                    raise _conflict(color, size)
                variation.color = color
                variation.size = size
                variation.price = to_money(item.price)
                variation.sale_price = to_money(item.sale_price)
                variation.images = list(item.images)
                variation.is_active = True if item.is_active is None else item.is_active
            else:
                if _find_combination(db, product_id, color, size) is not None:
                    raise _conflict(color, size)
                variation = ProductVariation(
                    product_id=product_id,
                    color=color,
                    size=size,
                    price=to_money(item.price),
                    sale_price=to_money(item.sale_price),
                    images=list(item.images),
                    is_active=True if item.is_active is None else item.is_active,
                )
                db.add(variation)
            _flush(db, color, size)
            results.append(variation)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Bulk upserted {len(results)} variations for product {product_id}")
    return results


def replace_all(db: Session, product: Product, items: Iterable[VariationCreate]) -> List[ProductVariation]:
    """
    Drop every variation of `product` and recreate from `items`.

    Used by the product update path; runs inside the caller's transaction.
    """
    items = list(items)
    seen = set()
    new_rows = []
    for item in items:
        color = normalize_color(item.color)
        size = normalize_size(item.size)
        check_sale_price(item.price, item.sale_price)
        if (color, size) in seen:
            raise _conflict(color, size)
        seen.add((color, size))
        new_rows.append(ProductVariation(
            color=color,
            size=size,
            price=to_money(item.price),
            sale_price=to_money(item.sale_price),
            images=list(item.images),
            is_active=True,
        ))

    product.variations.clear()
    # Deletes must reach the database before the re-inserts hit unique_variation
    db.flush()
    product.variations.extend(new_rows)
    db.flush()
    logger.info(f"Replaced variations of product {product.id} with {len(new_rows)} rows")
    return new_rows


# ============================================================================
# Generation helper
# ============================================================================

def _as_text(value: Any) -> Any:
    return str(to_money(value)) if isinstance(value, Decimal) else value


def generate_variation_grid(
    colors: Iterable[str],
    sizes: Iterable[str],
    existing: Iterable[Any] = (),
) -> List[Dict[str, Any]]:
    """
    Draft rows for every selected color x size combination.

    Combinations already present in `existing` (ORM rows or dicts) keep their
    id, price, sale price and images; new ones start with an empty price and
    no images. Order is colors-major, in the order given.
    """
    def _get(row, key, camel=None):
        if isinstance(row, dict):
            return row.get(camel, row.get(key)) if camel else row.get(key)
        return getattr(row, key, None)

    by_key = {}
    for row in existing:
        by_key[(_get(row, "color"), _get(row, "size"))] = row

    grid = []
    for color in dict.fromkeys(colors):
        for size in dict.fromkeys(sizes):
            previous = by_key.get((color, size))
            if previous is not None:
                grid.append({
                    "id": _get(previous, "id"),
                    "color": color,
                    "size": size,
                    "price": _as_text(_get(previous, "price")),
                    "salePrice": _as_text(_get(previous, "sale_price", "salePrice")),
                    "images": list(_get(previous, "images") or []),
                })
            else:
                grid.append({
                    "id": None,
                    "color": color,
                    "size": size,
                    "price": "",
                    "salePrice": None,
                    "images": [],
                })
    return grid
