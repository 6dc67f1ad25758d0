"""
Catalog service: product listing, detail, price quotes and admin edits.

Products embed their active variations when serialized. Money is returned as
strings ("180.00"); salePrice is omitted from product payloads when unset.
"""

import math
import re
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront import variations as variation_service
from storefront.errors import ConflictError, NotFoundError, ValidationError
from storefront.logger import get_logger
from storefront.models import Category, Product, ProductVariation
from storefront.pricing import resolve_price, to_money
from storefront.schemas import (
    SPECIFICATION_FIELDS, PriceQuoteOut, ProductCreate, ProductOut,
    ProductSpecifications, ProductUpdate, VariationOut, dump,
)

logger = get_logger("catalog")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


# ============================================================================
# Helpers
# ============================================================================

def slugify(name: str) -> str:
    """Lowercase, word characters kept (Georgian included), runs of anything else -> '-'."""
    slug = re.sub(r"[^\w]+", "-", (name or "").strip().lower(), flags=re.UNICODE)
    slug = slug.replace("_", "-").strip("-")
    slug = re.sub(r"-{2,}", "-", slug)
    return slug or "product"


def product_payload(product: Product, include_variations: bool = True) -> Dict[str, Any]:
    payload = dump(ProductOut.model_validate(product))
    if payload.get("salePrice") is None:
        payload.pop("salePrice", None)
    if include_variations:
        payload["variations"] = [dump(VariationOut.model_validate(v)) for v in product.active_variations]
    return payload


def _slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Product.id).filter(Product.slug == slug)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def _specifications_json(specs: ProductSpecifications) -> Dict[str, Any]:
    return specs.model_dump(mode="json", by_alias=True)


# ============================================================================
# Read
# ============================================================================

def list_products(
    db: Session,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    query = db.query(Product).filter(Product.is_active.is_(True))
    if category and category != "all":
        try:
            query = query.filter(Product.category == Category(category))
        except ValueError:
            raise ValidationError(f"Unknown category '{category}'", field="category")
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

    total = query.count()
    products = (
        query.order_by(Product.sort_order.asc(), Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "products": [product_payload(p) for p in products],
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if total else 0,
        "totalProducts": total,
    }


def list_categories(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Product.category, func.count(Product.id))
        .filter(Product.is_active.is_(True))
        .group_by(Product.category)
        .order_by(Product.category)
        .all()
    )
    return [{"category": category.value if isinstance(category, Category) else category, "count": count}
            for category, count in rows]


def get_product(db: Session, id_or_slug: str) -> Product:
    """Look up by numeric id, otherwise by slug."""
    product = None
    if str(id_or_slug).isdigit():
        product = db.get(Product, int(id_or_slug))
    if product is None:
        product = db.query(Product).filter(Product.slug == str(id_or_slug)).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def quote(db: Session, product_id: int, variation_id: Optional[int] = None) -> PriceQuoteOut:
    """Effective price for the product-detail page's current selection."""
    product = variation_service.get_product_or_404(db, product_id)
    variation = None
    if variation_id is not None:
        variation = db.get(ProductVariation, variation_id)
        if variation is None or variation.product_id != product.id or not variation.is_active:
            raise NotFoundError("Variation not found")

    resolved = resolve_price(product, variation)
    return PriceQuoteOut(
        product_id=product.id,
        variation_id=variation.id if variation is not None else None,
        effective_price=resolved.effective_price,
        effective_sale_price=resolved.effective_sale_price,
        is_discounted=resolved.is_discounted,
        unit_price=resolved.unit_price,
        display_images=resolved.display_images,
    )


def raw_specifications(db: Session, product_id: int) -> Dict[str, Any]:
    product = variation_service.get_product_or_404(db, product_id)
    return {"rawSpecifications": product.specifications}


# ============================================================================
# Write
# ============================================================================

def create_product(db: Session, data: ProductCreate) -> Product:
    slug = slugify(data.slug) if data.slug else slugify(data.name)
    if _slug_taken(db, slug):
        raise ConflictError(f"A product with slug '{slug}' already exists", field="slug")
    if data.sale_price is not None:
        variation_service.check_sale_price(data.price, data.sale_price)

    product = Product(
        name=data.name,
        slug=slug,
        description=data.description,
        detailed_description=list(data.detailed_description),
        price=to_money(data.price),
        images=list(data.images),
        thumbnail=data.thumbnail,
        features=list(data.features),
        specifications=_specifications_json(data.specifications),
        category=data.category,
        is_active=data.is_active,
        is_on_sale=data.is_on_sale,
        sale_price=to_money(data.sale_price),
        sort_order=data.sort_order,
    )
    db.add(product)
    db.flush()

    if data.variations:
        variation_service.replace_all(db, product, data.variations)

    logger.info(f"Created product {product.id} ({slug})")
    return product


def update_product(db: Session, product_id: int, data: ProductUpdate) -> Product:
    """
    Partial update. Sale fields are validated against the resulting price
    when the request touches them; specification keys are merged; a
    non-empty `variations` list replaces the whole set.
    """
    product = variation_service.get_product_or_404(db, product_id)
    fields = data.model_fields_set

    if "slug" in fields and data.slug:
        slug = slugify(data.slug)
        if _slug_taken(db, slug, exclude_id=product.id):
            raise ConflictError(f"A product with slug '{slug}' already exists", field="slug")
        product.slug = slug

    for name in ("name", "description", "thumbnail", "category", "is_active", "is_on_sale", "sort_order"):
        if name in fields:
            value = getattr(data, name)
            if value is not None or name == "thumbnail":
                setattr(product, name, value)

    for name in ("detailed_description", "images", "features"):
        if name in fields and getattr(data, name) is not None:
            setattr(product, name, list(getattr(data, name)))

    if "price" in fields and data.price is not None:
        product.price = to_money(data.price)
    if "sale_price" in fields:
        product.sale_price = to_money(data.sale_price)
    # Stored rows are only re-checked when the request touches the sale fields
    if fields & {"price", "sale_price", "is_on_sale"} and product.sale_price is not None:
        variation_service.check_sale_price(product.price, product.sale_price)

    # Full replacement first, then individual keys merged on top
    if "specifications" in fields and data.specifications is not None:
        specs = _specifications_json(data.specifications)
    else:
        specs = dict(product.specifications or {})
    merged_keys = [name for name in SPECIFICATION_FIELDS if name in fields and getattr(data, name) is not None]
    for name in merged_keys:
        specs[to_camel(name)] = getattr(data, name)
    if "specifications" in fields or merged_keys:
        # Reassign so the JSON column change is detected
        product.specifications = specs

    # An empty list leaves the existing variations alone
    if "variations" in fields and data.variations:
        variation_service.replace_all(db, product, data.variations)

    db.flush()
    logger.info(f"Updated product {product.id}")
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = variation_service.get_product_or_404(db, product_id)
    db.delete(product)
    db.flush()
    logger.info(f"Deleted product {product_id}")
