"""
Product catalog and variation endpoints.

Public reads; admin-only writes. Variation routes are registered before the
`/{id}` routes so `/variations/{id}` is never captured as a product id.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from storefront import catalog
from storefront import variations as variation_service
from storefront.auth import require_admin
from storefront.database import get_db
from storefront.logger import get_logger
from storefront.schemas import (
    BulkVariationsRequest, ProductCreate, ProductUpdate, VariationCreate,
    VariationOut, VariationUpdate, dump,
)
from storefront.uploads import save_image

logger = get_logger("api.products")

router = APIRouter(prefix="/api/products", tags=["products"])


# ============================================================================
# Uploads
# ============================================================================

@router.post("/upload-image", dependencies=[Depends(require_admin)])
async def upload_product_image(image: UploadFile = File(...)):
    image_path = await save_image(image, "products", "product")
    return {
        "message": "Image uploaded successfully",
        "imagePath": image_path,
        "filename": image_path.rsplit("/", 1)[-1],
    }


# ============================================================================
# Variations
# ============================================================================

@router.get("/{product_id}/variations")
def list_variations(product_id: int, db: Session = Depends(get_db)) -> List[dict]:
    return [dump(VariationOut.model_validate(v)) for v in variation_service.list_active(db, product_id)]


@router.post("/{product_id}/variations", status_code=201, dependencies=[Depends(require_admin)])
def create_variation(product_id: int, request: VariationCreate, db: Session = Depends(get_db)):
    variation = variation_service.create_variation(db, product_id, request)
    db.commit()
    return dump(VariationOut.model_validate(variation))


@router.post("/{product_id}/variations/bulk", dependencies=[Depends(require_admin)])
def bulk_upsert_variations(product_id: int, request: BulkVariationsRequest, db: Session = Depends(get_db)):
    rows = variation_service.bulk_upsert(db, product_id, request.variations)
    db.commit()
    return [dump(VariationOut.model_validate(v)) for v in rows]


@router.get("/{product_id}/variations/grid", dependencies=[Depends(require_admin)])
def variation_grid(
    product_id: int,
    colors: List[str] = Query(default=[]),
    sizes: List[str] = Query(default=[]),
    db: Session = Depends(get_db),
):
    """Draft rows for the selected colors x sizes, prefilled from existing variations."""
    product = variation_service.get_product_or_404(db, product_id)
    colors = [variation_service.normalize_color(c) for c in colors]
    sizes = [variation_service.normalize_size(s) for s in sizes]
    return {
        "variations": variation_service.generate_variation_grid(colors, sizes, product.variations),
        "colors": list(variation_service.COLORS),
        "sizes": list(variation_service.SIZES),
    }


@router.put("/variations/{variation_id}", dependencies=[Depends(require_admin)])
def update_variation(variation_id: int, request: VariationUpdate, db: Session = Depends(get_db)):
    variation = variation_service.update_variation(db, variation_id, request)
    db.commit()
    return dump(VariationOut.model_validate(variation))


@router.delete("/variations/{variation_id}", dependencies=[Depends(require_admin)])
def delete_variation(variation_id: int, db: Session = Depends(get_db)):
    variation_service.delete_variation(db, variation_id)
    db.commit()
    return {"message": "Variation deleted successfully"}


# ============================================================================
# Products
# ============================================================================

@router.get("")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(catalog.DEFAULT_PAGE_SIZE, ge=1),
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return catalog.list_products(db, page=page, limit=limit, category=category, search=search)


@router.get("/categories/list")
def list_categories(db: Session = Depends(get_db)):
    return {"categories": catalog.list_categories(db)}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_product(request: ProductCreate, db: Session = Depends(get_db)):
    product = catalog.create_product(db, request)
    db.commit()
    return catalog.product_payload(product)


@router.put("/{product_id}", dependencies=[Depends(require_admin)])
def update_product(product_id: int, request: ProductUpdate, db: Session = Depends(get_db)):
    product = catalog.update_product(db, product_id, request)
    db.commit()
    return catalog.product_payload(product)


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    catalog.delete_product(db, product_id)
    db.commit()
    return {"message": "Product deleted successfully"}


@router.get("/{product_id}/quote")
def quote(product_id: int, variation_id: Optional[int] = Query(None, alias="variationId"),
          db: Session = Depends(get_db)):
    return dump(catalog.quote(db, product_id, variation_id))


@router.get("/{product_id}/specs-raw", dependencies=[Depends(require_admin)])
def specs_raw(product_id: int, db: Session = Depends(get_db)):
    return catalog.raw_specifications(db, product_id)


@router.get("/{id_or_slug}")
def get_product(id_or_slug: str, db: Session = Depends(get_db)):
    return catalog.product_payload(catalog.get_product(db, id_or_slug))
