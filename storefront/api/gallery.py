"""
Gallery of finished pieces: public listing, admin upload/edit/reorder/delete.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.auth import require_admin
from storefront.database import get_db
from storefront.errors import NotFoundError
from storefront.logger import get_logger
from storefront.models import GalleryImage
from storefront.schemas import GalleryImageOut, GalleryImageUpdate, GalleryReorderRequest, dump
from storefront.uploads import delete_upload, save_image

logger = get_logger("api.gallery")

router = APIRouter(prefix="/api/gallery", tags=["gallery"])


def _get_or_404(db: Session, image_id: int) -> GalleryImage:
    image = db.get(GalleryImage, image_id)
    if image is None:
        raise NotFoundError("Gallery image not found")
    return image


@router.get("")
def list_images(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    query = db.query(GalleryImage)
    if not include_inactive:
        query = query.filter(GalleryImage.is_active.is_(True))
    images = query.order_by(GalleryImage.sort_order.asc(), GalleryImage.created_at.desc()).all()
    return [dump(GalleryImageOut.model_validate(i)) for i in images]


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def upload_image(
    image: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    image_path = await save_image(image, "gallery", "gallery")
    max_order = db.query(func.max(GalleryImage.sort_order)).scalar() or 0
    row = GalleryImage(
        title=title,
        description=description,
        image_path=image_path,
        sort_order=max_order + 1,
        is_active=True,
    )
    db.add(row)
    db.commit()
    logger.info(f"Added gallery image {row.id} at position {row.sort_order}")
    return {"message": "Gallery image uploaded successfully", "image": dump(GalleryImageOut.model_validate(row))}


@router.put("/reorder/bulk", dependencies=[Depends(require_admin)])
def reorder(request: GalleryReorderRequest, db: Session = Depends(get_db)):
    for item in request.orders:
        db.query(GalleryImage).filter(GalleryImage.id == item.id).update({GalleryImage.sort_order: item.sort_order})
    db.commit()
    return {"message": "Gallery order updated successfully"}


@router.put("/{image_id}", dependencies=[Depends(require_admin)])
def update_image(image_id: int, request: GalleryImageUpdate, db: Session = Depends(get_db)):
    row = _get_or_404(db, image_id)
    for name in request.model_fields_set:
        value = getattr(request, name)
        if value is None and name in ("sort_order", "is_active"):
            continue
        setattr(row, name, value)
    db.commit()
    return {"message": "Gallery image updated successfully", "image": dump(GalleryImageOut.model_validate(row))}


@router.delete("/{image_id}", dependencies=[Depends(require_admin)])
def delete_image(image_id: int, db: Session = Depends(get_db)):
    row = _get_or_404(db, image_id)
    image_path = row.image_path
    db.delete(row)
    db.commit()
    delete_upload(image_path)
    return {"message": "Gallery image deleted successfully"}
