"""
Custom design order intake (multipart, public) and admin management.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.auth import require_admin
from storefront.database import get_db
from storefront.errors import NotFoundError, ValidationError
from storefront.logger import get_logger
from storefront.models import CustomOrder, CustomOrderStatus
from storefront.schemas import CustomOrderOut, CustomOrderUpdate, dump
from storefront.uploads import delete_upload, save_image

logger = get_logger("api.custom_orders")

router = APIRouter(prefix="/api/custom-orders", tags=["custom-orders"])


def _get_or_404(db: Session, order_id: int) -> CustomOrder:
    order = db.get(CustomOrder, order_id)
    if order is None:
        raise NotFoundError("Custom order not found")
    return order


def _store_custom_order(db: Session, order: CustomOrder) -> dict:
    db.add(order)
    db.commit()
    logger.info(f"Created custom order {order.id} ({order.design_image})")
    return {"message": "Custom order submitted successfully", "order": dump(CustomOrderOut.model_validate(order))}


@router.post("", status_code=201)
async def create_custom_order(
    design_image: UploadFile = File(..., alias="designImage"),
    customer_name: str = Form(..., alias="customerName", min_length=1),
    email: str = Form(..., min_length=1),
    phone: str = Form(..., min_length=1),
    width: str = Form(..., min_length=1),
    height: str = Form(..., min_length=1),
    quantity: int = Form(..., ge=1),
    additional_details: Optional[str] = Form(None, alias="additionalDetails"),
    db: Session = Depends(get_db),
):
    image_url = await save_image(design_image, "custom-orders", "custom", field="designImage")
    order = CustomOrder(
        customer_name=customer_name.strip(),
        email=email.strip(),
        phone=phone.strip(),
        design_image=image_url,
        width=width.strip(),
        height=height.strip(),
        quantity=quantity,
        additional_details=additional_details,
        status=CustomOrderStatus.PENDING,
    )
    return await run_in_threadpool(_store_custom_order, db, order)


@router.get("", dependencies=[Depends(require_admin)])
def list_custom_orders(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(CustomOrder)
    if status:
        try:
            query = query.filter(CustomOrder.status == CustomOrderStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'", field="status")
    total = query.count()
    rows = (
        query.order_by(CustomOrder.created_at.desc(), CustomOrder.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "orders": [dump(CustomOrderOut.model_validate(o)) for o in rows],
        "totalPages": math.ceil(total / limit),
        "currentPage": page,
        "totalOrders": total,
    }


@router.get("/{order_id}", dependencies=[Depends(require_admin)])
def get_custom_order(order_id: int, db: Session = Depends(get_db)):
    return dump(CustomOrderOut.model_validate(_get_or_404(db, order_id)))


@router.put("/{order_id}", dependencies=[Depends(require_admin)])
def update_custom_order(order_id: int, request: CustomOrderUpdate, db: Session = Depends(get_db)):
    order = _get_or_404(db, order_id)
    fields = request.model_fields_set
    if request.status is not None:
        order.status = request.status
    if "estimated_price" in fields:
        order.estimated_price = request.estimated_price
    if "admin_notes" in fields:
        order.admin_notes = request.admin_notes
    db.commit()
    logger.info(f"Updated custom order {order_id}")
    return {"message": "Custom order updated successfully", "order": dump(CustomOrderOut.model_validate(order))}


@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
def delete_custom_order(order_id: int, db: Session = Depends(get_db)):
    order = _get_or_404(db, order_id)
    image_url = order.design_image
    db.delete(order)
    db.commit()
    delete_upload(image_url)
    logger.info(f"Deleted custom order {order_id}")
    return {"message": "Custom order deleted successfully"}
