"""
Checkout (public) and order administration endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront import orders as order_service
from storefront.auth import get_optional_user, require_admin
from storefront.database import get_db
from storefront.models import User
from storefront.schemas import CheckoutRequest, OrderUpdate

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=201)
def create_order(
    request: CheckoutRequest,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    order = order_service.create_order(db, request, user_id=user.id if user else None)
    db.commit()
    payload = order_service.order_payload(order)
    return {
        "success": True,
        "message": "შეკვეთა წარმატებით შეიქმნა",
        "orderId": payload["orderId"],
        "order": payload,
    }


@router.get("", dependencies=[Depends(require_admin)])
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return {"success": True, **order_service.list_orders(db, page=page, limit=limit, status=status)}


@router.get("/stats", dependencies=[Depends(require_admin)])
def order_stats(db: Session = Depends(get_db)):
    return {"success": True, "stats": order_service.order_stats(db)}


@router.get("/{order_id}", dependencies=[Depends(require_admin)])
def get_order(order_id: int, db: Session = Depends(get_db)):
    order = order_service.get_order_or_404(db, order_id)
    return {"success": True, "order": order_service.order_payload(order)}


@router.put("/{order_id}", dependencies=[Depends(require_admin)])
def update_order(order_id: int, request: OrderUpdate, db: Session = Depends(get_db)):
    order = order_service.update_order(db, order_id, request)
    db.commit()
    return {
        "success": True,
        "message": "შეკვეთა წარმატებით განახლდა",
        "order": order_service.order_payload(order),
    }


@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
def delete_order(order_id: int, db: Session = Depends(get_db)):
    order_service.delete_order(db, order_id)
    db.commit()
    return {"success": True, "message": "შეკვეთა წარმატებით წაიშალა"}
