"""
Checkout and order administration.

An order's items are an immutable snapshot of the cart at submission. The
stored total is the sum of captured unit price x quantity over that snapshot;
the client-submitted total must agree with it to the cent, and lines for
products still in the catalog must carry the current resolved price.
"""

import math
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.errors import NotFoundError, ValidationError
from storefront.logger import get_logger
from storefront.models import Order, OrderStatus, PaymentMethod, PaymentStatus, Product
from storefront.pricing import order_total, resolve_price, to_money
from storefront.schemas import CheckoutRequest, OrderOut, OrderUpdate, dump

logger = get_logger("orders")

TOTAL_TOLERANCE = Decimal("0.01")

# Linear fulfilment flow; any non-final state may also be cancelled
STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
FINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def payment_status_for(method: PaymentMethod) -> PaymentStatus:
    """Manual methods are settled at placement; online stays pending until a gateway exists."""
    if method == PaymentMethod.ONLINE:
        return PaymentStatus.PENDING
    return PaymentStatus.COMPLETED


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current == target:
        return True
    if current in FINAL_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return STATUS_FLOW.index(target) == STATUS_FLOW.index(current) + 1


def order_payload(order: Order) -> Dict[str, Any]:
    return dump(OrderOut.model_validate(order))


def _snapshot_items(request: CheckoutRequest):
    items = []
    for item in request.cart_items:
        snapshot = {
            "productId": item.product_id,
            "quantity": item.quantity,
            "price": str(to_money(item.price)),
            "name": item.name,
            "image": item.image,
        }
        if item.variation is not None:
            snapshot["variation"] = {
                "color": item.variation.color,
                "size": item.variation.size,
                "price": str(to_money(item.variation.price)),
                "salePrice": (
                    str(to_money(item.variation.sale_price))
                    if item.variation.sale_price is not None else None
                ),
            }
        items.append(snapshot)
    return items


# ============================================================================
# Checkout
# ============================================================================

def _verify_item_prices(db: Session, request: CheckoutRequest) -> None:
    """
    Compare each line's captured unit price with the live catalog.

    Lines whose product (or named variation) no longer exists are left to
    the snapshot; everything else must match the resolved unit price.
    """
    for index, item in enumerate(request.cart_items):
        product = db.get(Product, item.product_id)
        if product is None:
            continue
        variation = None
        if item.variation is not None:
            variation = next(
                (v for v in product.variations
                 if v.color == item.variation.color and v.size == item.variation.size),
                None,
            )
            if variation is None:
                continue
        expected = resolve_price(product, variation).unit_price
        submitted = to_money(item.price)
        if abs(expected - submitted) > TOTAL_TOLERANCE:
            logger.warning(
                f"Rejected order: line {index} price {submitted} != catalog price {expected} "
                f"(product {product.id})"
            )
            raise ValidationError(
                f"Price of '{item.name}' has changed to {expected}, please refresh your cart",
                field="cartItems",
            )


def create_order(db: Session, request: CheckoutRequest, user_id: Optional[int] = None) -> Order:
    items = _snapshot_items(request)
    computed = order_total(items)
    submitted = to_money(request.total)
    if abs(computed - submitted) > TOTAL_TOLERANCE:
        logger.warning(f"Rejected order: submitted total {submitted} != item total {computed}")
        raise ValidationError(
            f"total {submitted} does not match cart items total {computed}", field="total"
        )
    if settings.verify_item_prices:
        _verify_item_prices(db, request)

    order = Order(
        user_id=user_id,
        customer_info=request.customer_info.model_dump(mode="json", by_alias=True),
        items=items,
        total_amount=computed,
        status=OrderStatus.PENDING,
        payment_method=request.payment_method,
        payment_status=payment_status_for(request.payment_method),
    )
    db.add(order)
    db.flush()
    logger.info(
        f"Created order {order.order_number} ({len(items)} lines, total {computed}, "
        f"{request.payment_method.value}, user={user_id or 'guest'})"
    )
    return order


# ============================================================================
# Admin
# ============================================================================

def get_order_or_404(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError("შეკვეთა ვერ მოიძებნა")
    return order


def list_orders(db: Session, page: int = 1, limit: int = 10, status: Optional[str] = None) -> Dict[str, Any]:
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    query = db.query(Order)
    if status and status != "all":
        try:
            query = query.filter(Order.status == OrderStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'", field="status")

    total = query.count()
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "orders": [order_payload(o) for o in orders],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }


def update_order(db: Session, order_id: int, data: OrderUpdate) -> Order:
    order = get_order_or_404(db, order_id)
    if data.status is not None:
        current = OrderStatus(order.status)
        if not can_transition(current, data.status):
            raise ValidationError(
                f"Cannot change order status from {current.value} to {data.status.value}", field="status"
            )
        order.status = data.status
    if data.payment_status is not None:
        order.payment_status = data.payment_status
    db.flush()
    logger.info(f"Updated order {order.order_number}: status={order.status}, payment={order.payment_status}")
    return order


def delete_order(db: Session, order_id: int) -> None:
    order = get_order_or_404(db, order_id)
    db.delete(order)
    db.flush()
    logger.info(f"Deleted order {order_id}")


def order_stats(db: Session) -> Dict[str, Any]:
    total_orders = db.query(func.count(Order.id)).scalar() or 0
    pending = db.query(func.count(Order.id)).filter(Order.status == OrderStatus.PENDING).scalar() or 0
    completed = db.query(func.count(Order.id)).filter(Order.status == OrderStatus.DELIVERED).scalar() or 0
    revenue = (
        db.query(func.sum(Order.total_amount))
        .filter(Order.payment_status == PaymentStatus.COMPLETED)
        .scalar()
    )
    return {
        "totalOrders": total_orders,
        "pendingOrders": pending,
        "completedOrders": completed,
        "totalRevenue": str(to_money(revenue or 0)),
    }
