"""
Shopper cart: an explicit state container over a pluggable storage backend.

Lines hold snapshots of the product (and selected variation) taken at add
time, so later catalog edits do not change what the shopper saw. A line's
identity is (product id, variation color, variation size); adding the same
identity again merges quantities, different variations stay separate lines.

Storage backends:
  MemoryCartStorage   - process-local, used by tests and server-side tooling
  JsonFileCartStorage - persists to a JSON file (the browser's localStorage
                        equivalent for CLI/desktop clients)

The cart reads storage once at construction and writes after every mutation.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from storefront.logger import get_logger
from storefront.pricing import CENT, resolve_price, to_money

logger = get_logger("cart")

LineKey = Tuple[int, Optional[str], Optional[str]]


# ============================================================================
# Snapshots
# ============================================================================

@dataclass
class ProductSnapshot:
    id: int
    name: str
    price: Decimal
    images: List[str] = field(default_factory=list)
    is_on_sale: bool = False
    sale_price: Optional[Decimal] = None
    slug: Optional[str] = None

    @classmethod
    def from_product(cls, product: Any) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            price=to_money(product.price),
            images=list(product.images or []),
            is_on_sale=bool(product.is_on_sale),
            sale_price=to_money(product.sale_price),
            slug=getattr(product, "slug", None),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "images": list(self.images),
            "isOnSale": self.is_on_sale,
            "salePrice": str(self.sale_price) if self.sale_price is not None else None,
            "slug": self.slug,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductSnapshot":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            price=to_money(data["price"]),
            images=list(data.get("images") or []),
            is_on_sale=bool(data.get("isOnSale", False)),
            sale_price=to_money(data.get("salePrice")),
            slug=data.get("slug"),
        )


@dataclass
class VariationSnapshot:
    color: str
    size: str
    price: Decimal
    sale_price: Optional[Decimal] = None
    images: List[str] = field(default_factory=list)
    id: Optional[int] = None

    @classmethod
    def from_variation(cls, variation: Any) -> "VariationSnapshot":
        return cls(
            id=variation.id,
            color=variation.color,
            size=variation.size,
            price=to_money(variation.price),
            sale_price=to_money(variation.sale_price),
            images=list(variation.images or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "color": self.color,
            "size": self.size,
            "price": str(self.price),
            "salePrice": str(self.sale_price) if self.sale_price is not None else None,
            "images": list(self.images),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VariationSnapshot":
        return cls(
            id=data.get("id"),
            color=data["color"],
            size=data["size"],
            price=to_money(data["price"]),
            sale_price=to_money(data.get("salePrice")),
            images=list(data.get("images") or []),
        )


@dataclass
class CartLine:
    product: ProductSnapshot
    quantity: int
    variation: Optional[VariationSnapshot] = None

    @property
    def key(self) -> LineKey:
        if self.variation is None:
            return (self.product.id, None, None)
        return (self.product.id, self.variation.color, self.variation.size)

    @property
    def unit_price(self) -> Decimal:
        return resolve_price(self.product, self.variation).unit_price

    @property
    def total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "variation": self.variation.to_dict() if self.variation else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLine":
        variation = data.get("variation")
        return cls(
            product=ProductSnapshot.from_dict(data["product"]),
            quantity=int(data["quantity"]),
            variation=VariationSnapshot.from_dict(variation) if variation else None,
        )


def line_key(product_id: int, variation: Any = None) -> LineKey:
    if variation is None:
        return (product_id, None, None)
    return (product_id, variation.color, variation.size)


# ============================================================================
# Storage
# ============================================================================

class CartStorage:
    """Port: load/save the serialized cart lines."""

    def load(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, lines: List[Dict[str, Any]]) -> None:
        raise NotImplementedError


class MemoryCartStorage(CartStorage):
    def __init__(self, initial: Optional[List[Dict[str, Any]]] = None):
        self._data = list(initial or [])

    def load(self) -> List[Dict[str, Any]]:
        return list(self._data)

    def save(self, lines: List[Dict[str, Any]]) -> None:
        self._data = list(lines)


class JsonFileCartStorage(CartStorage):
    """Persist the cart as a JSON array; a missing or unreadable file is an empty cart."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cart file {self.path}: {e}")
            return []
        return data if isinstance(data, list) else []

    def save(self, lines: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(lines, f, ensure_ascii=False)


# ============================================================================
# Cart
# ============================================================================

class Cart:
    """
    Cart state machine.

    Quantities are positive integers. update_quantity() with a value <= 0
    removes the line. Stock limits are advisory and not checked here.
    """

    def __init__(self, storage: Optional[CartStorage] = None):
        self.storage = storage or MemoryCartStorage()
        self.lines: List[CartLine] = []
        for raw in self.storage.load():
            try:
                self.lines.append(CartLine.from_dict(raw))
            except (KeyError, TypeError, ValueError, ArithmeticError) as e:
                logger.warning(f"Dropping malformed cart line: {e}")

    def _persist(self) -> None:
        self.storage.save([line.to_dict() for line in self.lines])

    def _find(self, key: LineKey) -> Optional[CartLine]:
        for line in self.lines:
            if line.key == key:
                return line
        return None

    def add(self, product: Any, quantity: int = 1, variation: Any = None) -> CartLine:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValueError("quantity must be a positive integer")

        product_snap = product if isinstance(product, ProductSnapshot) else ProductSnapshot.from_product(product)
        variation_snap = None
        if variation is not None:
            variation_snap = (
                variation if isinstance(variation, VariationSnapshot)
                else VariationSnapshot.from_variation(variation)
            )

        existing = self._find(line_key(product_snap.id, variation_snap))
        if existing is not None:
            existing.quantity += quantity
            line = existing
        else:
            line = CartLine(product=product_snap, quantity=quantity, variation=variation_snap)
            self.lines.append(line)
        self._persist()
        return line

    def update_quantity(self, product_id: int, quantity: int,
                        color: Optional[str] = None, size: Optional[str] = None) -> None:
        key = (product_id, color, size)
        if quantity <= 0:
            self.remove(product_id, color, size)
            return
        line = self._find(key)
        if line is None:
            return
        line.quantity = quantity
        self._persist()

    def remove(self, product_id: int, color: Optional[str] = None, size: Optional[str] = None) -> None:
        key = (product_id, color, size)
        self.lines = [line for line in self.lines if line.key != key]
        self._persist()

    def clear(self) -> None:
        self.lines = []
        self._persist()

    def subtotal(self) -> Decimal:
        total = Decimal("0.00")
        for line in self.lines:
            total += line.total
        return total.quantize(CENT)

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_order_items(self) -> List[Dict[str, Any]]:
        """Checkout snapshot: captured unit price per line, camelCase for the orders API."""
        items = []
        for line in self.lines:
            resolved = resolve_price(line.product, line.variation)
            item = {
                "productId": line.product.id,
                "quantity": line.quantity,
                "price": str(resolved.unit_price),
                "name": line.product.name,
                "image": resolved.display_images[0] if resolved.display_images else None,
            }
            if line.variation is not None:
                item["variation"] = {
                    "color": line.variation.color,
                    "size": line.variation.size,
                    "price": str(line.variation.price),
                    "salePrice": str(line.variation.sale_price) if line.variation.sale_price is not None else None,
                }
            items.append(item)
        return items

    def checkout_payload(self, customer_info: Dict[str, Any], payment_method: str) -> Dict[str, Any]:
        """Body for POST /api/orders."""
        return {
            "customerInfo": customer_info,
            "cartItems": self.to_order_items(),
            "total": str(self.subtotal()),
            "paymentMethod": payment_method,
        }
