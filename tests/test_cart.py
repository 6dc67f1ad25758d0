"""
Tests for the cart state container and its storage backends.
"""

import json
from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.cart import (
    Cart, CartLine, JsonFileCartStorage, MemoryCartStorage, ProductSnapshot, VariationSnapshot,
)


def wolf_panel():
    return SimpleNamespace(
        id=7, name="Wolf Panel", slug="wolf-panel", price=Decimal("300.00"),
        images=["wolf.jpg"], is_on_sale=False, sale_price=None,
    )


def wolf_variation(color="black", size="40x60", price="180.00", sale_price=None, images=()):
    return SimpleNamespace(
        id=1, color=color, size=size, price=Decimal(price),
        sale_price=Decimal(sale_price) if sale_price else None, images=list(images),
    )


class TestCartMerging:
    def test_same_identity_merges_quantities(self):
        cart = Cart()
        cart.add(wolf_panel(), 1, wolf_variation())
        cart.add(wolf_panel(), 2, wolf_variation())
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3

    def test_different_variations_are_separate_lines(self):
        cart = Cart()
        cart.add(wolf_panel(), 1, wolf_variation(color="black"))
        cart.add(wolf_panel(), 1, wolf_variation(color="gold"))
        cart.add(wolf_panel(), 1)
        assert len(cart.lines) == 3
        assert cart.item_count() == 3

    def test_merge_law(self):
        # add(p, v, a) then add(p, v, b) is the same as add(p, v, a + b)
        split, single = Cart(), Cart()
        split.add(wolf_panel(), 2, wolf_variation())
        split.add(wolf_panel(), 5, wolf_variation())
        single.add(wolf_panel(), 7, wolf_variation())
        assert [line.to_dict() for line in split.lines] == [line.to_dict() for line in single.lines]

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_rejects_non_positive_or_non_integer_quantity(self, quantity):
        with pytest.raises(ValueError):
            Cart().add(wolf_panel(), quantity)


class TestCartMutations:
    def test_update_quantity_targets_full_identity(self):
        cart = Cart()
        cart.add(wolf_panel(), 1, wolf_variation(color="black"))
        cart.add(wolf_panel(), 1, wolf_variation(color="gold"))
        cart.update_quantity(7, 4, color="gold", size="40x60")
        quantities = {line.variation.color: line.quantity for line in cart.lines}
        assert quantities == {"black": 1, "gold": 4}

    def test_update_quantity_to_zero_removes(self):
        cart = Cart()
        cart.add(wolf_panel(), 2, wolf_variation())
        cart.update_quantity(7, 0, color="black", size="40x60")
        assert cart.lines == []

    def test_remove_only_matching_variation(self):
        cart = Cart()
        cart.add(wolf_panel(), 1, wolf_variation(color="black"))
        cart.add(wolf_panel(), 1, wolf_variation(color="gold"))
        cart.remove(7, color="black", size="40x60")
        assert [line.variation.color for line in cart.lines] == ["gold"]

    def test_clear(self):
        cart = Cart()
        cart.add(wolf_panel(), 1)
        cart.clear()
        assert cart.lines == []
        assert cart.subtotal() == Decimal("0.00")


class TestCartTotals:
    def test_wolf_panel_subtotal_uses_variation_price(self):
        cart = Cart()
        cart.add(wolf_panel(), 2, wolf_variation(price="180.00"))
        assert cart.subtotal() == Decimal("360.00")

    def test_sale_product_subtotal(self):
        cart = Cart()
        sale_product = SimpleNamespace(
            id=3, name="Sunset", price=Decimal("100.00"), images=[], is_on_sale=True, sale_price=Decimal("80.00"),
        )
        cart.add(sale_product, 3)
        assert cart.subtotal() == Decimal("240.00")

    def test_snapshot_is_not_affected_by_later_catalog_changes(self):
        product = wolf_panel()
        cart = Cart()
        cart.add(product, 1)
        product.price = Decimal("999.00")
        assert cart.subtotal() == Decimal("300.00")

    def test_wolf_panel_line_with_cheaper_base_price(self):
        wolf = wolf_panel()
        wolf.price = Decimal("150.00")
        cart = Cart()
        line = cart.add(wolf, 2, wolf_variation(size="60x80", price="180.00"))
        assert line.total == Decimal("360.00")
        assert cart.subtotal() == Decimal("360.00")


class TestCheckoutPayload:
    def test_order_items_capture_unit_price_and_variation(self):
        cart = Cart()
        cart.add(wolf_panel(), 2, wolf_variation(images=["wolf-black.jpg"]))
        items = cart.to_order_items()
        assert items == [{
            "productId": 7,
            "quantity": 2,
            "price": "180.00",
            "name": "Wolf Panel",
            "image": "wolf-black.jpg",
            "variation": {"color": "black", "size": "40x60", "price": "180.00", "salePrice": None},
        }]

    def test_payload_total_matches_items(self):
        cart = Cart()
        cart.add(wolf_panel(), 2, wolf_variation())
        cart.add(wolf_panel(), 1)
        payload = cart.checkout_payload({"firstName": "Nino"}, "cash")
        assert payload["total"] == "660.00"
        assert payload["paymentMethod"] == "cash"
        assert len(payload["cartItems"]) == 2


class TestStorage:
    def test_memory_storage_receives_every_mutation(self):
        storage = MemoryCartStorage()
        cart = Cart(storage)
        cart.add(wolf_panel(), 1)
        assert len(storage.load()) == 1
        cart.clear()
        assert storage.load() == []

    def test_cart_reloads_from_storage(self):
        storage = MemoryCartStorage()
        Cart(storage).add(wolf_panel(), 2, wolf_variation())
        restored = Cart(storage)
        assert restored.item_count() == 2
        assert restored.lines[0].variation.color == "black"

    def test_json_file_storage_round_trip(self, tmp_path):
        path = tmp_path / "cart" / "cart.json"
        cart = Cart(JsonFileCartStorage(str(path)))
        cart.add(wolf_panel(), 1, wolf_variation())
        assert json.loads(path.read_text(encoding="utf-8"))[0]["quantity"] == 1
        assert Cart(JsonFileCartStorage(str(path))).subtotal() == Decimal("180.00")

    def test_unreadable_file_is_empty_cart(self, tmp_path):
        path = tmp_path / "cart.json"
        path.write_text("{not json", encoding="utf-8")
        assert Cart(JsonFileCartStorage(str(path))).lines == []

    def test_malformed_lines_are_dropped(self):
        storage = MemoryCartStorage([{"quantity": 1}])
        assert Cart(storage).lines == []

    def test_snapshot_objects_can_be_added_directly(self):
        cart = Cart()
        snap = ProductSnapshot(id=1, name="Deer", price=Decimal("50.00"))
        var = VariationSnapshot(color="red", size="60x80", price=Decimal("70.00"))
        line = cart.add(snap, 1, var)
        assert isinstance(line, CartLine)
        assert line.unit_price == Decimal("70.00")
