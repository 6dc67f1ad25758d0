"""
Catalog endpoint tests: listing, detail lookup, price quotes and admin edits.
"""

from storefront.catalog import slugify
from storefront.models import Category, Product, ProductVariation


NEW_PRODUCT = {
    "name": "Wolf Panel",
    "description": "Laser-cut steel wolf",
    "price": 300,
    "category": "nature",
    "images": ["/uploads/products/wolf.jpg"],
    "specifications": {"material": "steel", "thickness": "2mm"},
}


class TestListProducts:
    def test_only_active_products(self, client, make_product):
        make_product(name="Visible")
        make_product(name="Hidden", is_active=False)
        body = client.get("/api/products").json()
        assert [p["name"] for p in body["products"]] == ["Visible"]
        assert body["totalProducts"] == 1
        assert body["currentPage"] == 1
        assert body["totalPages"] == 1

    def test_sort_order_then_newest(self, client, make_product):
        make_product(name="Second", sort_order=2)
        make_product(name="First", sort_order=1)
        make_product(name="Also first", sort_order=1)
        names = [p["name"] for p in client.get("/api/products").json()["products"]]
        assert names == ["Also first", "First", "Second"]

    def test_pagination(self, client, make_product):
        for _ in range(5):
            make_product()
        body = client.get("/api/products", params={"page": 2, "limit": 2}).json()
        assert len(body["products"]) == 2
        assert body["totalPages"] == 3

    def test_category_filter(self, client, make_product):
        make_product(name="Deer", category=Category.NATURE)
        make_product(name="Cube", category=Category.GEOMETRIC)
        body = client.get("/api/products", params={"category": "nature"}).json()
        assert [p["name"] for p in body["products"]] == ["Deer"]

    def test_unknown_category(self, client):
        resp = client.get("/api/products", params={"category": "spaceships"})
        assert resp.status_code == 400

    def test_search_is_case_insensitive(self, client, make_product):
        make_product(name="Mountain Sunrise")
        make_product(name="Tiger")
        body = client.get("/api/products", params={"search": "mountain"}).json()
        assert [p["name"] for p in body["products"]] == ["Mountain Sunrise"]

    def test_categories_list(self, client, make_product):
        make_product(category=Category.NATURE)
        make_product(category=Category.NATURE)
        make_product(category=Category.ANIME)
        categories = client.get("/api/products/categories/list").json()["categories"]
        assert {"category": "nature", "count": 2} in categories
        assert {"category": "anime", "count": 1} in categories


class TestProductDetail:
    def test_by_id_embeds_active_variations(self, client, make_product, db):
        product = make_product(variations=[
            ("black", "40x60", "180.00", None, []),
            ("gold", "60x80", "260.00", "220.00", ["gold.jpg"]),
        ])
        next(v for v in product.variations if v.color == "black").is_active = False
        db.commit()
        body = client.get(f"/api/products/{product.id}").json()
        assert [v["color"] for v in body["variations"]] == ["gold"]
        assert body["variations"][0]["salePrice"] == "220.00"

    def test_by_slug(self, client, make_product):
        make_product(name="Wolf Panel", slug="wolf-panel")
        assert client.get("/api/products/wolf-panel").json()["name"] == "Wolf Panel"

    def test_missing_sale_price_is_omitted(self, client, make_product):
        product = make_product()
        body = client.get(f"/api/products/{product.id}").json()
        assert "salePrice" not in body
        assert body["price"] == "100.00"

    def test_sale_price_present_when_set(self, client, make_product):
        product = make_product(is_on_sale=True, sale_price="80.00")
        body = client.get(f"/api/products/{product.id}").json()
        assert body["salePrice"] == "80.00"
        assert body["isOnSale"] is True

    def test_not_found(self, client):
        resp = client.get("/api/products/no-such-thing")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Product not found"}


class TestPriceQuote:
    def test_wolf_panel_variation_price(self, client, make_product):
        product = make_product(
            name="Wolf Panel", price="300.00", images=["wolf.jpg"],
            variations=[("black", "40x60", "180.00", None, [])],
        )
        variation_id = product.variations[0].id
        quote = client.get(f"/api/products/{product.id}/quote", params={"variationId": variation_id}).json()
        assert quote["effectivePrice"] == "180.00"
        assert quote["unitPrice"] == "180.00"
        assert quote["isDiscounted"] is False
        assert quote["displayImages"] == ["wolf.jpg"]

    def test_product_sale(self, client, make_product):
        product = make_product(price="100.00", is_on_sale=True, sale_price="80.00")
        quote = client.get(f"/api/products/{product.id}/quote").json()
        assert quote["variationId"] is None
        assert quote["effectiveSalePrice"] == "80.00"
        assert quote["unitPrice"] == "80.00"

    def test_variation_of_other_product(self, client, make_product):
        first = make_product(variations=[("red", "40x60", "180.00", None, [])])
        second = make_product()
        resp = client.get(f"/api/products/{second.id}/quote", params={"variationId": first.variations[0].id})
        assert resp.status_code == 404

    def test_inactive_variation(self, client, make_product, db):
        product = make_product(variations=[("red", "40x60", "180.00", None, [])])
        product.variations[0].is_active = False
        db.commit()
        resp = client.get(f"/api/products/{product.id}/quote", params={"variationId": product.variations[0].id})
        assert resp.status_code == 404


class TestCreateProduct:
    def test_create_with_generated_slug(self, client, admin_headers):
        resp = client.post("/api/products", json=NEW_PRODUCT, headers=admin_headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["slug"] == "wolf-panel"
        assert body["price"] == "300.00"
        assert body["specifications"]["material"] == "steel"
        assert body["specifications"]["version"] == 1
        assert body["variations"] == []

    def test_create_with_variations(self, client, admin_headers):
        payload = dict(NEW_PRODUCT, variations=[
            {"color": "black", "size": "40x60", "price": 180, "salePrice": ""},
            {"color": "Gold", "size": "60 x 80", "price": 260},
        ])
        body = client.post("/api/products", json=payload, headers=admin_headers).json()
        assert [(v["color"], v["size"]) for v in body["variations"]] == [("black", "40x60"), ("gold", "60x80")]

    def test_duplicate_slug(self, client, admin_headers, make_product):
        make_product(slug="wolf-panel")
        resp = client.post("/api/products", json=NEW_PRODUCT, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["field"] == "slug"

    def test_sale_price_not_below_price(self, client, admin_headers):
        payload = dict(NEW_PRODUCT, isOnSale=True, salePrice=300)
        assert client.post("/api/products", json=payload, headers=admin_headers).status_code == 400

    def test_unknown_specification_key(self, client, admin_headers):
        payload = dict(NEW_PRODUCT, specifications={"material": "steel", "voltage": "220V"})
        assert client.post("/api/products", json=payload, headers=admin_headers).status_code == 400

    def test_missing_name(self, client, admin_headers):
        payload = {k: v for k, v in NEW_PRODUCT.items() if k != "name"}
        resp = client.post("/api/products", json=payload, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "name is required"

    def test_requires_admin(self, client, customer_headers):
        assert client.post("/api/products", json=NEW_PRODUCT, headers=customer_headers).status_code == 403


class TestUpdateProduct:
    def test_partial_update(self, client, admin_headers, make_product):
        product = make_product(name="Old", price="100.00")
        body = client.put(f"/api/products/{product.id}", json={"name": "New"}, headers=admin_headers).json()
        assert body["name"] == "New"
        assert body["price"] == "100.00"

    def test_specification_keys_are_merged(self, client, admin_headers, make_product):
        product = make_product()
        body = client.put(
            f"/api/products/{product.id}",
            json={"installation": "Two screws", "finish": "matte"},
            headers=admin_headers,
        ).json()
        assert body["specifications"]["material"] == "steel"
        assert body["specifications"]["installation"] == "Two screws"
        assert body["specifications"]["finish"] == "matte"

    def test_specifications_replaced_then_keys_merged(self, client, admin_headers, make_product):
        product = make_product()
        body = client.put(
            f"/api/products/{product.id}",
            json={"specifications": {"material": "aluminium"}, "care": "Dry cloth"},
            headers=admin_headers,
        ).json()
        assert body["specifications"]["material"] == "aluminium"
        assert body["specifications"]["care"] == "Dry cloth"

    def test_variations_replace_whole_set(self, client, admin_headers, make_product, db):
        product = make_product(variations=[
            ("red", "40x60", "180.00", None, []),
            ("blue", "40x60", "180.00", None, []),
        ])
        body = client.put(
            f"/api/products/{product.id}",
            json={"variations": [
                {"color": "red", "size": "40x60", "price": 199},
                {"color": "white", "size": "80x120", "price": 320},
            ]},
            headers=admin_headers,
        ).json()
        assert [(v["color"], v["price"]) for v in body["variations"]] == [("red", "199.00"), ("white", "320.00")]
        db.expire_all()
        assert db.query(ProductVariation).filter(ProductVariation.product_id == product.id).count() == 2

    def test_empty_variation_list_keeps_existing(self, client, admin_headers, make_product, db):
        product = make_product(variations=[("red", "40x60", "180.00", None, [])])
        resp = client.put(
            f"/api/products/{product.id}",
            json={"name": "Renamed", "variations": []},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Renamed"
        assert [(v["color"], v["size"]) for v in body["variations"]] == [("red", "40x60")]
        db.expire_all()
        assert db.query(ProductVariation).filter(ProductVariation.product_id == product.id).count() == 1

    def test_stored_sale_price_does_not_block_unrelated_edit(self, client, admin_headers, make_product):
        product = make_product(price="100.00", is_on_sale=True, sale_price="120.00")
        resp = client.put(f"/api/products/{product.id}", json={"name": "Renamed"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"

    def test_touching_sale_price_still_validates(self, client, admin_headers, make_product):
        product = make_product(price="100.00", is_on_sale=True, sale_price="120.00")
        resp = client.put(f"/api/products/{product.id}", json={"salePrice": 130}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["field"] == "salePrice"

    def test_duplicate_combination_in_replacement(self, client, admin_headers, make_product):
        product = make_product()
        resp = client.put(
            f"/api/products/{product.id}",
            json={"variations": [
                {"color": "red", "size": "40x60", "price": 199},
                {"color": "red", "size": "40x60", "price": 210},
            ]},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_clearing_sale_price(self, client, admin_headers, make_product):
        product = make_product(is_on_sale=True, sale_price="80.00")
        body = client.put(
            f"/api/products/{product.id}", json={"isOnSale": False, "salePrice": ""}, headers=admin_headers
        ).json()
        assert body["isOnSale"] is False
        assert "salePrice" not in body

    def test_slug_taken_by_other_product(self, client, admin_headers, make_product):
        make_product(slug="taken")
        product = make_product()
        resp = client.put(f"/api/products/{product.id}", json={"slug": "taken"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_raw_specifications(self, client, admin_headers, make_product):
        product = make_product()
        resp = client.get(f"/api/products/{product.id}/specs-raw", headers=admin_headers)
        assert resp.json() == {"rawSpecifications": {"version": 1, "material": "steel"}}


class TestDeleteProduct:
    def test_delete_cascades_to_variations(self, client, admin_headers, make_product, db):
        product = make_product(variations=[("red", "40x60", "180.00", None, [])])
        resp = client.delete(f"/api/products/{product.id}", headers=admin_headers)
        assert resp.json() == {"message": "Product deleted successfully"}
        db.expire_all()
        assert db.query(Product).count() == 0
        assert db.query(ProductVariation).count() == 0

    def test_delete_unknown(self, client, admin_headers):
        assert client.delete("/api/products/404", headers=admin_headers).status_code == 404


class TestSlugify:
    def test_ascii(self):
        assert slugify("  Wolf Panel -- Black! ") == "wolf-panel-black"

    def test_georgian_letters_kept(self):
        assert slugify("მგელი Panel") == "მგელი-panel"

    def test_empty_falls_back(self):
        assert slugify("!!!") == "product"
