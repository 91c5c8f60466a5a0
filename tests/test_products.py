import uuid


def product_body(**extra):
    body = {
        "name": "Classic Tee",
        "description": "Heavyweight cotton tee",
        "price": 499.0,
        "stock_quantity": 10,
    }
    body.update(extra)
    return body


def test_create_product_generates_slug_and_sku(client, admin_headers):
    res = client.post("/api/products", json=product_body(), headers=admin_headers)

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["slug"] == "classic-tee"
    assert data["sku"].startswith("PRD-")
    assert data["stock_status"] == "in_stock"
    assert data["current_price"] == 499.0
    assert data["discount_percentage"] == 0


def test_duplicate_names_get_suffixed_slugs(client, admin_headers):
    client.post("/api/products", json=product_body(), headers=admin_headers)
    second = client.post("/api/products", json=product_body(), headers=admin_headers)
    third = client.post("/api/products", json=product_body(), headers=admin_headers)

    assert second.json()["data"]["slug"] == "classic-tee-2"
    assert third.json()["data"]["slug"] == "classic-tee-3"


def test_duplicate_sku_is_validation_error(client, admin_headers):
    client.post("/api/products", json=product_body(sku="TEE-1"), headers=admin_headers)

    res = client.post("/api/products", json=product_body(sku="TEE-1"), headers=admin_headers)

    assert res.status_code == 422
    assert "sku" in res.json()["errors"]


def test_sale_price_must_be_lower(client, admin_headers):
    res = client.post(
        "/api/products", json=product_body(sale_price=600.0), headers=admin_headers
    )
    assert res.status_code == 422


def test_update_checks_sale_price_against_current_price(client, admin_headers, make_product):
    product = make_product(price=100.0)

    res = client.put(
        f"/api/products/{product.id}", json={"sale_price": 150.0}, headers=admin_headers
    )

    assert res.status_code == 422
    assert "sale_price" in res.json()["errors"]


def test_update_ignores_nulls_for_required_fields(client, session, admin_headers, make_product):
    product = make_product(price=100.0, stock=3)

    res = client.put(
        f"/api/products/{product.id}",
        json={"stock_quantity": None, "is_active": None, "attributes": None, "name": None},
        headers=admin_headers,
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["stock_quantity"] == 3
    assert data["stock_status"] == "in_stock"
    assert data["is_active"] is True
    assert data["attributes"] == {}
    assert data["name"] == "Product"


def test_null_price_does_not_bypass_sale_price_check(client, session, admin_headers, make_product):
    product = make_product(price=100.0)

    res = client.put(
        f"/api/products/{product.id}",
        json={"price": None, "sale_price": 999.0},
        headers=admin_headers,
    )

    assert res.status_code == 422
    session.refresh(product)
    assert product.sale_price is None


def test_update_can_clear_nullable_fields(client, admin_headers, make_product):
    product = make_product(sale_price=80.0, weight=1.5)

    res = client.put(
        f"/api/products/{product.id}",
        json={"sale_price": None, "weight": None},
        headers=admin_headers,
    )

    data = res.json()["data"]
    assert data["sale_price"] is None
    assert data["weight"] is None
    assert data["current_price"] == 100.0


def test_update_syncs_stock_status(client, admin_headers, make_product):
    product = make_product(stock=3)

    res = client.put(
        f"/api/products/{product.id}", json={"stock_quantity": 0}, headers=admin_headers
    )

    assert res.json()["data"]["stock_status"] == "out_of_stock"


def test_unknown_category_is_validation_error(client, admin_headers):
    res = client.post(
        "/api/products",
        json=product_body(category_id=str(uuid.uuid4())),
        headers=admin_headers,
    )
    assert res.status_code == 422
    assert "category_id" in res.json()["errors"]


def test_customers_cannot_create_products(client, user_headers):
    res = client.post("/api/products", json=product_body(), headers=user_headers)
    assert res.status_code == 403


def test_discount_percentage(client, make_product):
    product = make_product(price=200.0, sale_price=150.0)

    data = client.get(f"/api/products/{product.slug}").json()["data"]

    assert data["current_price"] == 150.0
    assert data["discount_percentage"] == 25


def test_listing_only_shows_active_products(client, make_product):
    make_product(name="Visible")
    make_product(name="Hidden", is_active=False)

    page = client.get("/api/products").json()["data"]

    assert page["total"] == 1
    assert page["items"][0]["name"] == "Visible"


def test_listing_filters(client, make_product, make_category):
    shirts = make_category("Shirts")
    make_product(name="Cheap Shirt", price=10.0, category_id=shirts.id)
    make_product(name="Fancy Shirt", price=90.0, category_id=shirts.id, is_featured=True)
    make_product(name="Mug", price=15.0, stock=0)

    def names(query):
        page = client.get(f"/api/products?{query}").json()["data"]
        return sorted(p["name"] for p in page["items"])

    assert names("category_slug=shirts") == ["Cheap Shirt", "Fancy Shirt"]
    assert names(f"category_id={shirts.id}") == ["Cheap Shirt", "Fancy Shirt"]
    assert names("featured=true") == ["Fancy Shirt"]
    assert names("in_stock=true") == ["Cheap Shirt", "Fancy Shirt"]
    assert names("min_price=12&max_price=50") == ["Mug"]
    assert names("search=fancy") == ["Fancy Shirt"]


def test_listing_sort_and_pagination(client, make_product):
    for price in (30.0, 10.0, 20.0):
        make_product(price=price)

    page = client.get("/api/products?sort_by=price&sort_order=asc&per_page=2").json()["data"]
    assert [p["price"] for p in page["items"]] == [10.0, 20.0]
    assert (page["total"], page["pages"], page["page"]) == (3, 2, 1)

    page = client.get(
        "/api/products?sort_by=price&sort_order=asc&per_page=2&page=2"
    ).json()["data"]
    assert [p["price"] for p in page["items"]] == [30.0]


def test_invalid_sort_field_is_rejected(client):
    res = client.get("/api/products?sort_by=stock_quantity")
    assert res.status_code == 422
    assert "sort_by" in res.json()["errors"]


def test_get_by_slug_counts_views(client, session, make_product):
    product = make_product()

    client.get(f"/api/products/{product.slug}")
    data = client.get(f"/api/products/{product.slug}").json()["data"]

    assert data["views"] == 2


def test_inactive_product_page_is_404(client, make_product):
    product = make_product(is_active=False)
    assert client.get(f"/api/products/{product.slug}").status_code == 404


def test_featured_and_new_arrivals(client, make_product):
    make_product(name="Plain")
    make_product(name="Star", is_featured=True)

    featured = client.get("/api/products/featured").json()["data"]
    arrivals = client.get("/api/products/new-arrivals?limit=1").json()["data"]

    assert [p["name"] for p in featured] == ["Star"]
    assert len(arrivals) == 1


def test_related_products(client, make_product, make_category):
    shirts = make_category("Shirts")
    main = make_product(name="Main", category_id=shirts.id)
    make_product(name="Sibling", category_id=shirts.id)
    make_product(name="Stranger")

    data = client.get(f"/api/products/{main.slug}/related").json()["data"]

    assert data["category"]["slug"] == "shirts"
    assert [p["name"] for p in data["items"]] == ["Sibling"]


def test_products_by_category_with_price_range(client, make_product, make_category):
    shirts = make_category("Shirts")
    make_product(price=10.0, category_id=shirts.id)
    make_product(price=40.0, category_id=shirts.id)

    data = client.get("/api/products/category/shirts").json()["data"]

    assert data["category"]["name"] == "Shirts"
    assert data["products"]["total"] == 2
    assert data["price_range"] == {"min": 10.0, "max": 40.0}


def test_unknown_category_listing_is_404(client):
    assert client.get("/api/products/category/nope").status_code == 404


def test_featured_image_upload_replaces_previous(client, admin_headers, make_product, storage):
    product = make_product()
    url = f"/api/products/{product.id}/featured-image"

    first = client.post(
        url, files={"file": ("a.png", b"\x89PNG", "image/png")}, headers=admin_headers
    ).json()["data"]["featured_image_url"]
    second = client.post(
        url, files={"file": ("b.webp", b"RIFF", "image/webp")}, headers=admin_headers
    ).json()["data"]["featured_image_url"]

    assert first.endswith("featured.png")
    assert second.endswith("featured.webp")
    assert storage.deleted == [first]


def test_oversized_image_is_rejected(client, admin_headers, make_product):
    product = make_product()

    res = client.post(
        f"/api/products/{product.id}/featured-image",
        files={"file": ("big.png", b"0" * (5 * 1024 * 1024 + 1), "image/png")},
        headers=admin_headers,
    )

    assert res.status_code == 413


def test_delete_product_keeps_order_history(client, user_headers, admin_headers, make_product):
    product = make_product(name="Lamp")
    body = {
        "items": [{"product_id": str(product.id), "quantity": 1}],
        "shipping_address": "1 Road",
        "shipping_city": "Pune",
        "shipping_state": "MH",
        "shipping_zip": "411001",
        "phone": "123",
        "payment_method": "cod",
    }
    order = client.post("/api/orders", json=body, headers=user_headers).json()["data"]

    assert client.delete(f"/api/products/{product.id}", headers=admin_headers).status_code == 200

    fetched = client.get(f"/api/orders/{order['id']}", headers=user_headers).json()["data"]
    assert fetched["items"][0]["product_name"] == "Lamp"
    assert fetched["items"][0]["product"] is None
