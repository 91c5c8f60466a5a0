def category_body(**extra):
    body = {"name": "Wall Art", "path": "/wall-art"}
    body.update(extra)
    return body


def test_create_category_derives_slug(client, admin_headers):
    res = client.post("/api/categories", json=category_body(), headers=admin_headers)

    assert res.status_code == 201
    assert res.json()["data"]["slug"] == "wall-art"


def test_duplicate_category_names_get_unique_slugs(client, admin_headers):
    client.post("/api/categories", json=category_body(), headers=admin_headers)
    res = client.post("/api/categories", json=category_body(), headers=admin_headers)

    assert res.json()["data"]["slug"] == "wall-art-2"


def test_list_active_categories_in_sort_order(client, make_category):
    make_category("B", sort_order=2)
    make_category("A", sort_order=1)
    make_category("Hidden", is_active=False)

    names = [c["name"] for c in client.get("/api/categories").json()["data"]]

    assert names == ["A", "B"]


def test_featured_categories(client, make_category):
    make_category("Plain")
    make_category("Star", is_featured=True)

    names = [c["name"] for c in client.get("/api/categories/featured").json()["data"]]

    assert names == ["Star"]


def test_category_page_lists_its_products(client, make_category, make_product):
    category = make_category("Mugs")
    make_product(name="Blue Mug", category_id=category.id)
    make_product(name="Shirt")

    data = client.get("/api/categories/mugs").json()["data"]

    assert data["category"]["slug"] == "mugs"
    assert [p["name"] for p in data["products"]["items"]] == ["Blue Mug"]


def test_inactive_category_page_is_404(client, make_category):
    make_category("Old", is_active=False)
    assert client.get("/api/categories/old").status_code == 404


def test_update_category(client, admin_headers, make_category):
    category = make_category("Mugs")

    res = client.put(
        f"/api/categories/{category.id}",
        json=category_body(name="Cups", path="/cups"),
        headers=admin_headers,
    )

    assert res.status_code == 200
    assert res.json()["data"]["slug"] == "cups"


def test_delete_category_uncategorizes_products(
    client, session, admin_headers, make_category, make_product
):
    category = make_category("Mugs")
    product = make_product(category_id=category.id)

    res = client.delete(f"/api/categories/{category.id}", headers=admin_headers)

    assert res.status_code == 200
    session.refresh(product)
    assert product.category_id is None


def test_blank_name_is_validation_error(client, admin_headers):
    res = client.post("/api/categories", json=category_body(name="  "), headers=admin_headers)

    assert res.status_code == 422
    assert "name" in res.json()["errors"]


def test_category_write_requires_admin(client, user_headers):
    res = client.post("/api/categories", json=category_body(), headers=user_headers)
    assert res.status_code == 403
