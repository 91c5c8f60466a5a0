import uuid

import pytest

from storefront.services import complaint_service

SHIPPING = {
    "shipping_address": "12 Market Road",
    "shipping_city": "Pune",
    "shipping_state": "MH",
    "shipping_zip": "411001",
    "phone": "+91 98000 00000",
    "payment_method": "cod",
}


@pytest.fixture
def order(client, user_headers, make_product):
    product = make_product(name="Poster", stock=5)
    body = dict(SHIPPING, items=[{"product_id": str(product.id), "quantity": 1}])
    data = client.post("/api/orders", json=body, headers=user_headers).json()["data"]
    return data, product


def ticket_form(order_id, product_id, **extra):
    form = {
        "order_id": str(order_id),
        "product_id": str(product_id),
        "issue_type": "damaged",
        "description": "The poster arrived torn at the corner.",
    }
    form.update(extra)
    return form


def png(n: int):
    return ("images", (f"img{n}.png", b"\x89PNG" + bytes([n]), "image/png"))


def test_raise_ticket(client, user_headers, order, storage):
    data, product = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        files=[png(1), png(2)],
        headers=user_headers,
    )

    assert res.status_code == 201
    complaint = res.json()["data"]
    assert complaint["status"] == "pending"
    assert complaint["product_name"] == "Poster"
    assert len(complaint["images"]) == 2
    assert all(path.startswith("complaints/") for path, _, _ in storage.uploads)


def test_raise_ticket_without_images(client, user_headers, order):
    data, product = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        headers=user_headers,
    )

    assert res.status_code == 201
    assert res.json()["data"]["images"] == []


def test_more_than_five_images_is_rejected(client, user_headers, order, storage):
    data, product = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        files=[png(i) for i in range(6)],
        headers=user_headers,
    )

    assert res.status_code == 422
    assert "images" in res.json()["errors"]
    assert storage.uploads == []


def test_non_image_is_rejected(client, user_headers, order):
    data, product = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=user_headers,
    )

    assert res.status_code == 422
    assert "images.0" in res.json()["errors"]


def test_short_description_is_rejected(client, user_headers, order):
    data, product = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id, description="bad"),
        headers=user_headers,
    )

    assert res.status_code == 422
    assert "description" in res.json()["errors"]


def test_someone_elses_order_is_404(client, order, make_user, headers_for):
    data, product = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        headers=headers_for(make_user()),
    )

    assert res.status_code == 404


def test_product_not_in_order_is_404(client, user_headers, order):
    data, _ = order

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], uuid.uuid4()),
        headers=user_headers,
    )

    assert res.status_code == 404


def test_failed_upload_is_skipped(client, user_headers, order, storage):
    data, product = order
    storage.fail_on = {2}

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        files=[png(1), png(2), png(3)],
        headers=user_headers,
    )

    assert res.status_code == 201
    assert len(res.json()["data"]["images"]) == 2


def test_admin_is_notified(client, user_headers, order, monkeypatch):
    data, product = order
    sent = []
    monkeypatch.setattr(
        complaint_service,
        "get_settings",
        lambda: type("S", (), {"ADMIN_EMAIL": "support@example.com"})(),
    )
    monkeypatch.setattr(complaint_service.email_client, "is_configured", lambda: True)
    monkeypatch.setattr(
        complaint_service.email_client,
        "send_email",
        lambda to, subject, body: sent.append((to, subject)),
    )

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        headers=user_headers,
    )

    assert res.status_code == 201
    assert sent == [("support@example.com", f"New complaint for order {data['order_number']}")]


def test_notification_failure_does_not_fail_request(client, user_headers, order, monkeypatch):
    data, product = order

    def broken(*args, **kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(
        complaint_service,
        "get_settings",
        lambda: type("S", (), {"ADMIN_EMAIL": "support@example.com"})(),
    )
    monkeypatch.setattr(complaint_service.email_client, "is_configured", lambda: True)
    monkeypatch.setattr(complaint_service.email_client, "send_email", broken)

    res = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        headers=user_headers,
    )

    assert res.status_code == 201


def test_admin_lists_and_resolves(client, user_headers, admin_headers, order):
    data, product = order
    complaint = client.post(
        "/api/orders/raise-ticket",
        data=ticket_form(data["id"], product.id),
        headers=user_headers,
    ).json()["data"]

    pending = client.get("/api/orders/complaints?status=pending", headers=admin_headers)
    assert [c["id"] for c in pending.json()["data"]] == [complaint["id"]]

    res = client.patch(
        f"/api/orders/complaints/{complaint['id']}",
        json={"status": "resolved", "admin_response": "Replacement shipped."},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["data"]["resolved_at"] is not None
    assert res.json()["data"]["admin_response"] == "Replacement shipped."

    res = client.patch(
        f"/api/orders/complaints/{complaint['id']}",
        json={"status": "in_review"},
        headers=admin_headers,
    )
    assert res.json()["data"]["resolved_at"] is None


def test_customers_cannot_list_complaints(client, user_headers):
    assert client.get("/api/orders/complaints", headers=user_headers).status_code == 403
