import re
import uuid

import pytest
from fastapi import HTTPException
from sqlmodel import Session, SQLModel, select

from storefront.database import build_engine
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.order import OrderCreate, OrderLineIn
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService

SHIPPING = {
    "shipping_address": "12 Market Road",
    "shipping_city": "Pune",
    "shipping_state": "MH",
    "shipping_zip": "411001",
    "phone": "+91 98000 00000",
    "payment_method": "cod",
}


def order_body(*lines, **extra):
    body = dict(SHIPPING, **extra)
    if lines:
        body["items"] = [{"product_id": str(pid), "quantity": qty} for pid, qty in lines]
    return body


def place(client, headers, *lines, **extra):
    return client.post("/api/orders", json=order_body(*lines, **extra), headers=headers)


def count_orders(session):
    return len(session.exec(select(Order)).all())


def test_place_order_example(client, session, user_headers, make_product):
    product = make_product(price=100.0, stock=5)

    res = place(client, user_headers, (product.id, 3))

    assert res.status_code == 201
    order = res.json()["data"]
    assert order["total"] == 300.0
    assert order["subtotal"] == 300.0
    assert order["tax"] == 0.0
    assert order["shipping"] == 0.0
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["shipping_country"] == "India"
    assert order["items"][0]["product_name"] == product.name
    assert order["items"][0]["product"]["id"] == str(product.id)
    session.refresh(product)
    assert product.stock_quantity == 2

    res = place(client, user_headers, (product.id, 10))

    assert res.status_code == 400
    assert res.json() == {
        "success": False,
        "message": f"Insufficient stock for {product.name}. Available: 2",
    }
    session.refresh(product)
    assert product.stock_quantity == 2
    assert count_orders(session) == 1


def test_identifiers_have_expected_shape(client, user_headers, make_product):
    product = make_product()

    order = place(client, user_headers, (product.id, 1)).json()["data"]

    assert re.fullmatch(r"ORD-\d{8}-[A-Z0-9]{6}", order["order_number"])
    assert re.fullmatch(r"INV-[A-Z0-9]{10}", order["invoice_id"])
    assert re.fullmatch(r"TXN-[A-Z0-9]{10}", order["transaction_id"])


def test_failure_leaves_no_partial_state(client, session, user, user_headers, make_product):
    plenty = make_product(name="Plenty", stock=10)
    scarce = make_product(name="Scarce", stock=1)
    client.post(
        "/api/cart", json={"product_id": str(plenty.id), "quantity": 1}, headers=user_headers
    )

    res = place(client, user_headers, (plenty.id, 4), (scarce.id, 2))

    assert res.status_code == 400
    assert "Insufficient stock for Scarce" in res.json()["message"]
    session.refresh(plenty)
    session.refresh(scarce)
    assert plenty.stock_quantity == 10
    assert scarce.stock_quantity == 1
    assert count_orders(session) == 0
    assert session.exec(select(OrderItem)).all() == []
    assert len(session.exec(select(CartItem).where(CartItem.user_id == user.id)).all()) == 1


def test_order_from_cart_empties_cart(client, session, user, user_headers, make_product):
    a = make_product(price=10.0, stock=5)
    b = make_product(price=2.5, stock=5)
    for pid, qty in ((a.id, 2), (b.id, 4)):
        client.post("/api/cart", json={"product_id": str(pid), "quantity": qty}, headers=user_headers)

    res = place(client, user_headers)

    assert res.status_code == 201
    assert res.json()["data"]["total"] == 30.0
    assert client.get("/api/cart", headers=user_headers).json()["data"]["items"] == []
    session.refresh(a)
    session.refresh(b)
    assert (a.stock_quantity, b.stock_quantity) == (3, 1)


def test_order_from_cart_skips_deleted_products(client, session, user_headers, make_product):
    keep = make_product(name="Keep", price=10.0, stock=5)
    gone = make_product(name="Gone", price=20.0, stock=5)
    for pid in (keep.id, gone.id):
        client.post("/api/cart", json={"product_id": str(pid), "quantity": 1}, headers=user_headers)
    session.delete(gone)
    session.commit()

    res = place(client, user_headers)

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["total"] == 10.0
    assert [i["product_name"] for i in data["items"]] == ["Keep"]


def test_explicit_items_also_clear_cart(client, user_headers, make_product):
    product = make_product()
    client.post("/api/cart", json={"product_id": str(product.id), "quantity": 1}, headers=user_headers)

    assert place(client, user_headers, (product.id, 1)).status_code == 201
    assert client.get("/api/cart/count", headers=user_headers).json()["data"]["count"] == 0


def test_empty_cart_is_rejected(client, user_headers):
    res = place(client, user_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Cart is empty"


def test_empty_item_list_is_validation_error(client, user_headers):
    res = client.post("/api/orders", json=dict(SHIPPING, items=[]), headers=user_headers)
    assert res.status_code == 422
    assert "items" in res.json()["errors"]


def test_missing_shipping_field_is_validation_error(client, user_headers, make_product):
    product = make_product()
    body = order_body((product.id, 1))
    del body["shipping_city"]

    res = client.post("/api/orders", json=body, headers=user_headers)

    assert res.status_code == 422
    assert "shipping_city" in res.json()["errors"]


def test_duplicate_lines_are_combined_for_stock_check(client, session, user_headers, make_product):
    product = make_product(stock=3)

    res = place(client, user_headers, (product.id, 2), (product.id, 2))

    assert res.status_code == 400
    session.refresh(product)
    assert product.stock_quantity == 3


def test_unknown_product_is_404(client, user_headers):
    assert place(client, user_headers, (uuid.uuid4(), 1)).status_code == 404


def test_inactive_product_is_rejected(client, user_headers, make_product):
    product = make_product(is_active=False)
    assert place(client, user_headers, (product.id, 1)).status_code == 400


def test_sale_price_is_charged(client, user_headers, make_product):
    product = make_product(price=100.0, sale_price=75.0)

    order = place(client, user_headers, (product.id, 2)).json()["data"]

    assert order["items"][0]["price"] == 75.0
    assert order["total"] == 150.0


def test_item_prices_are_snapshots(client, session, user_headers, make_product):
    product = make_product(name="Mug", price=100.0)
    order = place(client, user_headers, (product.id, 1)).json()["data"]

    product.price = 250.0
    product.name = "Renamed Mug"
    session.add(product)
    session.commit()

    fetched = client.get(f"/api/orders/{order['id']}", headers=user_headers).json()["data"]
    assert fetched["items"][0]["price"] == 100.0
    assert fetched["items"][0]["product_name"] == "Mug"
    assert fetched["total"] == 100.0


def test_out_of_stock_status_follows_quantity(client, session, user_headers, make_product):
    product = make_product(stock=2)

    place(client, user_headers, (product.id, 2))

    session.refresh(product)
    assert product.stock_quantity == 0
    assert product.stock_status == "out_of_stock"


def test_list_and_get_own_orders(client, user_headers, make_user, make_product, headers_for):
    product = make_product(stock=10)
    first = place(client, user_headers, (product.id, 1)).json()["data"]
    place(client, user_headers, (product.id, 1))
    other = headers_for(make_user())

    mine = client.get("/api/orders", headers=user_headers).json()["data"]
    assert len(mine) == 2
    assert all(o["items"] for o in mine)

    assert client.get("/api/orders", headers=other).json()["data"] == []
    assert client.get(f"/api/orders/{first['id']}", headers=other).status_code == 404
    assert client.get(f"/api/orders/{first['id']}", headers=user_headers).status_code == 200


def test_admin_status_flow_and_cancel_restocks(
    client, session, user_headers, admin_headers, make_product
):
    product = make_product(stock=5)
    order = place(client, user_headers, (product.id, 3)).json()["data"]
    url = f"/api/orders/{order['id']}/status"

    res = client.patch(url, json={"status": "processing"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "processing"

    res = client.patch(url, json={"status": "delivered"}, headers=admin_headers)
    assert res.status_code == 400

    res = client.patch(url, json={"status": "cancelled"}, headers=admin_headers)
    assert res.status_code == 200
    session.refresh(product)
    assert product.stock_quantity == 5

    res = client.patch(url, json={"status": "pending"}, headers=admin_headers)
    assert res.status_code == 400


def test_payment_status_can_be_set(client, user_headers, admin_headers, make_product):
    product = make_product()
    order = place(client, user_headers, (product.id, 1)).json()["data"]

    res = client.patch(
        f"/api/orders/{order['id']}/status",
        json={"payment_status": "paid"},
        headers=admin_headers,
    )

    assert res.status_code == 200
    assert res.json()["data"]["payment_status"] == "paid"
    assert res.json()["data"]["status"] == "pending"


def test_status_update_requires_admin(client, user_headers, make_product):
    product = make_product()
    order = place(client, user_headers, (product.id, 1)).json()["data"]

    res = client.patch(
        f"/api/orders/{order['id']}/status", json={"status": "processing"}, headers=user_headers
    )

    assert res.status_code == 403


def test_admin_lists_all_orders_with_filter(
    client, user_headers, admin_headers, make_user, make_product, headers_for
):
    product = make_product(stock=10)
    a = place(client, user_headers, (product.id, 1)).json()["data"]
    place(client, headers_for(make_user()), (product.id, 1))
    client.patch(
        f"/api/orders/{a['id']}/status", json={"status": "processing"}, headers=admin_headers
    )

    everything = client.get("/api/orders/admin/all", headers=admin_headers).json()["data"]
    processing = client.get(
        "/api/orders/admin/all?status=processing", headers=admin_headers
    ).json()["data"]

    assert len(everything) == 2
    assert [o["id"] for o in processing] == [a["id"]]


def test_admin_cannot_place_orders(client, admin_headers, make_product):
    product = make_product()
    assert place(client, admin_headers, (product.id, 1)).status_code == 403


# ---- Concurrency ----


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def _service() -> OrderService:
    product_repo = ProductRepository()
    return OrderService(
        OrderRepository(),
        CartRepository(),
        product_repo,
        ProductService(product_repo, CategoryRepository()),
    )


def test_last_unit_goes_to_exactly_one_buyer(file_engine):
    with Session(file_engine) as s:
        buyers = [
            User(id=uuid.uuid4(), email=f"buyer{i}@example.com", name=f"Buyer {i}")
            for i in range(2)
        ]
        product = Product(
            name="Last One",
            slug="last-one",
            sku="LAST-1",
            description="Only one left",
            price=40.0,
            stock_quantity=1,
            stock_status="in_stock",
        )
        s.add_all([*buyers, product])
        s.commit()
        buyer_ids = [b.id for b in buyers]
        product_id = product.id

    service = _service()
    payload = OrderCreate(items=[OrderLineIn(product_id=product_id, quantity=1)], **SHIPPING)

    with Session(file_engine) as first, Session(file_engine) as second:
        # Both buyers have seen the last unit in stock
        assert second.get(Product, product_id).stock_quantity == 1

        service.place_order(first, buyer_ids[0], payload)

        # A decrement based on the stale read no longer matches the row
        assert ProductRepository().decrement_stock(second, product_id, 1) is False
        second.rollback()

        with pytest.raises(HTTPException) as exc:
            service.place_order(second, buyer_ids[1], payload)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Insufficient stock for Last One. Available: 0"

    with Session(file_engine) as s:
        assert s.get(Product, product_id).stock_quantity == 0
        orders = s.exec(select(Order)).all()
        assert [o.user_id for o in orders] == [buyer_ids[0]]
