import json

import pytest

from conftest import order_body, png_file
from plantshop.database import db
from plantshop.models import models
from plantshop.processor import orders


def _stock(client, product_id):
    return client.get(f"/api/products/{product_id}").get_json()["quantity"]


def _top_up(admin_client, user_id, amount):
    response = admin_client.post(f"/api/users/{user_id}/add-balance", json={"amount": amount})
    assert response.status_code == 200, response.get_json()
    return response.get_json()


def test_create_order_totals_without_payment(client, customer, make_product):
    customer_client, user = customer
    product = make_product(price=500, quantity=10)

    response = customer_client.post("/api/orders", json=order_body(user["id"], [{"id": product["id"], "quantity": 2}]))
    assert response.status_code == 201, response.get_json()
    order = response.get_json()
    assert order["totalAmount"] == 1300
    assert order["itemsTotal"] == 1000
    assert order["deliveryAmount"] == 300
    assert order["orderStatus"] == "pending"
    assert order["paymentStatus"] == "pending"
    assert order["productQuantitiesReduced"] is False
    assert order["items"] == [{
        "productId": product["id"],
        "name": product["name"],
        "price": 500,
        "quantity": 2,
        "productImage": None,
    }]
    assert _stock(client, product["id"]) == 10


def test_balance_payment_takes_stock_and_money(admin_client, client, customer, make_product):
    customer_client, user = customer
    product = make_product(price=500, quantity=10)
    _top_up(admin_client, user["id"], 2000)

    body = order_body(user["id"], [{"productId": product["id"], "quantity": 2}], paymentMethod="balance")
    order = customer_client.post("/api/orders", json=body).get_json()
    assert order["productQuantitiesReduced"] is True
    assert order["paymentStatus"] == "completed"
    assert order["orderStatus"] == "processing"
    assert _stock(client, product["id"]) == 8
    assert customer_client.get("/api/auth/user").get_json()["balance"] == "700.00"


def test_insufficient_balance_leaves_no_trace(admin_client, client, customer, make_product):
    customer_client, user = customer
    product = make_product(price=500, quantity=10)
    _top_up(admin_client, user["id"], 100)

    body = order_body(user["id"], [{"id": product["id"], "quantity": 2}], paymentMethod="balance")
    response = customer_client.post("/api/orders", json=body)
    assert response.status_code == 402
    assert response.get_json()["message"] == "Insufficient balance"
    assert customer_client.get("/api/orders").get_json() == []
    assert _stock(client, product["id"]) == 10
    assert customer_client.get("/api/auth/user").get_json()["balance"] == "100.00"


def test_payment_proof_at_creation_takes_stock(client, customer, make_product):
    customer_client, user = customer
    product = make_product(quantity=3)
    body = order_body(user["id"], [{"id": product["id"], "quantity": 3}], paymentProofUrl="/uploads/proof.png")
    order = customer_client.post("/api/orders", json=body).get_json()
    assert order["paymentStatus"] == "pending_verification"
    assert order["orderStatus"] == "pending"
    assert order["productQuantitiesReduced"] is True
    assert _stock(client, product["id"]) == 0


def test_duplicate_lines_are_merged_before_stock_check(customer, make_product):
    customer_client, user = customer
    product = make_product(quantity=3)
    items = [{"id": product["id"], "quantity": 2}, {"id": product["id"], "quantity": 2}]
    response = customer_client.post("/api/orders", json=order_body(user["id"], items))
    assert response.status_code == 400
    assert response.get_json()["message"] == f'Not enough "{product["name"]}" in stock (available: 3)'


def test_order_rejects_bad_input(customer, make_product):
    customer_client, user = customer
    product = make_product()
    line = [{"id": product["id"], "quantity": 1}]

    response = customer_client.post("/api/orders", json=order_body(user["id"], []))
    assert response.get_json()["message"] == "Cart is empty or malformed"
    response = customer_client.post("/api/orders", json=order_body(user["id"], [{"id": product["id"], "quantity": 0}]))
    assert response.status_code == 400
    response = customer_client.post("/api/orders", json=order_body(user["id"], [{"id": 999, "quantity": 1}]))
    assert response.get_json()["message"] == "Product with ID 999 not found"
    response = customer_client.post("/api/orders", json=order_body(user["id"], line, deliveryAmount="300"))
    assert response.get_json()["errors"] == {"deliveryAmount": "Must be a non-negative number"}
    missing = order_body(user["id"], line)
    del missing["deliveryAmount"]
    for body in (missing, order_body(user["id"], line, deliveryAmount=None)):
        response = customer_client.post("/api/orders", json=body)
        assert response.status_code == 400
        assert response.get_json()["message"] == "Delivery amount is required"
        assert response.get_json()["errors"] == {"deliveryAmount": "This field is required."}
    assert customer_client.get("/api/orders").get_json() == []
    response = customer_client.post("/api/orders", json=order_body(user["id"], line, paymentMethod="cash"))
    assert response.get_json()["errors"] == {"paymentMethod": "Unknown payment method"}


def test_cannot_order_for_someone_else(customer, make_customer, make_product):
    customer_client, _ = customer
    _, other = make_customer()
    product = make_product()
    response = customer_client.post("/api/orders", json=order_body(other["id"], [{"id": product["id"], "quantity": 1}]))
    assert response.status_code == 403


def test_order_consumes_cart_lines(customer, make_product):
    customer_client, user = customer
    ordered = make_product(name="Pilea")
    kept = make_product(name="Hoya")
    customer_client.post("/api/cart", json={"productId": ordered["id"], "quantity": 1})
    customer_client.post("/api/cart", json={"productId": kept["id"], "quantity": 1})

    customer_client.post("/api/orders", json=order_body(user["id"], [{"id": ordered["id"], "quantity": 1}]))
    cart = customer_client.get("/api/cart").get_json()
    assert [line["productId"] for line in cart["items"]] == [kept["id"]]


def test_order_visibility(admin_client, customer, make_customer, make_product):
    customer_client, user = customer
    other_client, _ = make_customer()
    product = make_product()
    order = customer_client.post("/api/orders", json=order_body(user["id"], [{"id": product["id"], "quantity": 1}])).get_json()

    assert customer_client.get(f"/api/orders/{order['id']}").status_code == 200
    assert other_client.get(f"/api/orders/{order['id']}").status_code == 403
    assert other_client.get("/api/orders").get_json() == []
    assert [o["id"] for o in customer_client.get("/api/user/orders").get_json()] == [order["id"]]
    assert [o["id"] for o in admin_client.get("/api/orders").get_json()] == [order["id"]]
    assert admin_client.get("/api/orders/999").status_code == 404


def _pending_order(customer_client, user, product, quantity=2, **overrides):
    body = order_body(user["id"], [{"id": product["id"], "quantity": quantity}], **overrides)
    response = customer_client.post("/api/orders", json=body)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def test_status_replay_reduces_stock_once(admin_client, client, customer, make_product):
    customer_client, user = customer
    product = make_product(quantity=10)
    order = _pending_order(customer_client, user, product)

    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"})
    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["order"]["productQuantitiesReduced"] is True
    assert _stock(client, product["id"]) == 8

    assert admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"}).status_code == 200
    assert admin_client.put(f"/api/orders/{order['id']}", json={"orderStatus": "processing"}).status_code == 200
    assert admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"}).status_code == 200
    assert _stock(client, product["id"]) == 8

    history = admin_client.get(f"/api/orders/{order['id']}").get_json()["statusHistory"]
    assert [entry["status"] for entry in history] == ["pending", "paid", "processing", "paid"]


def test_illegal_and_unknown_status(admin_client, customer, make_product):
    customer_client, user = customer
    order = _pending_order(customer_client, user, make_product())

    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "delivered"})
    assert response.status_code == 400
    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "shipped"})
    assert response.status_code == 409
    assert response.get_json()["message"] == "Cannot change order status from pending to shipped"

    admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "cancelled"})
    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "pending"})
    assert response.status_code == 409


def test_status_change_requires_admin(customer, make_product):
    customer_client, user = customer
    order = _pending_order(customer_client, user, make_product())
    response = customer_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"})
    assert response.status_code == 403


def test_admin_update_fields_and_notifies(admin_client, customer, make_product):
    customer_client, user = customer
    order = _pending_order(customer_client, user, make_product())
    response = admin_client.put(f"/api/orders/{order['id']}", json={
        "adminComment": "Packed with care",
        "trackingNumber": "RU123456789",
        "estimatedDeliveryDate": "2026-05-01T10:00:00Z",
    })
    updated = response.get_json()["order"]
    assert updated["adminComment"] == "Packed with care"
    assert updated["trackingNumber"] == "RU123456789"
    assert updated["estimatedDeliveryDate"] == "2026-05-01 10:00:00"
    assert updated["orderStatus"] == "pending"

    response = admin_client.put(f"/api/orders/{order['id']}", json={"actualDeliveryDate": "soon"})
    assert response.status_code == 400

    admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"})
    types = [n["type"] for n in customer_client.get("/api/user/notifications").get_json()]
    assert types.count("order_status") == 1
    assert "order_created" in types


def test_delete_restores_stock_and_promo(admin_client, client, customer, make_product, make_promo):
    customer_client, user = customer
    product = make_product(price=500, quantity=10)
    promo = make_promo(code="FERN100", discountType="fixed", discountValue=100, maxUses=1)
    _top_up(admin_client, user["id"], 5000)

    order = _pending_order(customer_client, user, product, paymentMethod="balance", promoCode="fern100")
    assert order["promoCodeDiscount"] == 100
    assert _stock(client, product["id"]) == 8
    assert admin_client.get(f"/api/promo-codes/{promo['id']}").get_json()["currentUses"] == 1

    assert admin_client.delete(f"/api/orders/{order['id']}").status_code == 204
    assert _stock(client, product["id"]) == 10
    assert admin_client.get(f"/api/promo-codes/{promo['id']}").get_json()["currentUses"] == 0
    assert admin_client.get(f"/api/orders/{order['id']}").status_code == 404

    again = _pending_order(customer_client, user, product, promoCode="FERN100")
    assert again["promoCode"] == "FERN100"


def test_delete_unpaid_order_keeps_stock(admin_client, client, customer, make_product):
    customer_client, user = customer
    product = make_product(quantity=10)
    order = _pending_order(customer_client, user, product)
    admin_client.delete(f"/api/orders/{order['id']}")
    assert _stock(client, product["id"]) == 10


def test_payment_proof_upload_and_complete(customer, make_customer, make_product):
    customer_client, user = customer
    order = _pending_order(customer_client, user, make_product())

    response = customer_client.post(f"/api/orders/{order['id']}/complete")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Payment proof is missing"

    other_client, _ = make_customer()
    response = other_client.post(
        f"/api/orders/{order['id']}/payment-proof",
        data={"proof": png_file()},
        content_type="multipart/form-data",
    )
    assert response.status_code == 403

    response = customer_client.post(
        f"/api/orders/{order['id']}/payment-proof",
        data={"proof": png_file()},
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    updated = response.get_json()
    assert updated["paymentProofUrl"].startswith("/uploads/proof-")
    assert updated["paymentStatus"] == "pending_verification"

    response = customer_client.post(f"/api/orders/{order['id']}/complete")
    assert response.status_code == 200
    assert response.get_json()["orderStatus"] == "pending"


def test_receipt_generation(admin_client, customer, make_product, app):
    customer_client, user = customer
    order = _pending_order(customer_client, user, make_product())

    assert customer_client.post(f"/api/orders/{order['id']}/receipt").status_code == 403
    response = admin_client.post(f"/api/orders/{order['id']}/receipt")
    assert response.status_code == 200
    receipt = response.get_json()
    assert receipt["receiptNumber"].startswith("CHK-")
    assert receipt["receiptUrl"] == f"/receipts/{receipt['receiptNumber']}.pdf"

    pdf = admin_client.get(receipt["receiptUrl"])
    assert pdf.status_code == 200
    assert pdf.data.startswith(b"%PDF")
    assert admin_client.get(f"/api/orders/{order['id']}").get_json()["receiptNumber"] == receipt["receiptNumber"]


def test_zero_delivery_amount_is_accepted(customer, make_product):
    customer_client, user = customer
    order = _pending_order(customer_client, user, make_product(price=500), quantity=1, deliveryAmount=0)
    assert order["deliveryAmount"] == 0
    assert order["totalAmount"] == 500


def test_stock_never_goes_below_zero(admin_client, client, customer, make_product):
    customer_client, user = customer
    product = make_product(quantity=10)
    order = _pending_order(customer_client, user, product, quantity=4)

    response = admin_client.put(f"/api/products/{product['id']}", json={"quantity": 1})
    assert response.status_code == 200
    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"})
    assert response.status_code == 200
    assert response.get_json()["order"]["productQuantitiesReduced"] is True
    assert _stock(client, product["id"]) == 0


def test_unusable_stored_lines_are_skipped(app, admin_client, client, customer, make_product):
    customer_client, user = customer
    fern = make_product(name="Boston fern", quantity=10)
    palm = make_product(name="Kentia palm", quantity=10)
    order = _pending_order(customer_client, user, palm, quantity=1)

    stored = [
        {"productId": fern["id"], "name": "Boston fern", "price": 500, "quantity": "x"},
        {"productId": fern["id"], "name": "Boston fern", "price": 500, "quantity": 0},
        {"productId": palm["id"], "name": "Kentia palm", "price": 500, "quantity": 2},
    ]
    with app.app_context():
        db.execute("UPDATE order_table SET items = ? WHERE id = ?", (json.dumps(stored), order["id"]), fetch="none")

    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"orderStatus": "paid"})
    assert response.status_code == 200
    assert _stock(client, fern["id"]) == 10
    assert _stock(client, palm["id"]) == 8


def test_failed_status_update_rolls_back_stock(app, monkeypatch, client, customer, make_product):
    customer_client, user = customer
    product = make_product(quantity=10)
    order = _pending_order(customer_client, user, product, quantity=3)

    def broken_notify(*args, **kwargs):
        raise RuntimeError("notification store unavailable")

    monkeypatch.setattr(models, "notify", broken_notify)
    with app.app_context():
        with pytest.raises(RuntimeError):
            orders.update_order(order["id"], status="paid")
        stored = models.Order.get_one(id=order["id"])

    assert stored.product_quantities_reduced is False
    assert stored.order_status == "pending"
    assert _stock(client, product["id"]) == 10
