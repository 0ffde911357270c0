from conftest import PASSWORD, login


def test_guest_cart_lives_in_session(client, make_product):
    product = make_product(price=500, quantity=5)

    response = client.post("/api/cart", json={"productId": product["id"], "quantity": 2})
    assert response.status_code == 201
    response = client.post("/api/cart", json={"productId": product["id"]})
    cart = response.get_json()
    assert [(line["productId"], line["quantity"]) for line in cart["items"]] == [(product["id"], 3)]
    assert cart["itemsTotal"] == 1500

    response = client.put(f"/api/cart/{product['id']}", json={"quantity": 1})
    assert response.get_json()["itemsTotal"] == 500

    response = client.delete(f"/api/cart/{product['id']}")
    assert response.get_json() == {"items": [], "itemsTotal": 0}


def test_cart_rejects_more_than_stock(client, make_product):
    product = make_product(quantity=2)
    response = client.post("/api/cart", json={"productId": product["id"], "quantity": 3})
    assert response.status_code == 400
    assert "available: 2" in response.get_json()["message"]
    assert client.post("/api/cart", json={"productId": 999}).status_code == 404


def test_guest_cart_is_merged_on_login(app, make_customer, make_product):
    product = make_product(quantity=5)
    customer_client, user = make_customer()
    customer_client.post("/api/cart", json={"productId": product["id"], "quantity": 1})
    customer_client.post("/api/auth/logout")

    customer_client.post("/api/cart", json={"productId": product["id"], "quantity": 2})
    login(customer_client, user["email"], PASSWORD)

    cart = customer_client.get("/api/cart").get_json()
    assert [(line["productId"], line["quantity"]) for line in cart["items"]] == [(product["id"], 3)]

    other = app.test_client()
    login(other, user["email"], PASSWORD)
    assert other.get("/api/cart").get_json()["itemsTotal"] == 1500


def test_clear_cart(customer, make_product):
    customer_client, _ = customer
    product = make_product()
    customer_client.post("/api/cart", json={"productId": product["id"], "quantity": 1})
    assert customer_client.delete("/api/cart").get_json()["items"] == []
    assert customer_client.get("/api/cart").get_json()["items"] == []
