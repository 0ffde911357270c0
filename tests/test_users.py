from conftest import PASSWORD, login


def test_admin_lists_users(admin_client, customer):
    customer_client, user = customer
    emails = [u["email"] for u in admin_client.get("/api/users").get_json()]
    assert user["email"] in emails
    assert customer_client.get("/api/users").status_code == 403


def test_add_balance(admin_client, customer):
    customer_client, user = customer
    response = admin_client.post(f"/api/users/{user['id']}/add-balance", json={"amount": 150.5, "description": "Refund"})
    assert response.get_json()["balance"] == "150.50"
    response = admin_client.post(f"/api/users/{user['id']}/add-balance", json={"amount": 49.5})
    assert response.get_json()["balance"] == "200.00"

    notifications = customer_client.get("/api/user/notifications").get_json()
    assert [n["message"] for n in notifications] == [
        "Your balance was topped up by 49.50",
        "Your balance was topped up by 150.50: Refund",
    ]

    assert admin_client.post(f"/api/users/{user['id']}/add-balance", json={"amount": -5}).status_code == 400
    assert admin_client.post("/api/users/999/add-balance", json={"amount": 5}).status_code == 404
    assert customer_client.post(f"/api/users/{user['id']}/add-balance", json={"amount": 5}).status_code == 403


def test_update_profile(customer, make_customer):
    customer_client, user = customer
    response = customer_client.put(f"/api/users/{user['id']}", json={"fullName": "Ivy Evergreen", "phone": "+79009998877"})
    assert response.status_code == 200
    updated = response.get_json()
    assert updated["fullName"] == "Ivy Evergreen"
    assert updated["phone"] == "+79009998877"
    assert updated["email"] == user["email"]

    _, other = make_customer()
    response = customer_client.put(f"/api/users/{user['id']}", json={"email": other["email"]})
    assert response.status_code == 409
    assert customer_client.put(f"/api/users/{other['id']}", json={"fullName": "Hacker"}).status_code == 403


def test_only_admin_changes_roles(admin_client, customer, app):
    customer_client, user = customer
    response = customer_client.put(f"/api/users/{user['id']}", json={"isAdmin": True})
    assert response.status_code == 403

    response = admin_client.put(f"/api/users/{user['id']}", json={"isAdmin": True})
    assert response.get_json()["isAdmin"] is True
    assert customer_client.get("/api/users").status_code == 200

    admin_client.put(f"/api/users/{user['id']}", json={"isAdmin": False})
    assert customer_client.get("/api/users").status_code == 403


def test_change_password(app, customer):
    customer_client, user = customer
    url = f"/api/users/{user['id']}/password"

    response = customer_client.put(url, json={"oldPassword": "Wrong12345", "newPassword": "Cactus2024"})
    assert response.status_code == 400
    response = customer_client.put(url, json={"oldPassword": PASSWORD, "newPassword": "weak"})
    assert response.status_code == 400
    assert "newPassword" in response.get_json()["errors"]

    response = customer_client.put(url, json={"oldPassword": PASSWORD, "newPassword": "Cactus2024"})
    assert response.status_code == 200
    login(app.test_client(), user["email"], "Cactus2024")


def test_notifications_mark_read(customer, make_product):
    customer_client, user = customer
    product = make_product()
    response = customer_client.post("/api/orders", json={
        "items": [{"id": product["id"], "quantity": 1}],
        "deliveryAmount": 0,
        "fullName": "Ivy Green",
        "address": "12 Fern Street, Moscow",
        "phone": "+79001234567",
        "deliveryType": "pickup",
        "paymentMethod": "yoomoney",
    })
    assert response.status_code == 201, response.get_json()
    notification = customer_client.get("/api/user/notifications").get_json()[0]
    assert notification["isRead"] is False

    response = customer_client.put(f"/api/user/notifications/{notification['id']}/read")
    assert response.get_json()["isRead"] is True
    assert customer_client.put("/api/user/notifications/999/read").status_code == 404
