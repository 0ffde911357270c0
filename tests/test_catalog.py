def test_product_crud(admin_client, client, make_product):
    product = make_product(labels=["pet-safe"], images=["/uploads/a.png", "/uploads/b.png"], originalPrice=650)
    assert product["price"] == 500
    assert product["originalPrice"] == 650
    assert product["isAvailable"] is True
    assert product["isRare"] is False
    assert product["labels"] == ["pet-safe"]

    response = admin_client.put(f"/api/products/{product['id']}", json={"price": 450, "isRare": True})
    assert response.status_code == 200
    updated = response.get_json()
    assert updated["price"] == 450
    assert updated["isRare"] is True
    assert updated["name"] == product["name"]
    assert updated["images"] == product["images"]

    assert client.get(f"/api/products/{product['id']}").get_json()["price"] == 450

    assert admin_client.delete(f"/api/products/{product['id']}").status_code == 204
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_product_validation(admin_client):
    response = admin_client.post("/api/products", json={"name": "", "price": -1, "quantity": "many"})
    assert response.status_code == 400
    assert {"name", "price", "quantity"} <= set(response.get_json()["errors"])


def test_product_admin_only(client, customer):
    customer_client, _ = customer
    assert client.post("/api/products", json={"name": "x"}).status_code == 401
    assert customer_client.post("/api/products", json={"name": "x"}).status_code == 403


def test_filters(client, make_product):
    make_product(name="Calathea", category="Tropical", price=900, isRare=True)
    make_product(name="Snake plant", category="Succulents", price=300, isEasyToCare=True)
    make_product(name="Fiddle fig", category="Trees", price=1500, originalPrice=2000, quantity=0)

    def names(query):
        return sorted(p["name"] for p in client.get(f"/api/products{query}").get_json())

    assert names("") == ["Calathea", "Fiddle fig", "Snake plant"]
    assert names("?category=Tropical") == ["Calathea"]
    assert names("?rare=true") == ["Calathea"]
    assert names("?easy=1") == ["Snake plant"]
    assert names("?discount=true") == ["Fiddle fig"]
    assert names("?available=true") == ["Calathea", "Snake plant"]
    assert names("?minPrice=500&maxPrice=1000") == ["Calathea"]
    assert names("?search=SNAKE") == ["Snake plant"]
    assert client.get("/api/products?minPrice=cheap").status_code == 400


def test_categories(client, make_product):
    make_product(category="Tropical")
    make_product(category="Ferns")
    make_product(category="Tropical")
    make_product(category="")
    assert client.get("/api/categories").get_json() == ["Ferns", "Tropical"]


def test_review_moderation(client, admin_client, customer, make_product):
    customer_client, user = customer
    product = make_product()

    response = customer_client.post("/api/reviews", json={"productId": product["id"], "rating": 5, "text": "Thriving!"})
    assert response.status_code == 201
    review = response.get_json()
    assert review["isApproved"] is False
    assert review["userId"] == user["id"]

    assert client.get(f"/api/reviews?productId={product['id']}").get_json() == []
    assert len(admin_client.get("/api/reviews").get_json()) == 1

    response = admin_client.put(f"/api/reviews/{review['id']}", json={"isApproved": True})
    assert response.get_json()["isApproved"] is True
    assert [r["id"] for r in client.get("/api/reviews").get_json()] == [review["id"]]
    assert [r["id"] for r in customer_client.get("/api/user/reviews").get_json()] == [review["id"]]

    assert admin_client.delete(f"/api/reviews/{review['id']}").status_code == 204
    assert client.get("/api/reviews").get_json() == []


def test_review_requires_login_and_product(client, customer):
    customer_client, _ = customer
    assert client.post("/api/reviews", json={"productId": 1, "rating": 5, "text": "Nice"}).status_code == 401
    response = customer_client.post("/api/reviews", json={"productId": 999, "rating": 5, "text": "Nice"})
    assert response.status_code == 404
    response = customer_client.post("/api/reviews", json={"productId": 999, "rating": 9, "text": "Nice"})
    assert response.status_code == 400
    assert "rating" in response.get_json()["errors"]
