import io

from cryptography.fernet import Fernet
from PIL import Image as PilImage

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, login, png_file
from plantshop import create_app
from plantshop.database import db


def test_default_settings_are_seeded(client):
    settings = client.get("/api/settings").get_json()
    assert settings["site_name"] == "Jungle Plants"
    assert settings["currency"] == "RUB"
    assert settings["contact_email"] == "admin@jungleplants.ru"


def test_update_setting(admin_client, client, customer):
    customer_client, _ = customer
    assert customer_client.put("/api/settings", json={"key": "site_name", "value": "x"}).status_code == 403

    response = admin_client.put("/api/settings", json={"key": "contact_phone", "value": "+7 900 000-00-00"})
    assert response.status_code == 200
    assert client.get("/api/settings").get_json()["contact_phone"] == "+7 900 000-00-00"

    admin_client.put("/api/settings", json={"key": "instagram", "value": "@jungleplants"})
    assert client.get("/api/settings").get_json()["instagram"] == "@jungleplants"

    response = admin_client.put("/api/settings", json={"key": "bad key!", "value": "x"})
    assert response.status_code == 400


def test_payment_details(admin_client, client):
    details = client.get("/api/payment-details").get_json()
    assert details["cardNumber"] == ""

    response = admin_client.put("/api/payment-details", json={
        "cardNumber": "2202 2000 1234 5678",
        "cardHolder": "IVAN PETROV",
        "bankName": "Green Bank",
    })
    assert response.status_code == 200
    details = client.get("/api/payment-details").get_json()
    assert details["cardNumber"] == "2202200012345678"
    assert details["bankDetails"] == "Card number: 2202200012345678\nCard holder: IVAN PETROV\nBank: Green Bank"
    assert details["instructions"]

    response = admin_client.put("/api/payment-details", json={"cardNumber": "12ab"})
    assert response.status_code == 400


def test_card_number_is_encrypted_at_rest(tmp_path):
    app = create_app("testing", test_config={
        "DATABASE_URI": f"sqlite:///{tmp_path / 'secure.db'}",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "RECEIPT_FOLDER": str(tmp_path / "receipts"),
        "ENCRYPTION_KEY": Fernet.generate_key().decode(),
    })
    admin = app.test_client()
    login(admin, ADMIN_EMAIL, ADMIN_PASSWORD)
    admin.put("/api/payment-details", json={"cardNumber": "2202200012345678"})

    row = db.execute("SELECT card_number, card_number_secure FROM payment_details_table", fetch="one")
    assert row["card_number_secure"] == 1
    assert row["card_number"] != "2202200012345678"
    assert admin.get("/api/payment-details").get_json()["cardNumber"] == "2202200012345678"


def test_image_upload_and_serving(admin_client, client):
    response = admin_client.post("/api/upload", data={"image": png_file(size=(2000, 1000))},
                                 content_type="multipart/form-data")
    assert response.status_code == 201
    url = response.get_json()["imageUrl"]
    assert url.startswith("/uploads/product-") and url.endswith(".png")

    served = client.get(url)
    assert served.status_code == 200
    assert PilImage.open(io.BytesIO(served.data)).size == (1000, 500)


def test_upload_rejects_non_images(admin_client, client):
    response = admin_client.post("/api/upload", data={"image": (io.BytesIO(b"not an image"), "leaf.png")},
                                 content_type="multipart/form-data")
    assert response.status_code == 400
    response = admin_client.post("/api/upload", data={"image": (io.BytesIO(b"#!/bin/sh"), "run.sh")},
                                 content_type="multipart/form-data")
    assert response.status_code == 400
    assert client.post("/api/upload", data={"image": png_file()}, content_type="multipart/form-data").status_code == 401


def test_multiple_uploads_and_qr_code(admin_client, client):
    response = admin_client.post("/api/upload-images", data={"images": [png_file("a.png"), png_file("b.png")]},
                                 content_type="multipart/form-data")
    assert response.status_code == 201
    assert len(response.get_json()["imageUrls"]) == 2

    response = admin_client.post("/api/upload-qr-code", data={"qrCode": png_file("qr.png")},
                                 content_type="multipart/form-data")
    url = response.get_json()["qrCodeUrl"]
    assert client.get("/api/payment-details").get_json()["qrCodeUrl"] == url


def test_unknown_routes_answer_json(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert "message" in response.get_json()
