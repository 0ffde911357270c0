from datetime import datetime, timedelta, timezone
import io
import itertools

import pytest
from PIL import Image as PilImage

from plantshop import create_app

ADMIN_EMAIL = "admin@jungleplants.ru"
ADMIN_PASSWORD = "Admin12345"
PASSWORD = "Monstera123"

_emails = itertools.count(1)


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", test_config={
        "DATABASE_URI": f"sqlite:///{tmp_path / 'shop.db'}",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "RECEIPT_FOLDER": str(tmp_path / "receipts"),
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return client


@pytest.fixture
def make_customer(app):
    """Registers a new customer and returns (client, user dict)."""
    def _make(**overrides):
        client = app.test_client()
        body = {
            "email": f"customer{next(_emails)}@plantlovers.com",
            "password": PASSWORD,
            "fullName": "Ivy Green",
            "phone": "+79001234567",
            "address": "12 Fern Street, Moscow",
        }
        body.update(overrides)
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.get_json()
        return client, response.get_json()
    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer()


@pytest.fixture
def make_product(admin_client):
    def _make(**overrides):
        body = {
            "name": "Monstera deliciosa",
            "description": "Large split leaves",
            "price": 500,
            "quantity": 10,
            "category": "Tropical",
        }
        body.update(overrides)
        response = admin_client.post("/api/products", json=body)
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _make


def iso(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.fixture
def make_promo(admin_client):
    def _make(**overrides):
        body = {
            "code": "SPRING10",
            "description": "Spring sale",
            "discountType": "percentage",
            "discountValue": 10,
            "startDate": iso(-1),
            "endDate": iso(30),
            "isActive": True,
        }
        body.update(overrides)
        response = admin_client.post("/api/promo-codes", json=body)
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _make


def order_body(user_id, items, **overrides):
    body = {
        "userId": user_id,
        "items": items,
        "deliveryAmount": 300,
        "fullName": "Ivy Green",
        "address": "12 Fern Street, Moscow",
        "phone": "+79001234567",
        "deliveryType": "courier",
        "paymentMethod": "directTransfer",
    }
    body.update(overrides)
    return body


def png_file(name="leaf.png", size=(40, 30)):
    buffer = io.BytesIO()
    PilImage.new("RGB", size, "green").save(buffer, "PNG")
    buffer.seek(0)
    return buffer, name
