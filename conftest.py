import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, init_db, obtain_db_session
from config import settings

engine = create_engine(
    settings.SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[obtain_db_session] = override_get_db

API = settings.API_PREFIX


@pytest.fixture(autouse=True)
def fresh_tables():
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def register(client, email, role="staff", password="password123", full_name="Test User"):
    response = client.post(f"{API}/auth/register", json={
        "full_name": full_name, "email": email, "password": password, "role": role,
    })
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def anon_client():
    return TestClient(app)


@pytest.fixture
def admin_client():
    client = TestClient(app)
    register(client, "admin@inventory.com", role="admin", full_name="Admin User")
    return client


@pytest.fixture
def staff_client():
    client = TestClient(app)
    register(client, "staff@inventory.com", role="staff", full_name="Staff User")
    return client


@pytest.fixture
def supplier(admin_client):
    response = admin_client.post(f"{API}/suppliers", json={
        "supplier_id": "SUP-101", "name": "Tech Distributors",
        "contact": "9876543210", "address": "123 Warehouse St, Mumbai",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def make_product(admin_client, supplier):
    def _make(product_id="P-1001", quantity=50, **extra):
        payload = {
            "product_id": product_id,
            "name": "Wireless Mouse",
            "quantity": quantity,
            "price": 1199.99,
            "supplier": supplier["id"],
            "manufactured_date": "2026-01-01T00:00:00",
            "unit": "pieces",
        }
        payload.update(extra)
        response = admin_client.post(f"{API}/products", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make
