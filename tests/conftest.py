"""Pytest configuration: SQLite instead of MySQL, fresh tables per test."""

import os
from datetime import datetime, timezone
from decimal import Decimal

# storefront.config は import 時に DB_URL を読むので、先に差し替える
os.environ["DB_URL"] = "sqlite:///./test_storefront.db"
os.environ["TAX_RATE"] = "10"

import pytest
from fastapi.testclient import TestClient

from storefront.database import Base, SessionLocal, engine
from storefront.main import app
from storefront.models import Product


SEED_PRODUCTS = [
    dict(
        id="prod-headphones",
        name="Premium Wireless Headphones",
        slug="premium-wireless-headphones",
        description="Noise cancelling headphones with 30-hour battery life",
        price=Decimal("599.99"),
        discount_percentage=Decimal("10"),
        stock=15,
        category="electronics",
        created_at=datetime(2025, 1, 4, tzinfo=timezone.utc),
    ),
    dict(
        id="prod-keyboard",
        name="Mechanical Keyboard RGB",
        slug="mechanical-keyboard-rgb",
        description="Full-size mechanical keyboard",
        price=Decimal("149.99"),
        discount_percentage=None,
        stock=30,
        category="electronics",
        created_at=datetime(2025, 1, 3, tzinfo=timezone.utc),
    ),
    dict(
        id="prod-tshirt",
        name="Organic Cotton T-Shirt",
        slug="organic-cotton-t-shirt",
        description="Soft everyday tee",
        price=Decimal("25.00"),
        discount_percentage=None,
        stock=100,
        category="clothing",
        created_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
    ),
    dict(
        id="prod-mug",
        name="Ceramic Coffee Mug",
        slug="ceramic-coffee-mug",
        description="Hand glazed mug",
        price=Decimal("100.00"),
        discount_percentage=Decimal("10"),
        stock=8,
        category="home",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    ),
]


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    """Create tables and seed products for each test, drop them afterwards."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for row in SEED_PRODUCTS:
            db.add(Product(**row))
        db.commit()
    finally:
        db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def member_headers():
    return {"X-User-Id": "user-1"}
