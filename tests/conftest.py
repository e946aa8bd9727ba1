import os
import tempfile
from datetime import time as dtime
from decimal import Decimal

_DB_DIR = tempfile.mkdtemp(prefix="bakery-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient

from bakery.api.deps import get_gateway, get_rate_limiter
from bakery.domain.models import Base, Inventory, MenuItem, PickupWindow, Profile
from bakery.infrastructure.db import SessionLocal, engine
from bakery.main import app
from support import PICKUP_DATE, FakeGateway


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    get_rate_limiter.cache_clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_gateway] = lambda: fake
    return fake


@pytest.fixture
def client(gateway):
    return TestClient(app)


@pytest.fixture
def customer(db):
    user = Profile(email="ana@example.com", first_name="Ana")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db):
    user = Profile(email="owner@example.com", is_admin=True)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def catalog(db):
    """One pickup window and two menu items scheduled on PICKUP_DATE."""
    window = PickupWindow(label="Morning (9am - 12pm)", start_time=dtime(9, 0), end_time=dtime(12, 0))
    brigadeiro = MenuItem(slug="brigadeiro", name="Brigadeiro", base_price=Decimal("4.50"))
    cake = MenuItem(slug="carrot-cake", name="Carrot Cake", base_price=Decimal("32.00"))
    db.add_all([window, brigadeiro, cake])
    db.flush()
    db.add_all([
        Inventory(menu_item_id=brigadeiro.id, pickup_date=PICKUP_DATE, daily_cap=10, reserved_quantity=0),
        Inventory(menu_item_id=cake.id, pickup_date=PICKUP_DATE, daily_cap=2, reserved_quantity=0),
    ])
    db.commit()
    return {"window": window, "brigadeiro": brigadeiro, "cake": cake}
