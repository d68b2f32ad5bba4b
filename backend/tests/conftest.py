"""Shared test fixtures for all test modules."""

import contextlib
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coupon_admin.core import database as db_module
from coupon_admin.core.auth import SHOP_HEADER, get_discount_gateway
from coupon_admin.core.database import Base, get_db
from coupon_admin.main import app
from coupon_admin.models.coupon import Coupon
from coupon_admin.models.shared import utc_now
from coupon_admin.services.shopify_discount import (
    DiscountDeleteResult,
    DiscountMutationResult,
    ShopifyDiscountGateway,
)

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

DEFAULT_SHOP = "test-shop.myshopify.com"
OTHER_SHOP = "other-shop.myshopify.com"

FUNCTION_ID = "gid://shopify/ShopifyFunction/1"
DISCOUNT_ID = "gid://shopify/DiscountCodeNode/1"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.commit()

    app.dependency_overrides.clear()
    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def shop():
    """Return the shop domain used by most tests."""
    return DEFAULT_SHOP


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def gateway():
    """A Shopify discount gateway double whose calls all succeed."""
    mock = MagicMock(spec=ShopifyDiscountGateway)
    mock.get_function_id.return_value = FUNCTION_ID
    mock.create_discount.return_value = DiscountMutationResult(id=DISCOUNT_ID)
    mock.update_discount.return_value = DiscountMutationResult(id=DISCOUNT_ID)
    mock.delete_discount.return_value = DiscountDeleteResult(deleted_id=DISCOUNT_ID)
    mock.activate_discount.return_value = []
    mock.deactivate_discount.return_value = []
    return mock


@pytest.fixture
def client(gateway):
    """Test client authenticated as DEFAULT_SHOP, with the gateway double installed."""
    app.dependency_overrides[get_discount_gateway] = lambda: gateway
    return TestClient(app, headers={SHOP_HEADER: DEFAULT_SHOP})


@pytest.fixture
def make_coupon(db_session):
    """Factory inserting a coupon directly, bypassing validation."""

    def _make_coupon(**overrides):
        now = utc_now()
        fields = {
            "shop": DEFAULT_SHOP,
            "title": "Test Coupon",
            "code": "TEST10",
            "discount_type": "percentage",
            "discount_value": Decimal("10"),
            "minimum_purchase": None,
            "usage_limit": None,
            "usage_count": 0,
            "starts_at": now - timedelta(days=1),
            "ends_at": None,
            "is_active": True,
            "shopify_discount_id": None,
        }
        fields.update(overrides)
        coupon = Coupon(**fields)
        db_session.add(coupon)
        db_session.commit()
        db_session.refresh(coupon)
        return coupon

    return _make_coupon
