"""Pytest configuration for storefront tests."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.auth import create_access_token, hash_password
from storefront.config import settings
from storefront.database import Base, get_db
from storefront.main import app
from storefront.models import Category, Product, ProductVariation, User


# ---------------------------------------------------------------------------
# In-memory SQLite shared by every connection (StaticPool), so the app's
# sessions and the test's own session see the same data.
# ---------------------------------------------------------------------------

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    """Uploads go to a per-test temp directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "uploads_dir", str(path))
    return path


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, email, is_admin):
    user = User(
        email=email,
        password=hash_password("secret123"),
        first_name="Test",
        last_name="User",
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@example.com", True)


@pytest.fixture
def customer_user(db):
    return _make_user(db, "shopper@example.com", False)


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def customer_headers(customer_user):
    return {"Authorization": f"Bearer {create_access_token(customer_user.id)}"}


@pytest.fixture
def make_product(db):
    """Factory for persisted products; variations given as (color, size, price, sale, images)."""
    counter = {"n": 0}

    def _make(name=None, price="100.00", is_on_sale=False, sale_price=None,
              images=None, variations=(), category=Category.ABSTRACT, is_active=True, **extra):
        counter["n"] += 1
        name = name or f"Panel {counter['n']}"
        product = Product(
            name=name,
            slug=extra.pop("slug", f"panel-{counter['n']}"),
            description=extra.pop("description", f"{name} description"),
            price=Decimal(price),
            images=images if images is not None else [f"/uploads/products/{counter['n']}.jpg"],
            features=[],
            specifications={"version": 1, "material": "steel"},
            category=category,
            is_active=is_active,
            is_on_sale=is_on_sale,
            sale_price=Decimal(sale_price) if sale_price is not None else None,
            **extra,
        )
        for color, size, v_price, v_sale, v_images in variations:
            product.variations.append(ProductVariation(
                color=color,
                size=size,
                price=Decimal(v_price),
                sale_price=Decimal(v_sale) if v_sale is not None else None,
                images=list(v_images),
                is_active=True,
            ))
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make
