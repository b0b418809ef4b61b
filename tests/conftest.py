import os

# Must be set before the application modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from gogreen_admin.auth import create_session_token
from gogreen_admin.database import Base, build_engine, get_db
from gogreen_admin.main import app
from gogreen_admin.models import Category, Product, Subcategory, User, UserRole

# Create test database
engine = build_engine("sqlite://")
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

def make_product(subcategory: Subcategory, name: str, **fields) -> Product:
    """Helper to build a product with a slug derived from its name"""
    slug = fields.pop("slug", name.lower().replace(" ", "-").replace("%", "pct"))
    return Product(subcategory_id=subcategory.id, name=name, slug=slug, **fields)

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db):
    # Override the get_db dependency
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

@pytest.fixture(scope="function")
def admin_user(db):
    user = User(email="admin@gogreen.test", password="x", role=UserRole.ADMIN)
    db.add(user)
    db.commit()
    return user

@pytest.fixture(scope="function")
def editor_user(db):
    user = User(email="editor@gogreen.test", password="x", role=UserRole.EDITOR)
    db.add(user)
    db.commit()
    return user

@pytest.fixture(scope="function")
def admin_headers(admin_user):
    token = create_session_token(admin_user.id, admin_user.email, UserRole.ADMIN)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture(scope="function")
def editor_headers(editor_user):
    token = create_session_token(editor_user.id, editor_user.email, UserRole.EDITOR)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture(scope="function")
def test_subcategory(db):
    category = Category(name="Solar", slug="solar")
    db.add(category)
    db.flush()
    subcategory = Subcategory(category_id=category.id, name="Panels", slug="panels")
    db.add(subcategory)
    db.commit()
    return subcategory

@pytest.fixture(scope="function")
def test_products(db, test_subcategory):
    products = [
        make_product(
            test_subcategory,
            "Solar Panel 400W",
            description="Monocrystalline module for rooftop arrays",
            short_description="High efficiency panel",
            display_order="1",
            is_featured=True,
        ),
        make_product(
            test_subcategory,
            "Hybrid Inverter",
            description="Works with any solar panel and battery bank",
            display_order="2",
        ),
        make_product(
            test_subcategory,
            "Wind Turbine",
            description="Small vertical axis generator",
            display_order="3",
        ),
        make_product(
            test_subcategory,
            "Solar Panel Legacy",
            description="Discontinued polycrystalline module",
            display_order="4",
            is_active=False,
        ),
    ]
    db.add_all(products)
    db.commit()
    return products

@pytest.fixture(scope="function")
def product_factory(db, test_subcategory):
    """Add products to the test subcategory and return them"""
    def factory(*names_, **fields):
        products = [make_product(test_subcategory, name, **fields) for name in names_]
        db.add_all(products)
        db.commit()
        return products
    return factory
