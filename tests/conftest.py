import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_api.config.database import Base, get_db
from inventory_api.core.auth.service import AuthService
from inventory_api.main import app
from inventory_api.shared.database.models import Category, Product, User, UserRole

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """TestClient que comparte la sesión del test; los commits de la API expiran sus instancias"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="admin@example.com", password="admin123", role=UserRole.ADMIN, is_active=True):
        user = User(
            name=email.split("@")[0],
            email=email,
            password_hash=AuthService.get_password_hash(password),
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def headers_for():
    def _headers(user):
        token = AuthService.create_user_token(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_user(make_user):
    return make_user()


@pytest.fixture
def auth_headers(admin_user, headers_for):
    return headers_for(admin_user)


@pytest.fixture
def category(db):
    category = Category(name="Rings", description="Various types of rings")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def make_product(db):
    def _make(code, quantity=10, sale_price="10.00", unit_price="5.00", min_stock=0, is_active=True, category=None):
        product = Product(
            code=code,
            title=f"Producto {code}",
            quantity=quantity,
            unit_price=Decimal(unit_price),
            sale_price=Decimal(sale_price),
            min_stock=min_stock,
            is_active=is_active,
            category_id=category.id if category else None,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make
