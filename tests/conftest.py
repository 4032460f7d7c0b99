"""
Fixtures comunes: base de datos SQLite en memoria, cliente HTTP y usuarios de prueba.
Ejecutar con: pytest -v
"""
import os
import sys
import uuid
from decimal import Decimal

# La app se importa como en producción (app/ en el path) pero contra SQLite
os.environ.setdefault("DATABASE_URL", "sqlite://")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'app'))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.config import settings
from core.database import Base, get_db
from core.identity import Identity
from core.security import create_access_token, hash_password
from models import Cart, Category, Product, User


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Sesión sobre una base de datos limpia en cada test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """Cliente HTTP que usa la misma base de datos de prueba"""
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ==================== FACTORIES ====================

@pytest.fixture
def make_user(db):
    def _make_user(role=settings.DEFAULT_ROLE, email=None):
        user = User(
            id=uuid.uuid4(),
            email=email or f"{uuid.uuid4().hex[:8]}@test.com",
            hashed_password=hash_password("Secret123"),
            full_name="Usuario Test",
            role=role,
            is_active=True
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_product(db):
    def _make_product(name="Producto", price="10.00", stock=10, category_id=None):
        product = Product(
            name=name,
            price=Decimal(price),
            stock=stock,
            category_id=category_id,
            review_ids=[]
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make_product


@pytest.fixture
def make_category(db):
    def _make_category(name="Categoría"):
        category = Category(name=name)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make_category


@pytest.fixture
def customer(make_user):
    return make_user(email="cliente@test.com")


@pytest.fixture
def other_customer(make_user):
    return make_user(email="otro@test.com")


@pytest.fixture
def admin(make_user):
    return make_user(role=settings.ADMIN_ROLE, email="admin@test.com")


@pytest.fixture
def customer_identity(customer):
    return Identity.from_user(customer)


@pytest.fixture
def admin_identity(admin):
    return Identity.from_user(admin)


@pytest.fixture
def empty_cart(db, customer):
    cart = Cart(user_id=customer.id)
    db.add(cart)
    db.commit()
    db.refresh(cart)
    return cart


@pytest.fixture
def auth_headers():
    """Headers con Bearer token para un usuario"""
    def _auth_headers(user):
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
