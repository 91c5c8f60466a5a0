import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session, SQLModel

from storefront.database import build_engine, get_session
from storefront.main import app
from storefront.models.category import Category
from storefront.models.product import Product, stock_status_for
from storefront.models.user import User

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]

UPLOAD_MODULES = (
    "storefront.services.cart_service",
    "storefront.services.product_service",
    "storefront.services.promotion_service",
    "storefront.services.complaint_service",
)


def make_token(user: User, minutes: int = 30, **claims) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
        **claims,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(user: User, **claims) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user, **claims)}"}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeStorage:
    """Records uploads and deletions instead of talking to Supabase Storage."""

    def __init__(self):
        self.uploads: list[tuple[str, bytes, str | None]] = []
        self.deleted: list[str] = []
        self.calls = 0
        self.fail_on: set[int] = set()

    def upload(self, path: str, file_bytes: bytes, content_type: str | None = None) -> str:
        self.calls += 1
        if self.calls in self.fail_on:
            raise RuntimeError("storage unavailable")
        self.uploads.append((path, file_bytes, content_type))
        return f"https://example.supabase.co/storage/v1/object/public/assets/{path}"

    def delete(self, url: str) -> None:
        self.deleted.append(url)


@pytest.fixture(autouse=True)
def storage(monkeypatch):
    fake = FakeStorage()
    for module in UPLOAD_MODULES:
        monkeypatch.setattr(f"{module}.upload_to_storage", fake.upload)
    for module in UPLOAD_MODULES[:3]:
        monkeypatch.setattr(f"{module}.delete_public_url", fake.delete)
    return fake


@pytest.fixture
def make_user(session):
    def _make(role: str = "user", email: str | None = None, name: str = "Test User") -> User:
        user = User(
            id=uuid.uuid4(),
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            name=name,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user("user", email="customer@example.com", name="Customer")


@pytest.fixture
def admin(make_user):
    return make_user("admin", email="admin@example.com", name="Admin")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def make_category(session):
    def _make(name: str = "Shirts", **kwargs) -> Category:
        slug = kwargs.pop("slug", name.lower().replace(" ", "-"))
        category = Category(name=name, slug=slug, path=f"/{slug}", **kwargs)
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    return _make


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(
        name: str = "Product",
        price: float = 100.0,
        stock: int = 5,
        **kwargs,
    ) -> Product:
        counter["n"] += 1
        n = counter["n"]
        product = Product(
            name=name,
            slug=kwargs.pop("slug", f"{name.lower().replace(' ', '-')}-{n}"),
            sku=kwargs.pop("sku", f"SKU-{n:04d}"),
            description=kwargs.pop("description", f"{name} description"),
            price=price,
            stock_quantity=stock,
            stock_status=stock_status_for(stock),
            **kwargs,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def headers_for():
    return auth_headers
