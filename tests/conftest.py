"""
Pytest fixtures for the OZIFIN ledger tests.

Provides an in-memory database recreated per test, one account per role,
bearer-token headers and a FastAPI test client with the image host stubbed out.
"""
import asyncio
import os

# Must be set before ozifin.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("IMGBB_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from ozifin.database import Base, SessionLocal, engine
from ozifin.main import app
from ozifin.models import User
from ozifin.security import create_access_token, get_password_hash
from ozifin.utils.imgbb import get_image_client


def running_in_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class FakeImageClient:
    """Records uploads and hands back predictable URLs."""

    def __init__(self):
        self.uploads = []
        self.on_event_loop = []

    def upload_bytes(self, content: bytes) -> str:
        self.uploads.append(content)
        self.on_event_loop.append(running_in_loop())
        return f"https://i.ibb.co/test/{len(self.uploads)}.png"


@pytest.fixture(scope='function')
def db_session():
    """Fresh schema for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def image_client():
    return FakeImageClient()


@pytest.fixture(scope='function')
def client(db_session, image_client):
    """Create test client."""
    app.dependency_overrides[get_image_client] = lambda: image_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db_session, username, role, display_name=None, password="secret123"):
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        display_name=display_name or username.title(),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token({"sub": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def admin(db_session):
    """The root admin account."""
    return make_user(db_session, "admin", "admin", "System Administrator")


@pytest.fixture(scope='function')
def manager(db_session):
    return make_user(db_session, "manager", "manager", "Manager")


@pytest.fixture(scope='function')
def sale1(db_session):
    return make_user(db_session, "sale1", "sale", "Sale One")


@pytest.fixture(scope='function')
def sale2(db_session):
    return make_user(db_session, "sale2", "sale", "Sale Two")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture
def sale1_headers(sale1):
    return auth_headers(sale1)


@pytest.fixture
def sale2_headers(sale2):
    return auth_headers(sale2)


@pytest.fixture
def create_transaction(client):
    """POST a transaction and return its JSON body."""

    def _create(headers, **overrides):
        payload = {
            "timestamp": "2025-03-10",
            "agency": "Đại lý A",
            "customer": "Nguyen Van A",
            "bank": "Vietcombank",
            "card_type": "Visa",
            "last4": "1234",
            "type": "Rút",
            "amount": 1000000,
            "withdraw_amt": 1000000,
            "pos": "POS 01",
            "pos_fee": 1.1,
            "cust_fee": 1.5,
            "status": "Đã thanh toán",
        }
        payload.update(overrides)
        response = client.post("/api/transactions", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
