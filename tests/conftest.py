import os

# keep the app's module-level engine off the working directory
os.environ.setdefault("MISE_DATABASE_URL", "sqlite://")
os.environ.setdefault("MISE_LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from mise import app as app_module  # noqa: E402
from mise import crud  # noqa: E402
from mise.auth import hash_password  # noqa: E402
from mise.db import Base, get_db, init_db  # noqa: E402
from mise.routers.recipes import get_http_client  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
# Use StaticPool so the same in-memory database is shared across connections
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

init_db(bind=engine)

PASSWORD = "geheim123"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app_module.app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app_module.app)


def create_account(db, email, role="koch", approved=True, name="Test Koch"):
    return crud.create_user(
        db,
        email=email,
        password=hash_password(PASSWORD),
        name=name,
        position="Koch",
        role=role,
        is_approved=approved,
    )


def signed_in_client(email):
    c = TestClient(app_module.app)
    res = c.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert res.status_code == 200, res.text
    return c


@pytest.fixture
def user_client(db):
    create_account(db, "koch@example.com")
    return signed_in_client("koch@example.com")


@pytest.fixture
def admin_client(db):
    create_account(db, "chef@example.com", role="admin", name="Chef")
    return signed_in_client("chef@example.com")


@pytest.fixture
def mock_http():
    """Route recipe-import fetches to a handler: ``mock_http(handler)``."""

    def install(handler):
        def client():
            c = httpx.Client(transport=httpx.MockTransport(handler))
            try:
                yield c
            finally:
                c.close()

        app_module.app.dependency_overrides[get_http_client] = client

    yield install
    app_module.app.dependency_overrides.pop(get_http_client, None)
