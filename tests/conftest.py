import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool
from datetime import datetime, timezone

import spacesync.core.rate_limiter as rate_limiter_module
from spacesync.main import app
from spacesync.database.engine import get_db
from spacesync.core.audit_log import get_audit_logger
from spacesync.core.auth import create_access_token
import spacesync.models.sync  # noqa: F401

USER_ID = "user_1"
OTHER_USER_ID = "user_2"

T1 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

# Test database setup
@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session

@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_db] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

@pytest.fixture(autouse=True)
def reset_singletons():
    rate_limiter_module._rate_limiter = None
    get_audit_logger().clear()
    yield
    rate_limiter_module._rate_limiter = None

@pytest.fixture(name="auth_headers")
def auth_headers_fixture():
    token = create_access_token({"sub": USER_ID, "email": "test@example.com"})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture(name="other_auth_headers")
def other_auth_headers_fixture():
    token = create_access_token({"sub": OTHER_USER_ID})
    return {"Authorization": f"Bearer {token}"}
