import os

# Settings are cached on first import, so point them at SQLite before the app loads.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("BOOTSTRAP_SCHEMA_ON_STARTUP", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.services.resource_locks import clear_lock_registry  # noqa: E402


@pytest.fixture()
def session_factory():
    clear_lock_registry()
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    clear_lock_registry()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(session_factory):
    """Return a factory that creates a user with ``role`` and gives back bearer headers for it."""

    def _headers(role: UserRole = UserRole.scheduler, *, active: bool = True) -> dict[str, str]:
        db = session_factory()
        try:
            user = User(
                display_name=f"{role.value.title()} User",
                email=f"{role.value}-{len(db.query(User).all())}@example.com",
                role=role,
                is_active=active,
            )
            db.add(user)
            db.commit()
            token = create_access_token(user.id)
        finally:
            db.close()
        return {"Authorization": f"Bearer {token}"}

    return _headers
