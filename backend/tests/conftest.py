import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from main import app
from database import Base, get_db
from models import Group, GroupMember, GroupBalance
from utils.notifications import ledger_notifier

# Setup in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_group(db, member_ids=("M1", "M2", "M3"), currency="HKD", name="Trip", dummy_ids=()):
    """Insert a group whose members all start at a zero balance."""
    group = Group(name=name, currency=currency, total_expenses_cents=0, expense_count=0)
    db.add(group)
    db.flush()
    for member_id in member_ids:
        db.add(GroupMember(
            group_id=group.id,
            member_id=member_id,
            name=f"Member {member_id}",
            kind="dummy" if member_id in dummy_ids else "real",
            role="owner" if member_id == member_ids[0] else "member"
        ))
        db.add(GroupBalance(group_id=group.id, member_id=member_id, amount_cents=0))
    db.commit()
    db.refresh(group)
    return group


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a FastAPI TestClient with overridden database dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def trip_group(db_session):
    """An HKD group with members M1, M2 and M3."""
    return add_group(db_session)


@pytest.fixture
def api_group(client):
    """Create an HKD group with members M1, M2 and M3 through the API."""
    response = client.post("/groups", json={
        "name": "Tokyo Trip",
        "currency": "HKD",
        "created_by": "M1",
        "members": [
            {"id": "M1", "name": "Alice", "role": "owner"},
            {"id": "M2", "name": "Bob"},
            {"id": "M3", "name": "Carol", "kind": "dummy"}
        ]
    })
    assert response.status_code == 200
    return response.json()


@pytest.fixture(autouse=True)
def reset_notifier():
    """Drop ledger subscribers registered by a test."""
    ledger_notifier.reset()
    yield
    ledger_notifier.reset()
