import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.dialects.sqlite import base as sqlite_base
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401 - register models with Base.metadata
from app.core.config import settings
from app.core.database import Base, get_db
from app.main import app as fastapi_app

settings.DEBUG = True

# ---------------------------------------------------------------------------
# SQLite compatibility for PostgreSQL-specific types (JSONB)
# ---------------------------------------------------------------------------
sqlite_base.SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: self.visit_JSON(type_, **kw)

# In-memory SQLite for tests - no PostgreSQL dependency needed
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    """TestClient with overridden DB dependency."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Sample definitions
# ---------------------------------------------------------------------------


@pytest.fixture
def property_form_data():
    """Blocks A -> B -> C; 'Rent' on the radio in A jumps straight to C."""
    return {
        "id": "property",
        "title": "Property Enquiry",
        "blocks": [
            {"id": "A", "title": "Intent"},
            {"id": "B", "title": "Buying"},
            {"id": "C", "title": "Contact"},
        ],
        "questions": [
            {
                "id": "interest",
                "block_id": "A",
                "type": "radio",
                "label": "Buy or rent?",
                "required": True,
                "options": ["Buy", "Rent"],
                "conditional_logic": [{"option": "Rent", "target_block_id": "C", "action": "jump"}],
            },
            {
                "id": "budget",
                "block_id": "B",
                "type": "text",
                "label": "Budget",
                "required": False,
            },
            {
                "id": "email",
                "block_id": "C",
                "type": "email",
                "label": "Email",
                "required": True,
            },
        ],
    }
