"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import after path setup
from src.clarityledger.core.config import AIConfig, AppConfig, DatabaseConfig  # noqa: E402
from src.clarityledger.core.database import Base  # noqa: E402
from src.clarityledger.data.store import JSONStore  # noqa: E402
from src.clarityledger.services.budgets import BudgetRepository  # noqa: E402
from src.clarityledger.services.recurring import RecurringTransactionEngine  # noqa: E402
from src.clarityledger.services.transactions import TransactionRepository  # noqa: E402

TEST_USER = "default_clarityLedger_user"


class FakeRecognitionEngine:
    """Recognition engine returning canned text."""

    def __init__(self, languages: str, text: str = "", error: Exception | None = None):
        self.languages = languages
        self.text = text
        self.error = error
        self.terminated = False
        self.calls = 0

    def recognize(self, image, on_progress=None) -> str:
        self.calls += 1
        if on_progress:
            on_progress(100, "recognizing text")
        if self.error:
            raise self.error
        return self.text

    def terminate(self) -> None:
        self.terminated = True


@pytest.fixture(scope="function")
def temp_db():
    """Create a temporary database for testing."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()
    os.unlink(db_path)


@pytest.fixture(scope="function")
def db_session(temp_db):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=temp_db)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture
def store(db_session):
    return JSONStore(db_session)


@pytest.fixture
def transaction_repo(store):
    return TransactionRepository(store, TEST_USER)


@pytest.fixture
def budget_repo(store):
    return BudgetRepository(store, TEST_USER)


@pytest.fixture
def recurring_engine(store, transaction_repo):
    return RecurringTransactionEngine(store, transaction_repo, TEST_USER)


@pytest.fixture
def test_config(temp_db, tmp_path):
    """App configuration pointing at the temporary database and directories."""
    return AppConfig(
        database=DatabaseConfig(url=f"sqlite:///{temp_db.url.database}"),
        ai=AIConfig(api_key=None, model="", ocr_model="", language="en"),
        data_dir=tmp_path / "data",
        export_dir=tmp_path / "data" / "exports",
    )


@pytest.fixture(scope="function")
def test_client(test_config, db_session, monkeypatch):
    """Create a test client with temporary database."""
    monkeypatch.setenv("CLARITY_DB_URL", test_config.database.url)
    monkeypatch.setenv("CLARITY_DATA_DIR", str(test_config.data_dir))
    monkeypatch.setenv("CLARITY_EXPORT_DIR", str(test_config.export_dir))

    # Import app factory after setting env vars
    from main import create_app

    from api.dependencies import get_db_session

    app = create_app(
        test_config,
        ocr_engine_factory=lambda languages: FakeRecognitionEngine(languages, text="Grand Total: $12.50\n2024-03-15"),
    )

    def override_get_db_session():
        return db_session

    app.dependency_overrides[get_db_session] = override_get_db_session

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()
