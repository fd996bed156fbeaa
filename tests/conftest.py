"""Pytest fixtures for testing"""

import os

# Point the app at SQLite and mock mode before any corebanking_gateway import reads settings
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SYMXCHANGE_ENDPOINT_URL"] = ""

import uuid
import pytest
from typing import Callable, Generator
import httpx
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from corebanking_gateway.api.main import create_app
from corebanking_gateway.api.dependencies import get_symxchange_client
from corebanking_gateway.config import SymXchangeConfig
from corebanking_gateway.infrastructure.clients.symxchange import SymXchangeClient
from corebanking_gateway.infrastructure.database.models import Base, Loan, LOAN_STATUS_PENDING_DISBURSEMENT
from corebanking_gateway.infrastructure.database.session import get_db
from corebanking_gateway.services.audit import AuditLogger
from corebanking_gateway.services.bridge import CoreBankingBridge
from corebanking_gateway.services.reconciliation import ReconciliationService
from tests.helpers import FakeSymXchange


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

LIVE_ENDPOINT = "http://symxchange.test"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mock_config() -> SymXchangeConfig:
    """No endpoint configured: the bridge runs in mock mode"""
    return SymXchangeConfig(admin_password="admin-secret")


@pytest.fixture
def live_config() -> SymXchangeConfig:
    return SymXchangeConfig(endpoint_url=LIVE_ENDPOINT, admin_password="admin-secret")


@pytest.fixture
def fake_symxchange() -> FakeSymXchange:
    return FakeSymXchange()


@pytest.fixture
def make_bridge(db: Session) -> Callable[..., CoreBankingBridge]:
    """Build a bridge over the test session with the given config and transport"""

    def _make(config: SymXchangeConfig, transport: httpx.AsyncBaseTransport | None = None) -> CoreBankingBridge:
        return CoreBankingBridge(
            client=SymXchangeClient(config=config, transport=transport),
            reconciler=ReconciliationService(db, max_attempts=3),
            audit_logger=AuditLogger(db),
        )

    return _make


@pytest.fixture
def live_bridge(make_bridge, live_config, fake_symxchange) -> CoreBankingBridge:
    return make_bridge(live_config, httpx.MockTransport(fake_symxchange))


@pytest.fixture
def pending_loan(db: Session) -> Loan:
    """Loan waiting for its core-banking disbursement"""
    loan = Loan(
        id=uuid.uuid4(),
        member_id="member-1",
        loan_number="L-1001",
        principal_cents=500000,
        status=LOAN_STATUS_PENDING_DISBURSEMENT,
    )
    db.add(loan)
    db.commit()
    return loan


@pytest.fixture
def client(db: Session, mock_config: SymXchangeConfig) -> TestClient:
    """Create FastAPI test client with test database, bridge in mock mode"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_symxchange_client] = lambda: SymXchangeClient(config=mock_config)
    return TestClient(app)
