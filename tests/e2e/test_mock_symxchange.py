"""
E2E tests running the gateway against the mock SymXchange server.

The mock is mounted in-process through httpx.ASGITransport. Account numbers
steer it:
- any regular account: StatusCode 0 with a fresh confirmation
- FAULT...: SOAP fault "Account <number> is locked"
- ERR<n>: StatusCode n, no confirmation
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from corebanking_gateway.api.dependencies import get_symxchange_client
from corebanking_gateway.config import SymXchangeConfig
from corebanking_gateway.infrastructure.clients.symxchange import SymXchangeClient
from corebanking_gateway.infrastructure.database.models import AuditLog, LOAN_STATUS_ACTIVE
from mocks.symxchange_server.main import app as mock_symxchange_app

MOCK_ENDPOINT = "http://symxchange.test"


@pytest.fixture
def gateway(client: TestClient) -> TestClient:
    """Gateway client whose SymXchange calls land on the mock server"""
    config = SymXchangeConfig(endpoint_url=MOCK_ENDPOINT, admin_password="admin-secret")
    client.app.dependency_overrides[get_symxchange_client] = lambda: SymXchangeClient(
        config=config, transport=httpx.ASGITransport(app=mock_symxchange_app)
    )
    return client


def _call(gateway: TestClient, operation: str, data: dict) -> dict:
    response = gateway.post("/v1/core-banking", json={"operation": operation, "data": data})
    assert response.status_code == 200
    return response.json()


@pytest.mark.integration
def test_loan_disbursement_confirmed(gateway: TestClient, db, pending_loan):
    """
    Regular account: disbursement succeeds
    Expected: confirmation returned, local loan activated
    """
    data = _call(gateway, "newLoan", {
        "accountNumber": "12345",
        "loanId": "0001",
        "totalAmount": 2500,
        "checkAmount": 2500,
        "payeeName": "Member Name",
        "loanApplicationId": str(pending_loan.id),
    })

    assert data["success"] is True
    assert data["statusCode"] == 0
    assert len(data["confirmationNumber"]) == 12
    assert data["data"]["messageId"].startswith("newLoan-")

    db.refresh(pending_loan)
    assert pending_loan.status == LOAN_STATUS_ACTIVE
    assert pending_loan.core_confirmation == data["confirmationNumber"]


@pytest.mark.integration
def test_account_inquiry_uses_inquiry_service(gateway: TestClient):
    data = _call(gateway, "getAccountInfo", {"accountNumber": "12345", "includeShares": False})

    assert data["success"] is True
    assert data["data"]["messageId"].startswith("accountInquiry-")


@pytest.mark.integration
def test_locked_account_fault(gateway: TestClient, db):
    """
    FAULT account: SymXchange answers with a SOAP fault
    Expected: failure carrying the fault text, audited once
    """
    data = _call(gateway, "transferFunds", {
        "fromAccountNumber": "FAULT77",
        "toAccountNumber": "12345",
        "fromShareId": "0001",
        "toShareId": "0002",
        "amount": 10,
    })

    assert data["success"] is False
    assert data["statusCode"] == -1
    assert data["message"] == "Account FAULT77 is locked"
    assert db.query(AuditLog).count() == 1


@pytest.mark.integration
def test_business_error_code(gateway: TestClient, db, pending_loan):
    """
    ERR42 account: SymXchange rejects the payment
    Expected: status 42 surfaced, no payment booked
    """
    data = _call(gateway, "makeLoanPayment", {
        "accountNumber": "ERR42",
        "loanId": "0001",
        "paymentAmount": 50,
        "sourceShareId": "0000",
        "loanRecordId": str(pending_loan.id),
    })

    assert data["success"] is False
    assert data["statusCode"] == 42
    assert data["message"] == "Error code: 42"
    assert "confirmationNumber" not in data
    assert pending_loan.payments == []


@pytest.mark.integration
def test_member_payment_with_home_banking_credentials(gateway: TestClient, db):
    data = _call(gateway, "makeLoanPayment", {
        "accountNumber": "12345",
        "loanId": "0001",
        "paymentAmount": 50,
        "sourceShareId": "0000",
        "userId": "member42",
        "password": "hunter2",
    })

    assert data["success"] is True
    entry = db.query(AuditLog).one()
    assert entry.record_id == data["confirmationNumber"]
    assert "hunter2" not in str(entry.new_data)
