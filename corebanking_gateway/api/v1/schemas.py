"""Pydantic schemas for API request/response documentation and validation"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class CoreBankingRequest(BaseModel):
    """Request body for POST /v1/core-banking"""

    operation: str = Field(..., description="newLoan | makeLoanPayment | getAccountInfo | transferFunds | syncBalances")
    data: Dict[str, Any] = Field(default_factory=dict, description="Operation-specific fields")


class CoreBankingResponse(BaseModel):
    """Response for POST /v1/core-banking"""

    success: bool
    statusCode: int
    message: str
    confirmationNumber: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class PendingReconciliationItem(BaseModel):
    """Outbox entry waiting to be replayed"""

    id: str
    operation: str
    confirmation_number: Optional[str]
    attempts: int
    last_error: Optional[str]
    created_at: str


class PendingReconciliationResponse(BaseModel):
    """Response for GET /v1/reconciliation/pending"""

    items: List[PendingReconciliationItem]


class ReplayResponse(BaseModel):
    """Response for POST /v1/reconciliation/replay"""

    applied: int
    failed: int
    pending: int
