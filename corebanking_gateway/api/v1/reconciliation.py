"""Reconciliation outbox endpoints - inspect and replay failed local updates"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from corebanking_gateway.api.dependencies import get_reconciliation_service
from corebanking_gateway.api.v1.schemas import (
    PendingReconciliationItem,
    PendingReconciliationResponse,
    ReplayResponse,
)
from corebanking_gateway.infrastructure.database.repositories import ReconciliationOutboxRepository
from corebanking_gateway.infrastructure.database.session import get_db
from corebanking_gateway.services.reconciliation import ReconciliationService

router = APIRouter()


@router.get("/reconciliation/pending", response_model=PendingReconciliationResponse)
def list_pending_reconciliations(
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Confirmed core-banking results whose local update has not landed yet"""
    entries = ReconciliationOutboxRepository(db).get_pending(limit)

    items = [
        PendingReconciliationItem(
            id=str(entry.id),
            operation=entry.operation,
            confirmation_number=entry.confirmation_number,
            attempts=entry.attempts,
            last_error=entry.last_error,
            created_at=entry.created_at.isoformat(),
        )
        for entry in entries
    ]

    return PendingReconciliationResponse(items=items)


@router.post("/reconciliation/replay", response_model=ReplayResponse)
def replay_reconciliations(
    limit: int = Query(100, ge=1, le=1000),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Re-apply pending outbox entries; returns how many applied, failed, or stay pending"""
    counts = service.replay_pending(limit)
    return ReplayResponse(**counts)
