"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from corebanking_gateway.config import SymXchangeConfig
from corebanking_gateway.infrastructure.clients.symxchange import SymXchangeClient
from corebanking_gateway.infrastructure.database.session import get_db
from corebanking_gateway.services.audit import AuditLogger
from corebanking_gateway.services.bridge import CoreBankingBridge
from corebanking_gateway.services.reconciliation import ReconciliationService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_symxchange_config() -> SymXchangeConfig:
    """Bridge configuration derived from the environment"""
    return SymXchangeConfig.from_settings()


def get_symxchange_client(config: SymXchangeConfig = Depends(get_symxchange_config)) -> SymXchangeClient:
    """Provide SymXchange client instance"""
    return SymXchangeClient(config=config)


def get_reconciliation_service(db: Session = Depends(get_db)) -> ReconciliationService:
    return ReconciliationService(db)


def get_bridge(
    db: Session = Depends(get_db),
    client: SymXchangeClient = Depends(get_symxchange_client),
    reconciler: ReconciliationService = Depends(get_reconciliation_service),
) -> CoreBankingBridge:
    """Request-scoped bridge sharing one database session for reconciliation and audit"""
    return CoreBankingBridge(client=client, reconciler=reconciler, audit_logger=AuditLogger(db))
