"""Best-effort audit trail for bridge invocations"""

import logging
import time
from typing import Any, Dict

from sqlalchemy.orm import Session

from corebanking_gateway.domain.models import SymXchangeResponse
from corebanking_gateway.infrastructure.database.repositories import AuditLogRepository
from corebanking_gateway.infrastructure.observability.metrics import audit_write_failure_counter

logger = logging.getLogger(__name__)

AUDIT_TABLE_NAME = "core_banking"
REDACTION_MARKER = "[REDACTED]"
REDACTED_FIELDS = frozenset({"password"})


def redact_request(data: Any) -> Dict[str, Any]:
    """Copy of the request data with credential fields masked"""
    if data is None:
        return {}
    if not isinstance(data, dict):
        return {"invalidData": type(data).__name__}
    return {key: REDACTION_MARKER if key in REDACTED_FIELDS else value for key, value in data.items()}


def audit_record_id(operation: str, result: SymXchangeResponse) -> str:
    """Confirmation number when core banking issued one, else operation plus epoch millis"""
    return result.confirmation_number or f"{operation}-{int(time.time() * 1000)}"


class AuditLogger:
    """Writes one audit row per bridge invocation"""

    def __init__(self, db: Session):
        self.db = db

    def record(self, operation: str, request_data: Any, result: SymXchangeResponse) -> None:
        """
        Append the audit entry and commit it.

        Audit is best-effort: any failure is logged and counted, never raised,
        so the banking result still reaches the caller.
        """
        try:
            AuditLogRepository(self.db).append(
                table_name=AUDIT_TABLE_NAME,
                record_id=audit_record_id(operation, result),
                operation=operation,
                new_data={
                    "request": redact_request(request_data),
                    "response": result.summary(),
                },
            )
            self.db.commit()
        except Exception as e:
            audit_write_failure_counter.inc()
            logger.error(f"Failed to log transaction: {e}", extra={"operation": operation})
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.error(f"Audit rollback failed: {rollback_error}", extra={"operation": operation})
