"""Core-banking bridge: validate, build, send, parse, reconcile, audit"""

import logging
import time
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from corebanking_gateway.domain.envelopes import (
    SoapRequest,
    build_account_inquiry_request,
    build_loan_payment_request,
    build_new_loan_request,
    build_transfer_request,
)
from corebanking_gateway.domain.exceptions import InvalidRequestError
from corebanking_gateway.domain.models import FailureKind, Operation, SymXchangeResponse
from corebanking_gateway.domain.requests import (
    AccountInquiryPayload,
    LoanPaymentPayload,
    NewLoanPayload,
    OperationPayload,
    TransferPayload,
    admin_credentials,
    parse_payload,
)
from corebanking_gateway.infrastructure.clients.symxchange import SymXchangeClient
from corebanking_gateway.infrastructure.observability.logging import log_bridge_call
from corebanking_gateway.infrastructure.observability.metrics import record_bridge_outcome
from corebanking_gateway.services.audit import AuditLogger
from corebanking_gateway.services.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)

SYNC_BALANCES_MESSAGE = "Balance sync not yet implemented - requires account list"


class CoreBankingBridge:
    """Single entry point for core-banking operations requested by the portal"""

    def __init__(
        self,
        client: SymXchangeClient,
        reconciler: ReconciliationService,
        audit_logger: AuditLogger,
    ):
        self.client = client
        self.config = client.config
        self.reconciler = reconciler
        self.audit_logger = audit_logger

    async def handle(self, body: Any, request_id: str = "unknown") -> SymXchangeResponse:
        """Run a raw JSON body of the form {"operation": ..., "data": {...}}"""
        if not isinstance(body, dict):
            result = SymXchangeResponse.failure(
                FailureKind.VALIDATION, "Invalid request body: expected a JSON object"
            )
            self.audit_logger.record("invalidRequest", None, result)
            record_bridge_outcome("invalidRequest", result.success, result.failure_kind.value)
            return result
        return await self.execute(body.get("operation"), body.get("data"), request_id)

    async def execute(self, operation_name: Any, data: Any, request_id: str = "unknown") -> SymXchangeResponse:
        """
        Run one operation end to end.

        Flow:
        1. Validate the operation name and its payload
        2. Build the SOAP envelope and send it
        3. Parse the answer (done by the client)
        4. Reconcile local records on success
        5. Write the audit entry, whatever the outcome

        Never raises; unexpected errors become an INTERNAL failure.
        """
        start_time = time.time()
        audit_name = str(operation_name) if operation_name is not None else "unknown"

        try:
            result = await self._run(operation_name, data)
        except Exception as e:
            logger.exception(f"Core banking error: {e}", extra={"request_id": request_id, "operation": audit_name})
            self._discard_pending_writes()
            result = SymXchangeResponse.failure(FailureKind.INTERNAL, "Internal error")

        self.audit_logger.record(audit_name, data, result)

        duration_ms = (time.time() - start_time) * 1000
        metric_label = audit_name if Operation.parse(operation_name) else "unknown"
        record_bridge_outcome(metric_label, result.success, result.failure_kind.value)
        log_bridge_call(request_id, audit_name, result.success, result.status_code, duration_ms)
        return result

    async def _run(self, operation_name: Any, data: Any) -> SymXchangeResponse:
        operation = Operation.parse(operation_name)
        if operation is None:
            return SymXchangeResponse.failure(FailureKind.VALIDATION, f"Unknown operation: {operation_name}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            return SymXchangeResponse.failure(FailureKind.VALIDATION, "Invalid request data: expected an object")

        try:
            payload = parse_payload(operation, data)
        except InvalidRequestError as e:
            return SymXchangeResponse.failure(FailureKind.VALIDATION, str(e))

        if operation is Operation.SYNC_BALANCES:
            # Scheduled jobs treat this as a no-op until an account list source exists
            return SymXchangeResponse(success=True, status_code=0, message=SYNC_BALANCES_MESSAGE)

        request = self.build_request(operation, payload)
        result = await self.client.send(request)

        # The confirmed banking result is returned even if local bookkeeping blows up
        try:
            self.reconciler.reconcile(operation, payload, result)
        except Exception as e:
            logger.exception(
                f"Unexpected reconciliation error: {e}",
                extra={"operation": operation.value, "confirmation_number": result.confirmation_number},
            )
            self._discard_pending_writes()
        return result

    def _discard_pending_writes(self) -> None:
        """Roll back anything flushed but not committed, so the audit commit carries only the audit row"""
        try:
            self.reconciler.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Session rollback failed: {e}")

    def build_request(self, operation: Operation, payload: OperationPayload) -> SoapRequest:
        """Envelope for an operation that goes to SymXchange"""
        if operation is Operation.NEW_LOAN and isinstance(payload, NewLoanPayload):
            return build_new_loan_request(payload, admin_credentials(self.config), self.config.check_issuer)
        if operation is Operation.MAKE_LOAN_PAYMENT and isinstance(payload, LoanPaymentPayload):
            return build_loan_payment_request(payload, payload.credentials(self.config))
        if operation is Operation.GET_ACCOUNT_INFO and isinstance(payload, AccountInquiryPayload):
            return build_account_inquiry_request(payload, admin_credentials(self.config))
        if operation is Operation.TRANSFER_FUNDS and isinstance(payload, TransferPayload):
            return build_transfer_request(payload, admin_credentials(self.config))
        raise ValueError(f"No envelope for operation {operation.value}")
