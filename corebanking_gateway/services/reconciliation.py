"""Apply confirmed core-banking results to local loan and payment records"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from corebanking_gateway.config import settings
from corebanking_gateway.domain.exceptions import ReconciliationError
from corebanking_gateway.domain.models import Operation, SymXchangeResponse
from corebanking_gateway.domain.requests import (
    LoanPaymentPayload,
    NewLoanPayload,
    OperationPayload,
)
from corebanking_gateway.infrastructure.database.models import PendingReconciliation
from corebanking_gateway.infrastructure.database.repositories import (
    LoanRepository,
    PaymentRepository,
    ReconciliationOutboxRepository,
)
from corebanking_gateway.infrastructure.observability.metrics import reconciliation_failure_counter

logger = logging.getLogger(__name__)


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_intent(
    operation: Operation,
    payload: OperationPayload,
    result: SymXchangeResponse,
    occurred_at: datetime,
) -> Optional[Dict[str, Any]]:
    """
    Describe the local update a successful result calls for.

    The intent is plain JSON so it can be parked in the outbox and replayed
    later. Returns None when the operation has no local side effect or the
    request carried no record reference.
    """
    if not result.success:
        return None

    if operation is Operation.NEW_LOAN and isinstance(payload, NewLoanPayload) and payload.loan_application_id:
        return {
            "operation": operation.value,
            "loanId": payload.loan_application_id,
            "confirmationNumber": result.confirmation_number,
            "occurredAt": occurred_at.isoformat(),
        }

    if operation is Operation.MAKE_LOAN_PAYMENT and isinstance(payload, LoanPaymentPayload) and payload.loan_record_id:
        return {
            "operation": operation.value,
            "loanId": payload.loan_record_id,
            "amountCents": to_cents(payload.payment_amount),
            "confirmationNumber": result.confirmation_number,
            "occurredAt": occurred_at.isoformat(),
        }

    return None


def _parse_loan_id(value: Any) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ReconciliationError(f"Invalid loan reference: {value}") from e


class ReconciliationService:
    """Keeps local loans and payments in line with confirmed core-banking operations"""

    def __init__(
        self,
        db: Session,
        max_attempts: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.max_attempts = max_attempts or settings.reconciliation_max_attempts
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def reconcile(
        self,
        operation: Operation,
        payload: OperationPayload,
        result: SymXchangeResponse,
    ) -> None:
        """
        Apply the side effect of a successful result and commit it.

        Never raises: the core-banking result stands even when the local write
        fails. Data store errors park the intent in the outbox for replay;
        ReconciliationError (missing loan, wrong state) is only logged.
        """
        intent = build_intent(operation, payload, result, self.clock())
        if intent is None:
            return

        try:
            self.apply(intent)
            self.db.commit()
        except ReconciliationError as e:
            self.db.rollback()
            reconciliation_failure_counter.labels(operation=operation.value).inc()
            logger.error(
                f"Reconciliation rejected: {e}",
                extra={"operation": operation.value, "confirmation_number": result.confirmation_number},
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            reconciliation_failure_counter.labels(operation=operation.value).inc()
            logger.error(
                f"Reconciliation write failed: {e}",
                extra={"operation": operation.value, "confirmation_number": result.confirmation_number},
            )
            self._park(intent, str(e))

    def apply(self, intent: Dict[str, Any]) -> None:
        """Run one intent against the repositories (flushes, does not commit)"""
        operation = Operation.parse(intent.get("operation"))
        loan_id = _parse_loan_id(intent.get("loanId"))
        occurred_at = datetime.fromisoformat(intent["occurredAt"])
        confirmation_number = intent.get("confirmationNumber")

        if operation is Operation.NEW_LOAN:
            LoanRepository(self.db).activate_disbursed_loan(loan_id, confirmation_number, occurred_at)
        elif operation is Operation.MAKE_LOAN_PAYMENT:
            payment, created = PaymentRepository(self.db).record_core_payment(
                loan_id=loan_id,
                amount_cents=int(intent["amountCents"]),
                confirmation_number=confirmation_number,
                payment_date=occurred_at.date(),
            )
            if not created:
                logger.warning(
                    "Payment already recorded for confirmation",
                    extra={"confirmation_number": confirmation_number, "payment_id": str(payment.id)},
                )
        else:
            raise ReconciliationError(f"No reconciliation defined for {intent.get('operation')}")

    def _park(self, intent: Dict[str, Any], error: str) -> None:
        try:
            ReconciliationOutboxRepository(self.db).enqueue(
                operation=intent["operation"],
                confirmation_number=intent.get("confirmationNumber"),
                payload=intent,
                error=error,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Could not queue reconciliation for replay: {e}",
                extra={"operation": intent["operation"], "confirmation_number": intent.get("confirmationNumber")},
            )

    def replay_pending(self, limit: int = 100) -> Dict[str, int]:
        """
        Re-apply outbox entries left by earlier failures.

        Returns:
            Counts of entries applied, given up on, and still pending
        """
        outbox = ReconciliationOutboxRepository(self.db)
        counts = {"applied": 0, "failed": 0, "pending": 0}

        for entry_id, intent in [(entry.id, entry.payload) for entry in outbox.get_pending(limit)]:
            try:
                self.apply(intent)
                outbox.mark_applied(self.db.get(PendingReconciliation, entry_id))
                self.db.commit()
                counts["applied"] += 1
            except ReconciliationError as e:
                self.db.rollback()
                outbox.mark_failed(self.db.get(PendingReconciliation, entry_id), str(e))
                self.db.commit()
                counts["failed"] += 1
            except SQLAlchemyError as e:
                self.db.rollback()
                entry = self.db.get(PendingReconciliation, entry_id)
                outbox.mark_attempt_failed(entry, str(e), self.max_attempts)
                self.db.commit()
                counts["failed" if entry.status == "failed" else "pending"] += 1

        logger.info("Reconciliation replay finished", extra=counts)
        return counts
