"""Data access layer for loans, payments, audit entries and the reconciliation outbox"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from corebanking_gateway.domain.exceptions import ReconciliationError
from corebanking_gateway.infrastructure.database.models import (
    AuditLog,
    Loan,
    LoanPayment,
    PendingReconciliation,
    LOAN_STATUS_ACTIVE,
    LOAN_STATUS_PENDING_DISBURSEMENT,
)


class LoanRepository:
    """Repository for member loans"""

    def __init__(self, db: Session):
        self.db = db

    def get_loan(self, loan_id: uuid.UUID) -> Optional[Loan]:
        return self.db.query(Loan).filter(Loan.id == loan_id).first()

    def activate_disbursed_loan(
        self,
        loan_id: uuid.UUID,
        confirmation_number: Optional[str],
        disbursed_at: datetime,
    ) -> Loan:
        """
        Move a loan from pending disbursement to active.

        Re-applying the same confirmation to an already active loan is a no-op.

        Raises:
            ReconciliationError: Loan does not exist or is in another state
        """
        loan = self.get_loan(loan_id)
        if loan is None:
            raise ReconciliationError(f"Loan {loan_id} not found")

        if loan.status == LOAN_STATUS_ACTIVE and loan.core_confirmation == confirmation_number:
            return loan

        if loan.status != LOAN_STATUS_PENDING_DISBURSEMENT:
            raise ReconciliationError(f"Loan {loan_id} is '{loan.status}', expected '{LOAN_STATUS_PENDING_DISBURSEMENT}'")

        loan.status = LOAN_STATUS_ACTIVE
        loan.core_confirmation = confirmation_number
        loan.disbursed_at = disbursed_at
        self.db.flush()
        return loan


class PaymentRepository:
    """Repository for loan payments"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_confirmation(self, confirmation_number: str) -> Optional[LoanPayment]:
        return (
            self.db.query(LoanPayment)
            .filter(LoanPayment.confirmation_number == confirmation_number)
            .first()
        )

    def record_core_payment(
        self,
        loan_id: uuid.UUID,
        amount_cents: int,
        confirmation_number: Optional[str],
        payment_date: date,
    ) -> Tuple[LoanPayment, bool]:
        """
        Book a payment confirmed by core banking.

        Returns the payment and whether it was newly created; a confirmation
        number already on file for the same loan and amount returns the
        existing row.

        Raises:
            ReconciliationError: Loan does not exist, or the confirmation is
                already recorded for another loan or amount
        """
        if confirmation_number:
            existing = self.get_by_confirmation(confirmation_number)
            if existing is not None:
                if existing.loan_id != loan_id or existing.amount_cents != amount_cents:
                    raise ReconciliationError(
                        f"Confirmation {confirmation_number} already recorded for loan "
                        f"{existing.loan_id} ({existing.amount_cents} cents)"
                    )
                return existing, False

        if self.db.query(Loan.id).filter(Loan.id == loan_id).first() is None:
            raise ReconciliationError(f"Loan {loan_id} not found")

        payment = LoanPayment(
            loan_id=loan_id,
            amount_cents=amount_cents,
            payment_date=payment_date,
            payment_method="core_banking",
            status="completed",
            confirmation_number=confirmation_number,
        )
        self.db.add(payment)
        self.db.flush()
        return payment, True

    def get_payments_for_loan(self, loan_id: uuid.UUID) -> List[LoanPayment]:
        return (
            self.db.query(LoanPayment)
            .filter(LoanPayment.loan_id == loan_id)
            .order_by(LoanPayment.created_at.asc())
            .all()
        )


class AuditLogRepository:
    """Append-only access to the audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        table_name: str,
        record_id: str,
        operation: str,
        new_data: Dict[str, Any],
        changed_by: str = "system",
    ) -> AuditLog:
        entry = AuditLog(
            table_name=table_name,
            record_id=record_id,
            operation=operation,
            old_data=None,
            new_data=new_data,
            changed_by=changed_by,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_entries(self, table_name: str, limit: int = 50) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.table_name == table_name)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .all()
        )


class ReconciliationOutboxRepository:
    """Queue of confirmed results still waiting for their local update"""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(
        self,
        operation: str,
        confirmation_number: Optional[str],
        payload: Dict[str, Any],
        error: str,
    ) -> PendingReconciliation:
        entry = PendingReconciliation(
            operation=operation,
            confirmation_number=confirmation_number,
            payload=payload,
            status="pending",
            attempts=1,
            last_error=error,
            last_attempt_at=datetime.now(timezone.utc),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_pending(self, limit: int = 100) -> List[PendingReconciliation]:
        return (
            self.db.query(PendingReconciliation)
            .filter(PendingReconciliation.status == "pending")
            .order_by(PendingReconciliation.created_at.asc())
            .limit(limit)
            .all()
        )

    def mark_applied(self, entry: PendingReconciliation) -> None:
        entry.status = "applied"
        entry.last_error = None
        entry.last_attempt_at = datetime.now(timezone.utc)
        self.db.flush()

    def mark_attempt_failed(self, entry: PendingReconciliation, error: str, max_attempts: int) -> None:
        """Count a failed replay; entries give up after max_attempts"""
        entry.attempts += 1
        entry.last_error = error
        entry.last_attempt_at = datetime.now(timezone.utc)
        if entry.attempts >= max_attempts:
            entry.status = "failed"
        self.db.flush()

    def mark_failed(self, entry: PendingReconciliation, error: str) -> None:
        """Give up on an entry that can never apply (e.g. its loan is gone)"""
        entry.attempts += 1
        entry.status = "failed"
        entry.last_error = error
        entry.last_attempt_at = datetime.now(timezone.utc)
        self.db.flush()
