"""SQLAlchemy ORM models for the loan portal records the bridge touches"""

import uuid
from sqlalchemy import Column, BigInteger, DateTime, Date, Integer, ForeignKey, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

LOAN_STATUS_PENDING_DISBURSEMENT = "pending_disbursement"
LOAN_STATUS_ACTIVE = "active"


class Loan(Base):
    """Member loan, activated once core banking confirms the disbursement"""

    __tablename__ = "loans"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Text, nullable=False, index=True)
    loan_number = Column(Text, nullable=True)
    principal_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(Text, nullable=False, default=LOAN_STATUS_PENDING_DISBURSEMENT)
    core_confirmation = Column(Text, nullable=True)
    disbursed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    payments = relationship("LoanPayment", back_populates="loan", cascade="all, delete-orphan")


class LoanPayment(Base):
    """Payment booked against a loan; one row per core-banking confirmation"""

    __tablename__ = "loan_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(UUID(as_uuid=True), ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="completed")
    confirmation_number = Column(Text, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("Loan", back_populates="payments")


class AuditLog(Base):
    """Append-only audit trail; one row per bridge invocation"""

    __tablename__ = "audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    table_name = Column(Text, nullable=False)
    record_id = Column(Text, nullable=False, index=True)
    operation = Column(Text, nullable=False)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    changed_by = Column(Text, nullable=False, default="system")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PendingReconciliation(Base):
    """Outbox of confirmed core-banking results whose local update failed"""

    __tablename__ = "pending_reconciliation"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    operation = Column(Text, nullable=False)
    confirmation_number = Column(Text, nullable=True)
    payload = Column(JSON, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
