"""Typed payloads for each bridge operation"""

from decimal import Decimal
from typing import Any, Dict, Optional, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from corebanking_gateway.config import SymXchangeConfig
from corebanking_gateway.domain.exceptions import InvalidRequestError
from corebanking_gateway.domain.models import (
    AdministrativeCredentials,
    Credentials,
    HomeBankingCredentials,
    Operation,
)


# Upper bound for every money field (twelve integer digits)
MAX_AMOUNT = Decimal("999999999999.99")


class OperationPayload(BaseModel):
    """Base for operation payloads; field names follow the web app's camelCase"""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")


class NewLoanPayload(OperationPayload):
    account_number: str = Field(..., alias="accountNumber", min_length=1)
    loan_id: str = Field(..., alias="loanId", min_length=1)
    total_amount: Decimal = Field(..., alias="totalAmount", ge=0, le=MAX_AMOUNT)
    check_amount: Decimal = Field(..., alias="checkAmount", ge=0, le=MAX_AMOUNT)
    payee_name: Optional[str] = Field(None, alias="payeeName")
    comment: Optional[str] = None

    # Local loan record activated once the disbursement is confirmed
    loan_application_id: Optional[str] = Field(None, alias="loanApplicationId")


class LoanPaymentPayload(OperationPayload):
    account_number: str = Field(..., alias="accountNumber", min_length=1)
    loan_id: str = Field(..., alias="loanId", min_length=1)
    payment_amount: Decimal = Field(..., alias="paymentAmount", ge=0, le=MAX_AMOUNT)
    source_share_id: str = Field(..., alias="sourceShareId", min_length=1)
    user_id: Optional[str] = Field(None, alias="userId")
    password: Optional[str] = Field(None, repr=False)

    # Local loan record the payment is booked against
    loan_record_id: Optional[str] = Field(
        None,
        alias="loanRecordId",
        validation_alias=AliasChoices("loanRecordId", "supabaseLoanId"),
    )

    def credentials(self, config: SymXchangeConfig) -> Credentials:
        """Member credentials when both are supplied, otherwise the service account"""
        if self.user_id and self.password:
            return HomeBankingCredentials(user_id=self.user_id, password=self.password)
        return admin_credentials(config)


class AccountInquiryPayload(OperationPayload):
    account_number: str = Field(..., alias="accountNumber", min_length=1)
    include_loans: Optional[bool] = Field(True, alias="includeLoans")
    include_shares: Optional[bool] = Field(True, alias="includeShares")

    @field_validator("include_loans", "include_shares")
    @classmethod
    def null_means_included(cls, value: Optional[bool]) -> bool:
        return True if value is None else value


class TransferPayload(OperationPayload):
    from_account_number: str = Field(..., alias="fromAccountNumber", min_length=1)
    to_account_number: str = Field(..., alias="toAccountNumber", min_length=1)
    from_share_id: str = Field(..., alias="fromShareId", min_length=1)
    to_share_id: str = Field(..., alias="toShareId", min_length=1)
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    comment: Optional[str] = None


class SyncBalancesPayload(OperationPayload):
    pass


PAYLOAD_MODELS: Dict[Operation, Type[OperationPayload]] = {
    Operation.NEW_LOAN: NewLoanPayload,
    Operation.MAKE_LOAN_PAYMENT: LoanPaymentPayload,
    Operation.GET_ACCOUNT_INFO: AccountInquiryPayload,
    Operation.TRANSFER_FUNDS: TransferPayload,
    Operation.SYNC_BALANCES: SyncBalancesPayload,
}


def admin_credentials(config: SymXchangeConfig) -> AdministrativeCredentials:
    return AdministrativeCredentials(
        password=config.admin_password,
        device_type=config.device_type,
        device_number=config.device_number,
    )


def parse_payload(operation: Operation, data: Dict[str, Any]) -> OperationPayload:
    """
    Validate raw request data for an operation.

    Raises:
        InvalidRequestError: When a required field is missing or a value has the wrong type
    """
    model = PAYLOAD_MODELS[operation]
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'data'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidRequestError(f"Invalid data for {operation.value}: {problems}") from e
