"""Domain models - pure Python dataclasses representing bridge entities"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

SENTINEL_STATUS_CODE = -1


class Operation(str, Enum):
    """Operations accepted by the core-banking bridge"""

    NEW_LOAN = "newLoan"
    MAKE_LOAN_PAYMENT = "makeLoanPayment"
    GET_ACCOUNT_INFO = "getAccountInfo"
    TRANSFER_FUNDS = "transferFunds"
    SYNC_BALANCES = "syncBalances"

    @classmethod
    def parse(cls, value: Any) -> Optional["Operation"]:
        for operation in cls:
            if operation.value == value:
                return operation
        return None


class FailureKind(str, Enum):
    """Why a bridge invocation did not succeed"""

    NONE = "none"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    FAULT = "fault"
    BUSINESS = "business"
    INTERNAL = "internal"


@dataclass
class SymXchangeResponse:
    """Uniform result of one bridge invocation"""

    success: bool
    status_code: int
    message: str
    confirmation_number: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    raw_payload: Optional[str] = field(default=None, repr=False)
    failure_kind: FailureKind = FailureKind.NONE

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        message: str,
        status_code: int = SENTINEL_STATUS_CODE,
    ) -> "SymXchangeResponse":
        return cls(success=False, status_code=status_code, message=message, failure_kind=kind)

    def summary(self) -> Dict[str, Any]:
        """Fields persisted in the audit log"""
        return {
            "success": self.success,
            "confirmationNumber": self.confirmation_number,
            "statusCode": self.status_code,
            "message": self.message,
        }

    def to_payload(self) -> Dict[str, Any]:
        """JSON body returned to the web application (raw XML stays internal)"""
        payload: Dict[str, Any] = {
            "success": self.success,
            "statusCode": self.status_code,
            "message": self.message,
        }
        if self.confirmation_number is not None:
            payload["confirmationNumber"] = self.confirmation_number
        if self.data:
            payload["data"] = self.data
        return payload


@dataclass(frozen=True)
class AdministrativeCredentials:
    """Service-account credentials for back-office operations"""

    password: str = field(repr=False)
    device_type: str
    device_number: str


@dataclass(frozen=True)
class HomeBankingCredentials:
    """Member's own home-banking credentials"""

    user_id: str
    password: str = field(repr=False)
    device_type: str = "HOMEBANKING"
    device_number: str = "1"


Credentials = Union[AdministrativeCredentials, HomeBankingCredentials]
