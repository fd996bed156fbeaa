"""
SymXchange SOAP envelope builders.

Each builder returns a complete SOAP 1.1 document for one operation. All
values go through ElementTree, so text and attribute content is escaped.
"""

import time
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from corebanking_gateway.domain.models import (
    AdministrativeCredentials,
    Credentials,
    HomeBankingCredentials,
)
from corebanking_gateway.domain.requests import (
    AccountInquiryPayload,
    LoanPaymentPayload,
    NewLoanPayload,
    TransferPayload,
)

NAMESPACES = {
    "soapenv": "http://schemas.xmlsoap.org/soap/envelope/",
    "tran": "http://www.symxchange.generated.symitar.com/v1/transactions",
    "inq": "http://www.symxchange.generated.symitar.com/v1/inquiry",
    "com": "http://www.symxchange.generated.symitar.com/v1/common/dto/common",
    "dto": "http://www.symxchange.generated.symitar.com/v1/transactions/dto",
}

for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

TRANSACTIONS_SERVICE = "/TransactionsService"
INQUIRY_SERVICE = "/InquiryService"

DEFAULT_LOAN_COMMENT = "Loan Disbursement"
DEFAULT_TRANSFER_COMMENT = "Fund Transfer"

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class SoapRequest:
    """A built envelope plus where it has to be sent"""

    message_id: str
    service_path: str
    body: bytes

    def text(self) -> str:
        return self.body.decode("utf-8")


def qname(prefix: str, name: str) -> str:
    """Clark-notation tag for a prefixed SymXchange element"""
    return f"{{{NAMESPACES[prefix]}}}{name}"


def new_message_id(prefix: str) -> str:
    """Operation prefix, epoch millis, and a random suffix so ids stay unique within a millisecond"""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def format_amount(value: Decimal) -> str:
    """Two fraction digits, e.g. 1500 -> '1500.00'"""
    amount = Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
    # Negative zero renders as "-0.00"
    if amount.is_zero():
        amount = amount.copy_abs()
    return str(amount)


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _start_envelope(operation_tag: str, message_id: str) -> tuple[ET.Element, ET.Element]:
    envelope = ET.Element(qname("soapenv", "Envelope"))
    ET.SubElement(envelope, qname("soapenv", "Header"))
    body = ET.SubElement(envelope, qname("soapenv", "Body"))
    operation = ET.SubElement(body, operation_tag)
    request = ET.SubElement(operation, "Request", MessageId=message_id)
    return envelope, request


def _serialize(envelope: ET.Element) -> bytes:
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def _text(parent: ET.Element, tag: str, value: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = value
    return element


def append_credentials(request: ET.Element, credentials: Credentials) -> None:
    """Add the Credentials block and matching DeviceInformation to a Request element"""
    block = ET.SubElement(request, "Credentials")
    if isinstance(credentials, HomeBankingCredentials):
        home = ET.SubElement(block, "HomeBankingCredentials")
        _text(home, "UserId", credentials.user_id)
        _text(home, "Password", credentials.password)
    elif isinstance(credentials, AdministrativeCredentials):
        admin = ET.SubElement(block, "AdministrativeCredentials")
        _text(admin, "Password", credentials.password)
    else:
        raise TypeError(f"Unsupported credentials type: {type(credentials).__name__}")

    ET.SubElement(
        request,
        "DeviceInformation",
        DeviceType=credentials.device_type,
        DeviceNumber=credentials.device_number,
    )


def build_new_loan_request(
    payload: NewLoanPayload,
    credentials: AdministrativeCredentials,
    check_issuer: str,
    message_id: Optional[str] = None,
) -> SoapRequest:
    """Loan disbursement; the payee block is only present when a payee name is given"""
    message_id = message_id or new_message_id("newLoan")
    envelope, request = _start_envelope(qname("tran", "newLoan"), message_id)

    append_credentials(request, credentials)
    _text(request, qname("dto", "AccountNumber"), payload.account_number)
    _text(request, qname("dto", "LoanId"), payload.loan_id)

    amounts = ET.SubElement(request, "LoanAmounts")
    _text(amounts, qname("dto", "TotalAmount"), format_amount(payload.total_amount))
    _text(amounts, "CheckAmount", format_amount(payload.check_amount))

    _text(request, qname("dto", "CheckIssuer"), check_issuer)
    _text(request, qname("dto", "Comment"), payload.comment or DEFAULT_LOAN_COMMENT)

    if payload.payee_name:
        payee = ET.SubElement(request, qname("dto", "Payee"))
        line = ET.SubElement(payee, "PayeeLine", {qname("dto", "PayeeLineNumber"): "1"})
        _text(line, "LineValue", payload.payee_name)

    return SoapRequest(message_id, TRANSACTIONS_SERVICE, _serialize(envelope))


def build_loan_payment_request(
    payload: LoanPaymentPayload,
    credentials: Credentials,
    message_id: Optional[str] = None,
) -> SoapRequest:
    message_id = message_id or new_message_id("loanPayment")
    envelope, request = _start_envelope(qname("tran", "makeLoanPayment"), message_id)

    append_credentials(request, credentials)
    _text(request, qname("dto", "AccountNumber"), payload.account_number)
    _text(request, qname("dto", "LoanId"), payload.loan_id)
    _text(request, qname("dto", "PaymentAmount"), format_amount(payload.payment_amount))
    _text(request, qname("dto", "SourceShareId"), payload.source_share_id)

    return SoapRequest(message_id, TRANSACTIONS_SERVICE, _serialize(envelope))


def build_account_inquiry_request(
    payload: AccountInquiryPayload,
    credentials: AdministrativeCredentials,
    message_id: Optional[str] = None,
) -> SoapRequest:
    message_id = message_id or new_message_id("accountInquiry")
    envelope, request = _start_envelope(qname("inq", "getAccountInfo"), message_id)

    append_credentials(request, credentials)
    _text(request, qname("dto", "AccountNumber"), payload.account_number)
    _text(request, "IncludeLoans", _format_bool(payload.include_loans))
    _text(request, "IncludeShares", _format_bool(payload.include_shares))

    return SoapRequest(message_id, INQUIRY_SERVICE, _serialize(envelope))


def build_transfer_request(
    payload: TransferPayload,
    credentials: AdministrativeCredentials,
    message_id: Optional[str] = None,
) -> SoapRequest:
    message_id = message_id or new_message_id("transfer")
    envelope, request = _start_envelope(qname("tran", "transferFunds"), message_id)

    append_credentials(request, credentials)
    _text(request, qname("dto", "FromAccountNumber"), payload.from_account_number)
    _text(request, qname("dto", "ToAccountNumber"), payload.to_account_number)
    _text(request, qname("dto", "FromShareId"), payload.from_share_id)
    _text(request, qname("dto", "ToShareId"), payload.to_share_id)
    _text(request, qname("dto", "Amount"), format_amount(payload.amount))
    _text(request, qname("dto", "Comment"), payload.comment or DEFAULT_TRANSFER_COMMENT)

    return SoapRequest(message_id, TRANSACTIONS_SERVICE, _serialize(envelope))
