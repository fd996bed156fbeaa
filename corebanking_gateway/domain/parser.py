"""Parse SymXchange SOAP responses into the bridge's uniform result"""

import xml.etree.ElementTree as ET
from typing import Optional

from corebanking_gateway.domain.models import (
    FailureKind,
    SENTINEL_STATUS_CODE,
    SymXchangeResponse,
)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _find_element(root: ET.Element, name: str) -> Optional[ET.Element]:
    for element in root.iter():
        if _local_name(element.tag) == name:
            return element
    return None


def _find_attribute(root: ET.Element, name: str) -> Optional[str]:
    """First attribute with this local name, in document order"""
    for element in root.iter():
        for key, value in element.attrib.items():
            if _local_name(key) == name:
                return value
    return None


def _parse_status_code(value: Optional[str]) -> int:
    if value is None:
        return SENTINEL_STATUS_CODE
    try:
        return int(value.strip())
    except ValueError:
        return SENTINEL_STATUS_CODE


def parse_symxchange_response(xml_text: str) -> SymXchangeResponse:
    """
    Turn a raw SOAP response into a SymXchangeResponse.

    Precedence:
    1. A SOAP faultstring wins over any StatusCode attribute
    2. StatusCode (missing or non-numeric -> -1); success only when it is 0
    3. Confirmation and MessageId attributes are carried along when present

    The raw document is kept on ``raw_payload`` for diagnostics only.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        return SymXchangeResponse(
            success=False,
            status_code=SENTINEL_STATUS_CODE,
            message=f"Invalid SymXchange response: {e}",
            raw_payload=xml_text,
            failure_kind=FailureKind.FAULT,
        )

    fault = _find_element(root, "faultstring")
    if fault is not None:
        return SymXchangeResponse(
            success=False,
            status_code=SENTINEL_STATUS_CODE,
            message=(fault.text or "").strip() or "SOAP fault",
            raw_payload=xml_text,
            failure_kind=FailureKind.FAULT,
        )

    status_code = _parse_status_code(_find_attribute(root, "StatusCode"))
    success = status_code == 0

    return SymXchangeResponse(
        success=success,
        status_code=status_code,
        message="Success" if success else f"Error code: {status_code}",
        confirmation_number=_find_attribute(root, "Confirmation"),
        data={"messageId": _find_attribute(root, "MessageId") or ""},
        raw_payload=xml_text,
        failure_kind=FailureKind.NONE if success else FailureKind.BUSINESS,
    )
