import uuid
import xml.etree.ElementTree as ET

from fastapi import FastAPI, Request
from fastapi.responses import Response

app = FastAPI(title="Mock SymXchange Server", version="1.0.0")

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
XML_MEDIA_TYPE = "text/xml; charset=utf-8"

ET.register_namespace("soapenv", SOAP_NS)

# Account number prefixes that steer the mock into failure paths
FAULT_PREFIX = "FAULT"
ERROR_PREFIX = "ERR"


def _local(tag) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _first_text(root: ET.Element, *names: str) -> str:
    for element in root.iter():
        if _local(element.tag) in names and element.text:
            return element.text
    return ""


def _operation(root: ET.Element) -> str:
    body = next((e for e in root if _local(e.tag) == "Body"), None)
    if body is None or len(body) == 0:
        return "unknown"
    return _local(body[0].tag)


def _envelope(build_body) -> Response:
    envelope = ET.Element(f"{{{SOAP_NS}}}Envelope")
    build_body(ET.SubElement(envelope, f"{{{SOAP_NS}}}Body"))
    return Response(content=ET.tostring(envelope, encoding="utf-8", xml_declaration=True), media_type=XML_MEDIA_TYPE)


def _fault(message: str) -> Response:
    def body(parent):
        fault = ET.SubElement(parent, f"{{{SOAP_NS}}}Fault")
        ET.SubElement(fault, "faultcode").text = "soapenv:Server"
        ET.SubElement(fault, "faultstring").text = message
    return _envelope(body)


def _result(operation: str, message_id: str, status_code: int) -> Response:
    def body(parent):
        wrapper = ET.SubElement(parent, f"{operation}Response")
        attrs = {"MessageId": message_id, "StatusCode": str(status_code)}
        if status_code == 0:
            attrs["Confirmation"] = uuid.uuid4().hex[:12].upper()
        ET.SubElement(wrapper, "Response", attrs)
    return _envelope(body)


async def _respond(request: Request) -> Response:
    try:
        root = ET.fromstring(await request.body())
    except ET.ParseError:
        return Response(content="malformed envelope", status_code=400, media_type="text/plain")

    request_element = next((e for e in root.iter() if _local(e.tag) == "Request"), None)
    message_id = request_element.get("MessageId", "") if request_element is not None else ""
    account = _first_text(root, "AccountNumber", "FromAccountNumber")

    if account.startswith(FAULT_PREFIX):
        return _fault(f"Account {account} is locked")
    if account.startswith(ERROR_PREFIX):
        suffix = account[len(ERROR_PREFIX):]
        return _result(_operation(root), message_id, int(suffix) if suffix.isdigit() and int(suffix) else 1)
    return _result(_operation(root), message_id, 0)


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/TransactionsService")
async def transactions_service(request: Request):
    return await _respond(request)


@app.post("/InquiryService")
async def inquiry_service(request: Request):
    return await _respond(request)
