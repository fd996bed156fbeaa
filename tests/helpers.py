"""SOAP response builders and a fake SymXchange transport handler"""

from typing import List, Optional
import httpx


def soap_response(
    status_code: Optional[int] = 0,
    confirmation: Optional[str] = None,
    message_id: str = "msg-1",
) -> str:
    """SymXchange-style success/error envelope"""
    attrs = f' MessageId="{message_id}"'
    if status_code is not None:
        attrs += f' StatusCode="{status_code}"'
    if confirmation is not None:
        attrs += f' Confirmation="{confirmation}"'
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">'
        f"<soapenv:Body><opResponse><Response{attrs}/></opResponse></soapenv:Body>"
        "</soapenv:Envelope>"
    )


def soap_fault(message: str, status_code: Optional[int] = None) -> str:
    """SOAP 1.1 fault envelope, optionally with a misleading StatusCode"""
    status = f'<Response StatusCode="{status_code}"/>' if status_code is not None else ""
    return (
        '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soapenv:Body><soapenv:Fault><faultcode>soapenv:Server</faultcode>"
        f"<faultstring>{message}</faultstring></soapenv:Fault>{status}</soapenv:Body>"
        "</soapenv:Envelope>"
    )


class FakeSymXchange:
    """httpx handler that replays queued responses and keeps the requests it saw"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responses: List[httpx.Response] = []

    def queue(self, body: str, status_code: int = 200) -> "FakeSymXchange":
        self.responses.append(httpx.Response(status_code, text=body))
        return self

    def queue_success(self, confirmation: str) -> "FakeSymXchange":
        return self.queue(soap_response(0, confirmation))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, text=soap_response(0, f"CONF-{len(self.requests)}"))
        return self.responses.pop(0)
