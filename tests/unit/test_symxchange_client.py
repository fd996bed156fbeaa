"""Unit tests for the SymXchange HTTP transport"""

from unittest.mock import patch

import httpx
import pytest

from corebanking_gateway.config import SymXchangeConfig
from corebanking_gateway.domain.envelopes import INQUIRY_SERVICE, SoapRequest
from corebanking_gateway.domain.models import FailureKind
from corebanking_gateway.infrastructure.clients.symxchange import SymXchangeClient
from tests.helpers import FakeSymXchange, soap_fault, soap_response

ENDPOINT = "http://symxchange.test/SymXchange/2020.01"
REQUEST = SoapRequest(message_id="accountInquiry-1", service_path=INQUIRY_SERVICE, body=b"<Envelope/>")


def _client(handler) -> SymXchangeClient:
    return SymXchangeClient(
        config=SymXchangeConfig(endpoint_url=ENDPOINT),
        transport=httpx.MockTransport(handler),
    )


def _refuse(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected network call to {request.url}")


async def test_mock_mode_skips_network():
    """Test an unconfigured endpoint yields a mock success without any HTTP call"""
    client = SymXchangeClient(config=SymXchangeConfig(), transport=httpx.MockTransport(_refuse))

    result = await client.send(REQUEST)

    assert client.mock_mode is True
    assert result.success is True
    assert result.status_code == 0
    assert result.confirmation_number.startswith("MOCK-")
    millis, suffix = result.confirmation_number[len("MOCK-"):].split("-")
    assert millis.isdigit()
    assert len(suffix) == 8
    assert result.data == {"mock": True}


async def test_posts_xml_to_service_path():
    fake = FakeSymXchange().queue_success("ABC123")

    result = await _client(fake).send(REQUEST)

    assert result.success is True
    assert result.confirmation_number == "ABC123"
    sent = fake.requests[0]
    assert sent.method == "POST"
    assert str(sent.url) == f"{ENDPOINT}{INQUIRY_SERVICE}"
    assert sent.headers["Content-Type"] == "text/xml; charset=utf-8"
    assert sent.headers["SOAPAction"] == ""
    assert sent.content == b"<Envelope/>"


async def test_http_error_is_a_transport_failure():
    """Test non-2xx responses are reported without parsing the body"""
    fake = FakeSymXchange().queue(soap_response(0, "IGNORED"), status_code=503)

    result = await _client(fake).send(REQUEST)

    assert result.success is False
    assert result.status_code == 503
    assert result.message == "HTTP Error: 503 Service Unavailable"
    assert result.confirmation_number is None
    assert result.failure_kind == FailureKind.TRANSPORT


@pytest.mark.parametrize(
    "error",
    [httpx.ConnectError("connection refused"), httpx.ReadTimeout("timed out")],
)
async def test_network_error_is_returned_as_data(error):
    def handler(request: httpx.Request) -> httpx.Response:
        raise error

    result = await _client(handler).send(REQUEST)

    assert result.success is False
    assert result.status_code == -1
    assert result.message == f"Connection error: {error}"
    assert result.failure_kind == FailureKind.TRANSPORT


async def test_fault_response_is_parsed():
    fake = FakeSymXchange().queue(soap_fault("Account not found"))

    result = await _client(fake).send(REQUEST)

    assert result.success is False
    assert result.message == "Account not found"
    assert result.failure_kind == FailureKind.FAULT


async def test_no_retry_after_failure():
    fake = FakeSymXchange().queue("", status_code=500)

    await _client(fake).send(REQUEST)

    assert len(fake.requests) == 1


async def test_mock_confirmations_unique_within_a_millisecond():
    """Test two mock results issued at the same instant never share a confirmation"""
    client = SymXchangeClient(config=SymXchangeConfig())

    with patch("corebanking_gateway.domain.envelopes.time.time", return_value=1700000000.0):
        first = await client.send(REQUEST)
        second = await client.send(REQUEST)

    assert first.confirmation_number.startswith("MOCK-1700000000000-")
    assert first.confirmation_number != second.confirmation_number
