"""SymXchange SOAP client with an offline mock fallback"""

import logging

import httpx

from corebanking_gateway.config import SymXchangeConfig
from corebanking_gateway.domain.envelopes import SoapRequest, new_message_id
from corebanking_gateway.domain.models import FailureKind, SymXchangeResponse
from corebanking_gateway.domain.parser import parse_symxchange_response
from corebanking_gateway.infrastructure.observability.metrics import symxchange_latency_histogram

logger = logging.getLogger(__name__)

SOAP_HEADERS = {
    "Content-Type": "text/xml; charset=utf-8",
    "SOAPAction": "",
}

MOCK_CONFIRMATION_PREFIX = "MOCK"


def mock_response() -> SymXchangeResponse:
    """Success-shaped result used when no endpoint is configured"""
    return SymXchangeResponse(
        success=True,
        status_code=0,
        message="Mock response - SymXchange not configured",
        confirmation_number=new_message_id(MOCK_CONFIRMATION_PREFIX),
        data={"mock": True},
    )


class SymXchangeClient:
    """Client for the core-banking SymXchange endpoint"""

    def __init__(
        self,
        config: SymXchangeConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or SymXchangeConfig.from_settings()
        self.transport = transport

    @property
    def mock_mode(self) -> bool:
        return self.config.mock_mode

    async def send(self, request: SoapRequest) -> SymXchangeResponse:
        """
        POST one envelope and parse the answer.

        Never raises for transport problems: a non-2xx status or a network
        failure comes back as a failed SymXchangeResponse. No retries.
        """
        if self.mock_mode:
            logger.info(
                "SymXchange not configured - returning mock response",
                extra={"message_id": request.message_id},
            )
            return mock_response()

        url = f"{self.config.endpoint_url}{request.service_path}"

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self.transport) as client:
            try:
                with symxchange_latency_histogram.time():
                    response = await client.post(url, content=request.body, headers=SOAP_HEADERS)
            except httpx.RequestError as e:
                logger.error(
                    f"SymXchange request failed: {e}",
                    extra={"message_id": request.message_id, "service_path": request.service_path},
                )
                return SymXchangeResponse.failure(FailureKind.TRANSPORT, f"Connection error: {e}")

        if not response.is_success:
            logger.error(
                f"SymXchange HTTP error: {response.status_code}",
                extra={"message_id": request.message_id, "service_path": request.service_path},
            )
            return SymXchangeResponse.failure(
                FailureKind.TRANSPORT,
                f"HTTP Error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        return parse_symxchange_response(response.text)
