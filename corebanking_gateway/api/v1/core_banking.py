"""POST /v1/core-banking - SymXchange bridge endpoint"""

import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from corebanking_gateway.api.dependencies import get_bridge, get_request_id
from corebanking_gateway.api.middleware import CORS_HEADERS
from corebanking_gateway.api.v1.schemas import CoreBankingRequest, CoreBankingResponse
from corebanking_gateway.domain.models import FailureKind, SymXchangeResponse
from corebanking_gateway.services.bridge import CoreBankingBridge

router = APIRouter()
logger = logging.getLogger(__name__)

STATUS_BY_FAILURE = {
    FailureKind.VALIDATION: 400,
    FailureKind.INTERNAL: 500,
}


def http_status_for(result: SymXchangeResponse) -> int:
    """Handled outcomes are 200; bad requests 400; unexpected errors 500"""
    return STATUS_BY_FAILURE.get(result.failure_kind, 200)


@router.options("/core-banking", include_in_schema=False)
def core_banking_preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post(
    "/core-banking",
    response_model=CoreBankingResponse,
    openapi_extra={"requestBody": {"content": {"application/json": {"schema": CoreBankingRequest.model_json_schema()}}}},
)
async def core_banking(
    request: Request,
    bridge: CoreBankingBridge = Depends(get_bridge),
):
    """
    Run one core-banking operation.

    The body is read by hand rather than through a pydantic model so that
    malformed requests still get the uniform JSON result and an audit entry.
    """
    request_id = get_request_id(request)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Unreadable request body: {e}", extra={"request_id": request_id})
        body = None

    result = await bridge.handle(body, request_id=request_id)

    return JSONResponse(
        content=result.to_payload(),
        status_code=http_status_for(result),
        headers=CORS_HEADERS,
    )
