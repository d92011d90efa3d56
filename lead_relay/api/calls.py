"""FastAPI router for manual calls and call lookups."""

import logging
import time
from typing import Any, Awaitable

import fastapi
from fastapi import responses
from lead_relay.api import deps
from lead_relay.config import Settings
from lead_relay.core import errors
from lead_relay.core import extraction
from lead_relay.schemas import lead as lead_lib
from lead_relay.services import telephony_service as telephony_service_lib

APIRouter = fastapi.APIRouter
Depends = fastapi.Depends
Query = fastapi.Query
JSONResponse = responses.JSONResponse
LeadRecord = lead_lib.LeadRecord
ManualCallPayload = lead_lib.ManualCallPayload
ElevenLabsCallService = telephony_service_lib.ElevenLabsCallService

MANUAL_SOURCE = "manual-test"
MANUAL_DEFAULT_NAME = "Test"


router = APIRouter(tags=["Calls"])


@router.post("/test/call")
async def manual_call(
    payload: ManualCallPayload,
    settings: Settings = Depends(deps.get_settings),
    call_service: ElevenLabsCallService = Depends(deps.get_call_service),
):
  """Places a call to a number without going through the CRM."""
  raw_phone = "" if payload.phone is None else str(payload.phone)
  if not raw_phone:
    return JSONResponse(
        status_code=400, content={"error": "Phone is required"}
    )
  phone = extraction.normalize_phone(raw_phone, settings.DEFAULT_COUNTRY_CODE)
  if not phone:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid phone", "message": raw_phone},
    )

  lead = LeadRecord(
      id=f"test-{int(time.time() * 1000)}",
      name=payload.name or MANUAL_DEFAULT_NAME,
      phone=phone,
      source=MANUAL_SOURCE,
  )
  logging.info("TEST_CALL: Calling %s (%s).", lead.phone, lead.name)
  try:
    result = await call_service.initiate_call(lead)
  except errors.UpstreamApiError as e:
    logging.error("TEST_CALL: Call failed: %s", e)
    return JSONResponse(
        status_code=500,
        content={"error": "Test call failed", "message": str(e)},
    )

  return {
      "success": True,
      "message": "Test call initiated",
      "callResult": result.model_dump(mode="json"),
  }


async def _lookup(lookup: Awaitable[dict[str, Any]]) -> Any:
  try:
    return {"success": True, "data": await lookup}
  except errors.CallingProviderNotConfigured as e:
    return JSONResponse(
        status_code=503, content={"error": "Not configured", "message": str(e)}
    )
  except errors.CallingProviderError as e:
    return JSONResponse(
        status_code=502, content={"error": "Provider error", "message": str(e)}
    )


@router.get("/calls")
async def list_calls(
    limit: int = Query(10, ge=1, le=100),
    call_service: ElevenLabsCallService = Depends(deps.get_call_service),
):
  """Lists recent calls on the calling provider."""
  return await _lookup(call_service.list_recent_calls(limit))


@router.get("/calls/{call_id}")
async def get_call(
    call_id: str,
    call_service: ElevenLabsCallService = Depends(deps.get_call_service),
):
  """Returns a call as reported by the calling provider."""
  return await _lookup(call_service.get_call_status(call_id))
