"""FastAPI router for inbound CRM and calling-provider webhooks."""

import datetime
import json
import logging
from typing import Any

import fastapi
from fastapi import responses
from lead_relay.api import deps
from lead_relay.core import errors
from lead_relay.services import telephony_service as telephony_service_lib
from lead_relay.services import webhook_normalizer as webhook_normalizer_lib

APIRouter = fastapi.APIRouter
Depends = fastapi.Depends
Request = fastapi.Request
Response = fastapi.Response
JSONResponse = responses.JSONResponse
ElevenLabsCallService = telephony_service_lib.ElevenLabsCallService
WebhookNormalizer = webhook_normalizer_lib.WebhookNormalizer


router = APIRouter(prefix="/webhook", tags=["Webhooks"])


def _error(status_code: int, error: str, message: str) -> JSONResponse:
  return JSONResponse(
      status_code=status_code, content={"error": error, "message": message}
  )


async def _read_json_object(request: Request) -> dict[str, Any] | None:
  try:
    body = await request.json()
  except ValueError:
    return None
  return body if isinstance(body, dict) else None


@router.head("/crm")
async def crm_webhook_handshake() -> Response:
  """Answers the CRM's URL validation request."""
  return Response(status_code=200)


@router.post("/crm")
async def crm_webhook(
    request: Request,
    normalizer: WebhookNormalizer = Depends(deps.get_normalizer),
    call_service: ElevenLabsCallService = Depends(deps.get_call_service),
):
  """Receives a lead event from the CRM and places a call to the lead."""
  payload = await _read_json_object(request)
  if payload is None:
    logging.warning("WEBHOOK: Body is not a JSON object.")
    return _error(400, "Invalid webhook data", "Body must be a JSON object")

  if payload.get("challenge"):
    logging.info("WEBHOOK: Challenge received: %s", payload["challenge"])
    return {"challenge": payload["challenge"]}

  logging.info("WEBHOOK: CRM event received: %s", json.dumps(payload))
  lead = await normalizer.normalize(payload)
  if lead is None:
    return _error(400, "Invalid webhook data", "ignored: not a lead event")

  if not lead.phone:
    logging.warning("WEBHOOK: Lead %s has no phone, ignoring.", lead.id)
    return {
        "success": True,
        "ignored": True,
        "message": "ignored: lead has no phone",
        "leadId": lead.id,
    }

  try:
    result = await call_service.initiate_call(lead)
  except errors.UpstreamApiError as e:
    logging.error("WEBHOOK: Call for lead %s failed: %s", lead.id, e)
    return _error(500, "Internal server error", str(e))

  logging.info("WEBHOOK: Call started for lead %s: %s", lead.id, result)
  return {
      "success": True,
      "message": "Call initiated successfully",
      "leadId": lead.id,
      "callId": result.call_id,
      "status": result.status,
      "simulation": result.simulation,
  }


@router.post("/calling-provider")
async def calling_provider_webhook(request: Request):
  """Logs the dynamic variables the calling provider received.

  Diagnostic only: it echoes the variables back and does nothing else.
  """
  payload = await _read_json_object(request)
  if payload is None:
    return _error(400, "Invalid webhook data", "Body must be a JSON object")

  variables = payload.get("dynamic_variables")
  logging.info(
      "WEBHOOK: Calling provider event %s (conversation %s, call %s, agent"
      " %s, status %s).",
      payload.get("event_type"),
      payload.get("conversation_id"),
      payload.get("call_id"),
      payload.get("agent_id"),
      payload.get("status"),
  )
  if not variables:
    logging.warning("WEBHOOK: No dynamic variables were received.")
  elif isinstance(variables, dict) and all(
      variables.get(name) for name in ("customer_name", "company_name")
  ):
    logging.info("WEBHOOK: Dynamic variables received: %s", variables)
  else:
    logging.warning("WEBHOOK: Dynamic variables incomplete: %s", variables)

  return {
      "success": True,
      "message": "Webhook processed",
      "received_variables": variables or None,
      "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
  }
