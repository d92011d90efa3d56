"""This module provides the ElevenLabs outbound calling service."""

import asyncio
import json
import logging
import time
from typing import Any, Callable

import aiohttp
from lead_relay.config import Settings
from lead_relay.core import call_builder
from lead_relay.core import errors
from lead_relay.schemas import lead as lead_lib

LeadRecord = lead_lib.LeadRecord
CallResult = lead_lib.CallResult
CallingProviderError = errors.CallingProviderError
CallingProviderNotConfigured = errors.CallingProviderNotConfigured

OUTBOUND_CALL_PATH = "/convai/twilio/outbound-call"
CALLS_PATH = "/convai/calls"


class ElevenLabsCallService:
  """Places outbound AI calls through the ElevenLabs Conversational AI API.

  When the API key or agent id is missing the service runs in simulation
  mode: calls are logged and a synthetic result is returned instead.
  """

  def __init__(
      self,
      settings: Settings,
      session_factory: Callable[[], Any] = aiohttp.ClientSession,
  ):
    self.settings = settings
    self.session_factory = session_factory
    if not settings.calling_configured():
      logging.warning(
          "CALL_SERVICE: ElevenLabs credentials not configured, calls will be"
          " simulated."
      )

  @property
  def base_url(self) -> str:
    return self.settings.ELEVENLABS_BASE_URL.rstrip("/")

  def _headers(self) -> dict[str, str]:
    return {
        "xi-api-key": self.settings.ELEVENLABS_API_KEY or "",
        "Content-Type": "application/json",
    }

  async def initiate_call(self, lead: LeadRecord) -> CallResult:
    """Places an outbound call to the lead.

    Args:
        lead: The lead to call. Must have a phone.

    Returns:
        The call result; simulated when the provider is not configured.

    Raises:
        CallingProviderError: The provider rejected the call.
    """
    logging.info("CALL_SERVICE: Initiating call to %s.", lead.phone)
    try:
      request = call_builder.build_call_request(lead, self.settings)
    except CallingProviderNotConfigured as e:
      logging.warning("CALL_SERVICE: %s", e)
      return self.simulate_call(lead)

    data = await self._request(
        "POST",
        OUTBOUND_CALL_PATH,
        json=request.to_provider_payload(),
    )
    call_id = (
        data.get("call_id")
        or data.get("id")
        or data.get("callSid")
        or data.get("conversation_id")
    )
    logging.info(
        "CALL_SERVICE: Call initiated for lead %s. Call id: %s. Response %s",
        lead.id,
        call_id,
        data,
    )
    return CallResult(
        call_id=None if call_id is None else str(call_id),
        status=data.get("status") or "initiated",
        lead_id=lead.id,
        phone=lead.phone,
    )

  def simulate_call(self, lead: LeadRecord) -> CallResult:
    """Returns a synthetic call result without contacting the provider."""
    logging.info(
        "CALL_SERVICE: SIMULATION MODE. Would call %s (customer %s, company"
        " %s).",
        lead.phone,
        lead.name,
        lead.company or "Unknown",
    )
    return CallResult(
        call_id=f"sim_{int(time.time() * 1000)}",
        status="simulated",
        lead_id=lead.id,
        phone=lead.phone or "",
        simulation=True,
        message="Call simulated - ElevenLabs credentials not configured",
    )

  async def get_call_status(self, call_id: str) -> dict[str, Any]:
    """Fetches a call from the provider.

    Raises:
        CallingProviderNotConfigured: No API key.
        CallingProviderError: The provider answered with an error.
    """
    self._require_api_key()
    return await self._request("GET", f"{CALLS_PATH}/{call_id}")

  async def list_recent_calls(self, limit: int = 10) -> dict[str, Any]:
    """Lists the most recent calls on the provider."""
    self._require_api_key()
    return await self._request("GET", CALLS_PATH, params={"limit": limit})

  def _require_api_key(self) -> None:
    if not self.settings.ELEVENLABS_API_KEY:
      raise CallingProviderNotConfigured(["ELEVENLABS_API_KEY"])

  async def _request(
      self, method: str, endpoint: str, **kwargs: Any
  ) -> dict[str, Any]:
    """Sends one request to the provider and returns the decoded body."""
    url = f"{self.base_url}{endpoint}"
    try:
      async with self.session_factory() as session:
        response = await session.request(
            method, url, headers=self._headers(), **kwargs
        )
        text = await response.text()
    except asyncio.TimeoutError as e:
      logging.error("CALL_SERVICE: %s %s timed out.", method, url)
      raise CallingProviderError(None, "timeout") from e
    except aiohttp.ClientError as e:
      logging.error("CALL_SERVICE: %s %s failed: %s", method, url, e)
      raise CallingProviderError(None, str(e)) from e

    try:
      body = json.loads(text) if text else {}
    except ValueError:
      body = text

    if response.status >= 400:
      detail = body.get("detail") if isinstance(body, dict) else None
      logging.error(
          "CALL_SERVICE: ElevenLabs API error %s for %s %s: %s",
          response.status,
          method,
          url,
          body,
      )
      raise CallingProviderError(response.status, str(detail or body))
    return body if isinstance(body, dict) else {"data": body}
