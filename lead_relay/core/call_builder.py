"""Builds calling-provider requests from lead records."""

import logging

from lead_relay.config import Settings
from lead_relay.core import errors
from lead_relay.schemas import lead as lead_lib

LeadRecord = lead_lib.LeadRecord
CallRequest = lead_lib.CallRequest


def dynamic_variables(lead: LeadRecord, settings: Settings) -> dict[str, str]:
  """Returns the personalization variables for a call to the lead.

  The company name comes from the well-known CRM company column when the
  item snapshot has it, then from the lead itself, then from the default.
  """
  snapshot_company = None
  if lead.crm_snapshot:
    snapshot_company = lead.crm_snapshot.columns.get(settings.CRM_COMPANY_COLUMN)
  return {
      "customer_name": lead.name or settings.DEFAULT_CUSTOMER_NAME,
      "company_name": (
          snapshot_company or lead.company or settings.DEFAULT_COMPANY_NAME
      ),
  }


def build_call_request(lead: LeadRecord, settings: Settings) -> CallRequest:
  """Builds the outbound call request for a lead.

  Args:
    lead: The lead to call. Must have a phone.
    settings: Provides the agent and phone-line identifiers.

  Returns:
    The call request.

  Raises:
    ValueError: The lead has no phone.
    CallingProviderNotConfigured: The agent id or API key is missing.
  """
  if not lead.phone:
    raise ValueError(f"Lead {lead.id} has no phone number.")

  missing = [
      name
      for name in ("ELEVENLABS_API_KEY", "ELEVENLABS_AGENT_ID")
      if not getattr(settings, name)
  ]
  if missing:
    raise errors.CallingProviderNotConfigured(missing)

  variables = dynamic_variables(lead, settings)
  logging.info("CALL_BUILDER: Variables for lead %s: %s", lead.id, variables)
  return CallRequest(
      agent_id=settings.ELEVENLABS_AGENT_ID,
      phone_line_id=settings.ELEVENLABS_PHONE_NUMBER_ID,
      destination_number=lead.phone,
      variables=variables,
  )
