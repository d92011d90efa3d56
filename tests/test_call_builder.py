import pytest

from lead_relay.core.call_builder import build_call_request, dynamic_variables
from lead_relay.core.errors import CallingProviderNotConfigured
from lead_relay.schemas.lead import CrmItemSnapshot, LeadRecord

from conftest import make_settings


def _lead(**overrides):
  values = {
      "id": "123",
      "name": "Maria Silva",
      "phone": "+5511999999999",
      "source": "monday.com",
  }
  values.update(overrides)
  return LeadRecord(**values)


def test_build_call_request(configured_settings):
  request = build_call_request(_lead(company="Cantina"), configured_settings)

  assert request.to_provider_payload() == {
      "agent_id": "agent-1",
      "agent_phone_number_id": "line-1",
      "to_number": "+5511999999999",
      "dynamic_variables": {
          "customer_name": "Maria Silva",
          "company_name": "Cantina",
      },
  }


def test_company_prefers_crm_company_column(configured_settings):
  snapshot = CrmItemSnapshot(id="123", columns={"lead_company": "Do CRM"})
  lead = _lead(company="Da coluna", crm_snapshot=snapshot)

  assert dynamic_variables(lead, configured_settings)["company_name"] == (
      "Do CRM"
  )


def test_variable_fallbacks(configured_settings):
  variables = dynamic_variables(_lead(name=""), configured_settings)

  assert variables == {
      "customer_name": "Customer",
      "company_name": "your restaurant",
  }


def test_phone_line_default():
  settings = make_settings(ELEVENLABS_API_KEY="k", ELEVENLABS_AGENT_ID="a")

  assert build_call_request(_lead(), settings).phone_line_id == (
      "default_phone_id"
  )


def test_missing_configuration(settings):
  with pytest.raises(CallingProviderNotConfigured) as excinfo:
    build_call_request(_lead(), settings)
  assert excinfo.value.missing == ["ELEVENLABS_API_KEY", "ELEVENLABS_AGENT_ID"]


def test_lead_without_phone(configured_settings):
  with pytest.raises(ValueError):
    build_call_request(_lead(phone=None), configured_settings)
