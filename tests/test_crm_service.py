import asyncio

import aiohttp
import pytest

from lead_relay.core.errors import CrmApiError
from lead_relay.services.crm_service import MondayCrmService
from lead_relay.services.webhook_normalizer import WebhookNormalizer

from conftest import FakeResponse, FakeSession


def _item_body(column_values, name="Maria Silva"):
  return {
      "data": {
          "items": [
              {"id": "123", "name": name, "column_values": column_values}
          ]
      }
  }


@pytest.mark.asyncio
async def test_fetch_extracts_fields(configured_settings):
  session = FakeSession(
      FakeResponse(
          body=_item_body([
              {"id": "phone_1", "text": "(11) 99999-9999", "value": None},
              {"id": "email", "text": "maria@example.com", "value": None},
              {"id": "lead_company", "text": "Cantina", "value": None},
              {"id": "status", "text": None, "value": '{"index": 1}'},
          ])
      )
  )
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  snapshot = await service.fetch_item_details("999", "123")

  assert snapshot.id == "123"
  assert snapshot.name == "Maria Silva"
  assert snapshot.phone == "+5511999999999"
  assert snapshot.email == "maria@example.com"
  assert snapshot.company == "Cantina"
  assert snapshot.columns["lead_company"] == "Cantina"
  assert snapshot.columns["status"] == '{"index": 1}'

  request = session.requests[0]
  assert request["url"] == "https://api.monday.com/v2"
  assert request["headers"]["Authorization"] == "monday-token"
  assert request["json"]["variables"] == {"ids": ["123"]}


@pytest.mark.asyncio
async def test_fetch_returns_none_when_item_missing(configured_settings):
  session = FakeSession(FakeResponse(body={"data": {"items": []}}))
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  assert await service.fetch_item_details("999", "123") is None


@pytest.mark.asyncio
async def test_fetch_skipped_without_api_key(settings):
  session = FakeSession()
  service = MondayCrmService(settings, session_factory=lambda: session)

  assert await service.fetch_item_details("999", "123") is None
  assert session.requests == []


@pytest.mark.asyncio
async def test_fetch_skipped_without_item_id(configured_settings):
  session = FakeSession()
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  assert await service.fetch_item_details("999", None) is None
  assert session.requests == []


@pytest.mark.asyncio
async def test_fetch_raises_on_http_error(configured_settings):
  session = FakeSession(FakeResponse(status=401, body="Not Authenticated"))
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  with pytest.raises(CrmApiError) as excinfo:
    await service.fetch_item_details("999", "123")
  assert excinfo.value.status == 401
  assert "Not Authenticated" in str(excinfo.value)


@pytest.mark.asyncio
async def test_fetch_raises_on_graphql_errors(configured_settings):
  session = FakeSession(
      FakeResponse(body={"errors": [{"message": "Parse error"}]})
  )
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  with pytest.raises(CrmApiError):
    await service.fetch_item_details("999", "123")


@pytest.mark.asyncio
async def test_fetch_wraps_timeouts(configured_settings):
  session = FakeSession(error=asyncio.TimeoutError())
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  with pytest.raises(CrmApiError) as excinfo:
    await service.fetch_item_details("999", "123")
  assert excinfo.value.status is None
  assert excinfo.value.detail == "timeout"


@pytest.mark.asyncio
async def test_fetch_wraps_connection_errors(configured_settings):
  session = FakeSession(error=aiohttp.ClientConnectionError("refused"))
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  with pytest.raises(CrmApiError) as excinfo:
    await service.fetch_item_details("999", "123")
  assert excinfo.value.status is None
  assert "refused" in str(excinfo.value)


@pytest.mark.asyncio
async def test_fetch_raises_on_invalid_json(configured_settings):
  session = FakeSession(FakeResponse(body="<html>oops</html>"))
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  with pytest.raises(CrmApiError) as excinfo:
    await service.fetch_item_details("999", "123")
  assert "Invalid JSON" in str(excinfo.value)


@pytest.mark.asyncio
async def test_fetch_raises_on_non_object_json(configured_settings):
  session = FakeSession(FakeResponse(body=["unexpected"]))
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  with pytest.raises(CrmApiError):
    await service.fetch_item_details("999", "123")


@pytest.mark.asyncio
async def test_fetch_ignores_malformed_items(configured_settings):
  session = FakeSession(
      FakeResponse(body={"data": {"items": ["not-an-item"]}}),
      FakeResponse(body={"data": "nope"}),
      FakeResponse(body=_item_body(["bad", {"id": "phone", "text": "11999999999"}])),
  )
  service = MondayCrmService(configured_settings, session_factory=lambda: session)

  assert await service.fetch_item_details("999", "123") is None
  assert await service.fetch_item_details("999", "123") is None
  snapshot = await service.fetch_item_details("999", "123")
  assert snapshot.phone == "+5511999999999"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=asyncio.TimeoutError()),
        FakeSession(error=aiohttp.ClientConnectionError("refused")),
        FakeSession(FakeResponse(body=["unexpected"])),
        FakeSession(FakeResponse(body="not json")),
    ],
)
async def test_normalizer_survives_crm_failures(configured_settings, session):
  service = MondayCrmService(configured_settings, session_factory=lambda: session)
  normalizer = WebhookNormalizer(configured_settings, service)

  lead = await normalizer.normalize(
      {"event": {"type": "create_pulse", "pulseId": 1, "pulseName": "Ana"}}
  )

  assert lead is not None
  assert lead.name == "Ana"
  assert lead.phone is None
  assert lead.crm_snapshot is None
