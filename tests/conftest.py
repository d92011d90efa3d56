# tests/conftest.py
import json

import pytest

from lead_relay.config import Settings


class FakeResponse:
  def __init__(self, status=200, body=None):
    self.status = status
    self.body = {} if body is None else body

  async def text(self):
    if isinstance(self.body, str):
      return self.body
    return json.dumps(self.body)

  async def json(self, content_type=None):
    if isinstance(self.body, str):
      return json.loads(self.body)
    return self.body


class FakeSession:
  """Stands in for aiohttp.ClientSession and records every request."""

  def __init__(self, *responses, error=None):
    self.responses = list(responses)
    self.requests = []
    self.error = error

  async def __aenter__(self):
    return self

  async def __aexit__(self, *exc):
    return False

  async def request(self, method, url, **kwargs):
    self.requests.append({"method": method, "url": url, **kwargs})
    if self.error:
      raise self.error
    return self.responses.pop(0)

  async def post(self, url, **kwargs):
    return await self.request("POST", url, **kwargs)


def make_settings(**overrides):
  values = {
      "MONDAY_API_KEY": None,
      "ELEVENLABS_API_KEY": None,
      "ELEVENLABS_AGENT_ID": None,
  }
  values.update(overrides)
  return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
  return make_settings()


@pytest.fixture
def configured_settings():
  return make_settings(
      MONDAY_API_KEY="monday-token",
      ELEVENLABS_API_KEY="xi-key",
      ELEVENLABS_AGENT_ID="agent-1",
      ELEVENLABS_PHONE_NUMBER_ID="line-1",
  )
