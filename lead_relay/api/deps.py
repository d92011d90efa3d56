"""FastAPI dependencies resolving the services built by the app factory."""

import fastapi
from lead_relay.config import Settings
from lead_relay.services import telephony_service as telephony_service_lib
from lead_relay.services import webhook_normalizer as webhook_normalizer_lib

Request = fastapi.Request
ElevenLabsCallService = telephony_service_lib.ElevenLabsCallService
WebhookNormalizer = webhook_normalizer_lib.WebhookNormalizer


def get_settings(request: Request) -> Settings:
  return request.app.state.settings


def get_normalizer(request: Request) -> WebhookNormalizer:
  return request.app.state.normalizer


def get_call_service(request: Request) -> ElevenLabsCallService:
  return request.app.state.call_service
