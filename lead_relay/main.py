"""Main application for the CRM Lead Call Relay."""

import asyncio
from contextlib import asynccontextmanager
import logging
import sys
from typing import Any

import dotenv
import fastapi
from fastapi import responses
from google.cloud.logging_v2.handlers import StructuredLogHandler
from lead_relay.api import calls
from lead_relay.api import health
from lead_relay.api import webhooks
from lead_relay.config import Settings
from lead_relay.services import crm_service as crm_service_lib
from lead_relay.services import telephony_service as telephony_service_lib
from lead_relay.services import webhook_normalizer as webhook_normalizer_lib

load_dotenv = dotenv.load_dotenv
FastAPI = fastapi.FastAPI
Request = fastapi.Request
JSONResponse = responses.JSONResponse
MondayCrmService = crm_service_lib.MondayCrmService
ElevenLabsCallService = telephony_service_lib.ElevenLabsCallService
WebhookNormalizer = webhook_normalizer_lib.WebhookNormalizer


def setup_logging():
  """Configures a single structured logger writing to stdout."""
  root_logger = logging.getLogger()
  root_logger.handlers.clear()
  root_logger.setLevel(logging.INFO)
  handler = StructuredLogHandler(stream=sys.stdout)
  root_logger.addHandler(handler)


def _log_loop_exception(
    loop: asyncio.AbstractEventLoop, context: dict[str, Any]
) -> None:
  logging.error(
      "Uncaught error in event loop: %s",
      context.get("message"),
      exc_info=context.get("exception"),
  )


@asynccontextmanager
async def lifespan(app: FastAPI):
  logging.info("FastAPI server starting up...")
  asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
  yield
  logging.info("FastAPI server shutting down.")


async def handle_uncaught(request: Request, exc: Exception) -> JSONResponse:
  logging.exception(
      "Uncaught error handling %s %s: %s", request.method, request.url.path, exc
  )
  return JSONResponse(
      status_code=500,
      content={"error": "Internal server error", "message": str(exc)},
  )


def create_app(
    settings: Settings | None = None,
    crm_service: MondayCrmService | None = None,
    call_service: ElevenLabsCallService | None = None,
) -> FastAPI:
  """Builds the relay application.

  Args:
    settings: Configuration; read from the environment when omitted.
    crm_service: CRM client; built from the settings when omitted.
    call_service: Calling-provider client; built from the settings when
      omitted.

  Returns:
    The FastAPI application.
  """
  settings = settings or Settings()
  crm_service = crm_service or MondayCrmService(settings)
  call_service = call_service or ElevenLabsCallService(settings)

  app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
  app.state.settings = settings
  app.state.normalizer = WebhookNormalizer(settings, crm_service)
  app.state.call_service = call_service
  app.add_exception_handler(Exception, handle_uncaught)
  app.include_router(health.router)
  app.include_router(webhooks.router)
  app.include_router(calls.router)
  return app


load_dotenv()
setup_logging()
app = create_app()


if __name__ == "__main__":
  import uvicorn  # pylint: disable=g-import-not-at-top

  uvicorn.run(
      "lead_relay.main:app",
      host="0.0.0.0",
      port=app.state.settings.PORT,
  )
