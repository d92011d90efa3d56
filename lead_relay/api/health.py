"""FastAPI router for health and diagnostics."""

import datetime

import fastapi
from lead_relay.api import deps
from lead_relay.config import Settings

APIRouter = fastapi.APIRouter
Depends = fastapi.Depends

router = APIRouter(tags=["Health"])


def _now() -> str:
  return datetime.datetime.now(datetime.timezone.utc).isoformat()


@router.get("/health")
async def health(settings: Settings = Depends(deps.get_settings)):
  return {"status": "OK", "timestamp": _now(), "service": settings.APP_NAME}


@router.get("/logs")
async def logs():
  return {
      "message": "Logs are written to the server's stdout.",
      "timestamp": _now(),
  }
