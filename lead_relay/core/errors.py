"""Exceptions raised while relaying a lead to the calling provider."""


class RelayError(Exception):
  """Base class for relay errors."""


class CallingProviderNotConfigured(RelayError):
  """The calling provider credentials or agent id are missing."""

  def __init__(self, missing: list[str]):
    self.missing = missing
    super().__init__(
        f"Calling provider not configured: missing {', '.join(missing)}"
    )


class UpstreamApiError(RelayError):
  """A provider answered with an error status."""

  provider = "Upstream"

  def __init__(self, status: int | None, detail: str):
    self.status = status
    self.detail = detail
    super().__init__(f"{self.provider} API Error: {status} - {detail}")


class CrmApiError(UpstreamApiError):
  provider = "Monday"


class CallingProviderError(UpstreamApiError):
  provider = "ElevenLabs"
