"""Settings for the CRM Lead Call Relay."""

import pydantic_settings

SettingsConfigDict = pydantic_settings.SettingsConfigDict
BaseSettings = pydantic_settings.BaseSettings


class Settings(BaseSettings):
  """Settings for the CRM Lead Call Relay.

  Every provider credential is optional: a missing CRM key disables the
  item enrichment fetch and missing calling-provider credentials switch
  the relay to simulation mode.
  """

  model_config = SettingsConfigDict(
      env_file='.env', env_file_encoding='utf-8', extra='ignore'
  )
  APP_NAME: str = 'CRM Lead Call Relay'
  PORT: int = 3000

  # CRM (monday.com)
  MONDAY_API_KEY: str | None = None
  MONDAY_API_URL: str = 'https://api.monday.com/v2'
  CRM_COMPANY_COLUMN: str = 'lead_company'

  # Calling provider (ElevenLabs)
  ELEVENLABS_API_KEY: str | None = None
  ELEVENLABS_AGENT_ID: str | None = None
  ELEVENLABS_PHONE_NUMBER_ID: str = 'default_phone_id'
  ELEVENLABS_BASE_URL: str = 'https://api.elevenlabs.io/v1'

  # Lead defaults
  DEFAULT_COUNTRY_CODE: str = '+55'
  DEFAULT_CUSTOMER_NAME: str = 'Customer'
  DEFAULT_COMPANY_NAME: str = 'your restaurant'

  def calling_configured(self) -> bool:
    """Whether the calling provider can be contacted for real."""
    return bool(self.ELEVENLABS_API_KEY and self.ELEVENLABS_AGENT_ID)
