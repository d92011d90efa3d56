"""Pydantic schemas for data validation and serialization."""

import datetime
import json
from typing import Any, Literal

import pydantic

Field = pydantic.Field
BaseModel = pydantic.BaseModel
ConfigDict = pydantic.ConfigDict


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


class TextColumnValue(BaseModel):
  """A CRM column value delivered as a plain string."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["text"] = "text"
  text: str


class StructuredColumnValue(BaseModel):
  """A CRM column value delivered as an object with `text` and/or `value`."""

  model_config = ConfigDict(frozen=True)

  kind: Literal["structured"] = "structured"
  text: str | None = None
  value: Any = None


ColumnValue = TextColumnValue | StructuredColumnValue


def coerce_column_value(raw: Any) -> ColumnValue | None:
  """Wraps a raw CRM column value into the column value union.

  Args:
    raw: Whatever the CRM sent for the column.

  Returns:
    The wrapped value, or None when the column is absent or empty.
  """
  if raw is None or raw == "":
    return None
  if isinstance(raw, (TextColumnValue, StructuredColumnValue)):
    return raw
  if isinstance(raw, str):
    return TextColumnValue(text=raw)
  if isinstance(raw, dict):
    text = raw.get("text")
    return StructuredColumnValue(
        text=text if isinstance(text, str) else None, value=raw.get("value")
    )
  if isinstance(raw, bool):
    return None
  if isinstance(raw, (int, float)):
    return TextColumnValue(text=str(raw))
  return StructuredColumnValue(value=raw)


def column_text(column: ColumnValue | None) -> str:
  """Returns the best textual form of a column value, or an empty string."""
  if column is None:
    return ""
  if isinstance(column, TextColumnValue):
    return column.text
  if column.text:
    return column.text
  value = column.value
  if value is None:
    return ""
  if isinstance(value, str):
    return value
  return json.dumps(value)


class CrmItemSnapshot(BaseModel):
  """Full item details fetched from the CRM query API."""

  id: str
  name: str | None = None
  phone: str | None = None
  email: str | None = None
  company: str | None = None
  columns: dict[str, str | None] = Field(default_factory=dict)


class LeadRecord(BaseModel):
  """Canonical lead built once per webhook event."""

  model_config = ConfigDict(frozen=True)

  id: str = Field(..., description="CRM item id, or a generated one.")
  name: str = Field(..., description="Display name of the lead.")
  phone: str | None = Field(None, description="Normalized phone number.")
  email: str | None = None
  company: str | None = None
  source: str = Field(..., description="Where the lead came from.")
  created_at: datetime.datetime = Field(default_factory=_utcnow)
  board_id: str | None = None
  event_type: str | None = None
  column_id: str | None = None
  column_value: Any = None
  crm_snapshot: CrmItemSnapshot | None = None


class CallRequest(BaseModel):
  """Request body for an outbound call on the calling provider."""

  agent_id: str
  phone_line_id: str
  destination_number: str
  variables: dict[str, str]

  def to_provider_payload(self) -> dict[str, Any]:
    """Returns the body expected by the outbound-call endpoint."""
    return {
        "agent_id": self.agent_id,
        "agent_phone_number_id": self.phone_line_id,
        "to_number": self.destination_number,
        "dynamic_variables": dict(self.variables),
    }


class CallResult(BaseModel):
  """Outcome of placing (or simulating) an outbound call."""

  success: bool = True
  call_id: str | None = None
  status: str
  lead_id: str
  phone: str
  timestamp: datetime.datetime = Field(default_factory=_utcnow)
  simulation: bool = False
  message: str | None = None


class ManualCallPayload(BaseModel):
  """Body of the manual test-call endpoint."""

  phone: str | int | None = Field(None, description="Number to call.")
  name: str | None = Field(None, description="Name used in the call.")
