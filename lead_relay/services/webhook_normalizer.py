"""Turns CRM webhook events into canonical lead records.

The CRM sends the same information in more than one shape: either nested
under `event.data`, directly under `event`, or as siblings of `event` at the
top level. Every field is resolved through an ordered list of accessors and
the first non-empty value wins.
"""

import logging
import time
from typing import Any, Callable, Sequence

from lead_relay.config import Settings
from lead_relay.core import errors
from lead_relay.core import extraction
from lead_relay.schemas import lead as lead_lib
from lead_relay.services import crm_service as crm_service_lib

LeadRecord = lead_lib.LeadRecord
CrmItemSnapshot = lead_lib.CrmItemSnapshot
ColumnRole = extraction.ColumnRole
MondayCrmService = crm_service_lib.MondayCrmService

Accessor = Callable[[dict[str, Any]], Any]

CREATE_EVENTS = frozenset({"create_pulse"})
CHANGE_EVENTS = frozenset({"change_column_value", "update_column_value"})
LEAD_EVENTS = CREATE_EVENTS | CHANGE_EVENTS

LEAD_SOURCE = "monday.com"
UNNAMED_LEAD = "Lead without name"


def path(*keys: str) -> Accessor:
  """Returns an accessor reading a nested key path, or None if missing."""

  def accessor(payload: dict[str, Any]) -> Any:
    node: Any = payload
    for key in keys:
      if not isinstance(node, dict):
        return None
      node = node.get(key)
    return node

  return accessor


def first_defined(
    payload: dict[str, Any], accessors: Sequence[Accessor]
) -> Any:
  """Returns the first value that is neither None nor an empty string."""
  for accessor in accessors:
    value = accessor(payload)
    if value is not None and value != "":
      return value
  return None


EVENT_TYPE = (path("event", "type"), path("type"))
ITEM_ID = (
    path("event", "data", "pulse_id"),
    path("event", "pulseId"),
    path("pulseId"),
)
BOARD_ID = (
    path("event", "data", "board_id"),
    path("event", "boardId"),
    path("boardId"),
)
COLUMN_ID = (path("event", "data", "column_id"), path("event", "columnId"))
COLUMN_VALUE = (path("event", "data", "value"), path("event", "value"))
ITEM_NAME = (path("event", "pulseName"), path("pulseName"))
COLUMN_VALUES = (path("columnValues"), path("event", "columnValues"))


def _as_id(value: Any) -> str | None:
  return None if value is None else str(value)


class WebhookNormalizer:
  """Builds a LeadRecord from a CRM webhook payload."""

  def __init__(self, settings: Settings, crm_service: MondayCrmService):
    self.settings = settings
    self.crm_service = crm_service

  async def normalize(self, payload: dict[str, Any]) -> LeadRecord | None:
    """Extracts a lead from a webhook payload.

    Fields are seeded from the CRM item snapshot and then overwritten by
    any phone, email or company column carried directly in the webhook.

    Args:
      payload: The decoded webhook body.

    Returns:
      The lead, or None when the event is not a lead creation or column
      change. The lead may have no phone; callers decide what to do then.
    """
    event_type = first_defined(payload, EVENT_TYPE)
    if not isinstance(event_type, str) or event_type not in LEAD_EVENTS:
      logging.info(
          "NORMALIZER: Event type %r is not a lead event, ignoring.",
          event_type,
      )
      return None

    item_id = _as_id(first_defined(payload, ITEM_ID))
    board_id = _as_id(first_defined(payload, BOARD_ID))
    column_id = _as_id(first_defined(payload, COLUMN_ID))
    column_value = first_defined(payload, COLUMN_VALUE)
    item_name = first_defined(payload, ITEM_NAME)
    logging.info(
        "NORMALIZER: Event %s for item %s on board %s (column %s).",
        event_type,
        item_id,
        board_id,
        column_id,
    )

    snapshot = await self._fetch_snapshot(board_id, item_id)
    fields: dict[str, Any] = {
        "phone": snapshot.phone if snapshot else None,
        "email": snapshot.email if snapshot else None,
        "company": snapshot.company if snapshot else None,
    }

    column_values = first_defined(payload, COLUMN_VALUES)
    if isinstance(column_values, dict):
      fields.update(self.extract_columns(column_values))

    if not fields["phone"]:
      logging.warning("NORMALIZER: Phone not found for item %s.", item_id)

    return LeadRecord(
        id=item_id or f"lead-{int(time.time() * 1000)}",
        name=str(item_name or (snapshot and snapshot.name) or UNNAMED_LEAD),
        source=LEAD_SOURCE,
        board_id=board_id,
        event_type=event_type,
        column_id=column_id,
        column_value=column_value,
        crm_snapshot=snapshot,
        **fields,
    )

  def extract_columns(self, column_values: dict[str, Any]) -> dict[str, str]:
    """Picks phone, email and company out of a webhook column map.

    Only columns that yield a usable value are returned, so a blank phone
    column never erases a phone found in the CRM snapshot.
    """
    found: dict[str, str] = {}
    for column_id, raw in column_values.items():
      if not raw:
        continue
      role = extraction.classify_column(column_id)
      if role is ColumnRole.PHONE:
        value = extraction.normalize_phone(
            raw, self.settings.DEFAULT_COUNTRY_CODE
        )
      elif role is ColumnRole.EMAIL:
        value = extraction.validate_email(raw)
      elif role is ColumnRole.COMPANY:
        value = extraction.company_name(raw)
      else:
        continue
      if value:
        found[role.value] = value
    return found

  async def _fetch_snapshot(
      self, board_id: str | None, item_id: str | None
  ) -> CrmItemSnapshot | None:
    try:
      return await self.crm_service.fetch_item_details(board_id, item_id)
    except errors.CrmApiError as e:
      logging.error(
          "NORMALIZER: Could not fetch item %s from the CRM: %s", item_id, e
      )
      return None
