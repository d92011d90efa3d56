"""monday.com CRM service.

Fetches the full snapshot of a board item so that a webhook which only
carries a few fields can still produce a complete lead.
"""

import asyncio
import logging
from typing import Any, Callable

import aiohttp
from lead_relay.config import Settings
from lead_relay.core import errors
from lead_relay.core import extraction
from lead_relay.schemas import lead as lead_lib

CrmItemSnapshot = lead_lib.CrmItemSnapshot
ColumnRole = extraction.ColumnRole
CrmApiError = errors.CrmApiError

ITEM_QUERY = """
query ($ids: [ID!]) {
  items(ids: $ids) {
    id
    name
    column_values {
      id
      text
      value
    }
  }
}
"""


class MondayCrmService:
  """Reads items from the monday.com GraphQL API."""

  def __init__(
      self,
      settings: Settings,
      session_factory: Callable[[], Any] = aiohttp.ClientSession,
  ):
    self.settings = settings
    self.session_factory = session_factory
    if not settings.MONDAY_API_KEY:
      logging.warning(
          "CRM_SERVICE: MONDAY_API_KEY not configured, item details will not"
          " be fetched."
      )

  async def fetch_item_details(
      self, board_id: str | None, item_id: str | None
  ) -> CrmItemSnapshot | None:
    """Fetches an item and extracts its phone, email and company.

    Args:
      board_id: Board the item lives on. Only used for logging.
      item_id: The item ("pulse") id.

    Returns:
      The item snapshot, or None if the item does not exist or cannot be
      looked up.

    Raises:
      CrmApiError: The API answered with an error.
    """
    if not self.settings.MONDAY_API_KEY or not item_id:
      logging.info(
          "CRM_SERVICE: Skipping item fetch (board %s, item %s).",
          board_id,
          item_id,
      )
      return None

    logging.info(
        "CRM_SERVICE: Fetching item %s from board %s.", item_id, board_id
    )
    try:
      async with self.session_factory() as session:
        response = await session.post(
            self.settings.MONDAY_API_URL,
            json={"query": ITEM_QUERY, "variables": {"ids": [str(item_id)]}},
            headers={
                "Authorization": self.settings.MONDAY_API_KEY,
                "Content-Type": "application/json",
            },
        )
        if response.status >= 400:
          raise CrmApiError(response.status, await response.text())
        body = await response.json(content_type=None)
    except asyncio.TimeoutError as e:
      raise CrmApiError(None, "timeout") from e
    except aiohttp.ClientError as e:
      raise CrmApiError(None, str(e)) from e
    except ValueError as e:
      raise CrmApiError(response.status, f"Invalid JSON response: {e}") from e

    if not isinstance(body, dict):
      raise CrmApiError(response.status, f"Unexpected response: {body!r}")
    if body.get("errors"):
      raise CrmApiError(response.status, str(body["errors"]))

    data = body.get("data")
    items = (data.get("items") if isinstance(data, dict) else None) or []
    if (
        not isinstance(items, list)
        or not items
        or not isinstance(items[0], dict)
    ):
      logging.warning("CRM_SERVICE: Item %s not found.", item_id)
      return None
    return self.parse_item(items[0])

  def parse_item(self, item: dict[str, Any]) -> CrmItemSnapshot:
    """Builds a snapshot from one GraphQL item."""
    phone = email = company = None
    columns: dict[str, str | None] = {}
    for column in item.get("column_values") or []:
      if not isinstance(column, dict):
        continue
      column_id = column.get("id") or ""
      text = column.get("text")
      columns[column_id] = text or column.get("value")
      if not text:
        continue

      role = extraction.classify_column(column_id)
      if role is ColumnRole.PHONE:
        phone = extraction.normalize_phone(
            text, self.settings.DEFAULT_COUNTRY_CODE
        )
        logging.info(
            "CRM_SERVICE: Phone found in column %s: %s", column_id, phone
        )
      elif role is ColumnRole.EMAIL:
        email = extraction.validate_email(text)
        logging.info(
            "CRM_SERVICE: Email found in column %s: %s", column_id, email
        )
      elif role is ColumnRole.COMPANY:
        company = extraction.company_name(text)
        logging.info(
            "CRM_SERVICE: Company found in column %s: %s", column_id, company
        )

    return CrmItemSnapshot(
        id=str(item.get("id")),
        name=item.get("name"),
        phone=phone,
        email=email,
        company=company,
        columns=columns,
    )
