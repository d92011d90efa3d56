"""Maps loosely-typed CRM columns onto lead fields."""

import enum
import logging
import re
from typing import Any

from lead_relay.schemas import lead as lead_lib

coerce_column_value = lead_lib.coerce_column_value
column_text = lead_lib.column_text

DEFAULT_COUNTRY_CODE = "+55"
MIN_PHONE_LENGTH = 10
_LOCAL_PHONE_DIGITS = (10, 11)

_NON_PHONE_CHARS = re.compile(r"[^\d+]")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ColumnRole(enum.Enum):
  PHONE = "phone"
  EMAIL = "email"
  COMPANY = "company"
  NONE = "none"


# Checked in this order; a column only ever gets the first role it matches.
_ROLE_KEYWORDS: tuple[tuple[ColumnRole, tuple[str, ...]], ...] = (
    (ColumnRole.PHONE, ("phone", "telefone", "tel", "celular", "mobile")),
    (ColumnRole.EMAIL, ("email", "mail", "e-mail")),
    (ColumnRole.COMPANY, ("company", "empresa", "business", "organization")),
)


def classify_column(identifier: str | None) -> ColumnRole:
  """Guesses the semantic role of a CRM column from its identifier.

  Args:
    identifier: The column id, e.g. "phone_mkr1" or "Telefone Celular".

  Returns:
    The first role whose keywords occur in the identifier, ignoring case,
    or ColumnRole.NONE.
  """
  if not identifier:
    return ColumnRole.NONE
  lowered = identifier.lower()
  for role, keywords in _ROLE_KEYWORDS:
    if any(keyword in lowered for keyword in keywords):
      return role
  return ColumnRole.NONE


def normalize_phone(
    value: Any, country_code: str = DEFAULT_COUNTRY_CODE
) -> str | None:
  """Normalizes a phone column value into an E.164-like string.

  Keeps digits and "+" only. Local numbers with 10 or 11 digits get the
  default country code. Anything shorter than 10 characters is rejected
  rather than guessed.

  Args:
    value: Raw or wrapped column value.
    country_code: Prefix added to local numbers.

  Returns:
    The normalized number, or None.
  """
  phone = _NON_PHONE_CHARS.sub("", column_text(coerce_column_value(value)))
  if len(phone) in _LOCAL_PHONE_DIGITS and not phone.startswith("+"):
    phone = country_code + phone
  if len(phone) >= MIN_PHONE_LENGTH:
    logging.info("EXTRACTOR: Phone extracted and formatted: %s", phone)
    return phone
  return None


def validate_email(value: Any) -> str | None:
  """Returns the column value if it looks like local@domain.tld, else None."""
  email = column_text(coerce_column_value(value)).strip()
  if _EMAIL_PATTERN.match(email):
    return email
  return None


def company_name(value: Any) -> str | None:
  """Returns the company column text, or None when empty."""
  return column_text(coerce_column_value(value)).strip() or None
