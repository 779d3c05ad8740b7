"""
validator.py — turns Gemini's raw JSON text into a ProductRecord.

Rules:
  • Malformed JSON or a non-object reply      → ValidationError(MALFORMED_JSON)
  • Required field absent or null             → ValidationError(MISSING_FIELD),
    every missing field is reported at once
  • Field of the wrong coarse type            → ValidationError(WRONG_TYPE)
  • Blank productName                         → ValidationError(EMPTY_REQUIRED)
  • Unparseable price-history entry           → entry dropped, record still valid
"""
from __future__ import annotations

import json
import logging
import math
import re
from enum import Enum
from typing import Any, Optional

from product_record import PricePoint, ProductRecord
from product_schema import (
    ARRAY, NON_EMPTY_FIELDS, NUMBER, PRODUCT_SCHEMA, STRING,
    field_type, item_type, required_fields,
)

logger = logging.getLogger(__name__)

_NON_PRICE_CHARS = re.compile(r"[^0-9.]")


class ValidationErrorKind(str, Enum):
    MALFORMED_JSON = "malformed_json"
    MISSING_FIELD  = "missing_field"
    WRONG_TYPE     = "wrong_type"
    EMPTY_REQUIRED = "empty_required"


class ValidationError(Exception):
    """The reply parsed (or failed to) but doesn't satisfy the schema."""

    def __init__(self, kind: ValidationErrorKind, message: str, fields: tuple[str, ...] = ()):
        super().__init__(message)
        self.kind   = kind
        self.fields = fields

    @property
    def field(self) -> Optional[str]:
        """First offending field, if any."""
        return self.fields[0] if self.fields else None


# ── Helpers ────────────────────────────────────────────────────────────────────

def _strip_fences(raw: str) -> str:
    text = raw.strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    return text


def parse_price(value: Any) -> Optional[float]:
    """
    Numeric USD value from strings like '$3.50', '3.50 USD', '₹3.50', '$1,299.00'.
    Everything except digits and '.' is stripped. Returns None when nothing
    usable is left or the result is negative / not finite.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = _NON_PRICE_CHARS.sub("", str(value))
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _parse_year(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _price_history(entries: list) -> tuple[PricePoint, ...]:
    points: list[PricePoint] = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Dropping price-history entry that is not an object: %r", entry)
            continue
        year  = _parse_year(entry.get("year"))
        price = parse_price(entry.get("price"))
        if year is None or price is None:
            logger.warning("Dropping unparseable price-history entry: %r", entry)
            continue
        points.append(PricePoint(year=year, price_usd=price))
    return tuple(points)


def _check_type(name: str, value: Any, schema: dict) -> Optional[str]:
    """Return a problem description, or None when value matches the schema."""
    declared = field_type(schema, name)
    if declared == STRING and not isinstance(value, str):
        return f"{name} should be a string, got {type(value).__name__}"
    if declared == NUMBER and (isinstance(value, bool) or not isinstance(value, (int, float))):
        return f"{name} should be a number, got {type(value).__name__}"
    if declared == ARRAY:
        if not isinstance(value, list):
            return f"{name} should be an array, got {type(value).__name__}"
        if item_type(schema, name) == STRING and not all(isinstance(v, str) for v in value):
            return f"{name} should contain only strings"
    return None


# ── Public API ─────────────────────────────────────────────────────────────────

def parse_reply(raw_text: str) -> dict:
    """Parse the reply body into a dict. Raises ValidationError(MALFORMED_JSON)."""
    try:
        data = json.loads(_strip_fences(raw_text))
    except (json.JSONDecodeError, TypeError) as exc:
        logger.error("Non-JSON reply: %s", str(raw_text)[:300])
        raise ValidationError(
            ValidationErrorKind.MALFORMED_JSON, f"Reply is not valid JSON: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise ValidationError(
            ValidationErrorKind.MALFORMED_JSON,
            f"Reply should be a JSON object, got {type(data).__name__}",
        )
    return data


def validate(raw_text: str, schema: dict = PRODUCT_SCHEMA) -> ProductRecord:
    """Validate and normalise one reply. Pure: same text → equal records."""
    data = parse_reply(raw_text)

    missing = tuple(name for name in required_fields(schema) if data.get(name) is None)
    if missing:
        raise ValidationError(
            ValidationErrorKind.MISSING_FIELD,
            f"Reply is missing required field(s): {', '.join(missing)}",
            fields=missing,
        )

    for name in required_fields(schema):
        problem = _check_type(name, data[name], schema)
        if problem:
            raise ValidationError(ValidationErrorKind.WRONG_TYPE, problem, fields=(name,))

    for name in NON_EMPTY_FIELDS:
        if name in data and not str(data[name]).strip():
            raise ValidationError(
                ValidationErrorKind.EMPTY_REQUIRED, f"{name} is empty", fields=(name,)
            )

    history = _price_history(data["priceHistory"])
    if len(history) < len(data["priceHistory"]):
        logger.info(
            "Kept %d of %d price-history entries for %s",
            len(history), len(data["priceHistory"]), data["productName"],
        )

    return ProductRecord(
        product_name    = data["productName"].strip(),
        parent_company  = data["parentCompany"],
        price_history   = history,
        ingredients     = tuple(data["ingredients"]),
        content         = data["content"],
        good_content    = tuple(data["goodContent"]),
        harmful_content = tuple(data["harmfulContent"]),
        customer_info   = data["customerInfo"],
    )
