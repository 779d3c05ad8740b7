"""
product_schema.py — the JSON shape Gemini is asked to return.

PRODUCT_SCHEMA is sent as generationConfig.responseSchema AND read by
validator.py to decide which fields are required and what type each has.
Edit it here only.
"""
from __future__ import annotations

from typing import Optional

STRING = "STRING"
NUMBER = "NUMBER"
ARRAY  = "ARRAY"
OBJECT = "OBJECT"

PRODUCT_SCHEMA: dict = {
    "type": OBJECT,
    "properties": {
        "productName":   {"type": STRING},
        "parentCompany": {"type": STRING},
        "priceHistory": {
            "type": ARRAY,
            "items": {
                "type": OBJECT,
                "properties": {
                    "year":  {"type": NUMBER},
                    "price": {"type": STRING},   # model writes "$3.50" etc, parsed later
                },
            },
        },
        "ingredients":    {"type": ARRAY, "items": {"type": STRING}},
        "content":        {"type": STRING},
        "goodContent":    {"type": ARRAY, "items": {"type": STRING}},
        "harmfulContent": {"type": ARRAY, "items": {"type": STRING}},
        "customerInfo":   {"type": STRING},
    },
    "required": [
        "productName",
        "parentCompany",
        "priceHistory",
        "ingredients",
        "content",
        "goodContent",
        "harmfulContent",
        "customerInfo",
    ],
}

# Required string fields that must also contain something other than whitespace
NON_EMPTY_FIELDS: tuple[str, ...] = ("productName",)


def required_fields(schema: dict) -> list[str]:
    return list(schema.get("required", []))


def field_type(schema: dict, name: str) -> Optional[str]:
    """Declared coarse type of a top-level field, or None if undeclared."""
    prop = schema.get("properties", {}).get(name)
    return prop.get("type") if prop else None


def item_type(schema: dict, name: str) -> Optional[str]:
    """Declared type of the items of an ARRAY field, or None."""
    prop = schema.get("properties", {}).get(name) or {}
    items = prop.get("items")
    return items.get("type") if items else None
