"""
product_record.py — canonical home of ProductRecord.

Produced only by validator.validate(); everything downstream (derived.py,
style.py, bot.py) treats it as read-only.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PricePoint:
    year: int
    price_usd: float      # always >= 0


@dataclass(frozen=True)
class ProductRecord:
    """Validated product details for one successful lookup."""
    product_name: str
    parent_company: str
    price_history: tuple[PricePoint, ...]   # model order, not re-sorted; may be empty
    ingredients: tuple[str, ...]
    content: str
    good_content: tuple[str, ...]
    harmful_content: tuple[str, ...]
    customer_info: str

    @property
    def has_price_history(self) -> bool:
        return bool(self.price_history)
