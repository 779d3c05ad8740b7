"""
Display values computed from a ProductRecord. Never stored; recomputed on
every render so a currency change takes effect immediately.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import currency
from product_record import ProductRecord

RISK_PER_HARMFUL_ITEM = 20
MAX_RISK_PERCENT      = 100


def risk_percent(harmful_content: Sequence[str]) -> int:
    """Simulated health-risk score: 20 points per harmful item, capped at 100."""
    return min(len(harmful_content) * RISK_PER_HARMFUL_ITEM, MAX_RISK_PERCENT)


def display_price(price_usd: float, currency_code: str) -> str:
    """'$10.00', '₹830.00', '€9.20' … unknown codes are shown as USD."""
    converted = price_usd * currency.rate(currency_code)
    return f"{currency.symbol(currency_code)}{converted:.2f}"


@dataclass(frozen=True)
class DerivedView:
    health_risk_percent: int
    currency_code: str

    def display_price(self, price_usd: float) -> str:
        return display_price(price_usd, self.currency_code)


def derive_view(record: ProductRecord, currency_code: str) -> DerivedView:
    return DerivedView(
        health_risk_percent=risk_percent(record.harmful_content),
        currency_code=currency_code,
    )
