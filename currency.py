"""
currency.py — static display-currency table.

Rates are fixed demonstration values relative to a USD base, not market data.
"""

BASE_CURRENCY = "USD"

# code → multiplier (1 USD = x units)
EXCHANGE_RATES: dict[str, float] = {
    "USD": 1.0,
    "INR": 83.00,
    "EUR": 0.92,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "INR": "₹",
    "EUR": "€",
}


def rate(currency_code: str) -> float:
    """Multiplier for currency_code; unknown codes fall back to 1 (USD)."""
    return EXCHANGE_RATES.get(currency_code, 1.0)


def symbol(currency_code: str) -> str:
    """Display symbol for currency_code; unknown codes fall back to '$'."""
    return CURRENCY_SYMBOLS.get(currency_code, CURRENCY_SYMBOLS[BASE_CURRENCY])
