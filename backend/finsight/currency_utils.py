"""
Currency utilities for report display

Default formatter used by the exporters when the host application does not
supply its own locale-aware one.
"""

from typing import Callable, Union

CurrencyFormatter = Callable[[float, str], str]

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "EUR ",
    "GBP": "GBP ",
    "INR": "Rs. ",
    "JPY": "JPY ",
    "CAD": "CA$",
    "AUD": "A$",
}

# Currencies displayed without minor units
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW"}


def format_currency(amount: Union[float, int, str, None], currency: str = "USD") -> str:
    """
    Format an amount for display in reports

    Args:
        amount: Numeric amount (strings are parsed, unparsable values show as 0)
        currency: ISO currency code

    Returns:
        Formatted string like "$1,234.50" or "-$12.00"; unknown codes
        are suffixed instead: "1,234.50 CHF"
    """
    try:
        value = float(amount) if amount is not None else 0.0
    except (TypeError, ValueError):
        value = 0.0

    code = (currency or "USD").upper()
    decimals = 0 if code in ZERO_DECIMAL_CURRENCIES else 2
    body = f"{abs(value):,.{decimals}f}"
    sign = "-" if value < 0 else ""

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{body} {code}"
    return f"{sign}{symbol}{body}"
