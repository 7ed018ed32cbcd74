"""Currency formatting for the group's fixed currency."""

from decimal import Decimal

from utils.money import from_cents


# Currency symbols for formatting
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "CNY": "¥",
    "HKD": "HK$",
    "TWD": "NT$",
}

# Currencies that are not shown with decimal places
ZERO_DECIMAL_CURRENCIES = {"JPY", "TWD"}


def format_currency(amount_cents: int, currency: str) -> str:
    """
    Format an amount in cents as a currency string with symbol.

    Args:
        amount_cents: Amount in cents (e.g., 1234 for HK$12.34)
        currency: Currency code (e.g., "HKD", "EUR")

    Returns:
        Formatted string with symbol (e.g., "HK$12.34", "-€12.34")
    """
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    amount: Decimal = from_cents(amount_cents)
    sign = "-" if amount < 0 else ""

    if currency in ZERO_DECIMAL_CURRENCIES:
        return f"{sign}{symbol}{abs(amount):.0f}"

    return f"{sign}{symbol}{abs(amount):.2f}"
