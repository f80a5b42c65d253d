"""Amount parsing and rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

KOBO = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "₦123.45", "NGN 123.45", "N123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "1.5m", "250k" (shorthand used in chat messages)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Naira prefix, optionally after a minus sign
    prefix = re.match(r"(?i)^(-?)\s*(ngn|₦|n)\s*", amount_str)
    if prefix:
        amount_str = prefix.group(1) + amount_str[prefix.end():]
    amount_str = re.sub(r"[$€£]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    multiplier = Decimal(1)
    suffix = amount_str[-1:].lower()
    if suffix == "k":
        multiplier = Decimal(1000)
        amount_str = amount_str[:-1]
    elif suffix == "m":
        multiplier = Decimal(1000000)
        amount_str = amount_str[:-1]

    try:
        amount = Decimal(amount_str.strip()) * multiplier
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def round_money(amount) -> Decimal:
    """Round a value to kobo using half-up rounding."""
    return Decimal(amount).quantize(KOBO, rounding=ROUND_HALF_UP)
