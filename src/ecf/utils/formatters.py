from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric value to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_amount(value: Decimal | int | float | str, places: int = 2) -> Decimal:
    """Round half-up to a fixed number of decimal places."""
    return to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_amount(value: Decimal | int | float | str, places: int = 2) -> str:
    """Format a number with exactly ``places`` decimals, as the DGII schema expects."""
    return f"{round_amount(value, places):.{places}f}"


def format_dop(value: Decimal | int | float | str) -> str:
    """Format an amount as RD$ X,XXX.XX."""
    return f"RD$ {round_amount(value):,.2f}"
