# PATH: core/format_money.py
"""
Safe money formatting utilities for SWITCHVAULT.

Protocol amounts are integers in base units. These helpers render them
for reports and CLI output; nothing here feeds back into accounting.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP, localcontext
from typing import Union


def format_money(value: Union[str, Decimal, int, None], decimals: int = 6) -> str:
    """
    Format a money value with a fixed number of decimal places.

    Uses ROUND_HALF_UP. Unparseable input renders as zero.

    Example:
        >>> format_money("123.45")
        '123.450000'
        >>> format_money(None, decimals=2)
        '0.00'
    """
    zero = f"0.{'0' * decimals}" if decimals > 0 else "0"
    if value is None or isinstance(value, bool):
        return zero

    try:
        if isinstance(value, str):
            if not value.strip():
                return zero
            dec_value = Decimal(value.strip())
        else:
            dec_value = Decimal(value)

        with localcontext() as ctx:
            ctx.prec = 60
            quantize_str = "0." + "0" * decimals if decimals > 0 else "0"
            rounded = dec_value.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)

        if rounded == 0:
            rounded = abs(rounded)
        return f"{rounded:.{decimals}f}"

    except (InvalidOperation, ValueError, TypeError):
        return zero


def format_units(amount: int, decimals: int, display_decimals: int | None = None) -> str:
    """
    Render an integer base-unit amount as a token amount.

    Truncates (never rounds up) when display_decimals < decimals so a
    displayed balance is never more than what is held.

    Example:
        >>> format_units(10_510_000_000, 6)
        '10510.000000'
        >>> format_units(1_999_999, 6, display_decimals=2)
        '1.99'
    """
    shown = decimals if display_decimals is None else display_decimals
    with localcontext() as ctx:
        ctx.prec = 80
        value = Decimal(amount) / (Decimal(10) ** decimals)
        quantize_str = "0." + "0" * shown if shown > 0 else "0"
        value = value.quantize(Decimal(quantize_str), rounding=ROUND_DOWN)
    return f"{value:.{shown}f}"


def format_bps(value: Union[str, Decimal, int, None]) -> str:
    """
    Format a basis-points value as a percentage string.

    Example:
        >>> format_bps(510)
        '5.10%'
    """
    try:
        pct = Decimal(str(value)) / Decimal(100) if value is not None else Decimal(0)
    except (InvalidOperation, ValueError):
        pct = Decimal(0)
    return f"{format_money(pct, decimals=2)}%"
