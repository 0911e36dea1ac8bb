# PATH: core/math.py
"""
Math utilities for SWITCHVAULT.

Integer-only share pricing. Every ratio uses floor division so rounding
error always stays in the vault. Decimal is used only for display.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from core.constants import BPS_DENOMINATOR, INDEX_SCALE, SECONDS_PER_YEAR


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute floor(a * b / denominator) without intermediate rounding.

    Raises:
        ZeroDivisionError: If denominator is zero
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    return (a * b) // denominator


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """Compute ceil(a * b / denominator)."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div_up denominator is zero")
    return -((-a * b) // denominator)


def convert_to_shares(assets: int, total_shares: int, total_assets: int) -> int:
    """
    Price a deposit of `assets` in shares.

    Bootstrap (empty vault on either side) mints 1:1.
    """
    if total_shares == 0 or total_assets == 0:
        return assets
    return mul_div(assets, total_shares, total_assets)


def convert_to_assets(shares: int, total_shares: int, total_assets: int) -> int:
    """Price a redemption of `shares` in assets. Empty vault redeems nothing."""
    if total_shares == 0:
        return 0
    return mul_div(shares, total_assets, total_shares)


def loss_bps(before: int, after: int) -> int:
    """
    Fractional loss from `before` to `after` in basis points (floor).

    Gains report as 0.
    """
    if before <= 0 or after >= before:
        return 0
    return mul_div(before - after, BPS_DENOMINATOR, before)


def exceeds_bps(before: int, after: int, max_bps: int) -> bool:
    """
    Check whether the loss from `before` to `after` is strictly above max_bps.

    Compared by cross-multiplication so a loss of 100.4 bps still
    breaches a 100 bps ceiling.
    """
    if before <= 0 or after >= before:
        return False
    return (before - after) * BPS_DENOMINATOR > max_bps * before


def accrue_index(index: int, rate_bps: int, elapsed_seconds: int) -> int:
    """
    Grow a fixed-point index by simple interest over elapsed_seconds.

    index * (1 + rate_bps / 10_000 * elapsed / year), floored.
    """
    if elapsed_seconds <= 0 or rate_bps == 0:
        return index
    growth = mul_div(index, rate_bps * elapsed_seconds, BPS_DENOMINATOR * SECONDS_PER_YEAR)
    return index + growth


def price_per_share(total_assets: int, total_shares: int) -> Decimal:
    """Assets per share as a display Decimal (1 for an empty vault)."""
    if total_shares == 0:
        return Decimal("1")
    return Decimal(total_assets) / Decimal(total_shares)


def index_to_decimal(index: int) -> Decimal:
    """Convert a fixed-point index to Decimal."""
    return Decimal(index) / Decimal(INDEX_SCALE)


def bps_to_decimal(bps: Union[str, int, Decimal]) -> Decimal:
    """
    Convert basis points to decimal (100 bps = 0.01 = 1%).

    Unparseable input converts to zero.
    """
    try:
        return Decimal(str(bps)) / Decimal(BPS_DENOMINATOR)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")
