"""
Display formatting for prices and liquidity amounts.

Token prices quoted in another token can be extremely small (e.g. a meme
token priced in WETH), so sub-unit prices get adaptive precision: enough
decimals to show at least four significant digits, capped at 12.
"""
import re
from decimal import Decimal
from typing import Optional

from config import config

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

MAX_PRICE_DECIMALS = 12
SMALL_PRICE_DECIMALS = 6
LEADING_ZERO_THRESHOLD = 3
SIGNIFICANT_DIGITS = 4

COMPACT_UNITS = [
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
]


def count_leading_zeros(value: float) -> int:
    """
    Zeros between the decimal point and the first significant digit,
    e.g. 0.000123 -> 3, 0.05 -> 1, 0.5 -> 0. Only meaningful for 0 < value < 1.
    """
    # Decimal(str(...)) avoids log10 rounding on exact powers of ten
    exponent = Decimal(str(abs(value))).adjusted()
    return max(-exponent - 1, 0)


def _rounded(value: float, decimals: int) -> float:
    """The value as it will actually be printed with `decimals` places."""
    return float(f"{value:.{decimals}f}")


def price_decimals(price: float) -> int:
    decimals = _tier_decimals(price)
    # 999.99999 prints as 1000 at 4 decimals, so it belongs in the 1000+ tier
    shown = _rounded(price, decimals)
    return _tier_decimals(shown) if shown != 0 else decimals


def _tier_decimals(price: float) -> int:
    p = abs(price)
    if p >= 1000:
        return 2
    if p >= 1:
        return 4
    zeros = count_leading_zeros(p)
    if zeros < LEADING_ZERO_THRESHOLD:
        return SMALL_PRICE_DECIMALS
    return min(zeros + SIGNIFICANT_DIGITS, MAX_PRICE_DECIMALS)


def _suffix(symbol: Optional[str]) -> str:
    return f" {symbol}" if symbol else ""


def format_number(value: float, decimals: int = 2, compact: bool = False, currency: bool = False) -> str:
    """
    Comma-grouped fixed-decimal formatting. With compact=True, values of a
    thousand or more are scaled down and suffixed with K/M/B.
    """
    prefix = config.CURRENCY_SYMBOL if currency else ""

    if compact:
        for threshold, unit in COMPACT_UNITS:
            # 999_999.9 would print as 1000.00K; promote it to 1.00M
            if value >= threshold or _rounded(value / threshold * 1000, decimals) >= 1000:
                return f"{prefix}{value / threshold:.{decimals}f}{unit}"

    return f"{prefix}{value:,.{decimals}f}"


def format_price(price: float, symbol: Optional[str] = None) -> str:
    if price == 0:
        return "0" + _suffix(symbol)
    return format_number(price, decimals=price_decimals(price)) + _suffix(symbol)


def format_price_range(price_lower: float, price_upper: float, symbol: Optional[str] = None) -> str:
    return f"{format_number(price_lower, decimals=4)} - {format_number(price_upper, decimals=4)}{_suffix(symbol)}"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Signed percentage, e.g. +3.2% / -0.5%."""
    # -0.04 should print as +0.0%, not -0.0%
    value = round(value, decimals) + 0.0
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_ratio(value: float) -> str:
    return f"{value:.2f}:1"


def is_valid_address(address: str) -> bool:
    return bool(address) and ADDRESS_PATTERN.match(address) is not None


def shorten_address(address: str, chars: int = 4) -> str:
    if not is_valid_address(address):
        return address
    return f"{address[:2 + chars]}...{address[-chars:]}"


def calculate_price_impact(current_price: float, target_price: float) -> float:
    """Percent move from current_price to target_price. 0 when current_price is 0."""
    if current_price == 0:
        return 0.0
    return (target_price - current_price) / current_price * 100
