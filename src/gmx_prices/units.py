from __future__ import annotations

USD_DECIMALS = 30
GLV_VALUE_DECIMALS = 18
DISPLAY_DIGITS = 4


def rescale_oracle_quote(quote: int, token_decimals: int) -> int:
    """Rescale an oracle quote to 30-decimal USD.

    Args:
        quote: Oracle price with ``30 - token_decimals`` decimal places, i.e.
            the USD price of one base unit of the token.
        token_decimals: Decimal precision of the quoted token.

    Returns:
        The USD price of one whole token with 30-decimal precision.

    Notes:
        - Pure integer arithmetic, exact for any magnitude.
    """
    if token_decimals < 0:
        raise ValueError(f"token_decimals must be non-negative, got {token_decimals}")
    return quote * (10**token_decimals)


def midpoint(min_price: int, max_price: int) -> int:
    """Mid price of an oracle band, floored.

    Oracle bands are unsigned so floor and truncation agree.
    """
    return (min_price + max_price) // 2


def to_display_float(
    value: int, decimals: int = USD_DECIMALS, digits: int = DISPLAY_DIGITS
) -> float:
    """Convert a fixed-point integer to a float for display.

    Args:
        value: Signed integer amount expressed with ``decimals`` decimal places.
        decimals: Fixed-point precision of ``value`` (30 for pool USD amounts,
            18 for GLV values).
        digits: Number of fractional digits kept; the rest are truncated.

    Returns:
        The value as a float with the sign preserved.

    Notes:
        - The whole part is split off with integer division so large values
          never lose precision before the final float conversion.
        - Truncation is toward zero for negative values.
    """
    divisor = 10**decimals
    magnitude = abs(value)
    whole, remainder = divmod(magnitude, divisor)
    scale = 10**digits
    frac = remainder * scale // divisor
    result = (whole * scale + frac) / scale
    return -result if value < 0 else result
