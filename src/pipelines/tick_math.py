"""Concentrated-liquidity helpers.

Prices live on a geometric grid, price(tick) = 1.0001 ** tick, and liquidity
math is affine in sqrt-price. All amounts returned here are raw on-chain units;
callers divide by 10 ** decimals.
"""

import math


def tick_to_sqrt_price(tick: int) -> float:
    """Return sqrt(1.0001 ** tick).

    Very large |tick| may overflow to inf (or underflow to 0.0); callers only
    divide by these values for ticks bounding an in-range position.
    """
    try:
        return math.sqrt(math.pow(1.0001, tick))
    except OverflowError:
        return math.inf


def get_amounts(liquidity: float, tick_lower: int, tick_upper: int, current_tick: int) -> tuple[float, float]:
    """Token amounts (amount0, amount1) held by `liquidity` over [tick_lower, tick_upper].

    Assumes tick_lower < tick_upper. Below the range everything is token0,
    above it everything is token1.
    """
    current = tick_to_sqrt_price(current_tick)
    lower = tick_to_sqrt_price(tick_lower)
    upper = tick_to_sqrt_price(tick_upper)

    if current < lower:
        return liquidity * (1 / lower - 1 / upper), 0.0
    if current <= upper:
        return liquidity * (1 / current - 1 / upper), liquidity * (current - lower)
    return 0.0, liquidity * (upper - lower)
