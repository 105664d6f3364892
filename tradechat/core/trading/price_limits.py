"""
Price limit and minimum output computation for single-pool swaps.

Two price-limit policies are offered:

* ``extreme``: the protocol-wide bound in the swap direction. This disables
  price-limit protection entirely and leaves ``amountOutMinimum`` as the only
  execution guard. It is a known weakening kept as the default because it
  never causes a swap to stop part-way.
* ``pool``: a bound derived from the pool's current tick moved by the
  slippage tolerance, computed with exact tick math.

``minimum_output`` applies the slippage tolerance to the *input* amount. That
is only a meaningful floor when input and output tokens have comparable
value; it is an approximation, not an output-value bound.
"""

import math

from ..chain.contracts import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK

BPS_DENOMINATOR = 10_000


def is_zero_for_one(token_in: str, token_out: str) -> bool:
    """True when ``token_in`` sorts before ``token_out`` (pool token0 -> token1)."""
    return token_in.lower() < token_out.lower()


def default_sqrt_price_limit(token_in: str, token_out: str) -> int:
    """Extreme price limit in the swap direction.

    Pools require the limit to lie strictly inside the global bounds, so the
    value is one step in from ``MIN_SQRT_RATIO`` / ``MAX_SQRT_RATIO``.
    """
    if is_zero_for_one(token_in, token_out):
        return MIN_SQRT_RATIO + 1
    return MAX_SQRT_RATIO - 1


def minimum_output(amount_in: int, slippage_bps: int) -> int:
    """``amount_in`` less the slippage share, rounded against the trader.

    The deduction is rounded up so any positive tolerance on a positive
    amount strictly lowers the floor.
    """
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"slippage_bps must be within [0, {BPS_DENOMINATOR}], got {slippage_bps}")
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative, got {amount_in}")
    deduction = -(-amount_in * slippage_bps // BPS_DENOMINATOR)
    return amount_in - deduction


_TICK_MULTIPLIERS = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """sqrtPriceX96 at ``tick``, bit-exact with the on-chain TickMath library."""
    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise ValueError(f"tick {tick} out of range")

    ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001 if abs_tick & 0x1 else 1 << 128
    for bit, multiplier in _TICK_MULTIPLIERS:
        if abs_tick & bit:
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = ((1 << 256) - 1) // ratio

    # Q128.128 -> Q64.96, rounding up
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def slippage_in_ticks(slippage_bps: int) -> int:
    """Number of ticks spanning a price move of ``slippage_bps`` (at least one)."""
    if slippage_bps <= 0:
        return 1
    ticks = math.log1p(slippage_bps / BPS_DENOMINATOR) / math.log(1.0001)
    return max(1, math.ceil(ticks))


def bounded_sqrt_price_limit(current_tick: int, zero_for_one: bool, slippage_bps: int) -> int:
    """Price limit ``slippage_bps`` away from the pool's current tick."""
    delta = slippage_in_ticks(slippage_bps)
    if zero_for_one:
        target = max(current_tick - delta, MIN_TICK)
        return max(get_sqrt_ratio_at_tick(target), MIN_SQRT_RATIO + 1)
    target = min(current_tick + delta, MAX_TICK)
    return min(get_sqrt_ratio_at_tick(target), MAX_SQRT_RATIO - 1)


__all__ = [
    "is_zero_for_one",
    "default_sqrt_price_limit",
    "minimum_output",
    "get_sqrt_ratio_at_tick",
    "slippage_in_ticks",
    "bounded_sqrt_price_limit",
]
