"""Price limit, minimum output and tick math."""

import pytest

from tradechat.core.chain.contracts import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK
from tradechat.core.trading.price_limits import (
    bounded_sqrt_price_limit,
    default_sqrt_price_limit,
    get_sqrt_ratio_at_tick,
    is_zero_for_one,
    minimum_output,
    slippage_in_ticks,
)


LOW = "0x1000000000000000000000000000000000000001"
HIGH = "0xA000000000000000000000000000000000000001"


def test_direction_follows_address_order():
    assert is_zero_for_one(LOW, HIGH) is True
    assert is_zero_for_one(HIGH, LOW) is False
    # Comparison ignores checksum casing
    assert is_zero_for_one("0xB000000000000000000000000000000000000000", "0xa000000000000000000000000000000000000000") is False


def test_default_limit_flips_with_direction():
    assert default_sqrt_price_limit(LOW, HIGH) == MIN_SQRT_RATIO + 1
    assert default_sqrt_price_limit(HIGH, LOW) == MAX_SQRT_RATIO - 1


def test_default_limit_strictly_inside_bounds():
    for a, b in ((LOW, HIGH), (HIGH, LOW)):
        limit = default_sqrt_price_limit(a, b)
        assert MIN_SQRT_RATIO < limit < MAX_SQRT_RATIO


def test_minimum_output_values():
    assert minimum_output(1_000_000, 50) == 995_000
    assert minimum_output(1_000_000, 0) == 1_000_000
    assert minimum_output(1_000_000, 10_000) == 0
    # Deduction rounds up
    assert minimum_output(1, 1) == 0
    assert minimum_output(199, 50) == 198


@pytest.mark.parametrize("amount", [1, 7, 999, 10 ** 6, 123_456_789_012_345_678])
@pytest.mark.parametrize("bps", [1, 50, 300, 9_999])
def test_minimum_output_strictly_below_amount_for_positive_tolerance(amount, bps):
    result = minimum_output(amount, bps)
    assert 0 <= result < amount


@pytest.mark.parametrize("bps", [-1, 10_001])
def test_minimum_output_rejects_tolerance_outside_range(bps):
    with pytest.raises(ValueError):
        minimum_output(1000, bps)


def test_tick_math_matches_protocol_constants():
    assert get_sqrt_ratio_at_tick(MIN_TICK) == MIN_SQRT_RATIO
    assert get_sqrt_ratio_at_tick(MAX_TICK) == MAX_SQRT_RATIO
    assert get_sqrt_ratio_at_tick(0) == 2 ** 96


def test_tick_math_is_monotonic():
    ticks = [-500_000, -60, -1, 0, 1, 60, 500_000]
    ratios = [get_sqrt_ratio_at_tick(tick) for tick in ticks]
    assert ratios == sorted(ratios)
    assert len(set(ratios)) == len(ratios)


def test_tick_out_of_range():
    with pytest.raises(ValueError):
        get_sqrt_ratio_at_tick(MAX_TICK + 1)


def test_slippage_in_ticks():
    assert slippage_in_ticks(0) == 1
    assert 1 <= slippage_in_ticks(1) <= 2
    # 0.5% is roughly 50 ticks of 1bp each
    assert 49 <= slippage_in_ticks(50) <= 51


def test_bounded_limit_moves_in_swap_direction():
    current = 1000
    price = get_sqrt_ratio_at_tick(current)

    down = bounded_sqrt_price_limit(current, True, 50)
    up = bounded_sqrt_price_limit(current, False, 50)

    assert MIN_SQRT_RATIO < down < price
    assert price < up < MAX_SQRT_RATIO


def test_bounded_limit_clamped_near_global_bounds():
    assert bounded_sqrt_price_limit(MIN_TICK + 1, True, 500) == MIN_SQRT_RATIO + 1
    assert bounded_sqrt_price_limit(MAX_TICK - 1, False, 500) == MAX_SQRT_RATIO - 1
