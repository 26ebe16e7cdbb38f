"""
Swap Math - 단일 스왑 스텝 계산 (exact input)

한 틱 구간 안에서 입력 수량, 출력 수량, 수수료와 다음 가격을 계산합니다.

References:
- Uniswap V3 Core: contracts/libraries/SwapMath.sol
"""

from typing import NamedTuple

from ..constants import FEE_DENOMINATOR
from .full_math import mul_div, mul_div_rounding_up
from .liquidity_math import get_amount0_delta, get_amount1_delta
from .sqrt_price_math import get_next_sqrt_price_from_input


class SwapStep(NamedTuple):
    """스왑 스텝 결과"""
    sqrt_price_next_x96: int
    amount_in: int  # 수수료 제외 입력
    amount_out: int
    fee_amount: int


def compute_swap_step(
    sqrt_price_current_x96: int,
    sqrt_price_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int
) -> SwapStep:
    """현재 가격에서 목표 가격까지 exact-input 스왑 한 스텝

    Args:
        sqrt_price_current_x96: 현재 sqrtPriceX96
        sqrt_price_target_x96: 이번 스텝의 목표 sqrtPriceX96 (다음 틱 또는 가격 한도)
        liquidity: 활성 유동성
        amount_remaining: 남은 입력 수량 (수수료 포함)
        fee_pips: 풀 수수료 (1e6 = 100%)

    Returns:
        SwapStep
    """
    if amount_remaining < 0:
        raise ValueError("exact input 스왑만 지원합니다")

    zero_for_one = sqrt_price_current_x96 >= sqrt_price_target_x96

    amount_remaining_less_fee = mul_div(amount_remaining, FEE_DENOMINATOR - fee_pips, FEE_DENOMINATOR)
    if zero_for_one:
        amount_in = get_amount0_delta(sqrt_price_target_x96, sqrt_price_current_x96, liquidity, True)
    else:
        amount_in = get_amount1_delta(sqrt_price_current_x96, sqrt_price_target_x96, liquidity, True)

    if amount_remaining_less_fee >= amount_in:
        sqrt_price_next_x96 = sqrt_price_target_x96
    else:
        sqrt_price_next_x96 = get_next_sqrt_price_from_input(
            sqrt_price_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
        )

    reached_target = sqrt_price_next_x96 == sqrt_price_target_x96

    if zero_for_one:
        if not reached_target:
            amount_in = get_amount0_delta(sqrt_price_next_x96, sqrt_price_current_x96, liquidity, True)
        amount_out = get_amount1_delta(sqrt_price_next_x96, sqrt_price_current_x96, liquidity, False)
    else:
        if not reached_target:
            amount_in = get_amount1_delta(sqrt_price_current_x96, sqrt_price_next_x96, liquidity, True)
        amount_out = get_amount0_delta(sqrt_price_current_x96, sqrt_price_next_x96, liquidity, False)

    if not reached_target:
        # 목표에 닿지 못하면 남은 입력은 전부 수수료
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, FEE_DENOMINATOR - fee_pips)

    return SwapStep(sqrt_price_next_x96, amount_in, amount_out, fee_amount)
