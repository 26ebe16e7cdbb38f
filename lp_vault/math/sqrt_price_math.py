"""
Sqrt Price Math - sqrtPriceX96 관련 계산

가격은 sqrtPriceX96 형식으로 저장됩니다.
sqrtPriceX96 = sqrt(price) * 2^96, price = token1 / token0

Vault는 이 모듈로 두 자산의 가치를 상호 환산하고(quote),
스왑 시 다음 가격을 계산합니다.

References:
- Uniswap V3 Core: contracts/libraries/SqrtPriceMath.sol
"""

from ..constants import Q192
from .full_math import Rounding, mul_div, mul_div_rounding_up, div_rounding_up


def quote_token0_in_token1(
    amount0: int,
    sqrt_price_x96: int,
    rounding: Rounding = Rounding.DOWN
) -> int:
    """token0 수량을 현재 가격에서 token1 가치로 환산

    value1 = amount0 * sqrtPriceX96^2 / 2^192
    """
    return mul_div(amount0, sqrt_price_x96 * sqrt_price_x96, Q192, rounding)


def quote_token1_in_token0(
    amount1: int,
    sqrt_price_x96: int,
    rounding: Rounding = Rounding.DOWN
) -> int:
    """token1 수량을 현재 가격에서 token0 가치로 환산

    value0 = amount1 * 2^192 / sqrtPriceX96^2
    """
    if sqrt_price_x96 <= 0:
        raise ValueError("가격은 양수여야 합니다")
    return mul_div(amount1, Q192, sqrt_price_x96 * sqrt_price_x96, rounding)


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """amount0 변화에 따른 다음 sqrtPriceX96 계산 (올림)

    Args:
        sqrt_price_x96: 현재 sqrtPriceX96
        liquidity: 유동성
        amount: amount0 변화량
        add: True면 추가, False면 제거

    Returns:
        새로운 sqrtPriceX96
    """
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96

    if add:
        denominator = numerator1 + product
        return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)
    else:
        if numerator1 <= product:
            raise ValueError("유동성이 부족하여 amount0를 제거할 수 없습니다")
        denominator = numerator1 - product
        return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """amount1 변화에 따른 다음 sqrtPriceX96 계산 (내림)"""
    if add:
        quotient = (amount << 96) // liquidity
        return sqrt_price_x96 + quotient
    else:
        quotient = div_rounding_up(amount << 96, liquidity)
        if sqrt_price_x96 <= quotient:
            raise ValueError("유동성이 부족하여 amount1을 제거할 수 없습니다")
        return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool
) -> int:
    """입력 수량으로 스왑했을 때의 다음 sqrtPriceX96

    목표 가격을 넘지 않도록 token0 입력은 올림, token1 입력은 내림.
    """
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("가격과 유동성은 양수여야 합니다")

    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)
