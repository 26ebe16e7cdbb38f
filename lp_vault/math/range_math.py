"""
Range Math - rebalance 시 범위 포지션의 경계 계산과 검증

보유 자산 전체를 단측(single-sided) 범위에 넣었을 때 얻을 수 있는 유동성 L을
구하고, 그 L을 보유 자산의 일부(uniswap_share%)만으로 만들 수 있는
범위 경계를 역산합니다.

핵심 공식 (√P = 현재 sqrt price):
    L_A = A * √P                    # 범위 [P, ∞) 에 A 전부
    L_B = B / √P                    # 범위 (0, P] 에 B 전부
    L   = min(L_A, L_B)
    √P_lower     = √P - d_B / L
    1 / √P_upper = 1 / √P - d_A / L
"""

from typing import NamedTuple

from ..constants import Q96, MIN_TICK, MAX_TICK
from .full_math import Rounding, mul_div, div_rounding_up
from .liquidity_math import get_liquidity_for_amount0, get_liquidity_for_amount1
from .tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_tick_at_sqrt_ratio,
    round_tick_to_spacing,
    is_on_grid,
)


class RangeBounds(NamedTuple):
    """틱 그리드에 맞춰진 범위 경계"""
    lower: int
    upper: int

    @property
    def width(self) -> int:
        return self.upper - self.lower


def single_sided_liquidity(sqrt_price_x96: int, amount0: int, amount1: int) -> int:
    """각 자산을 단측 범위에 넣었을 때의 유동성 중 작은 값

    어느 한 자산도 부족하지 않도록 작은 쪽을 선택합니다.
    """
    liquidity0 = get_liquidity_for_amount0(sqrt_price_x96, MAX_SQRT_RATIO, amount0)
    liquidity1 = get_liquidity_for_amount1(MIN_SQRT_RATIO, sqrt_price_x96, amount1)
    return min(liquidity0, liquidity1)


def sqrt_bounds_for_liquidity(
    sqrt_price_x96: int,
    liquidity: int,
    amount0: int,
    amount1: int
) -> tuple:
    """주어진 유동성과 투입 수량으로부터 범위의 sqrt price 경계 계산

    경계는 범위가 넓어지는 방향으로 반올림합니다.

    Args:
        sqrt_price_x96: 현재 sqrtPriceX96
        liquidity: 목표 유동성 L
        amount0: 범위에 투입할 token0 수량 (d_A)
        amount1: 범위에 투입할 token1 수량 (d_B)

    Returns:
        (sqrt_lower_x96, sqrt_upper_x96)

    Raises:
        ValueError: 경계가 전역 가격 범위를 벗어나는 경우
    """
    if liquidity <= 0:
        raise ValueError("유동성이 0이면 범위를 계산할 수 없습니다")

    sqrt_lower = sqrt_price_x96 - div_rounding_up(amount1 * Q96, liquidity)
    if sqrt_lower < MIN_SQRT_RATIO:
        raise ValueError(f"하한 가격이 전역 범위를 벗어났습니다: {sqrt_lower}")

    # L - d_A * √P  (Q96 단위 환산 포함)
    denominator = liquidity - mul_div(amount0, sqrt_price_x96, Q96, Rounding.UP)
    if denominator <= 0:
        raise ValueError("상한 가격이 무한대입니다 (token0 투입량이 유동성 대비 과다)")

    sqrt_upper = mul_div(liquidity, sqrt_price_x96, denominator, Rounding.UP)
    if sqrt_upper >= MAX_SQRT_RATIO:
        raise ValueError(f"상한 가격이 전역 범위를 벗어났습니다: {sqrt_upper}")

    return sqrt_lower, sqrt_upper


def bounds_to_ticks(sqrt_lower_x96: int, sqrt_upper_x96: int, tick_spacing: int) -> RangeBounds:
    """sqrt price 경계를 가장 가까운 그리드 틱으로 변환"""
    lower = round_tick_to_spacing(get_tick_at_sqrt_ratio(sqrt_lower_x96), tick_spacing)
    upper = round_tick_to_spacing(get_tick_at_sqrt_ratio(sqrt_upper_x96), tick_spacing)
    return RangeBounds(lower, upper)


def validate_range(bounds: RangeBounds, current_tick: int, tick_spacing: int) -> None:
    """범위 유효성 검증

    - lower < upper
    - 두 경계 모두 전역 틱 범위 안
    - 두 경계 모두 틱 간격 배수
    - 현재 틱이 양 끝 전역 극단에서 범위 폭의 절반 이상 떨어져 있을 것

    Raises:
        ValueError: 조건을 하나라도 위반한 경우
    """
    lower, upper = bounds
    if lower >= upper:
        raise ValueError(f"하한이 상한보다 작아야 합니다: [{lower}, {upper}]")
    if lower < MIN_TICK or upper > MAX_TICK:
        raise ValueError(f"범위가 전역 틱 범위를 벗어났습니다: [{lower}, {upper}]")
    if not (is_on_grid(lower, tick_spacing) and is_on_grid(upper, tick_spacing)):
        raise ValueError(f"범위가 틱 간격 {tick_spacing}의 배수가 아닙니다: [{lower}, {upper}]")

    half_width = bounds.width // 2
    if current_tick - MIN_TICK <= half_width or MAX_TICK - current_tick <= half_width:
        raise ValueError(
            f"현재 틱 {current_tick}이 전역 극단에 너무 가깝습니다 (범위 폭 {bounds.width})"
        )
