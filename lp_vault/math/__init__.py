"""
Math layer for the vault engine

온체인 수준 정밀도의 정수 수학 함수들:
- full_math: 반올림 방향이 명시된 mul/div
- tick_math: Tick ↔ sqrtPrice 변환, 틱 그리드
- sqrt_price_math: 가격 환산(quote)과 다음 가격 계산
- liquidity_math: 유동성 ↔ 토큰 수량
- fee_math: 포지션 수수료 누적
- swap_math: 스왑 스텝
- range_math: rebalance 범위 계산과 검증
"""

from .full_math import (
    Rounding,
    mul_div,
    mul_div_rounding_up,
    div_rounding_up,
    mul_fraction,
)
from .tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_tick_at_sqrt_ratio,
    get_sqrt_ratio_at_tick,
    tick_to_price,
    round_tick_to_spacing,
    is_on_grid,
)
from .sqrt_price_math import (
    quote_token0_in_token1,
    quote_token1_in_token0,
)
from .liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_liquidity_for_amounts,
    get_amounts_for_liquidity,
)
from .fee_math import (
    fee_growth_inside,
    calculate_uncollected_fees,
    calculate_fee_growth_delta,
)
from .swap_math import SwapStep, compute_swap_step
from .range_math import (
    RangeBounds,
    single_sided_liquidity,
    sqrt_bounds_for_liquidity,
    bounds_to_ticks,
    validate_range,
)
