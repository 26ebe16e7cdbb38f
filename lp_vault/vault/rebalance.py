"""
Rebalance Controller - AMM 범위 재설정과 예치처 재배분

순서 (중간 실패 시 전체 취소):
    1. Unwind: 범위 유동성 100% 제거 + 미수령분 수령, 예치처 이익은 가상 계산
    2. Value-balance: 두 자산 가치 차이가 허용 폭을 넘으면 한 번만 스왑
           swap_amount = excess / (2 × (1 - pool_fee))
    3. Resize: 스왑 후 가격에서 단측 유동성 L = min(L_A, L_B) 로 새 범위 산출
    4. Deploy: 필요한 수량만큼 예치처에서 인출 후 포지션 개설
    5. Sweep: 임계값을 넘는 유휴 잔고는 전부 예치처로

예치처 이익은 1단계에서 수수료를 부과한 뒤 추적 원금으로 편입됩니다.
실제 상환은 스왑이나 포지션 개설에 유휴 잔고가 모자랄 때만 일어납니다.
"""

import logging
from typing import TYPE_CHECKING, Tuple

from ..constants import FEE_DENOMINATOR, PERCENT, UINT128_MAX
from ..math.full_math import Rounding, mul_div, mul_fraction
from ..math.liquidity_math import get_amounts_for_liquidity, get_liquidity_for_amounts
from ..math.range_math import (
    RangeBounds,
    bounds_to_ticks,
    single_sided_liquidity,
    sqrt_bounds_for_liquidity,
    validate_range,
)
from ..math.sqrt_price_math import quote_token0_in_token1, quote_token1_in_token0
from ..math.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO, get_sqrt_ratio_at_tick
from . import ledger, valuation
from .errors import InvalidInputError, InvalidRangeError, LiquidityOverflowError
from .events import RebalanceEvent, emit

if TYPE_CHECKING:
    from .vault import Vault

logger = logging.getLogger(__name__)


# ===== 예치처 인출 =====

def pull_from_reserve(vault: "Vault", is_a: bool, amount: int) -> int:
    """예치처에서 최소 amount 를 상환 (보유 지분 한도 내)

    상환한 만큼 추적 원금을 줄입니다 (0 아래로는 내려가지 않음).

    Returns:
        실제로 돌려받은 자산 수량
    """
    reserve = vault.reserve(is_a)
    held = reserve.balance_of_shares(vault.address)
    if amount <= 0 or held == 0:
        return 0

    share_amount = min(
        held,
        mul_div(amount, 10 ** reserve.decimals(), reserve.exchange_rate(), Rounding.UP)
    )
    received = reserve.withdraw(vault, share_amount)

    state = vault.state
    state.set_reserve_deposited(is_a, max(0, state.reserve_deposited(is_a) - received))
    logger.debug("reserve pull: asset=%s requested=%d received=%d", "A" if is_a else "B", amount, received)
    return received


def ensure_idle(vault: "Vault", is_a: bool, needed: int) -> None:
    """유휴 잔고(적립 수수료 제외)가 needed 이상이 되도록 예치처에서 보충

    부족분에 withdrawal_buffer 만큼 더 인출합니다.
    """
    shortfall = needed - valuation.idle_balance(vault, is_a)
    if shortfall <= 0:
        return
    buffered = shortfall + mul_fraction(shortfall, vault.state.withdrawal_buffer, Rounding.UP)
    pull_from_reserve(vault, is_a, buffered)


# ===== 1. Unwind =====

def unwind_amm(vault: "Vault") -> Tuple[int, int, int, int]:
    """범위 포지션 전체 제거와 미수령분 수령

    Returns:
        (burned_a, burned_b, fee_gain_a, fee_gain_b)
    """
    state = vault.state
    burned_a = burned_b = 0
    liquidity = valuation.position_liquidity(vault)
    if liquidity > 0:
        burned_a, burned_b = vault.pool.close_position(
            vault, state.range_lower, state.range_upper, liquidity
        )
    collected_a, collected_b = vault.pool.collect_owed(
        vault, state.range_lower, state.range_upper, UINT128_MAX, UINT128_MAX
    )
    return burned_a, burned_b, collected_a - burned_a, collected_b - burned_b


def _unwind(vault: "Vault") -> None:
    state = vault.state
    _, _, fee_gain_a, fee_gain_b = unwind_amm(vault)

    redeemable = {is_a: valuation.reserve_redeemable(vault, is_a) for is_a in (True, False)}
    reserve_gain = {
        is_a: ledger.realized_gain(redeemable[is_a], state.reserve_deposited(is_a))
        for is_a in (True, False)
    }

    ledger.accrue_fee(state, fee_gain_a + reserve_gain[True], fee_gain_b + reserve_gain[False])

    # 수수료를 부과한 이익은 원금으로 편입. 손실은 원금을 줄이지 않음
    for is_a in (True, False):
        if reserve_gain[is_a] > 0:
            state.set_reserve_deposited(is_a, redeemable[is_a])


def available(vault: "Vault", is_a: bool) -> int:
    """유휴 잔고 + 예치처 상환 가능액 - 적립 수수료"""
    return max(0, valuation.idle_balance(vault, is_a) + valuation.reserve_redeemable(vault, is_a))


# ===== 2. Value-balance =====

def swap_amount_for_excess(excess: int, fee: int) -> int:
    """초과분(무거운 자산 단위)을 절반씩 맞추는 스왑 입력량

    swap_amount = excess / (2 × (1 - fee / 1e6))
    """
    return excess * FEE_DENOMINATOR // (2 * (FEE_DENOMINATOR - fee))


def _value_balance(vault: "Vault") -> bool:
    """두 자산 가치 차이가 허용 폭을 넘으면 한 번 스왑. 스왑 여부 반환"""
    state = vault.state
    sqrt_price = vault.pool.current_price()
    available_a = available(vault, True)
    available_b = available(vault, False)

    value_a = quote_token0_in_token1(available_a, sqrt_price, Rounding.DOWN)
    value_b = available_b
    diff = abs(value_a - value_b)

    if diff <= state.excess_ignore_band * (value_a + value_b):
        logger.debug("value imbalance %d within band %s, no swap", diff, state.excess_ignore_band)
        return False

    zero_for_one = value_a > value_b
    if zero_for_one:
        excess = quote_token1_in_token0(diff, sqrt_price, Rounding.DOWN)
        amount_in = min(swap_amount_for_excess(excess, vault.pool.fee), available_a)
    else:
        amount_in = min(swap_amount_for_excess(diff, vault.pool.fee), available_b)

    if amount_in == 0:
        logger.debug("swap amount rounds to zero, no swap")
        return False

    ensure_idle(vault, zero_for_one, amount_in)
    limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
    amount_a, amount_b = vault.pool.swap(vault, zero_for_one, amount_in, limit)
    logger.info("rebalance swap: zero_for_one=%s delta a=%d b=%d", zero_for_one, amount_a, amount_b)
    return True


# ===== 3. Resize =====

def compute_range(vault: "Vault", uniswap_share: int) -> Tuple[RangeBounds, int]:
    """스왑 후 가격에서 새 범위 계산과 검증

    Returns:
        (그리드에 맞춘 범위, 목표 유동성 L)

    Raises:
        InvalidRangeError: 범위를 만들 수 없거나 검증에 실패한 경우
    """
    sqrt_price = vault.pool.current_price()
    available_a = available(vault, True)
    available_b = available(vault, False)

    liquidity = single_sided_liquidity(sqrt_price, available_a, available_b)
    deploy_a = available_a * uniswap_share // PERCENT
    deploy_b = available_b * uniswap_share // PERCENT

    try:
        sqrt_lower, sqrt_upper = sqrt_bounds_for_liquidity(sqrt_price, liquidity, deploy_a, deploy_b)
        bounds = bounds_to_ticks(sqrt_lower, sqrt_upper, vault.pool.tick_spacing)
        validate_range(bounds, vault.pool.current_tick(), vault.pool.tick_spacing)
    except ValueError as e:
        raise InvalidRangeError(str(e)) from e

    return bounds, liquidity


# ===== 4. Deploy =====

def fundable_liquidity(
    sqrt_price_x96: int,
    bounds: RangeBounds,
    target: int,
    amount_a: int,
    amount_b: int
) -> int:
    """목표 유동성을 보유 수량으로 지불 가능한 값까지 낮춤 (지불액은 올림 기준)"""
    sqrt_lower = get_sqrt_ratio_at_tick(bounds.lower)
    sqrt_upper = get_sqrt_ratio_at_tick(bounds.upper)
    liquidity = min(
        target,
        get_liquidity_for_amounts(sqrt_price_x96, sqrt_lower, sqrt_upper, amount_a, amount_b)
    )

    while liquidity > 0:
        need_a, need_b = get_amounts_for_liquidity(
            sqrt_price_x96, sqrt_lower, sqrt_upper, liquidity, round_up=True
        )
        if need_a <= amount_a and need_b <= amount_b:
            break
        scaled = liquidity
        if need_a > amount_a:
            scaled = min(scaled, mul_div(liquidity, amount_a, need_a))
        if need_b > amount_b:
            scaled = min(scaled, mul_div(liquidity, amount_b, need_b))
        liquidity = min(scaled, liquidity - 1)

    if liquidity > UINT128_MAX:
        raise LiquidityOverflowError(f"유동성이 uint128 범위를 초과합니다: {liquidity}")
    return liquidity


def _deploy(vault: "Vault", bounds: RangeBounds, target_liquidity: int) -> Tuple[int, int, int]:
    state = vault.state
    sqrt_price = vault.pool.current_price()

    liquidity = fundable_liquidity(
        sqrt_price, bounds, target_liquidity, available(vault, True), available(vault, False)
    )

    state.range_lower, state.range_upper = bounds
    if liquidity == 0:
        logger.debug("no fundable liquidity for range [%d, %d]", bounds.lower, bounds.upper)
        return 0, 0, 0

    need_a, need_b = get_amounts_for_liquidity(
        sqrt_price,
        get_sqrt_ratio_at_tick(bounds.lower),
        get_sqrt_ratio_at_tick(bounds.upper),
        liquidity,
        round_up=True
    )
    ensure_idle(vault, True, need_a)
    ensure_idle(vault, False, need_b)

    paid_a, paid_b = vault.pool.open_position(vault, bounds.lower, bounds.upper, liquidity)
    return liquidity, paid_a, paid_b


# ===== 5. Sweep =====

def _sweep(vault: "Vault") -> None:
    state = vault.state
    for is_a in (True, False):
        ensure_idle(vault, is_a, 0)
        idle = valuation.idle_balance(vault, is_a)
        if idle <= state.reserve_deposit_threshold(is_a):
            continue

        reserve = vault.reserve(is_a)
        if mul_div(idle, 10 ** reserve.decimals(), reserve.exchange_rate()) == 0:
            logger.debug("idle %d below one reserve share, left idle", idle)
            continue

        reserve.deposit(vault, idle)
        state.set_reserve_deposited(is_a, state.reserve_deposited(is_a) + idle)


def rebalance(vault: "Vault", uniswap_share: int) -> RebalanceEvent:
    """AMM 범위 재설정과 자산 재배분

    Args:
        vault: 대상 vault
        uniswap_share: AMM 범위에 넣을 보유 자산 비율 (1-100, %)

    Raises:
        InvalidInputError: uniswap_share 가 범위를 벗어난 경우
        InvalidRangeError: 새 범위 검증 실패
        LiquidityOverflowError: 유동성이 uint128 을 초과
    """
    if not isinstance(uniswap_share, int) or not 0 < uniswap_share <= PERCENT:
        raise InvalidInputError(f"uniswap_share 는 1-{PERCENT} 범위여야 합니다: {uniswap_share}")

    state = vault.state

    _unwind(vault)
    swapped = _value_balance(vault)

    bounds, target_liquidity = compute_range(vault, uniswap_share)
    liquidity, amm_a, amm_b = _deploy(vault, bounds, target_liquidity)
    _sweep(vault)

    event = RebalanceEvent(
        tick=vault.pool.current_tick(),
        range_lower=state.range_lower,
        range_upper=state.range_upper,
        liquidity=liquidity,
        amm_amount_a=amm_a,
        amm_amount_b=amm_b,
        reserve_amount_a=valuation.reserve_redeemable(vault, True),
        reserve_amount_b=valuation.reserve_redeemable(vault, False),
        idle_amount_a=valuation.idle_balance(vault, True),
        idle_amount_b=valuation.idle_balance(vault, False),
        swapped=swapped,
        accrued_fee_a=state.accrued_fee_a,
        accrued_fee_b=state.accrued_fee_b,
    )
    emit(vault.events, event)
    return event
