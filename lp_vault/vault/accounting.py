"""
Share Accounting - 지분 발행(deposit)과 소각(withdraw)

Deposit:
    최초 예치는 현재 가격 기준 50/50 "가치" 비율로 맞추고
    shares = max(taken_a, taken_b) 로 부트스트랩합니다.
    이후에는 총 보유량 대비 비례로 받되, 받는 수량은 올림, 발행 지분은
    내림으로 계산해 기존 보유자가 희석되지 않게 합니다.

        cross   = min(desired_a * total_b, desired_b * total_a)
        taken_a = ceil(cross / total_b)
        taken_b = ceil(cross / total_a)
        shares  = floor(floor(cross * supply / total_a) / total_b)

Withdraw:
    소각 전 총발행량(pre_supply)을 한 번만 기록하고, 유휴 잔고 / AMM 유동성 /
    예치처 지분을 각각 shares / pre_supply 비율로 나눕니다. 전량 출금이면
    모든 원천을 100% 배분합니다. 실현 이익은 작업당 한 번만 ledger를 거칩니다.
"""

import logging
from typing import TYPE_CHECKING, Tuple

from ..constants import UINT128_MAX, ZERO_ADDRESS
from ..math.full_math import Rounding, mul_div, div_rounding_up
from ..math.sqrt_price_math import quote_token0_in_token1, quote_token1_in_token0
from . import ledger, valuation
from .errors import (
    InsufficientSharesError,
    InvalidInputError,
    InvalidRecipientError,
    InvariantViolation,
    SlippageError,
    SupplyCapError,
    ZeroSharesError,
)
from .events import DepositEvent, WithdrawEvent, emit

if TYPE_CHECKING:
    from .vault import Vault

logger = logging.getLogger(__name__)


def validate_recipient(vault: "Vault", recipient: str) -> None:
    if not recipient or recipient == ZERO_ADDRESS or recipient == vault.address:
        raise InvalidRecipientError(f"잘못된 수신자: {recipient!r}")


def compute_deposit(
    desired_a: int,
    desired_b: int,
    total_a: int,
    total_b: int,
    total_supply: int,
    sqrt_price_x96: int
) -> Tuple[int, int, int]:
    """예치 수량과 발행 지분 계산 (상태 변경 없음)

    Args:
        desired_a, desired_b: 사용자가 제시한 최대 예치 수량
        total_a, total_b: 예치 직전 vault 총 보유량
        total_supply: 예치 직전 지분 총발행량
        sqrt_price_x96: 현재 AMM 가격 (최초 예치에만 사용)

    Returns:
        (shares, taken_a, taken_b)

    Raises:
        InvalidInputError: 받을 수 있는 수량이 없는 경우
        InvariantViolation: 지분은 있는데 총 보유량이 0인 경우
    """
    if desired_a < 0 or desired_b < 0:
        raise InvalidInputError(f"예치 수량은 음수일 수 없습니다: ({desired_a}, {desired_b})")
    if desired_a == 0 and desired_b == 0:
        raise InvalidInputError("예치 수량이 모두 0입니다")

    # 최초 예치: 희소한 쪽에 맞춰 50/50 가치 비율
    if total_supply == 0:
        value_a = quote_token0_in_token1(desired_a, sqrt_price_x96, Rounding.DOWN)
        if value_a <= desired_b:
            taken_a = desired_a
            taken_b = min(desired_b, quote_token0_in_token1(desired_a, sqrt_price_x96, Rounding.UP))
        else:
            taken_b = desired_b
            taken_a = min(desired_a, quote_token1_in_token0(desired_b, sqrt_price_x96, Rounding.UP))
        return max(taken_a, taken_b), taken_a, taken_b

    if total_a == 0 and total_b == 0:
        raise InvariantViolation(f"지분 {total_supply}이 있지만 총 보유량이 0입니다")

    # 한쪽 자산만 보유 중이면 그 자산으로만 받음
    if total_a == 0:
        return mul_div(desired_b, total_supply, total_b), 0, desired_b
    if total_b == 0:
        return mul_div(desired_a, total_supply, total_a), desired_a, 0

    cross = min(desired_a * total_b, desired_b * total_a)
    if cross == 0:
        raise InvalidInputError(
            f"두 자산을 모두 보유한 vault에는 두 자산을 함께 예치해야 합니다: ({desired_a}, {desired_b})"
        )

    taken_a = div_rounding_up(cross, total_b)
    taken_b = div_rounding_up(cross, total_a)
    shares = mul_div(cross, total_supply, total_a) // total_b
    return shares, taken_a, taken_b


def deposit(
    vault: "Vault",
    desired_a: int,
    desired_b: int,
    min_a: int,
    min_b: int,
    recipient: str,
    sender: str
) -> Tuple[int, int, int]:
    """자산을 받고 지분 발행. 받은 자산은 다음 rebalance까지 유휴 상태로 둠

    Returns:
        (shares, taken_a, taken_b)
    """
    validate_recipient(vault, recipient)

    valuation.poke(vault)
    total_a, total_b = valuation.total_value(vault)
    supply = vault.shares.total_supply()

    shares, taken_a, taken_b = compute_deposit(
        desired_a, desired_b, total_a, total_b, supply, vault.pool.current_price()
    )

    if shares == 0:
        raise ZeroSharesError(f"발행될 지분이 0입니다 (taken {taken_a}, {taken_b})")
    if taken_a < min_a or taken_b < min_b:
        raise SlippageError(f"최소 수량 미달: taken ({taken_a}, {taken_b}) < min ({min_a}, {min_b})")
    if supply + shares > vault.state.max_total_supply:
        raise SupplyCapError(f"지분 상한 초과: {supply} + {shares} > {vault.state.max_total_supply}")

    if taken_a > 0:
        vault.token_a.transfer(sender, vault.address, taken_a)
    if taken_b > 0:
        vault.token_b.transfer(sender, vault.address, taken_b)
    vault.shares.mint(recipient, shares)

    emit(vault.events, DepositEvent(
        sender=sender,
        recipient=recipient,
        shares=shares,
        amount_a=taken_a,
        amount_b=taken_b,
        total_supply=supply + shares,
    ))
    return shares, taken_a, taken_b


def withdraw(
    vault: "Vault",
    shares: int,
    min_a: int,
    min_b: int,
    recipient: str,
    sender: str
) -> Tuple[int, int]:
    """지분을 소각하고 각 원천에서 비례 몫을 돌려줌

    Returns:
        (out_a, out_b)
    """
    validate_recipient(vault, recipient)
    if shares <= 0:
        raise ZeroSharesError(f"출금 지분은 양수여야 합니다: {shares}")
    balance = vault.shares.balance_of(sender)
    if shares > balance:
        raise InsufficientSharesError(f"보유 지분 부족: {shares} > {balance}")

    # 소각 전 총발행량
    pre_supply = vault.shares.total_supply()
    vault.shares.burn(sender, shares)
    full_exit = shares == pre_supply

    def portion(amount: int) -> int:
        if full_exit:
            return amount
        return mul_div(amount, shares, pre_supply)

    state = vault.state

    # 1. 유휴 잔고 (외부 호출 전 기준)
    idle_a, idle_b = valuation.idle_holdings(vault)
    out_a = portion(idle_a)
    out_b = portion(idle_b)

    # 2. AMM 포지션: 유동성 비례 제거 후 미수령분 전량 수령
    amm_gain_a = amm_gain_b = 0
    liquidity = valuation.position_liquidity(vault)
    if liquidity > 0:
        burned_a, burned_b = vault.pool.close_position(
            vault, state.range_lower, state.range_upper, portion(liquidity)
        )
        collected_a, collected_b = vault.pool.collect_owed(
            vault, state.range_lower, state.range_upper, UINT128_MAX, UINT128_MAX
        )
        amm_gain_a = collected_a - burned_a
        amm_gain_b = collected_b - burned_b
        out_a += burned_a
        out_b += burned_b

    # 3. 예치처: 지분 비례 상환, 추적 원금 비례분을 넘는 금액이 이익
    reserve_gain = {}
    for is_a in (True, False):
        reserve = vault.reserve(is_a)
        redeem_shares = portion(reserve.balance_of_shares(vault.address))
        principal = portion(state.reserve_deposited(is_a))
        redeemed = reserve.withdraw(vault, redeem_shares) if redeem_shares > 0 else 0
        state.set_reserve_deposited(is_a, state.reserve_deposited(is_a) - principal)
        reserve_gain[is_a] = ledger.realized_gain(redeemed, principal)
        if is_a:
            out_a += redeemed
        else:
            out_b += redeemed

    # 4. 실현 이익 총액에 수수료 한 번 부과
    net_a, net_b = ledger.accrue_fee(
        state, amm_gain_a + reserve_gain[True], amm_gain_b + reserve_gain[False]
    )
    fee_a = amm_gain_a + reserve_gain[True] - net_a
    fee_b = amm_gain_b + reserve_gain[False] - net_b
    amm_fee_a, reserve_fee_a = ledger.split_fee(fee_a, amm_gain_a, reserve_gain[True])
    amm_fee_b, reserve_fee_b = ledger.split_fee(fee_b, amm_gain_b, reserve_gain[False])

    # 예치처 순이익은 전부, AMM 순수수료는 지분 비례 몫만
    out_a += portion(amm_gain_a - amm_fee_a) - reserve_fee_a
    out_b += portion(amm_gain_b - amm_fee_b) - reserve_fee_b

    if out_a < min_a or out_b < min_b:
        raise SlippageError(f"최소 수량 미달: out ({out_a}, {out_b}) < min ({min_a}, {min_b})")

    if out_a > 0:
        vault.token_a.transfer(vault.address, recipient, out_a)
    if out_b > 0:
        vault.token_b.transfer(vault.address, recipient, out_b)

    emit(vault.events, WithdrawEvent(
        sender=sender,
        recipient=recipient,
        shares=shares,
        amount_a=out_a,
        amount_b=out_b,
        total_supply=pre_supply - shares,
    ))
    return out_a, out_b
