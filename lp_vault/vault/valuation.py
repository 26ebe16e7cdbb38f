"""
Valuation Engine - vault 총 보유량 평가

세 원천의 합:
    (i)   AMM 범위 포지션을 현재 가격에서 상환했을 때의 수량
          + 미수령 수수료 (프로토콜 몫 제외)
    (ii)  예치처별 상환 가능액 (지분 × 교환비율)
          - 추적 원금 초과분(미실현 이익)에 대한 프로토콜 수수료
    (iii) vault 유휴 잔고 - 적립된 프로토콜 수수료

total_value()는 상태를 바꾸지 않는 순수 투영입니다. 다만 AMM의 미수령
수수료는 포지션을 poke(0 유동성 제거)해야 갱신되므로, deposit/withdraw
규모를 정하기 전에는 반드시 poke()를 먼저 호출합니다.
"""

from typing import TYPE_CHECKING, Tuple

from ..math.full_math import mul_div
from ..math.liquidity_math import get_amounts_for_liquidity
from ..math.tick_math import get_sqrt_ratio_at_tick
from . import ledger

if TYPE_CHECKING:
    from .vault import Vault


def poke(vault: "Vault") -> None:
    """AMM 포지션의 미수령 수수료 갱신 (AMM 협력자 상태 변경)"""
    state = vault.state
    info = vault.pool.position_info(vault.address, state.range_lower, state.range_upper)
    if info.liquidity > 0:
        vault.pool.close_position(vault, state.range_lower, state.range_upper, 0)


def position_liquidity(vault: "Vault") -> int:
    state = vault.state
    return vault.pool.position_info(vault.address, state.range_lower, state.range_upper).liquidity


def amm_holdings(vault: "Vault") -> Tuple[int, int]:
    """(i) 범위 포지션 상환액 + 프로토콜 몫을 뺀 미수령 수수료"""
    state = vault.state
    info = vault.pool.position_info(vault.address, state.range_lower, state.range_upper)

    amount_a, amount_b = get_amounts_for_liquidity(
        vault.pool.current_price(),
        get_sqrt_ratio_at_tick(state.range_lower),
        get_sqrt_ratio_at_tick(state.range_upper),
        info.liquidity
    )

    owed_a = info.tokens_owed_0 - ledger.fee_on(state, info.tokens_owed_0)
    owed_b = info.tokens_owed_1 - ledger.fee_on(state, info.tokens_owed_1)
    return amount_a + owed_a, amount_b + owed_b


def reserve_redeemable(vault: "Vault", is_a: bool) -> int:
    """예치처 지분의 현재 상환 가능액 (내림)"""
    reserve = vault.reserve(is_a)
    shares = reserve.balance_of_shares(vault.address)
    if shares == 0:
        return 0
    return mul_div(shares, reserve.exchange_rate(), 10 ** reserve.decimals())


def reserve_holdings(vault: "Vault") -> Tuple[int, int]:
    """(ii) 예치처 상환 가능액 - 미실현 이익에 대한 프로토콜 수수료"""
    state = vault.state
    holdings = []
    for is_a in (True, False):
        redeemable = reserve_redeemable(vault, is_a)
        gain = ledger.realized_gain(redeemable, state.reserve_deposited(is_a))
        holdings.append(redeemable - ledger.fee_on(state, gain))
    return holdings[0], holdings[1]


def idle_balance(vault: "Vault", is_a: bool) -> int:
    """유휴 잔고 - 적립 수수료. rebalance 도중에는 음수일 수 있음"""
    return vault.token(is_a).balance_of(vault.address) - vault.state.accrued_fee(is_a)


def idle_holdings(vault: "Vault") -> Tuple[int, int]:
    """(iii) 사용자 몫 유휴 잔고"""
    return max(0, idle_balance(vault, True)), max(0, idle_balance(vault, False))


def total_value(vault: "Vault") -> Tuple[int, int]:
    """vault 총 보유량 (value_a, value_b)"""
    amm_a, amm_b = amm_holdings(vault)
    reserve_a, reserve_b = reserve_holdings(vault)
    idle_a, idle_b = idle_holdings(vault)
    return amm_a + reserve_a + idle_a, amm_b + reserve_b + idle_b
