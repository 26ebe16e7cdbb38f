"""
Fee & Gain Ledger - 원금과 이익의 분리, 프로토콜 수수료 적립

이익은 항상 "예치처 단위로, 이전에 추적한 원금을 초과해 회수한 금액"입니다.
원금에는 절대 수수료를 부과하지 않으며, 손실이 난 예치처는 이익 0으로
취급합니다 (다른 예치처의 이익과 상계하지 않음).

작업당 한 번만 accrue_fee를 호출해 실현 이익 총액에 수수료를 부과합니다.
"""

import logging
from typing import Tuple

from ..math.full_math import Rounding, mul_div, mul_fraction
from .state import VaultState

logger = logging.getLogger(__name__)


def realized_gain(recovered: int, principal: int) -> int:
    """회수액 중 추적 원금을 초과하는 부분 (음수면 0)"""
    return max(0, recovered - principal)


def fee_on(state: VaultState, gain: int) -> int:
    """이익에 대한 프로토콜 수수료 (내림). 상태를 변경하지 않음"""
    if gain <= 0 or state.protocol_fee_rate <= 0:
        return 0
    return mul_fraction(gain, state.protocol_fee_rate, Rounding.DOWN)


def accrue_fee(state: VaultState, gain_a: int, gain_b: int) -> Tuple[int, int]:
    """실현 이익에서 프로토콜 수수료를 적립하고 순이익을 반환

    Args:
        state: vault 상태
        gain_a: 자산 A 실현 이익 총액
        gain_b: 자산 B 실현 이익 총액

    Returns:
        (net_gain_a, net_gain_b)
    """
    if gain_a < 0 or gain_b < 0:
        raise ValueError(f"이익은 음수일 수 없습니다: ({gain_a}, {gain_b})")

    fee_a = fee_on(state, gain_a)
    fee_b = fee_on(state, gain_b)
    state.accrued_fee_a += fee_a
    state.accrued_fee_b += fee_b

    if fee_a or fee_b:
        logger.debug("protocol fee accrued: a=%d b=%d (gain a=%d b=%d)", fee_a, fee_b, gain_a, gain_b)

    return gain_a - fee_a, gain_b - fee_b


def split_fee(fee: int, first_gain: int, second_gain: int) -> Tuple[int, int]:
    """이미 부과된 수수료를 두 이익 원천에 비례 배분

    첫 번째 몫은 내림, 나머지는 두 번째 원천에 귀속됩니다.
    """
    total = first_gain + second_gain
    if total == 0 or fee == 0:
        return 0, 0
    first_fee = mul_div(fee, first_gain, total)
    return first_fee, fee - first_fee
